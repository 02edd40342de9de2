import logging
from logging import FileHandler, Logger, StreamHandler
import os
import re
from typing import Any

from src.main.config import config

LOG_DIR = os.path.join(os.path.dirname(__file__), "..", "logs")
LOG_FILE = os.path.join(LOG_DIR, "debug.log")

os.makedirs(LOG_DIR, exist_ok=True)

logging_format = "%(asctime)s [%(levelname)s]|[%(process)d]| %(name)s: %(message)s"
plain_logging_format = "%(asctime)s [%(process)d]| %(message)s"
time_logging_format = "%Y-%m-%d %H:%M:%S"

log_level = getattr(logging, config.app.LOG_LEVEL.upper(), logging.INFO)
file_log_level = getattr(logging, config.app.LOG_LEVEL_FILE.upper(), logging.WARNING)

# Three dot-separated base64url segments, i.e. a serialized session token
JWT_PATTERN = re.compile(r"eyJ[\w-]*\.[\w-]+\.[\w-]+")


class SessionTokenRedactingFilter(logging.Filter):
    """Replaces anything shaped like a session token in the final message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if JWT_PATTERN.search(message):
            record.msg = JWT_PATTERN.sub("<redacted>", message)
            record.args = None
        return True


def _build_handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, time_logging_format))
    handler.addFilter(SessionTokenRedactingFilter())
    return handler


def get_file_handler() -> FileHandler:
    return _build_handler(  # type: ignore[return-value]
        FileHandler(LOG_FILE, "a", "utf-8"), file_log_level, logging_format
    )


def get_stream_handler(*, plain_format: bool = False) -> StreamHandler:  # type: ignore[type-arg]
    return _build_handler(  # type: ignore[return-value]
        StreamHandler(),
        log_level,
        plain_logging_format if plain_format else logging_format,
    )


def get_logger(name: Any, *, plain_format: bool = False) -> Logger:
    """
    Module logger writing to stderr and, unless plain_format is set, to
    logs/debug.log. Handlers are attached once per name.
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        return logger

    logger.setLevel(log_level)
    logger.addHandler(get_stream_handler(plain_format=plain_format))
    if not plain_format:
        logger.addHandler(get_file_handler())

    logger.propagate = False
    return logger
