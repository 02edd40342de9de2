import logging
from typing import Any

import sentry_sdk
from sentry_sdk.integrations.celery import CeleryIntegration
from sentry_sdk.integrations.logging import LoggingIntegration

from loggers import get_logger
from src.core.utils.security import mask_reset_link
from src.main.config import config

logger = get_logger(__name__)

_sentry_initialized = False

SCRUBBED_HEADERS = frozenset({"cookie", "set-cookie", "authorization"})


def scrub_event(event: dict[str, Any], hint: dict[str, Any]) -> dict[str, Any]:
    """Strip secrets from the request part of an event before it is sent."""
    request = event.get("request") or {}
    request.pop("cookies", None)
    if isinstance(request.get("url"), str):
        request["url"] = mask_reset_link(request["url"])
    headers = request.get("headers")
    if isinstance(headers, dict):
        request["headers"] = {
            key: value
            for key, value in headers.items()
            if key.lower() not in SCRUBBED_HEADERS
        }
    return event


def init_sentry() -> None:
    """
    Initialize the Sentry client once. Skipped for DEBUG and TESTING runs and
    when no DSN is configured.
    """
    global _sentry_initialized

    if _sentry_initialized:
        return

    if config.app.DEBUG or config.app.TESTING:
        logger.info("DEBUG/TESTING enabled. Skipping Sentry initialization.")
        return

    if not config.sentry.SENTRY_ENABLED or not config.sentry.SENTRY_DSN:
        logger.info("Sentry disabled or DSN empty. Skipping Sentry initialization.")
        return

    sentry_sdk.init(
        dsn=config.sentry.SENTRY_DSN,
        environment=config.sentry.SENTRY_ENV,
        release=config.app.VERSION,
        send_default_pii=False,
        before_send=scrub_event,
        integrations=[
            CeleryIntegration(),
            # Breadcrumbs from INFO; events only from explicit captures and CRITICAL logs
            LoggingIntegration(level=logging.INFO, event_level=logging.CRITICAL),
        ],
    )
    _sentry_initialized = True
    logger.info("Sentry initialized.")
