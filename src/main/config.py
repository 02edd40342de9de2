from functools import lru_cache
import json
import logging
import os
from pathlib import Path
from typing import Any, Literal, Self

from dotenv import dotenv_values
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class BroadcastingConfig(BaseModel):
    EMAIL_SERVER: str
    EMAIL_PORT: int
    EMAIL_PASSWORD: str
    EMAIL_USER: str
    EMAIL_FROM_NAME: str
    EMAIL_USE_TLS: bool
    EMAIL_STARTTLS: bool
    VALIDATE_CERTS: bool

    model_config = ConfigDict(extra="ignore")


class RedisConfig(BaseModel):
    REDIS_HOST: str
    REDIS_PORT: int
    REDIS_PASSWORD: str
    REDIS_DATABASE: str
    REDIS_CELERY_DATABASE: str = "1"

    model_config = ConfigDict(extra="ignore")

    def _url(self, database: str) -> str:
        host = f"{self.REDIS_HOST}:{self.REDIS_PORT}"
        return f"redis://:{self.REDIS_PASSWORD}@{host}/{database}"

    @property
    def dsn(self) -> str:
        return self._url(self.REDIS_DATABASE)

    @property
    def celery_dsn(self) -> str:
        """Result backend of the e-mail worker, kept apart from the limiter keys."""
        return self._url(self.REDIS_CELERY_DATABASE)


class RabbitMQConfig(BaseModel):
    RABBITMQ_HOST: str
    RABBITMQ_PORT: int
    RABBITMQ_USER: str
    RABBITMQ_PASSWORD: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn(self) -> str:
        user = f"{self.RABBITMQ_USER}:{self.RABBITMQ_PASSWORD}"
        return f"amqp://{user}@{self.RABBITMQ_HOST}:{self.RABBITMQ_PORT}//"


class SentryConfig(BaseModel):
    SENTRY_DSN: str | None = None
    SENTRY_ENV: str = "development"
    SENTRY_ENABLED: bool = False

    model_config = ConfigDict(extra="ignore")


class SessionConfig(BaseModel):
    """
    Signing and transport settings of the session cookie.

    Cookie name and secret are plain strings; an empty value is rejected by
    SessionTokenManager at application start.
    """

    SESSION_COOKIE_NAME: str
    SESSION_SECRET_KEY: str
    SESSION_ALGORITHM: str = "HS256"

    SESSION_TOKEN_LIFETIME_SECONDS: int = Field(3600, gt=0)
    SESSION_INACTIVITY_LIMIT_SECONDS: int = Field(2_592_000, gt=0)

    SESSION_COOKIE_SECURE: bool = False
    # The client application reads the auth state from the cookie
    SESSION_COOKIE_HTTPONLY: bool = False
    SESSION_COOKIE_SAMESITE: Literal["strict", "lax", "none"] = "strict"

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="after")
    def check_inactivity_limit(self) -> Self:
        if self.SESSION_INACTIVITY_LIMIT_SECONDS <= self.SESSION_TOKEN_LIFETIME_SECONDS:
            raise ValueError(
                "SESSION_INACTIVITY_LIMIT_SECONDS must be greater than "
                "SESSION_TOKEN_LIFETIME_SECONDS"
            )
        return self


class PasswordResetConfig(BaseModel):
    PASSWORD_RESET_TOKEN_TTL_SECONDS: int = Field(86_400, gt=0)
    PASSWORD_RESET_PATH: str = "v1/auth/password/reset"
    PASSWORD_RESET_REQUEST_PATH: str = "v1/auth/password/reset-request"

    model_config = ConfigDict(extra="ignore")


class PostgresConfig(BaseModel):
    DB_ECHO: bool

    POSTGRES_USER: str
    POSTGRES_PASSWORD: str
    POSTGRES_HOST: str
    POSTGRES_PORT: int
    POSTGRES_DB: str

    model_config = ConfigDict(extra="ignore")

    @property
    def dsn_async(self) -> str:
        return (
            f"postgresql+asyncpg://"
            f"{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@"
            f"{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/"
            f"{self.POSTGRES_DB}"
        )


class AppConfig(BaseModel):
    VERSION: str
    DEBUG: bool = False
    TESTING: bool = False

    LOG_LEVEL: str
    LOG_LEVEL_FILE: str

    CORS_ALLOWED_ORIGINS: list[str] = Field(["*"])
    CORS_ALLOW_CREDENTIALS: bool = True
    CORS_ALLOWED_METHODS: list[str] = Field(["*"])
    CORS_ALLOWED_HEADERS: list[str] = Field(["*"])
    CORS_EXPOSE_HEADERS: list[str] = Field(["*"])

    TRUST_PROXY_HEADERS: bool

    PROJECT_NAME: str
    SIGN_IN_PATH: str = "/sign-in"

    model_config = ConfigDict(extra="ignore")

    @field_validator(
        "CORS_ALLOWED_ORIGINS",
        "CORS_ALLOWED_METHODS",
        "CORS_ALLOWED_HEADERS",
        "CORS_EXPOSE_HEADERS",
        mode="before",
    )
    @classmethod
    def parse_cors_list(cls, v: Any) -> list[str]:
        """Accepts a list, a JSON array, or a comma or semicolon separated string."""
        if isinstance(v, list):
            return v
        text = str(v).strip()
        if text.startswith("["):
            return [str(item) for item in json.loads(text)]
        separator = ";" if ";" in text and "," not in text else ","
        return [item.strip() for item in text.split(separator) if item.strip()]


class Config(BaseModel):
    app: AppConfig
    session: SessionConfig
    password_reset: PasswordResetConfig
    redis: RedisConfig
    sentry: SentryConfig
    postgres: PostgresConfig
    rabbitmq: RabbitMQConfig
    broadcasting: BroadcastingConfig

    model_config = ConfigDict(extra="ignore")


@lru_cache
def get_settings() -> Config:
    """Settings from .env (or .env.test when TESTING=true), overlaid by os.environ."""
    env_filename = ".env.test" if os.getenv("TESTING") == "true" else ".env"
    project_root = find_project_root(Path(__file__).resolve().parent)
    env_file_values = dotenv_values(project_root / env_filename)
    merged_env: dict[str, Any] = {
        k: v
        for k, v in {**env_file_values, **dict(os.environ)}.items()
        if v is not None
    }

    return Config(
        app=AppConfig(**merged_env),
        session=SessionConfig(**merged_env),
        password_reset=PasswordResetConfig(**merged_env),
        redis=RedisConfig(**merged_env),
        sentry=SentryConfig(**merged_env),
        postgres=PostgresConfig(**merged_env),
        rabbitmq=RabbitMQConfig(**merged_env),
        broadcasting=BroadcastingConfig(**merged_env),
    )


PROJECT_ROOT_MARKERS = ("pyproject.toml", "alembic.ini", ".env.example")


def find_project_root(start_path: Path | None = None, max_depth: int = 10) -> Path:
    """Nearest ancestor of start_path holding a project marker, else start_path."""
    start_path = start_path or Path.cwd()
    for candidate in [start_path, *start_path.parents][:max_depth]:
        if any((candidate / marker).exists() for marker in PROJECT_ROOT_MARKERS):
            logger.debug("Project root found: %s", candidate)
            return candidate

    logger.error(
        "No project root found within %s parent directories from %s",
        max_depth,
        start_path,
    )
    return start_path


config = get_settings()
