from pathlib import Path

from fastapi_mail import ConnectionConfig

from src.main.config import BroadcastingConfig, config

TEMPLATES_DIR = Path(__file__).parent / "templates"


def get_fastapi_mail_config(
    settings: BroadcastingConfig | None = None,
) -> ConnectionConfig:
    """SMTP settings for fastapi-mail; sending is suppressed under TESTING."""
    smtp = settings or config.broadcasting
    return ConnectionConfig(
        MAIL_SERVER=smtp.EMAIL_SERVER,
        MAIL_PORT=smtp.EMAIL_PORT,
        MAIL_USERNAME=smtp.EMAIL_USER,
        MAIL_PASSWORD=smtp.EMAIL_PASSWORD,
        MAIL_FROM=smtp.EMAIL_USER,
        MAIL_FROM_NAME=smtp.EMAIL_FROM_NAME,
        MAIL_STARTTLS=smtp.EMAIL_STARTTLS,
        MAIL_SSL_TLS=smtp.EMAIL_USE_TLS,
        USE_CREDENTIALS=True,
        VALIDATE_CERTS=smtp.VALIDATE_CERTS,
        TEMPLATE_FOLDER=TEMPLATES_DIR,
        SUPPRESS_SEND=int(config.app.TESTING),
    )
