from typing import Any

from asgiref.sync import async_to_sync

from celery_tasks.main import celery_app  # noqa: F401
from celery_tasks.types import typed_shared_task
from loggers import get_logger
from src.core.email_service.fastapi_mailer import FastAPIMailer
from src.core.email_service.interfaces import Mailer
from src.core.utils.security import mask_email

logger = get_logger(__name__)


def get_mailer() -> Mailer:
    return FastAPIMailer()


@typed_shared_task(
    name="send_email_task",
    autoretry_for=(ConnectionError, TimeoutError),
    retry_backoff=True,
    max_retries=3,
)
def send_email_task(
    subject: str,
    recipients: list[str],
    template_name: str,
    context: dict[str, Any],
    subtype: str = "html",
) -> None:
    """
    Render and send a templated e-mail from the worker.

    The context may contain one-time links, so it is never logged.
    """
    masked = [mask_email(recipient) for recipient in recipients]
    try:
        async_to_sync(get_mailer().send_template)(
            subject=subject,
            recipients=recipients,
            template_name=template_name,
            template_data=context,
            subtype=subtype,
        )
    except Exception as e:
        logger.exception("Failed to send email '%s' to %s: %s", template_name, masked, e)
        raise
    logger.info("Email '%s' sent via Celery to %s", template_name, masked)
