from typing import Any, cast

from fastapi_mail import MessageType
from pydantic import BaseModel, EmailStr, TypeAdapter, ValidationError

from celery_tasks.types import CeleryTask
from loggers import get_logger
from src.core.email_service.tasks import send_email_task
from src.core.utils.security import mask_email

logger = get_logger(__name__)


class EmailService:
    """
    Queues templated e-mails on Celery.

    Rendering and SMTP happen in the worker, so a slow or unreachable mail
    server never holds up a request.
    """

    _email_adapter = TypeAdapter(EmailStr)

    def __init__(self, task: CeleryTask | None = None):
        self._task = task or cast(CeleryTask, send_email_task)

    async def send_template_email_with_delay(
        self,
        subject: str,
        recipients: str | list[str],
        template_name: str,
        template_body: BaseModel | dict[str, Any],
        subtype: MessageType = MessageType.html,
    ) -> None:
        addresses = self._valid_recipients(recipients)
        context = (
            template_body
            if isinstance(template_body, dict)
            else template_body.model_dump()
        )
        try:
            self._task.delay(subject, addresses, template_name, context, subtype.value)
        except Exception as e:
            logger.error("Failed to queue template email '%s': %s", template_name, e)
            raise
        logger.debug(
            "Email task '%s' queued for %s",
            template_name,
            [mask_email(address) for address in addresses],
        )

    def _valid_recipients(self, recipients: str | list[str]) -> list[str]:
        """
        Recipients that parse as e-mail addresses. Invalid ones are skipped
        with a warning; raises ValueError if none are left.
        """
        if isinstance(recipients, str):
            recipients = [recipients]

        valid = []
        for email in recipients:
            try:
                valid.append(str(self._email_adapter.validate_python(email)))
            except ValidationError:
                logger.warning("Invalid email address skipped: %s", mask_email(email))

        if not valid:
            raise ValueError("No valid recipient emails provided.")
        return valid
