from typing import Any

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from src.core.email_service.config import get_fastapi_mail_config


class FastAPIMailer:
    """Renders the Jinja2 templates of this package and sends them over SMTP."""

    def __init__(self, config: ConnectionConfig | None = None):
        self._mailer = FastMail(config or get_fastapi_mail_config())

    async def send_template(
        self,
        subject: str,
        recipients: list[str],
        template_name: str,
        template_data: dict[str, Any],
        subtype: str = "html",
    ) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=recipients,
            template_body=template_data,
            subtype=MessageType(subtype),
        )
        await self._mailer.send_message(message, template_name=template_name)
