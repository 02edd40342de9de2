from typing import Any, Protocol


class Mailer(Protocol):
    """What the e-mail worker needs from an SMTP client."""

    async def send_template(
        self,
        subject: str,
        recipients: list[str],
        template_name: str,
        template_data: dict[str, Any],
        subtype: str = "html",
    ) -> None: ...
