from starlette.datastructures import URL

from src.core.email_service.schemas import MailTemplateRegistrationBody
from src.core.email_service.service import EmailService
from src.main.config import config
from src.user.models import User


class RegistrationNotifier:
    """Welcomes a new user and points them to the page where a first password is set."""

    def __init__(
        self,
        email_service: EmailService,
        reset_request_path: str = config.password_reset.PASSWORD_RESET_REQUEST_PATH,
    ) -> None:
        self.email_service = email_service
        self.reset_request_path = reset_request_path.strip("/")

    async def send_registration_email(self, user: User, base_url: URL | str) -> None:
        link = f"{str(base_url).rstrip('/')}/{self.reset_request_path}"
        await self.email_service.send_template_email_with_delay(
            subject=f"{config.app.PROJECT_NAME} registration",
            recipients=user.email,
            template_name="registration.html",
            template_body=MailTemplateRegistrationBody(
                title="Welcome aboard",
                link=link,
                name=user.first_name,
            ),
        )
