from starlette.datastructures import URL

from src.core.email_service.schemas import MailTemplateResetPasswordBody
from src.core.email_service.service import EmailService
from src.main.config import config
from src.user.models import User


class ResetPasswordNotifier:
    """
    Sends the password reset link of an already persisted token.

    There is no per-address throttle here: a throttle answer would reveal
    which addresses belong to an account. The endpoint is rate limited by IP
    instead.
    """

    def __init__(
        self,
        email_service: EmailService,
        reset_password_path: str = config.password_reset.PASSWORD_RESET_PATH,
        token_ttl_seconds: int = config.password_reset.PASSWORD_RESET_TOKEN_TTL_SECONDS,
    ) -> None:
        self.email_service = email_service
        self.reset_password_path = reset_password_path.strip("/")
        self.token_ttl_seconds = token_ttl_seconds

    def build_link(self, base_url: URL | str, token: str) -> str:
        return f"{str(base_url).rstrip('/')}/{self.reset_password_path}/{token}"

    async def send_password_reset_email(
        self, user: User, base_url: URL | str, token: str
    ) -> None:
        await self.email_service.send_template_email_with_delay(
            subject="Resetting password",
            recipients=user.email,
            template_name="reset_password.html",
            template_body=MailTemplateResetPasswordBody(
                title="Restore access",
                link=self.build_link(base_url, token),
                name=user.full_name,
                valid_hours=max(1, self.token_ttl_seconds // 3600),
            ),
        )
