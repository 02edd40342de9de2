from src.core.email_service.service import EmailService


def get_email_service() -> EmailService:
    return EmailService()
