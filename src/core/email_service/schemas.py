from src.core.schemas import Base


class MailTemplateLinkBody(Base):
    """Context of templates that greet the user and point to a single link."""

    title: str
    link: str
    name: str


class MailTemplateResetPasswordBody(MailTemplateLinkBody):
    valid_hours: int


class MailTemplateRegistrationBody(MailTemplateLinkBody):
    pass
