from pydantic import EmailStr, Field, field_validator, model_validator

from src.core.schemas import (
    Base,
    EmailNormalizationMixin,
    PersonNameValidationMixin,
    StrongPasswordValidationMixin,
)
from src.core.utils.security import normalize_email
from src.user.enums import UserRole


class SignInModel(Base):
    # Username and e-mail are synonymous
    username: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=1024)

    @field_validator("username")
    @classmethod
    def _normalize_username(cls, value: str) -> str:
        return normalize_email(value)


class AuthStateModel(Base):
    """The authenticated state carried in the session token."""

    user_id: str
    username: str
    name: str
    role: UserRole


class SignInResultModel(Base):
    auth: AuthStateModel
    redirect_to: str


class RegisterUserModel(PersonNameValidationMixin, EmailNormalizationMixin, Base):
    first_name: str
    last_name: str
    email: EmailStr


class ResetPasswordRequestModel(EmailNormalizationMixin, Base):
    email: EmailStr


class ResetPasswordModel(StrongPasswordValidationMixin, Base):
    password: str
    password_confirm: str

    @model_validator(mode="after")
    def _passwords_match(self) -> "ResetPasswordModel":
        if self.password != self.password_confirm:
            raise ValueError("Passwords do not match")
        return self
