from pydantic import BaseModel, ConfigDict, EmailStr, field_validator

from src.core.utils.security import normalize_email
from src.core.validations import (
    NAME_MAX_LENGTH,
    NAME_PATTERN,
    STRONG_PASSWORD_VALIDATOR,
)


class Base(BaseModel):
    model_config = ConfigDict(
        from_attributes=True, use_enum_values=True, extra="forbid"
    )


class SuccessResponse(Base):
    success: bool


class EmailNormalizationMixin(BaseModel):
    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def _normalize_email(cls, v: str | EmailStr | None) -> str | None:
        return None if v is None else normalize_email(str(v))


class PersonNameValidationMixin(BaseModel):
    @field_validator("first_name", "last_name", check_fields=False)
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        if value is None:
            return value
        value = value.strip()
        if len(value) > NAME_MAX_LENGTH or not NAME_PATTERN.match(value):
            raise ValueError(
                "Names may contain letters, spaces, apostrophes and hyphens only"
            )
        return value


class StrongPasswordValidationMixin(BaseModel):
    @field_validator("password", check_fields=False)
    @classmethod
    def validate_password(cls, value: str) -> str:
        if not STRONG_PASSWORD_VALIDATOR.match(value):
            raise ValueError(
                "Password must contain at least one lowercase letter, one uppercase letter, one digit, one special character. Minimum length is 8 characters"
            )
        return value
