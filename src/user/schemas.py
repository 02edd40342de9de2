from uuid import UUID

from pydantic import EmailStr

from src.core.schemas import Base, EmailNormalizationMixin, PersonNameValidationMixin
from src.user.enums import UserRole


class UserProfileViewModel(Base):
    id: UUID
    first_name: str
    last_name: str
    email: EmailStr
    role: UserRole


class UpdateProfileModel(PersonNameValidationMixin, EmailNormalizationMixin, Base):
    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
