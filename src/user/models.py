from sqlalchemy import Boolean, Enum as SQLEnum, String
from sqlalchemy.orm import Mapped, mapped_column

from src.core.database.base import Base
from src.core.database.mixins import TimestampMixin, UUIDIDMixin
from src.user.enums import UserRole


class User(Base, UUIDIDMixin, TimestampMixin):
    __tablename__ = "users"

    first_name: Mapped[str] = mapped_column(String(50))
    last_name: Mapped[str] = mapped_column(String(50))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    # Null until the owner sets a password through the reset flow
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    # At most one outstanding reset token per user
    password_reset_token: Mapped[str | None] = mapped_column(
        String(64), nullable=True, unique=True
    )
    role: Mapped[UserRole] = mapped_column(
        SQLEnum(UserRole), nullable=False, default=UserRole.GUEST
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    # Set by "sign out everywhere"; stops silent session renewal until next sign-in
    cancel_renewal: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<User(id={str(self.id)}, email={self.email!r}, role={self.role!r})>"
