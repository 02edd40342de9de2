from enum import StrEnum


class UserRole(StrEnum):
    ADMIN = "admin"  # Back-office access, lands on /admin after sign-in
    GUEST = "guest"  # Self-registered account

    @classmethod
    def values(cls) -> set[str]:
        return {item.value for item in cls.__members__.values()}
