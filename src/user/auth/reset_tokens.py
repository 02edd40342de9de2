"""
Password reset tokens.

A token is ``<issued-at seconds, base36>-<8 base36 chars>``. It carries no
signature: its value is only meaningful while it is stored on exactly one user
row, and the timestamp prefix lets an expired token be recognised without
any other lookup. At most one token per user is live; requesting a new one
overwrites it, a successful reset or an expiry check clears it.
"""

from datetime import datetime, timedelta
import secrets
import string

from loggers import get_logger
from src.core.database.uow import ApplicationUnitOfWork
from src.core.utils.datetime_utils import from_unix_seconds, get_utc_now
from src.core.validations import RESET_TOKEN_PATTERN
from src.main.config import config
from src.user.models import User

logger = get_logger(__name__)

BASE36_ALPHABET = string.digits + string.ascii_lowercase
RANDOM_PART_LENGTH = 8


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("Only non-negative integers can be encoded")
    digits = []
    while True:
        value, remainder = divmod(value, 36)
        digits.append(BASE36_ALPHABET[remainder])
        if value == 0:
            break
    return "".join(reversed(digits))


def generate_reset_token(issued_at: datetime | None = None) -> str:
    issued_at = issued_at or get_utc_now()
    random_part = "".join(
        secrets.choice(BASE36_ALPHABET) for _ in range(RANDOM_PART_LENGTH)
    )
    return f"{to_base36(int(issued_at.timestamp()))}-{random_part}"


def parse_issued_at(token: str) -> datetime | None:
    """Issue time encoded in the token prefix, None when it is not a base36 number."""
    prefix, separator, _ = token.partition("-")
    if not separator or not prefix:
        return None
    try:
        return from_unix_seconds(int(prefix, 36))
    except (ValueError, OverflowError, OSError):
        return None


def is_reset_token_expired(
    token: str, now: datetime | None = None, ttl_seconds: int | None = None
) -> bool:
    issued_at = parse_issued_at(token)
    if issued_at is None:
        return True
    ttl = (
        ttl_seconds
        if ttl_seconds is not None
        else config.password_reset.PASSWORD_RESET_TOKEN_TTL_SECONDS
    )
    return (now or get_utc_now()) - issued_at > timedelta(seconds=ttl)


async def get_user_for_reset_token(
    uow: ApplicationUnitOfWork,
    token: str,
    *,
    for_update: bool = False,
) -> User | None:
    """
    The user holding this reset token, or None.

    An expired token is cleared from its row and the unit of work is
    committed, so the caller must not reuse the unit of work after a None
    caused by expiry.
    """
    if not RESET_TOKEN_PATTERN.match(token):
        logger.info("[ResetToken] Malformed reset token presented.")
        return None

    user = await uow.users.get_single(
        uow.session, for_update=for_update, password_reset_token=token
    )
    if user is None:
        logger.info("[ResetToken] No user holds the presented reset token.")
        return None

    if is_reset_token_expired(token):
        await uow.users.update(
            uow.session, {"password_reset_token": None}, id=user.id
        )
        await uow.commit()
        logger.info("[ResetToken] Expired reset token of user %s cleared.", user.id)
        return None

    return user
