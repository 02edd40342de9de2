"""
Sign-in credential checks.

The lookup must cost the same whether or not the identity exists: a missing
user (or one who never set a password) is verified against
``DUMMY_PASSWORD_HASH`` so that argon2 always runs with production cost
parameters. Callers get NO_MATCH in both cases and must not tell them apart.
"""

from dataclasses import dataclass
from enum import StrEnum

import sentry_sdk
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.utils.security import mask_email, normalize_email, verify_password
from src.user.models import User
from src.user.repositories import UserRepository

logger = get_logger(__name__)

# Same scheme, version and cost as pwd_context; the password behind it is unknown
DUMMY_PASSWORD_HASH = (
    "$argon2id$v=19$m=65536,t=3,p=2$"
    "dbrEygfCuWrVVGOz9cGJHg$"
    "WNr0TlY32tf5WNp/P5KgQeXbEi/CSje/AbxwegHgLy0"
)


class CredentialCheck(StrEnum):
    MATCH = "match"
    NO_MATCH = "no_match"
    VERIFIER_ERROR = "verifier_error"


@dataclass(frozen=True, slots=True)
class CredentialVerification:
    status: CredentialCheck
    user: User | None = None

    @property
    def matched(self) -> bool:
        return self.status is CredentialCheck.MATCH


class CredentialVerifier:
    def __init__(self, repository: UserRepository | None = None) -> None:
        self.repository = repository or UserRepository()

    async def verify(
        self, session: AsyncSession, secret: str, identity_key: str
    ) -> CredentialVerification:
        email = normalize_email(identity_key)
        user = await self.repository.get_single(session, email=email)

        stored_hash = user.password_hash if user is not None else None
        if stored_hash is None:
            # No early return: the dummy verification equalises latency
            try:
                await verify_password(secret, DUMMY_PASSWORD_HASH)
            except ValueError:
                logger.error("[CredentialVerifier] Dummy password hash rejected.")
            logger.debug(
                "[CredentialVerifier] No usable credentials for '%s'.",
                mask_email(email),
            )
            return CredentialVerification(CredentialCheck.NO_MATCH)

        try:
            matched = await verify_password(secret, stored_hash)
        except ValueError as exc:
            logger.error(
                "[CredentialVerifier] Stored password hash of user %s is unusable: %s",
                user.id,
                exc,
            )
            sentry_sdk.capture_exception(exc)
            return CredentialVerification(CredentialCheck.VERIFIER_ERROR, user)

        if not matched:
            logger.debug(
                "[CredentialVerifier] Password mismatch for '%s'.", mask_email(email)
            )
            return CredentialVerification(CredentialCheck.NO_MATCH)

        return CredentialVerification(CredentialCheck.MATCH, user)
