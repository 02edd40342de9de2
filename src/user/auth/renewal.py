from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from loggers import get_logger
from src.user.repositories import UserRepository

logger = get_logger(__name__)


class UserRenewalApprover:
    """
    Allows a session to renew while its user is still allowed to be signed in.

    Renewal happens inside authentication dependencies, before a request
    session exists, so the approver opens a short-lived session of its own.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        repository: UserRepository | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.repository = repository or UserRepository()

    async def __call__(self, subject: str) -> bool:
        try:
            user_id = UUID(subject)
        except ValueError:
            logger.warning("[RenewalApprover] Malformed session subject %r.", subject)
            return False

        async with self.session_factory() as session:
            user = await self.repository.get_single(session, id=user_id)

        if user is None:
            logger.info("[RenewalApprover] User %s no longer exists.", user_id)
            return False
        if not user.is_active:
            logger.info("[RenewalApprover] User %s is blocked.", user_id)
            return False
        if user.cancel_renewal:
            logger.info("[RenewalApprover] User %s signed out everywhere.", user_id)
            return False
        return True
