from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from loggers import get_logger
from src.core.database.repositories import BaseRepository
from src.user.models import User

logger = get_logger(__name__)


class UserRepository(BaseRepository[User]):

    model = User

    async def email_taken(
        self, session: AsyncSession, email: str, exclude_id: UUID | None = None
    ) -> bool:
        """Whether another user already owns the e-mail address."""
        query = select(User.id).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        result = await session.execute(query.limit(1))
        return result.first() is not None
