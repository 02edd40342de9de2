from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.uow.sqlalchemy import SQLAlchemyUnitOfWork
from src.user.repositories import UserRepository


class ApplicationUnitOfWork(SQLAlchemyUnitOfWork):
    """The repositories of this service, sharing the unit's session."""

    def __init__(self, session: AsyncSession):
        super().__init__(session)
        self.users = UserRepository()
