from collections.abc import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.core.database.engine import engine
from src.core.database.uow import ApplicationUnitOfWork

async_session = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncGenerator[AsyncSession]:
    async with async_session() as session:
        yield session


def get_unit_of_work(
    session: AsyncSession = Depends(get_session),
) -> ApplicationUnitOfWork:
    """
    Request-scoped unit of work.

    It shares the request's session, so a use case sees the rows the
    authentication dependencies already loaded.
    """
    return ApplicationUnitOfWork(session)
