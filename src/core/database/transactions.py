from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession


@asynccontextmanager
async def safe_begin(session: AsyncSession) -> AsyncGenerator[None]:
    """
    Open a transactional scope on the session.

    A fresh session gets a regular BEGIN ... COMMIT/ROLLBACK. A session that
    is already inside a transaction (for example one shared with a dependency
    that has read from it) gets a SAVEPOINT instead, so the unit of work can
    roll back its own changes without touching the outer transaction.
    """
    if session.in_transaction():
        async with session.begin_nested():
            yield
    else:
        async with session.begin():
            yield
