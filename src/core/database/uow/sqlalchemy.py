from contextlib import AbstractAsyncContextManager
from types import TracebackType
from typing import Literal, Self

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database.transactions import safe_begin
from src.core.database.uow.abstract import UnitOfWork

Outcome = Literal["committed", "rolled back"]


class SQLAlchemyUnitOfWork(UnitOfWork):
    """Unit of work over one AsyncSession; the scope comes from safe_begin."""

    def __init__(self, session: AsyncSession):
        self._session = session
        self._scope: AbstractAsyncContextManager[None] | None = None
        self._outcome: Outcome | None = None

    async def __aenter__(self) -> Self:
        self._outcome = None
        self._scope = safe_begin(self._session)
        await self._scope.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        # Includes CancelledError: a cancelled request leaves nothing staged
        if exc_type is not None and self._outcome is None:
            await self.rollback()

        scope, self._scope = self._scope, None
        if scope is not None:
            await scope.__aexit__(exc_type, exc_val, exc_tb)

    async def commit(self) -> None:
        self._ensure_open()
        await self._session.commit()
        self._outcome = "committed"

    async def rollback(self) -> None:
        self._ensure_open()
        await self._session.rollback()
        self._outcome = "rolled back"

    def _ensure_open(self) -> None:
        if self._outcome is not None:
            raise RuntimeError(f"This unit of work was already {self._outcome}")

    @property
    def completed(self) -> bool:
        return self._outcome is not None

    @property
    def session(self) -> AsyncSession:
        return self._session
