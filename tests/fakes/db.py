from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock


class FakeAsyncSession:
    """AsyncSession stand-in: mocked I/O, but a truthful in_transaction()."""

    def __init__(self, in_transaction: bool = False) -> None:
        self.transaction_depth = int(in_transaction)
        self.begun: list[str] = []
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.flush = AsyncMock()
        self.execute = AsyncMock()
        self.add = MagicMock()

    def in_transaction(self) -> bool:
        return self.transaction_depth > 0

    def begin(self) -> Any:
        return self._transaction("begin")

    def begin_nested(self) -> Any:
        return self._transaction("savepoint")

    @asynccontextmanager
    async def _transaction(self, kind: str) -> AsyncGenerator[None]:
        self.begun.append(kind)
        self.transaction_depth += 1
        try:
            yield
        finally:
            self.transaction_depth -= 1


class FakeUnitOfWork:
    """
    Unit of work over in-memory repositories. Each ``async with`` starts a
    new unit, so one instance can serve several requests of a scenario test.
    """

    def __init__(
        self,
        session: FakeAsyncSession | None = None,
        users: Any = None,
    ) -> None:
        self.session = session or FakeAsyncSession()
        self.users = users
        self.outcome: str | None = None
        self.commit = AsyncMock(side_effect=lambda: self._finish("committed"))
        self.rollback = AsyncMock(side_effect=lambda: self._finish("rolled back"))

    async def __aenter__(self) -> FakeUnitOfWork:
        self.outcome = None
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if exc_type is not None and self.outcome is None:
            await self.rollback()

    def _finish(self, outcome: str) -> None:
        if self.outcome is not None:
            raise RuntimeError(f"This unit of work was already {self.outcome}")
        self.outcome = outcome

    @property
    def completed(self) -> bool:
        return self.outcome is not None
