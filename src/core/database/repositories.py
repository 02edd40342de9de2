from typing import Any, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from loggers import get_logger
from src.core.database.base import Base as SQLAlchemyBase

logger = get_logger(__name__)

T = TypeVar("T", bound=SQLAlchemyBase)


class BaseRepository(Generic[T]):
    """
    Stateless queries over one model.

    Every method works on the session it is given and only stages changes;
    committing is left to the unit of work that owns the session.
    """

    model: type[T]

    def __init__(self) -> None:
        if not hasattr(self, "model"):
            raise NotImplementedError("Subclasses must define class variable 'model'")

    async def create(self, session: AsyncSession, data: dict[str, Any]) -> T:
        """Add a new row and flush, so database defaults and the id are populated."""
        instance = self.model(**data)
        session.add(instance)
        await session.flush()
        logger.debug("%s created [Staged, pending commit].", self.model.__name__)
        return instance

    async def get_single(
        self,
        session: AsyncSession,
        for_update: bool = False,
        **filters: Any,
    ) -> T | None:
        """
        First row matching the equality filters.

        With for_update the row is locked (SELECT ... FOR UPDATE OF <table>)
        until the surrounding transaction ends.
        """
        query = select(self.model).filter_by(**filters).limit(1)

        if for_update:
            table = getattr(self.model, "__table__")
            pk_columns = tuple(
                cast("ColumnElement[Any]", column)
                for column in table.primary_key.columns
            )
            query = query.with_for_update(of=pk_columns or (table,))

        result = await session.execute(query)
        return result.unique().scalars().first()

    async def update(
        self, session: AsyncSession, data: dict[str, Any], **filters: Any
    ) -> T | None:
        """Apply data to the first row matching filters; None when nothing matched."""
        if not filters:
            raise ValueError("At least one filter must be provided for update")

        instance = await self.get_single(session, **filters)
        if instance is None:
            logger.debug(
                "%s update skipped [NotFound]. filters=%s",
                self.model.__name__,
                sorted(filters),
            )
            return None

        for key, value in data.items():
            setattr(instance, key, value)
        logger.debug("%s updated [Staged, pending commit].", self.model.__name__)
        return instance
