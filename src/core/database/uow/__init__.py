from src.core.database.uow.abstract import UnitOfWork
from src.core.database.uow.application import ApplicationUnitOfWork
from src.core.database.uow.sqlalchemy import SQLAlchemyUnitOfWork

__all__ = ["UnitOfWork", "SQLAlchemyUnitOfWork", "ApplicationUnitOfWork"]
