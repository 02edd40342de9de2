"""
Every ORM model, imported in one place so Base.metadata is complete for
Alembic autogeneration.
"""

from src.user.models import User as User
