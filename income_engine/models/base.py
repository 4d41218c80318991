"""
Declarative base.

All ORM models inherit from Base so Alembic and create_all see one metadata.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
