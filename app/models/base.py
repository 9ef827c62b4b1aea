"""SQLAlchemy declarative Base for the account store schema."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base; Alembic autogenerates from Base.metadata."""
