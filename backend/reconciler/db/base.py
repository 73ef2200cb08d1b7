"""SQLAlchemy Declarative Base — shared base class for the event and playlist models.

Invariants:
    - All models inherit from Base
    - Base.metadata is the single source of truth for table metadata (alembic + tests)
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all event-completion ORM models."""
    pass
