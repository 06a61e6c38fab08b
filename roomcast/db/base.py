"""SQLAlchemy Declarative Base — shared base class for all ORM models.

Design Decisions:
    - Separate file for Base: alembic env and models import it without cycles
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all roomcast ORM models."""
    pass
