"""ORM Models — SQLAlchemy declarative models.

Design Decisions:
    - All models imported here so Base.metadata is complete before create_all / autogenerate
"""

from roomcast.models.stored_collection import StoredCollection  # noqa: F401
