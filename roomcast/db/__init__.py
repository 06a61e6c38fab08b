"""Database Infrastructure — SQLAlchemy declarative Base.

Invariants:
    - Single async engine per backend (owned by DatabaseSessionManager)
    - All sessions are async (AsyncSession)
"""
