"""Database Metadata — SQLAlchemy declarative Base shared by all ORM models.

Invariants:
    - Single async engine per process (owned by DatabaseSessionManager)
    - All sessions are async (AsyncSession)

Design Decisions:
    - asyncpg driver for PostgreSQL (native async, no thread pool overhead)
"""
