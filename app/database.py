"""
Database Connection and Session Management

This module sets up SQLAlchemy's async database engine and provides
a dependency injection function for FastAPI routes to access database sessions.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from app.config import settings


# Create async database engine
# - Uses asyncpg for PostgreSQL, aiosqlite for local SQLite files
# - Connection pool is automatically managed by SQLAlchemy
engine = create_async_engine(settings.DATABASE_URL, echo=False)


# Session factory for creating database sessions
# - expire_on_commit=False: objects stay readable after commit, since
#   async sessions cannot lazily refresh attributes
AsyncSessionLocal = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)


async def get_db():
    """
    Database session dependency for FastAPI routes.

    Yields one session per request and closes it when the request is done.

    Usage in FastAPI routes:
        @router.get("/endpoint")
        async def route(db: AsyncSession = Depends(get_db)):
            result = await db.execute(select(User))
    """
    async with AsyncSessionLocal() as session:
        yield session
