"""
Database connection and session management with SQLAlchemy.
Supports async operations and connection pooling.
"""
from typing import AsyncGenerator
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.orm import declarative_base
from loguru import logger

from copymode.core.config import settings


def get_async_database_url(url: str) -> str:
    """Convert postgres:// and postgresql:// URLs to the asyncpg driver."""
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = get_async_database_url(settings.DATABASE_URL)

engine_kwargs = {"echo": settings.DEBUG, "pool_pre_ping": True}
if DATABASE_URL.startswith("postgresql"):
    engine_kwargs.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )

# Create async engine
engine = create_async_engine(DATABASE_URL, **engine_kwargs)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for SQLAlchemy models
Base = declarative_base()


# Similarity search runs inside Postgres so only the top matches leave the DB.
MATCH_KNOWLEDGE_CHUNKS_SQL = """
CREATE OR REPLACE FUNCTION match_knowledge_chunks(
    match_agent_id varchar,
    query_embedding vector({dimensions}),
    match_threshold float,
    match_count int
)
RETURNS TABLE (
    id varchar,
    agent_id varchar,
    original_file_name varchar,
    chunk_text text,
    similarity float
)
LANGUAGE sql STABLE
AS $$
    SELECT
        c.id,
        c.agent_id,
        c.original_file_name,
        c.chunk_text,
        1 - (c.embedding <=> query_embedding) AS similarity
    FROM agent_knowledge_chunks c
    WHERE c.agent_id = match_agent_id
      AND 1 - (c.embedding <=> query_embedding) > match_threshold
    ORDER BY c.embedding <=> query_embedding
    LIMIT match_count;
$$;
"""


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency to get database session.

    Usage:
        @app.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db():
    """
    Initialize database and create all tables.
    Also enables pgvector and installs the similarity search function.
    """
    # Register every model on Base.metadata
    import copymode.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(Base.metadata.create_all)
        await conn.execute(
            text(MATCH_KNOWLEDGE_CHUNKS_SQL.format(dimensions=settings.EMBEDDING_DIMENSIONS))
        )
    logger.info("Database tables and match_knowledge_chunks function ready")


async def close_db():
    """Close database connection pool."""
    await engine.dispose()
