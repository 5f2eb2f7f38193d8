"""
Database initialization and connection management.

This module provides functions for:
1. Initializing the async database engine
2. Creating the schema and running migrations
3. Handing out sessions and disposing of the engine
"""

from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

from backend.common.db.connection import get_database_settings
from backend.common.logger import app_logger
from backend.database.base import Base

# Setup module logger
logger = app_logger.getChild("database.init_db")

# Global engine instance
_engine: Optional[AsyncEngine] = None
_session_factory: Optional[sessionmaker] = None

ALEMBIC_INI = Path(__file__).resolve().parent.parent.parent / "alembic.ini"


def get_engine() -> AsyncEngine:
    """Get the global async engine instance."""
    if _engine is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _engine


def get_session_factory() -> sessionmaker:
    """Get the session factory bound to the global engine."""
    if _session_factory is None:
        raise RuntimeError("Database engine not initialized. Call initialize_database() first.")
    return _session_factory


def get_engine_kwargs(
    database_url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 10,
    pool_timeout: int = 30
) -> Dict[str, Any]:
    """
    Get engine keyword arguments based on database type.
    Only server databases get explicit connection pool settings.
    """
    kwargs: Dict[str, Any] = {"echo": echo}

    if database_url.startswith("postgresql"):
        kwargs.update({
            "pool_size": pool_size,
            "max_overflow": max_overflow,
            "pool_timeout": pool_timeout,
            "pool_pre_ping": True,
            "pool_recycle": 300,
        })

    return kwargs


async def initialize_database(
    database_url: Optional[str] = None,
    echo: bool = False,
    pool_size: Optional[int] = None,
    max_overflow: int = 10,
    pool_timeout: int = 30,
    create_tables: bool = False
) -> AsyncEngine:
    """
    Initialize the async database engine.

    Args:
        database_url: Database connection URL, resolved from the environment when omitted
        echo: Whether to echo SQL statements
        pool_size: Connection pool size
        max_overflow: Maximum number of connections to allow above pool_size
        pool_timeout: Timeout for getting a connection from the pool
        create_tables: Whether to create missing tables from the ORM metadata

    Returns:
        AsyncEngine instance
    """
    global _engine, _session_factory

    db_settings = get_database_settings() if database_url is None else {}
    database_url = database_url or db_settings["database_url"]
    pool_size = pool_size or db_settings.get("pool_size", 5)

    try:
        logger.info(f"Initializing database with URL: {database_url[:10]}... and pool size: {pool_size}")

        _engine = create_async_engine(
            database_url,
            **get_engine_kwargs(database_url, echo, pool_size, max_overflow, pool_timeout)
        )
        _session_factory = sessionmaker(
            _engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Test connection
        async with _engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

        if create_tables:
            await create_all_tables(_engine)

        logger.info("Database engine initialized successfully")
        return _engine

    except Exception as e:
        logger.error(f"Failed to initialize async database: {str(e)}")
        raise


async def create_all_tables(engine: Optional[AsyncEngine] = None) -> None:
    """Create every table known to the ORM metadata that does not exist yet."""
    # Registers the competency tables on Base.metadata
    from backend.assessments.competency import database_models  # noqa: F401

    async with (engine or get_engine()).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables created")


def run_migrations(database_url: Optional[str] = None, revision: str = "head") -> None:
    """
    Upgrade the schema with Alembic.

    Args:
        database_url: Database connection URL, resolved from the environment when omitted
        revision: Target revision
    """
    from alembic import command
    from alembic.config import Config

    database_url = database_url or get_database_settings()["database_url"]
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, revision)
    logger.info(f"Database migrated to revision {revision}")


async def close_database() -> None:
    """Close the database engine and all connections."""
    global _engine, _session_factory

    if _engine:
        try:
            await _engine.dispose()
            logger.info("Database engine closed successfully")
        except Exception as e:
            logger.error(f"Error closing database engine: {str(e)}")
            raise
        finally:
            _engine = None
            _session_factory = None
