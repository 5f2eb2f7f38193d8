"""
Database Configuration Loading

This module provides functions to load database connection settings
from environment variables.
"""

import os
import urllib.parse
from typing import Dict, Any

from backend.common.logger import app_logger

# Module logger
logger = app_logger.getChild("db.config")

# Environment variable names
DB_TYPE_ENV = "DB_TYPE"  # postgresql or sqlite
DB_HOST_ENV = "DB_HOST"
DB_PORT_ENV = "DB_PORT"
DB_NAME_ENV = "DB_NAME"
DB_USER_ENV = "DB_USER"
DB_PASSWORD_ENV = "DB_PASSWORD"
DB_PATH_ENV = "DB_PATH"  # For SQLite
DB_URL_ENV = "DATABASE_URL"  # Allow passing a URL directly
DB_POOL_SIZE_ENV = "DB_POOL_SIZE"

# Default values
DEFAULT_DB_TYPE = "sqlite"
DEFAULT_DB_HOST = "localhost"
DEFAULT_DB_PORT = 5432
DEFAULT_DB_NAME = "hotel_academy"
DEFAULT_DB_USER = "academy_user"
DEFAULT_DB_PASSWORD = "password"
DEFAULT_DB_PATH = "./hotel_academy.db"
DEFAULT_DB_POOL_SIZE = 5


def get_database_settings() -> Dict[str, Any]:
    """
    Loads database connection settings from environment variables.
    A direct DATABASE_URL takes precedence over the individual components.

    Returns:
        A dictionary containing database settings including the connection URL.
    """
    settings: Dict[str, Any] = {
        "pool_size": int(os.environ.get(DB_POOL_SIZE_ENV, DEFAULT_DB_POOL_SIZE))
    }

    database_url = os.environ.get(DB_URL_ENV)
    if database_url:
        logger.info("Using direct DATABASE_URL from environment variable.")
        settings["database_url"] = database_url
        if database_url.startswith("postgresql"):
            settings["db_type"] = "postgresql"
        elif database_url.startswith("sqlite"):
            settings["db_type"] = "sqlite"
        else:
            settings["db_type"] = "unknown"
        return settings

    db_type = os.environ.get(DB_TYPE_ENV, DEFAULT_DB_TYPE).lower()
    settings["db_type"] = db_type

    if db_type == "postgresql":
        user = os.environ.get(DB_USER_ENV, DEFAULT_DB_USER)
        password = urllib.parse.quote_plus(os.environ.get(DB_PASSWORD_ENV, DEFAULT_DB_PASSWORD))
        host = os.environ.get(DB_HOST_ENV, DEFAULT_DB_HOST)
        port = int(os.environ.get(DB_PORT_ENV, DEFAULT_DB_PORT))
        database = os.environ.get(DB_NAME_ENV, DEFAULT_DB_NAME)
        # asyncpg driver for SQLAlchemy async
        settings["database_url"] = f"postgresql+asyncpg://{user}:{password}@{host}:{port}/{database}"
    elif db_type == "sqlite":
        db_path = os.environ.get(DB_PATH_ENV, DEFAULT_DB_PATH)
        settings["database_url"] = f"sqlite+aiosqlite:///{db_path}"
    else:
        logger.error(f"Unsupported DB_TYPE: {db_type}")
        raise ValueError(f"Unsupported database type: {db_type}")

    logger.info(f"Constructed database URL for {db_type}")
    return settings
