#!/usr/bin/env python3
"""
Database initialization script.

This script creates the schema, either from the ORM metadata or through the
Alembic migrations, and optionally seeds assessments from a JSON seed file
(see backend.assessments.competency.seed_data for the format).

Without --database-url the connection URL comes from DATABASE_URL or the
DB_TYPE/DB_HOST/DB_NAME/... environment variables.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from backend.assessments.competency.repository import SqlQuestionRepository
from backend.assessments.competency.seed_data import load_seed_file
from backend.common.logger import app_logger
from backend.config import settings
from backend.database.init_db import close_database, initialize_database, run_migrations

logger = app_logger.getChild("scripts.init_db")


async def seed_assessments(path: Path) -> int:
    """Store every assessment of a seed file, returning how many were stored."""
    repository = SqlQuestionRepository()
    entries = load_seed_file(path)
    for assessment, questions in entries:
        await repository.add_assessment(assessment, questions)
    return len(entries)


async def async_main(args: argparse.Namespace) -> None:
    """Initialize the database."""
    await initialize_database(
        database_url=args.database_url,
        echo=settings.SQL_ECHO,
        create_tables=not args.migrate
    )
    try:
        if args.seed:
            count = await seed_assessments(Path(args.seed))
            logger.info(f"Seeded {count} assessments from {args.seed}")
    finally:
        await close_database()


def parse_arguments() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Initialize the Hotel Academy database")
    parser.add_argument("--database-url", default=settings.DATABASE_URL, help="Database connection URL")
    parser.add_argument("--migrate", action="store_true", help="Create the schema with Alembic migrations")
    parser.add_argument("--seed", help="JSON file with assessments to store")
    return parser.parse_args()


def main() -> None:
    args = parse_arguments()
    try:
        if args.migrate:
            run_migrations(args.database_url)
        asyncio.run(async_main(args))
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
