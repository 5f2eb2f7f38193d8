"""
Tests for database settings and engine lifecycle.
"""

import asyncio
import os
import tempfile
import unittest
from unittest.mock import patch

from backend.assessments.competency.repository import SqlSessionRepository
from backend.common.db.connection import get_database_settings
from backend.config import Settings
from backend.database import init_db


class TestDatabaseSettings(unittest.TestCase):
    """Test get_database_settings."""

    def test_direct_url_wins(self):
        env = {"DATABASE_URL": "postgresql+asyncpg://u:p@db:5432/academy", "DB_TYPE": "sqlite"}
        with patch.dict(os.environ, env, clear=True):
            settings = get_database_settings()

        self.assertEqual(settings["database_url"], env["DATABASE_URL"])
        self.assertEqual(settings["db_type"], "postgresql")
        self.assertEqual(settings["pool_size"], 5)

    def test_sqlite_path(self):
        with patch.dict(os.environ, {"DB_PATH": "/tmp/academy.db", "DB_POOL_SIZE": "3"}, clear=True):
            settings = get_database_settings()

        self.assertEqual(settings["database_url"], "sqlite+aiosqlite:////tmp/academy.db")
        self.assertEqual(settings["pool_size"], 3)

    def test_postgresql_components(self):
        env = {"DB_TYPE": "postgresql", "DB_HOST": "db", "DB_USER": "academy", "DB_PASSWORD": "p@ss"}
        with patch.dict(os.environ, env, clear=True):
            settings = get_database_settings()

        self.assertEqual(settings["database_url"], "postgresql+asyncpg://academy:p%40ss@db:5432/hotel_academy")

    def test_unsupported_type(self):
        with patch.dict(os.environ, {"DB_TYPE": "oracle"}, clear=True):
            with self.assertRaises(ValueError):
                get_database_settings()

    def test_engine_kwargs(self):
        self.assertEqual(init_db.get_engine_kwargs("sqlite+aiosqlite:///x.db"), {"echo": False})
        kwargs = init_db.get_engine_kwargs("postgresql+asyncpg://db/academy", pool_size=8)
        self.assertEqual(kwargs["pool_size"], 8)
        self.assertTrue(kwargs["pool_pre_ping"])


class TestEngineLifecycle(unittest.TestCase):
    """Test initialize_database and close_database."""

    def setUp(self):
        self.loop = asyncio.new_event_loop()
        asyncio.set_event_loop(self.loop)
        self.tmpdir = tempfile.TemporaryDirectory()
        self.url = f"sqlite+aiosqlite:///{os.path.join(self.tmpdir.name, 'academy.db')}"

    def tearDown(self):
        self.loop.run_until_complete(init_db.close_database())
        self.loop.close()
        self.tmpdir.cleanup()

    def test_initialize_and_close(self):
        self.loop.run_until_complete(init_db.initialize_database(self.url, create_tables=True))

        repository = SqlSessionRepository()
        session = self.loop.run_until_complete(repository.create_session("assessment-1", "user-1"))
        stored = self.loop.run_until_complete(repository.get_session(session.id))
        self.assertEqual(stored.id, session.id)

        self.loop.run_until_complete(init_db.close_database())
        with self.assertRaises(RuntimeError):
            init_db.get_engine()
        with self.assertRaises(RuntimeError):
            init_db.get_session_factory()

    def test_url_resolved_from_environment(self):
        db_path = os.path.join(self.tmpdir.name, "resolved.db")
        with patch.dict(os.environ, {"DB_TYPE": "sqlite", "DB_PATH": db_path}, clear=True):
            self.assertIsNone(Settings(_env_file=None).DATABASE_URL)
            engine = self.loop.run_until_complete(init_db.initialize_database(create_tables=True))

        self.assertEqual(engine.url.database, db_path)
        self.assertTrue(os.path.exists(db_path))


if __name__ == "__main__":
    unittest.main()
