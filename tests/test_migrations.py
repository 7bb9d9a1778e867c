"""Tests for the Alembic migrations."""

import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from alembic import command
from alembic.autogenerate import compare_metadata
from alembic.config import Config as AlembicConfig
from alembic.runtime.migration import MigrationContext
from sqlalchemy import create_engine, inspect

from supaprofile.database import Base

PROJECT_ROOT = Path(__file__).resolve().parent.parent


class TestInitialMigration(unittest.TestCase):
    """Run the migrations against a scratch SQLite database."""

    def setUp(self):
        """Set up test fixtures."""
        self.tmpdir = tempfile.TemporaryDirectory()
        self.database_url = f"sqlite:///{Path(self.tmpdir.name) / 'migrate.db'}"

        self.alembic_cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
        self.alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))

        # env.py takes the URL from DATABASE_URL
        env_patch = patch.dict(os.environ, {"DATABASE_URL": self.database_url})
        env_patch.start()
        self.addCleanup(env_patch.stop)

        self.engine = create_engine(self.database_url)

    def tearDown(self):
        self.engine.dispose()
        self.tmpdir.cleanup()

    def test_upgrade_matches_models(self):
        command.upgrade(self.alembic_cfg, "head")

        with self.engine.connect() as conn:
            context = MigrationContext.configure(conn)
            self.assertEqual(compare_metadata(context, Base.metadata), [])

    def test_upgrade_creates_tables(self):
        command.upgrade(self.alembic_cfg, "head")

        inspector = inspect(self.engine)
        self.assertTrue({"profile", "note"} <= set(inspector.get_table_names()))
        foreign_keys = inspector.get_foreign_keys("note")
        self.assertEqual(len(foreign_keys), 1)
        self.assertEqual(foreign_keys[0]["referred_table"], "profile")
        self.assertEqual(foreign_keys[0]["options"].get("ondelete"), "CASCADE")

    def test_downgrade_removes_tables(self):
        command.upgrade(self.alembic_cfg, "head")
        command.downgrade(self.alembic_cfg, "base")

        tables = set(inspect(self.engine).get_table_names())
        self.assertNotIn("profile", tables)
        self.assertNotIn("note", tables)


if __name__ == "__main__":
    unittest.main()
