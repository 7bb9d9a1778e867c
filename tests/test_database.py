"""Tests for the database models and helpers."""

import unittest
import uuid

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from supaprofile.database import (
    Base,
    Note,
    Profile,
    Role,
    create_db_engine,
    create_note,
    delete_note,
    delete_profile,
    get_profile,
    get_user_notes,
    list_profiles,
    normalize_database_url,
    set_profile_role,
)


class TestNormalizeDatabaseUrl(unittest.TestCase):
    """Test cases for database URL handling."""

    def test_postgres_urls_use_psycopg(self):
        self.assertEqual(
            normalize_database_url("postgresql://u:p@host:5432/db"),
            "postgresql+psycopg://u:p@host:5432/db",
        )
        self.assertEqual(
            normalize_database_url("postgres://u:p@host/db"),
            "postgresql+psycopg://u:p@host/db",
        )

    def test_other_urls_unchanged(self):
        self.assertEqual(normalize_database_url("sqlite:///data/app.db"), "sqlite:///data/app.db")
        self.assertEqual(
            normalize_database_url("postgresql+psycopg://u@host/db"),
            "postgresql+psycopg://u@host/db",
        )

    def test_in_memory_sqlite_engine(self):
        engine = create_db_engine("sqlite://")
        try:
            self.assertEqual(engine.dialect.name, "sqlite")
        finally:
            engine.dispose()


class TestProfileHelpers(unittest.TestCase):
    """Test cases for profile and note helpers."""

    def setUp(self):
        """Set up test fixtures."""
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.db = sessionmaker(bind=self.engine)()

        self.user_id = uuid.uuid4()
        self.other_id = uuid.uuid4()
        # What the auth trigger inserts: only the id
        self.db.add_all([Profile(id=self.user_id), Profile(id=self.other_id)])
        self.db.commit()

    def tearDown(self):
        self.db.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

    def test_new_profile_defaults_to_user_role(self):
        profile = get_profile(self.db, self.user_id)
        self.assertIsNotNone(profile)
        self.assertEqual(profile.role, Role.user)
        self.assertFalse(profile.is_admin)

    def test_get_profile_missing(self):
        self.assertIsNone(get_profile(self.db, uuid.uuid4()))

    def test_set_profile_role(self):
        profile = set_profile_role(self.db, self.user_id, Role.admin)
        self.assertEqual(profile.role, Role.admin)
        self.assertTrue(get_profile(self.db, self.user_id).is_admin)

        profile = set_profile_role(self.db, self.user_id, "user")
        self.assertEqual(profile.role, Role.user)

    def test_set_profile_role_missing(self):
        self.assertIsNone(set_profile_role(self.db, uuid.uuid4(), Role.admin))

    def test_list_profiles(self):
        ids = {p.id for p in list_profiles(self.db)}
        self.assertEqual(ids, {self.user_id, self.other_id})

    def test_notes_belong_to_their_owner(self):
        create_note(self.db, self.user_id, "first")
        create_note(self.db, self.user_id, "second")
        create_note(self.db, self.other_id, "someone else's")

        texts = {n.text for n in get_user_notes(self.db, self.user_id)}
        self.assertEqual(texts, {"first", "second"})

    def test_delete_note_checks_owner(self):
        note = create_note(self.db, self.other_id, "not yours")

        self.assertFalse(delete_note(self.db, self.user_id, note.id))
        self.assertTrue(delete_note(self.db, self.other_id, note.id))
        self.assertEqual(get_user_notes(self.db, self.other_id), [])

    def test_delete_profile_removes_notes(self):
        create_note(self.db, self.user_id, "goes with the profile")

        self.assertTrue(delete_profile(self.db, self.user_id))
        self.assertIsNone(get_profile(self.db, self.user_id))
        self.assertEqual(self.db.query(Note).filter(Note.user_id == self.user_id).count(), 0)
        self.assertIsNotNone(get_profile(self.db, self.other_id))

    def test_delete_profile_missing(self):
        self.assertFalse(delete_profile(self.db, uuid.uuid4()))


if __name__ == "__main__":
    unittest.main()
