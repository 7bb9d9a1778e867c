"""Database models and setup for profiles and notes.

The ``profile`` table shadows the auth provider's ``auth.users`` table: rows
are inserted and deleted by database triggers (see ``supaprofile.triggers``),
never by request handlers.
"""

import enum
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from sqlalchemy import (
    create_engine,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Text,
    Uuid,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker

from .config import Config

logger = logging.getLogger(__name__)

Base = declarative_base()


def normalize_database_url(url: str) -> str:
    """Point plain Postgres URLs at the psycopg (v3) driver."""
    for prefix in ("postgres://", "postgresql://"):
        if url.startswith(prefix):
            return "postgresql+psycopg://" + url[len(prefix):]
    return url


def create_db_engine(url: str) -> Engine:
    """Create an engine for ``url`` with settings suited to its backend."""
    url = normalize_database_url(url)
    parsed = make_url(url)
    if parsed.get_backend_name() == "sqlite":
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, pool_recycle=3600)


# Database setup: one engine per process
DATABASE_URL = normalize_database_url(Config().database_url)
engine = create_db_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Role(str, enum.Enum):
    """Profile role."""

    admin = "admin"
    user = "user"


class Profile(Base):
    """Local profile row, one per auth provider user (same id)."""

    __tablename__ = "profile"

    id = Column(Uuid, primary_key=True)
    role = Column(
        Enum(Role, name="role", values_callable=lambda roles: [r.value for r in roles]),
        nullable=False,
        default=Role.user,
        server_default=Role.user.value,
    )

    # Relationships
    notes = relationship(
        "Note",
        back_populates="profile",
        cascade="all, delete-orphan",
        order_by="Note.created_at.desc()",
    )

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin


class Note(Base):
    """A short text note owned by a profile."""

    __tablename__ = "note"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    text = Column(Text, nullable=False)
    user_id = Column(
        Uuid,
        ForeignKey("profile.id", ondelete="CASCADE", onupdate="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    profile = relationship("Profile", back_populates="notes")


# Tables are created via Alembic migrations
# Do not create tables here - use: alembic upgrade head


def get_db():
    """Get database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_profile(db: Session, user_id: uuid.UUID) -> Optional[Profile]:
    """Fetch a profile by primary key."""
    return db.get(Profile, user_id)


def list_profiles(db: Session) -> List[Profile]:
    """List all profiles."""
    return db.query(Profile).order_by(Profile.role, Profile.id).all()


def set_profile_role(db: Session, user_id: uuid.UUID, role: Role) -> Optional[Profile]:
    """Change a profile's role."""
    profile = get_profile(db, user_id)
    if not profile:
        return None
    profile.role = Role(role)
    db.commit()
    db.refresh(profile)
    logger.info(f"Profile {user_id} role set to {profile.role.value}")
    return profile


def delete_profile(db: Session, user_id: uuid.UUID) -> bool:
    """Delete a profile and its notes.

    With the profile triggers installed this also removes the auth user.
    """
    profile = get_profile(db, user_id)
    if not profile:
        return False
    db.delete(profile)
    db.commit()
    logger.info(f"Profile {user_id} deleted")
    return True


def create_note(db: Session, user_id: uuid.UUID, text: str) -> Note:
    """Add a note for a profile."""
    note = Note(user_id=user_id, text=text)
    db.add(note)
    db.commit()
    db.refresh(note)
    return note


def get_user_notes(db: Session, user_id: uuid.UUID) -> List[Note]:
    """Get a profile's notes, newest first."""
    return (
        db.query(Note)
        .filter(Note.user_id == user_id)
        .order_by(Note.created_at.desc())
        .all()
    )


def delete_note(db: Session, user_id: uuid.UUID, note_id: uuid.UUID) -> bool:
    """Delete a note if it belongs to ``user_id``."""
    note = (
        db.query(Note)
        .filter(Note.id == note_id, Note.user_id == user_id)
        .first()
    )
    if not note:
        return False
    db.delete(note)
    db.commit()
    return True
