"""Shared helpers for the test suite."""

import time
import unittest
import uuid
from types import SimpleNamespace
from typing import Optional

import jwt
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from supabase_auth.errors import AuthError

from supaprofile.api import create_app
from supaprofile.auth.session import AuthSession, encode_session_cookie
from supaprofile.config import Config
from supaprofile.database import Base, Profile, Role, get_db

JWT_SECRET = "test-jwt-secret-0123456789-abcdefghijklmnopqrstuvwxyz"


class ProviderError(AuthError):
    """An auth provider error carrying only a message."""

    def __init__(self, message: str):
        Exception.__init__(self, message)
        self.message = message


def make_config(**overrides) -> Config:
    config = Config()
    config.supabase_url = "https://example.supabase.co"
    config.supabase_anon_key = "anon-key"
    config.supabase_jwt_secret = JWT_SECRET
    config.database_url = "sqlite://"
    config.site_url = None
    config.cookie_secure = False
    config.session_cookie_name = "sb-session"
    config.session_refresh_margin = 60
    config.enable_metrics = False
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_token(
    user_id: uuid.UUID,
    email: Optional[str] = "user@example.com",
    expires_in: int = 3600,
    secret: str = JWT_SECRET,
    audience: str = "authenticated",
) -> str:
    payload = {
        "sub": str(user_id),
        "aud": audience,
        "exp": int(time.time()) + expires_in,
        "role": "authenticated",
    }
    if email:
        payload["email"] = email
    return jwt.encode(payload, secret, algorithm="HS256")


def make_session(
    user_id: uuid.UUID,
    email: Optional[str] = "user@example.com",
    expires_in: int = 3600,
    refresh_token: str = "refresh-token",
) -> AuthSession:
    return AuthSession(
        access_token=make_token(user_id, email, expires_in=expires_in),
        refresh_token=refresh_token,
        expires_at=int(time.time()) + expires_in,
    )


def provider_session(user_id: uuid.UUID, email: str = "user@example.com", expires_in: int = 3600):
    """Stand-in for the provider's ``Session`` object."""
    return SimpleNamespace(
        access_token=make_token(user_id, email, expires_in=expires_in),
        refresh_token="provider-refresh-token",
        expires_in=expires_in,
        expires_at=int(time.time()) + expires_in,
        token_type="bearer",
        user=SimpleNamespace(id=str(user_id), email=email),
    )


def set_cookie_headers(response, name: str) -> list:
    """``Set-Cookie`` headers on ``response`` for cookie ``name``."""
    return [h for h in response.headers.get_list("set-cookie") if h.startswith(f"{name}=")]


class AppTestCase(unittest.TestCase):
    """Runs the app against an in-memory SQLite database."""

    config_overrides: dict = {}

    def setUp(self):
        """Set up test fixtures."""
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(bind=self.engine)
        self.SessionTesting = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

        self.config = make_config(**self.config_overrides)
        self.app = create_app(self.config)

        def override_get_db():
            db = self.SessionTesting()
            try:
                yield db
            finally:
                db.close()

        self.app.dependency_overrides[get_db] = override_get_db
        self.client = TestClient(self.app)

    def tearDown(self):
        self.client.close()
        Base.metadata.drop_all(bind=self.engine)
        self.engine.dispose()

    def add_profile(self, user_id: uuid.UUID, role: Role = Role.user) -> None:
        db = self.SessionTesting()
        try:
            db.add(Profile(id=user_id, role=role))
            db.commit()
        finally:
            db.close()

    def sign_in_as(self, user_id: uuid.UUID, email: str = "user@example.com", expires_in: int = 3600) -> AuthSession:
        session = make_session(user_id, email, expires_in=expires_in)
        self.client.cookies.set(self.config.session_cookie_name, encode_session_cookie(session))
        return session
