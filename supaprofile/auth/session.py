"""Session cookie handling on top of Supabase-issued tokens.

The cookie carries the provider's access token, refresh token and expiry.
Nothing in it is secret to the browser that already holds it, and nothing in
it is trusted: the access token is verified on every request.
"""

import base64
import binascii
import json
import logging
import time
import uuid
from dataclasses import dataclass, replace
from typing import Any, Optional

import httpx
import jwt
from supabase_auth.errors import AuthError

from ..config import Config
from .client import create_supabase_client

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
JWT_AUDIENCE = "authenticated"


class SessionError(Exception):
    """The session cannot be used (bad, expired or revoked tokens)."""


class SessionExpired(SessionError):
    """The access token has expired."""


class ProviderUnavailable(SessionError):
    """The auth provider could not be reached. The session may still be good."""


@dataclass(frozen=True)
class AuthUser:
    """The signed-in user as reported by the auth provider."""

    id: uuid.UUID
    email: Optional[str] = None


@dataclass(frozen=True)
class AuthSession:
    """Provider tokens plus the user they belong to (once verified)."""

    access_token: str
    refresh_token: str
    expires_at: int
    user: Optional[AuthUser] = None

    def expires_within(self, seconds: int, now: Optional[float] = None) -> bool:
        now = time.time() if now is None else now
        return self.expires_at - now <= seconds

    def with_user(self, user: AuthUser) -> "AuthSession":
        return replace(self, user=user)


# ============== Cookie encoding ==============

def encode_session_cookie(session: AuthSession) -> str:
    payload = {
        "access_token": session.access_token,
        "refresh_token": session.refresh_token,
        "expires_at": session.expires_at,
    }
    raw = json.dumps(payload, separators=(",", ":"), sort_keys=True).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_session_cookie(value: Optional[str]) -> Optional[AuthSession]:
    """Decode a session cookie; anything malformed reads as no session."""
    if not value:
        return None
    try:
        padded = value + "=" * (-len(value) % 4)
        data = json.loads(base64.urlsafe_b64decode(padded.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    if not isinstance(data, dict):
        return None
    access_token = data.get("access_token")
    refresh_token = data.get("refresh_token")
    expires_at = data.get("expires_at")
    if not isinstance(access_token, str) or not isinstance(refresh_token, str):
        return None
    if not access_token or not refresh_token or not isinstance(expires_at, int):
        return None
    return AuthSession(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)


def session_cookie_kwargs(config: Config, value: str) -> dict:
    return {
        "key": config.session_cookie_name,
        "value": value,
        "max_age": config.session_max_age,
        "httponly": True,
        "secure": config.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def clear_session_cookie_kwargs(config: Config) -> dict:
    return {
        "key": config.session_cookie_name,
        "value": "",
        "max_age": 0,
        "httponly": True,
        "secure": config.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


# ============== Provider objects ==============

def _user_from_provider(user: Any) -> Optional[AuthUser]:
    if user is None or not getattr(user, "id", None):
        return None
    return AuthUser(id=uuid.UUID(str(user.id)), email=getattr(user, "email", None))


def session_from_provider(session: Any) -> AuthSession:
    """Convert a provider ``Session`` into an ``AuthSession``."""
    expires_at = getattr(session, "expires_at", None)
    if not expires_at:
        expires_at = int(time.time()) + int(getattr(session, "expires_in", 0) or 0)
    return AuthSession(
        access_token=session.access_token,
        refresh_token=session.refresh_token,
        expires_at=int(expires_at),
        user=_user_from_provider(getattr(session, "user", None)),
    )


# ============== Verification & refresh ==============

def verify_access_token(config: Config, token: str) -> AuthUser:
    """Check an access token and return its user.

    With ``SUPABASE_JWT_SECRET`` set the token is checked locally; otherwise
    the provider is asked.

    Raises:
        SessionExpired: The token has expired.
        ProviderUnavailable: The provider could not be reached.
        SessionError: The token is not valid.
    """
    if config.supabase_jwt_secret:
        try:
            payload = jwt.decode(
                token,
                config.supabase_jwt_secret,
                algorithms=[JWT_ALGORITHM],
                audience=JWT_AUDIENCE,
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise SessionExpired("Access token expired") from e
        except jwt.InvalidTokenError as e:
            raise SessionError(f"Invalid access token: {e}") from e
        try:
            user_id = uuid.UUID(str(payload["sub"]))
        except ValueError as e:
            raise SessionError("Access token subject is not a user id") from e
        return AuthUser(id=user_id, email=payload.get("email"))

    client = create_supabase_client(config)
    try:
        response = client.auth.get_user(token)
    except AuthError as e:
        raise SessionError(f"Provider rejected access token: {e}") from e
    except httpx.HTTPError as e:
        raise ProviderUnavailable(f"Could not verify access token: {e}") from e
    user = _user_from_provider(getattr(response, "user", None))
    if user is None:
        raise SessionError("Provider returned no user for access token")
    return user


def refresh_session(config: Config, refresh_token: str) -> AuthSession:
    """Exchange a refresh token for a new session.

    Raises:
        ProviderUnavailable: The provider could not be reached.
        SessionError: The provider refused the refresh token.
    """
    client = create_supabase_client(config)
    try:
        response = client.auth.refresh_session(refresh_token)
    except AuthError as e:
        raise SessionError(f"Session refresh failed: {e}") from e
    except httpx.HTTPError as e:
        raise ProviderUnavailable(f"Could not refresh session: {e}") from e
    if response is None or response.session is None:
        raise SessionError("Session refresh returned no session")
    logger.debug("Session refreshed")
    return session_from_provider(response.session)
