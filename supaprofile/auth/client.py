"""Per-request Supabase client.

The auth provider does all the work (password checks, token issuance, code
exchange, refresh). The server keeps no client state between requests: each
request builds a fresh client whose storage is backed by the request cookies,
so the PKCE code verifier written during sign-up is still there when the
confirmation link hits ``/auth/callback``.
"""

import re
from typing import Dict, Mapping, Optional

from starlette.responses import Response
from supabase import Client, ClientOptions, create_client
from supabase_auth import SyncSupportedStorage

from ..config import Config

# Storage key used by the auth client for everything it persists
STORAGE_KEY = "supabase.auth.token"
CODE_VERIFIER_KEY = f"{STORAGE_KEY}-code-verifier"

COOKIE_PREFIX = "sb"
# Code verifiers only need to survive until the confirmation link is clicked
STORAGE_COOKIE_MAX_AGE = 60 * 60 * 24


def storage_cookie_name(key: str) -> str:
    return f"{COOKIE_PREFIX}-" + re.sub(r"[^A-Za-z0-9_-]+", "-", key)


class CookieStorage(SyncSupportedStorage):
    """Auth client storage reading from request cookies.

    Writes are buffered and copied onto the response with ``apply``.
    """

    def __init__(self, cookies: Optional[Mapping[str, str]] = None):
        self._cookies: Mapping[str, str] = cookies or {}
        self._pending: Dict[str, Optional[str]] = {}

    def get_item(self, key: str) -> Optional[str]:
        if key in self._pending:
            return self._pending[key]
        return self._cookies.get(storage_cookie_name(key))

    def set_item(self, key: str, value: str) -> None:
        self._pending[key] = value

    def remove_item(self, key: str) -> None:
        self._pending[key] = None

    @property
    def pending(self) -> Dict[str, Optional[str]]:
        return dict(self._pending)

    def apply(self, response: Response, *, secure: bool) -> None:
        """Write buffered changes to ``response`` as cookies."""
        for key, value in self._pending.items():
            name = storage_cookie_name(key)
            if value is None:
                if name in self._cookies:
                    response.delete_cookie(name, path="/", secure=secure, httponly=True, samesite="lax")
                continue
            response.set_cookie(
                key=name,
                value=value,
                max_age=STORAGE_COOKIE_MAX_AGE,
                httponly=True,
                secure=secure,
                samesite="lax",
                path="/",
            )
        self._pending.clear()


def create_supabase_client(config: Config, storage: Optional[CookieStorage] = None) -> Client:
    """Build a Supabase client for a single request."""
    options = ClientOptions(
        storage=storage if storage is not None else CookieStorage(),
        flow_type="pkce",
        # Sessions live in our own cookie, not in the client
        persist_session=False,
        auto_refresh_token=False,
    )
    return create_client(config.supabase_url, config.supabase_anon_key, options=options)
