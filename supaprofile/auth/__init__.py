"""Authentication module backed by Supabase Auth.

The provider handles sign-up, sign-in, token issuance and refresh. This
package only carries the provider's tokens in a cookie and checks them.

Components:
- client: per-request Supabase client with cookie-backed storage
- session: session cookie encoding, token verification and refresh
- middleware: refreshes sessions and exposes them on ``request.state``
- deps: FastAPI dependencies and the page redirect exception
"""

from .client import CookieStorage, create_supabase_client
from .session import (
    AuthSession,
    AuthUser,
    ProviderUnavailable,
    SessionError,
    SessionExpired,
    decode_session_cookie,
    encode_session_cookie,
    refresh_session,
    session_from_provider,
    verify_access_token,
)
from .middleware import SessionRefreshMiddleware
from .deps import PageRedirect, get_auth_session, page_redirect_handler, require_session

__all__ = [
    # Client
    "CookieStorage",
    "create_supabase_client",
    # Session
    "AuthSession",
    "AuthUser",
    "ProviderUnavailable",
    "SessionError",
    "SessionExpired",
    "decode_session_cookie",
    "encode_session_cookie",
    "refresh_session",
    "session_from_provider",
    "verify_access_token",
    # Middleware
    "SessionRefreshMiddleware",
    # Dependencies
    "PageRedirect",
    "get_auth_session",
    "page_redirect_handler",
    "require_session",
]
