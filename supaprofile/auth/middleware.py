"""Session refresh middleware.

Runs on every request before routing: decodes the session cookie, refreshes
the tokens with the provider when the access token is about to expire, and
verifies the access token. The result is exposed as
``request.state.auth_session`` (``None`` when signed out).
"""

import logging
from typing import Callable, Optional

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..config import Config
from .. import metrics
from .session import (
    AuthSession,
    ProviderUnavailable,
    SessionError,
    clear_session_cookie_kwargs,
    decode_session_cookie,
    encode_session_cookie,
    refresh_session,
    session_cookie_kwargs,
    verify_access_token,
)

logger = logging.getLogger(__name__)

SKIP_PATHS = ("/health", "/metrics")


def _sets_cookie(response: Response, name: str) -> bool:
    prefix = f"{name}=".encode("latin-1")
    return any(
        value.startswith(prefix)
        for key, value in response.raw_headers
        if key.lower() == b"set-cookie"
    )


class SessionRefreshMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, config: Config):
        super().__init__(app)
        self.config = config

    async def resolve_session(self, raw: Optional[str]) -> tuple[Optional[AuthSession], bool, bool]:
        """Return (session, refreshed, clear_cookie) for a cookie value."""
        if not raw:
            return None, False, False

        session = decode_session_cookie(raw)
        if session is None:
            logger.debug("Discarding malformed session cookie")
            return None, False, True

        refreshed = False
        if session.expires_within(self.config.session_refresh_margin):
            try:
                session = await run_in_threadpool(refresh_session, self.config, session.refresh_token)
                refreshed = True
                metrics.record_auth_event("refresh", True)
            except ProviderUnavailable as e:
                # Keep the cookie so an outage does not sign the user out
                logger.warning(f"Treating request as signed out: {e}")
                metrics.record_auth_event("refresh", False)
                return None, False, False
            except SessionError as e:
                logger.info(f"Dropping session: {e}")
                metrics.record_auth_event("refresh", False)
                return None, False, True

        try:
            user = await run_in_threadpool(verify_access_token, self.config, session.access_token)
        except ProviderUnavailable as e:
            logger.warning(f"Treating request as signed out: {e}")
            # Unverified: pages see no user, but refreshed tokens are still saved
            return session, refreshed, False
        except SessionError as e:
            logger.info(f"Dropping session: {e}")
            return None, False, True

        return session.with_user(user), refreshed, False

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path in SKIP_PATHS:
            return await call_next(request)

        cookie_name = self.config.session_cookie_name
        session, refreshed, clear = await self.resolve_session(request.cookies.get(cookie_name))
        request.state.auth_session = session

        response = await call_next(request)

        # A route that signed in or out already wrote the cookie
        if _sets_cookie(response, cookie_name):
            return response
        if refreshed and session is not None:
            response.set_cookie(**session_cookie_kwargs(self.config, encode_session_cookie(session)))
        elif clear:
            response.set_cookie(**clear_session_cookie_kwargs(self.config))
        return response
