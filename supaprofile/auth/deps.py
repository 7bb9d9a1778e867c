"""Request dependencies for reading the session and gating pages."""

import logging
from typing import Optional

from fastapi import Request, status
from fastapi.responses import RedirectResponse

from .. import metrics
from ..config import Config
from .session import AuthSession

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


def get_config(request: Request) -> Config:
    """The configuration the app was created with."""
    return request.app.state.config


class PageRedirect(Exception):
    """Abort rendering and send the browser elsewhere."""

    def __init__(self, url: str, status_code: int = status.HTTP_307_TEMPORARY_REDIRECT):
        super().__init__(url)
        self.url = url
        self.status_code = status_code


async def page_redirect_handler(request: Request, exc: PageRedirect) -> RedirectResponse:
    metrics.record_page_redirect(request.url.path, exc.url)
    logger.debug(f"Redirecting {request.url.path} -> {exc.url}")
    return RedirectResponse(exc.url, status_code=exc.status_code)


def get_auth_session(request: Request) -> Optional[AuthSession]:
    """The verified session set by the session middleware, if any."""
    session = getattr(request.state, "auth_session", None)
    if session is None or session.user is None:
        return None
    return session


def require_session(request: Request) -> AuthSession:
    """Require a signed-in user; otherwise redirect to the login page."""
    session = get_auth_session(request)
    if session is None:
        if request.method in ("GET", "HEAD"):
            raise PageRedirect(LOGIN_PATH)
        # Form posts must come back as a GET
        raise PageRedirect(LOGIN_PATH, status_code=status.HTTP_303_SEE_OTHER)
    return session
