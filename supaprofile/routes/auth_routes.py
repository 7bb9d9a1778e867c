"""Authentication routes.

Every credential check is the provider's: these handlers pass the form
through to Supabase and turn the result into a session cookie, an error
message, or a redirect.
"""

from typing import Optional
from urllib.parse import urlencode
import logging

import httpx
from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session
from supabase_auth.errors import AuthError

from .. import metrics
from ..auth.client import CookieStorage, create_supabase_client
from ..auth.deps import get_auth_session, get_config
from ..auth.session import (
    AuthSession,
    clear_session_cookie_kwargs,
    encode_session_cookie,
    session_cookie_kwargs,
    session_from_provider,
)
from ..config import Config
from ..database import Role, get_db, get_profile
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

CALLBACK_PATH = "/auth/callback"
PROVIDER_UNAVAILABLE = "Could not reach the auth service. Please try again."


# ============== Response Models ==============

class SessionUserRead(BaseModel):
    """Signed-in user plus their profile role."""
    id: str
    email: Optional[str] = None
    role: Optional[Role] = None


# ============== Helpers ==============

def site_origin(config: Config, request: Request) -> str:
    """Public origin used in links sent by the provider."""
    return config.site_url or str(request.base_url).rstrip("/")


def safe_next_path(value: Optional[str]) -> str:
    """Only allow same-site relative redirects."""
    if not value or not value.startswith("/") or value.startswith("//") or "\\" in value:
        return "/"
    return value


def _provider_message(error: AuthError) -> str:
    return getattr(error, "message", None) or str(error)


def _login_error(request: Request, message: str, email: str = "", status_code: int = status.HTTP_400_BAD_REQUEST):
    return render(
        request,
        "login.html",
        {"error": message, "email": email},
        status_code=status_code,
    )


def _signed_in_redirect(config: Config, session: AuthSession, url: str = "/") -> RedirectResponse:
    response = RedirectResponse(url, status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(**session_cookie_kwargs(config, encode_session_cookie(session)))
    return response


# ============== Sign up / Sign in / Sign out ==============

@router.post("/sign-up")
def sign_up(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    config: Config = Depends(get_config),
):
    """Create an account with the provider.

    The provider emails a confirmation link that lands on the callback route.
    """
    storage = CookieStorage(request.cookies)
    client = create_supabase_client(config, storage)
    try:
        result = client.auth.sign_up(
            {
                "email": email,
                "password": password,
                "options": {"email_redirect_to": f"{site_origin(config, request)}{CALLBACK_PATH}"},
            }
        )
    except AuthError as e:
        logger.info(f"Sign up rejected for {email}: {e}")
        metrics.record_auth_event("sign_up", False)
        return _login_error(request, _provider_message(e), email)
    except httpx.HTTPError as e:
        logger.warning(f"Auth service unreachable during sign up: {e}")
        metrics.record_auth_event("sign_up", False)
        return _login_error(request, PROVIDER_UNAVAILABLE, email, status.HTTP_503_SERVICE_UNAVAILABLE)

    metrics.record_auth_event("sign_up", True)
    if result.session is not None:
        # Email confirmation is disabled on the project: signed in already
        response = _signed_in_redirect(config, session_from_provider(result.session))
    else:
        response = render(
            request,
            "login.html",
            {"notice": "Check your email to confirm your account.", "email": email},
        )
    # Keep the PKCE code verifier for the callback
    storage.apply(response, secure=config.cookie_secure)
    return response


@router.post("/sign-in")
def sign_in(
    request: Request,
    email: str = Form(""),
    password: str = Form(""),
    config: Config = Depends(get_config),
):
    """Sign in with email and password."""
    client = create_supabase_client(config)
    try:
        result = client.auth.sign_in_with_password({"email": email, "password": password})
    except AuthError as e:
        logger.info(f"Sign in rejected for {email}: {e}")
        metrics.record_auth_event("sign_in", False)
        return _login_error(request, _provider_message(e), email)
    except httpx.HTTPError as e:
        logger.warning(f"Auth service unreachable during sign in: {e}")
        metrics.record_auth_event("sign_in", False)
        return _login_error(request, PROVIDER_UNAVAILABLE, email, status.HTTP_503_SERVICE_UNAVAILABLE)

    if result.session is None:
        metrics.record_auth_event("sign_in", False)
        return _login_error(request, "Sign in did not return a session", email)

    metrics.record_auth_event("sign_in", True)
    return _signed_in_redirect(config, session_from_provider(result.session))


@router.post("/sign-out")
def sign_out(
    request: Request,
    config: Config = Depends(get_config),
):
    """Revoke the session with the provider and clear the cookie."""
    session = get_auth_session(request)
    if session is not None:
        client = create_supabase_client(config)
        try:
            client.auth.admin.sign_out(session.access_token)
            metrics.record_auth_event("sign_out", True)
        except (AuthError, httpx.HTTPError) as e:
            # The cookie is cleared either way; the tokens expire on their own
            logger.warning(f"Provider sign out failed: {e}")
            metrics.record_auth_event("sign_out", False)

    response = RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
    response.set_cookie(**clear_session_cookie_kwargs(config))
    return response


# ============== OAuth / email confirmation callback ==============

@router.get("/callback")
def auth_callback(
    request: Request,
    code: Optional[str] = None,
    next_path: Optional[str] = Query(None, alias="next"),
    config: Config = Depends(get_config),
):
    """Exchange the provider's one-time code for a session cookie."""
    if not code:
        return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)

    storage = CookieStorage(request.cookies)
    client = create_supabase_client(config, storage)
    try:
        result = client.auth.exchange_code_for_session({"auth_code": code})
    except (AuthError, httpx.HTTPError) as e:
        logger.warning(f"Code exchange failed: {e}")
        metrics.record_auth_event("callback", False)
        query = urlencode({"error": "Could not complete sign in. Please try again."})
        response = RedirectResponse(f"/login?{query}", status_code=status.HTTP_303_SEE_OTHER)
        storage.apply(response, secure=config.cookie_secure)
        return response

    if result.session is None:
        metrics.record_auth_event("callback", False)
        return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)

    metrics.record_auth_event("callback", True)
    response = _signed_in_redirect(config, session_from_provider(result.session), safe_next_path(next_path))
    storage.apply(response, secure=config.cookie_secure)
    return response


# ============== Session status ==============

@router.get("/me", response_model=SessionUserRead)
def get_me(
    request: Request,
    db: Session = Depends(get_db),
):
    """Current user and profile role."""
    session = get_auth_session(request)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
        )
    profile = get_profile(db, session.user.id)
    return SessionUserRead(
        id=str(session.user.id),
        email=session.user.email,
        role=profile.role if profile else None,
    )
