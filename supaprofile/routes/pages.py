"""Server-rendered pages: home, login and admin."""

import json
import logging
import uuid
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request, status
from fastapi.responses import RedirectResponse
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from ..auth.deps import PageRedirect, get_auth_session, require_session
from ..auth.session import AuthSession
from ..database import (
    Role,
    create_note,
    delete_note,
    get_db,
    get_profile,
    get_user_notes,
)
from ..templating import render

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Pages"])

MAX_NOTE_LENGTH = 2000


class ProfileRead(BaseModel):
    """Profile data shown on the admin page."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    role: Role


@router.get("/")
def home(
    request: Request,
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Signed-in landing page with the user's notes."""
    profile = get_profile(db, session.user.id)
    notes = get_user_notes(db, session.user.id) if profile else []
    return render(
        request,
        "home.html",
        {
            "user": session.user,
            "profile": profile,
            "notes": notes,
            "error": request.query_params.get("error"),
        },
    )


@router.get("/login")
def login_page(request: Request):
    """Login form. Signed-in users go home."""
    if get_auth_session(request) is not None:
        raise PageRedirect("/")
    return render(
        request,
        "login.html",
        {
            "error": request.query_params.get("error"),
            "notice": request.query_params.get("notice"),
            "email": "",
        },
    )


@router.get("/admin")
def admin_page(
    request: Request,
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Admin-only page showing the caller's profile."""
    profile = get_profile(db, session.user.id)
    if profile is None or profile.role != Role.admin:
        raise PageRedirect("/")

    data = {"profile": ProfileRead.model_validate(profile).model_dump(mode="json")}
    return render(request, "admin.html", {"profile_json": json.dumps(data, indent=4)})


# ============== Notes ==============

def _home_with_error(message: str) -> RedirectResponse:
    return RedirectResponse(f"/?{urlencode({'error': message})}", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/notes")
def add_note(
    text: str = Form(""),
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Add a note for the signed-in user."""
    text = text.strip()
    if not text:
        return _home_with_error("Note text is required")
    if len(text) > MAX_NOTE_LENGTH:
        return _home_with_error(f"Notes are limited to {MAX_NOTE_LENGTH} characters")
    if get_profile(db, session.user.id) is None:
        # Profiles come from the auth trigger; without one there is nothing to attach to
        logger.warning(f"No profile for user {session.user.id}; are the triggers installed?")
        return _home_with_error("Your profile is not ready yet")

    create_note(db, session.user.id, text)
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)


@router.post("/notes/{note_id}/delete")
def remove_note(
    note_id: uuid.UUID,
    session: AuthSession = Depends(require_session),
    db: Session = Depends(get_db),
):
    """Delete one of the signed-in user's notes."""
    if not delete_note(db, session.user.id, note_id):
        return _home_with_error("Note not found")
    return RedirectResponse("/", status_code=status.HTTP_303_SEE_OTHER)
