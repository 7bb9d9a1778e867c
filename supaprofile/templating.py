"""Jinja2 templates shared by the page and auth routes."""

from pathlib import Path
from typing import Any, Optional

from fastapi import Request
from fastapi.templating import Jinja2Templates

from .auth.deps import get_auth_session

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))

SITE_TITLE = "Supabase Auth + FastAPI + SQLAlchemy"


def render(request: Request, name: str, context: Optional[dict[str, Any]] = None, status_code: int = 200):
    """Render a page with the layout's common context."""
    ctx: dict[str, Any] = {
        "site_title": SITE_TITLE,
        "auth_session": get_auth_session(request),
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)
