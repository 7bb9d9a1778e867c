"""HTTP routes: server-rendered pages and the auth endpoints."""

from .auth_routes import router as auth_router
from .pages import router as pages_router

__all__ = ["auth_router", "pages_router"]
