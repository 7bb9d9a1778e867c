"""FastAPI application: pages gated on the Supabase session."""

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI

from . import __version__
from .auth.deps import PageRedirect, page_redirect_handler
from .auth.middleware import SessionRefreshMiddleware
from .config import Config
from .metrics import setup_metrics
from .routes import auth_router, pages_router

logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Build the application for ``config`` (read from the environment by default)."""
    config = config or Config()

    app = FastAPI(title="Supaprofile", version=__version__)
    app.state.config = config

    app.add_middleware(SessionRefreshMiddleware, config=config)
    if config.enable_metrics:
        # Added last so it wraps the session middleware too
        setup_metrics(app, version=__version__)

    app.add_exception_handler(PageRedirect, page_redirect_handler)

    app.include_router(pages_router)
    app.include_router(auth_router)

    @app.on_event("startup")
    async def startup_event():
        """Refuse to start on a broken configuration."""
        logger.info("🚀 Starting Supaprofile...")
        is_valid, error_msg = config.validate()
        if not is_valid:
            raise RuntimeError(f"Invalid configuration: {error_msg}")
        logger.info(f"✓ Configuration loaded: {config}")
        if not config.verifies_tokens_locally:
            logger.info("SUPABASE_JWT_SECRET not set; access tokens are verified with the provider")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "version": __version__,
        }

    return app


app = create_app()
