"""Application configuration module."""

import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///data/app.db"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self):
        """Initialize configuration from environment variables."""
        # Supabase project
        self.supabase_url: str = os.getenv("SUPABASE_URL", "").strip().rstrip("/")
        self.supabase_anon_key: str = os.getenv("SUPABASE_ANON_KEY", "").strip()
        # Optional: verify access tokens locally instead of asking the provider
        self.supabase_jwt_secret: Optional[str] = (
            os.getenv("SUPABASE_JWT_SECRET", "").strip() or None
        )

        # Database
        self.database_url: str = (
            os.getenv("DATABASE_URL", "").strip() or DEFAULT_DATABASE_URL
        )

        # Public origin, used for the email confirmation redirect
        self.site_url: Optional[str] = os.getenv("SITE_URL", "").strip().rstrip("/") or None

        # Session cookie
        self.session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "sb-session")
        self.session_max_age: int = int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24 * 7)))
        self.session_refresh_margin: int = int(os.getenv("SESSION_REFRESH_MARGIN", "60"))

        cookie_secure_env = os.getenv("AUTH_COOKIE_SECURE", "").strip().lower()
        if cookie_secure_env in ("1", "true", "yes", "on"):
            self.cookie_secure: bool = True
        elif cookie_secure_env in ("0", "false", "no", "off"):
            self.cookie_secure = False
        else:
            # Default: secure cookies when the site is served over https
            self.cookie_secure = (self.site_url or "").startswith("https://")

        # Application settings
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.enable_metrics: bool = _env_flag("ENABLE_METRICS")
        self.api_host: str = os.getenv("API_HOST", "0.0.0.0")
        self.api_port: int = int(os.getenv("API_PORT", "8000"))

    def validate(self) -> tuple[bool, Optional[str]]:
        """Validate configuration values.

        Returns:
            Tuple of (is_valid, error_message).
        """
        if not self.supabase_url:
            return False, "SUPABASE_URL is required"

        if not self.supabase_url.startswith(("http://", "https://")):
            return False, f"SUPABASE_URL must be an http(s) URL, got '{self.supabase_url}'"

        if not self.supabase_anon_key:
            return False, "SUPABASE_ANON_KEY is required"

        if self.session_refresh_margin < 0:
            return False, "SESSION_REFRESH_MARGIN must not be negative"

        if self.session_max_age < 1:
            return False, "SESSION_MAX_AGE must be positive"

        if self.api_port < 1 or self.api_port > 65535:
            return False, "API_PORT must be between 1 and 65535"

        if self.log_level not in _LOG_LEVELS:
            return False, f"LOG_LEVEL must be one of {', '.join(_LOG_LEVELS)}"

        return True, None

    @property
    def verifies_tokens_locally(self) -> bool:
        """Whether access tokens are checked with the JWT secret instead of the provider."""
        return bool(self.supabase_jwt_secret)

    def __repr__(self) -> str:
        """String representation of config."""
        database = self.database_url.split("@")[-1]
        return (
            f"Config(supabase_url={self.supabase_url or 'unset'}, "
            f"database={database}, "
            f"local_jwt={self.verifies_tokens_locally}, "
            f"port={self.api_port})"
        )
