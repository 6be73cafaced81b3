import os
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


def _as_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def normalize_database_url(url: str) -> str:
    # Render/Railway hand out postgres:// which SQLAlchemy no longer accepts
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql://", 1)
    return url


class Settings:
    """Runtime configuration read from the environment."""

    def __init__(self):
        self.database_url: str = normalize_database_url(
            os.getenv("DATABASE_URL", "sqlite:///./bakery.db")
        )
        self.storage_backend: str = os.getenv("STORAGE_BACKEND", "database")
        self.session_store: str = os.getenv("SESSION_STORE", self.storage_backend)

        self.session_secret: str = os.getenv(
            "SESSION_SECRET", "dev-only-bakery-session-secret-change-me"
        )
        self.session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "bakery.sid")
        self.session_max_age: int = int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24)))
        self.secure_cookies: bool = _as_bool(os.getenv("SECURE_COOKIES"))

        self.admin_username: str = os.getenv("ADMIN_USERNAME", "admin")
        self.admin_password: str = os.getenv("ADMIN_PASSWORD", "maxwil2024")
        self.admin_security_code: str = os.getenv("ADMIN_SECURITY_CODE", "BAKERY123")

        self.google_maps_api_key: Optional[str] = os.getenv("GOOGLE_MAPS_API_KEY") or None

        self.rate_limit_window_seconds: int = int(os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900"))
        self.rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
        self.rate_limit_max_keys: int = int(os.getenv("RATE_LIMIT_MAX_KEYS", "10000"))
        self.trust_proxy: bool = _as_bool(os.getenv("TRUST_PROXY"))

        self.cors_origins: List[str] = [
            origin.strip()
            for origin in os.getenv(
                "CORS_ORIGINS", "http://localhost:5000,http://localhost:3000"
            ).split(",")
            if origin.strip()
        ]
        self.port: int = int(os.getenv("PORT", "5000"))


settings = Settings()
