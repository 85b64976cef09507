"""Server configuration — reads settings from environment variables.

All settings have sensible defaults for local development.  In production
the values are typically overridden via env vars or a ``.env`` file.
"""

import os
from dataclasses import dataclass, field

# --- Pagination defaults ---
# Module-level constants read at import time so FastAPI Query() defaults
# can reference them (Query defaults must be static at decoration time).
DEFAULT_PAGE_LIMIT = int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))
MAX_PAGE_LIMIT = int(os.getenv("MAX_PAGE_LIMIT", "100"))


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ServerSettings:
    """Immutable server configuration read from environment at startup."""

    # Network
    host: str = "0.0.0.0"
    port: int = 8080

    # CORS — comma-separated origins, or "*" for wide-open dev mode
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    # YAML catalog used to seed an empty questions table (None → catalog/questions.yaml)
    catalog_path: str | None = None
    seed_catalog: bool = True

    # Bearer tokens
    jwt_secret: str = "change-me"
    jwt_expires_days: int = 7

    # Role given to self-registered accounts ("user" or "admin")
    register_default_role: str = "user"


def load_settings() -> ServerSettings:
    """Build settings from ``SERVER_*`` / ``JWT_*`` environment variables."""
    raw_origins = os.getenv("SERVER_CORS_ORIGINS", "*")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]

    return ServerSettings(
        host=os.getenv("SERVER_HOST", "0.0.0.0"),
        port=int(os.getenv("SERVER_PORT", "8080")),
        cors_origins=origins,
        log_level=os.getenv("SERVER_LOG_LEVEL", "INFO").upper(),
        catalog_path=os.getenv("SERVER_CATALOG_PATH") or None,
        seed_catalog=_env_flag("SERVER_SEED_CATALOG", True),
        jwt_secret=os.getenv("JWT_SECRET", "change-me"),
        jwt_expires_days=int(os.getenv("JWT_EXPIRES_DAYS", "7")),
        register_default_role=os.getenv("REGISTER_DEFAULT_ROLE", "user").lower(),
    )
