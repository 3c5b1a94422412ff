"""Application settings loaded from environment."""

from __future__ import annotations

import os


def _flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from environment."""

    def __init__(self) -> None:
        """Load settings from environment variables."""
        self.store = os.getenv("ROUTEGATE_STORE", "postgres").lower()
        self.database_url = os.getenv(
            "ROUTEGATE_DATABASE_URL", "postgresql://localhost:5432/routegate"
        )
        self.apply_schema = _flag("ROUTEGATE_APPLY_SCHEMA")

        # Identity provider
        self.identity_url = os.getenv("ROUTEGATE_IDENTITY_URL", "")
        self.identity_api_key = os.getenv("ROUTEGATE_IDENTITY_API_KEY") or None
        self.identity_timeout_seconds = float(os.getenv("ROUTEGATE_IDENTITY_TIMEOUT", "10"))

        # Lifecycle and audit policy
        self.invite_expiry_days = int(os.getenv("ROUTEGATE_INVITE_EXPIRY_DAYS", "7"))
        self.min_visit_ms = int(os.getenv("ROUTEGATE_MIN_VISIT_MS", "1000"))
        self.audit_retention_days = int(os.getenv("ROUTEGATE_AUDIT_RETENTION_DAYS", "730"))

        # Logging
        self.log_level = os.getenv("ROUTEGATE_LOG_LEVEL", "INFO").upper()
        self.log_json = _flag("ROUTEGATE_LOG_JSON")

        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("ROUTEGATE_CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

    @property
    def uses_memory_store(self) -> bool:
        """Whether state lives in process memory instead of Postgres."""
        return self.store == "memory"
