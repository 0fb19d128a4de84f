"""Application configuration, read from environment variables and Docker Swarm secrets."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings

_SECRET_FIELDS = (
    "supabase_url",
    "supabase_key",
    "openai_api_key",
    "r2_access_key_id",
    "r2_secret_access_key",
)


def _read_secret(name: str) -> str | None:
    """Read a Docker Swarm secret from /run/secrets/."""
    secret_path = Path(f"/run/secrets/{name}")
    if secret_path.exists():
        return secret_path.read_text().strip()
    return None


class Settings(BaseSettings):
    """Application settings with env var and secret support."""

    supabase_url: str = ""
    supabase_key: str = ""
    # Used only when no enabled OpenAI key is stored in the KV store
    openai_api_key: str = ""
    r2_endpoint_url: str = ""
    r2_access_key_id: str = ""
    r2_secret_access_key: str = ""
    r2_bucket: str = ""
    session_cookie_name: str = "session"
    port: int = 8400
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        for name in _SECRET_FIELDS:
            if secret := _read_secret(name):
                setattr(self, name, secret)

    @property
    def object_storage_enabled(self) -> bool:
        return bool(self.r2_bucket and self.r2_endpoint_url)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
