"""Runtime settings read from ``PLOTRECON_*`` environment variables."""
from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, Field


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


class Settings(BaseModel):
    """Store location and batch limits for reconciliation runs."""

    store_url: str = ""
    api_key: str = ""
    batch_size: int = Field(default=10, ge=1, le=100)
    max_workers: int = Field(default=10, ge=1)
    fetch_limit: int = Field(default=10000, ge=1, le=20000)
    timeout: int = Field(default=30, ge=1)

    @classmethod
    def from_env(cls, **overrides: Any) -> "Settings":
        """Build settings from the environment; keyword overrides win."""
        values = {
            "store_url": os.getenv("PLOTRECON_STORE_URL", ""),
            "api_key": os.getenv("PLOTRECON_API_KEY", ""),
            "batch_size": _env_int("PLOTRECON_BATCH_SIZE", 10),
            "max_workers": _env_int("PLOTRECON_MAX_WORKERS", 10),
            "fetch_limit": _env_int("PLOTRECON_FETCH_LIMIT", 10000),
            "timeout": _env_int("PLOTRECON_TIMEOUT", 30),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
