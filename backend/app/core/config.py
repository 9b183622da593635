"""
Application configuration.

Values come from environment variables. ``app.main`` loads a ``.env`` file
from the project root before this module is read.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DATA_DIR = Path(__file__).resolve().parents[2] / "data"

LOCALHOST_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]


@dataclass
class Settings:
    """Runtime settings for the API server and the offline client."""

    environment: str = "development"
    blob_backend: str = "local"
    data_dir: Path = DEFAULT_DATA_DIR
    storage_bucket: str | None = None
    api_url: str = "http://localhost:8000"
    cache_path: Path = field(default_factory=lambda: Path.home() / ".pocketledger" / "cache.json")
    production_origins: list[str] = field(default_factory=list)

    @classmethod
    def from_env(cls) -> "Settings":
        cache_path = os.environ.get("POCKETLEDGER_CACHE")
        origins = os.environ.get("CORS_ORIGINS", "")
        return cls(
            environment=os.environ.get("ENVIRONMENT", "development"),
            blob_backend=os.environ.get("BLOB_BACKEND", "local").lower(),
            data_dir=Path(os.environ.get("DATA_DIR", str(DEFAULT_DATA_DIR))),
            storage_bucket=os.environ.get("STORAGE_BUCKET"),
            api_url=os.environ.get("POCKETLEDGER_API_URL", "http://localhost:8000"),
            cache_path=Path(cache_path).expanduser() if cache_path else Path.home() / ".pocketledger" / "cache.json",
            production_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )

    @property
    def cors_origins(self) -> list[str]:
        if self.environment == "production":
            # Allow local dev against the deployed API
            return [*self.production_origins, *LOCALHOST_ORIGINS]
        return LOCALHOST_ORIGINS


def get_settings() -> Settings:
    return Settings.from_env()
