"""Store configuration with environment variable loading."""

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

load_dotenv()

STORE_BACKENDS = ("memory", "sqlite")


class StoreConfig(BaseModel):
    """Configuration for the conversation store service.

    Attributes:
        backend: "memory" for a per-process store, "sqlite" for a file database.
        sqlite_path: Database file used by the sqlite backend.
    """

    backend: str = Field(
        default_factory=lambda: os.getenv("STORE_BACKEND", "memory"),
        description="Storage backend: memory or sqlite",
    )
    sqlite_path: Path = Field(
        default_factory=lambda: Path(os.getenv("STORE_SQLITE_PATH", "data/streamchat.db")),
        description="SQLite database file",
    )

    @field_validator("backend")
    @classmethod
    def validate_backend(cls, v: str) -> str:
        """Reject unknown storage backends."""
        backend = v.strip().lower()
        if backend not in STORE_BACKENDS:
            raise ValueError(f"Unknown store backend {v!r}. Use one of: {', '.join(STORE_BACKENDS)}")
        return backend


def get_store_config() -> StoreConfig:
    return StoreConfig()
