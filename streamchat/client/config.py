"""Client configuration with environment variable loading.

Pydantic-based configuration for the store and model HTTP clients.
Any Ollama-compatible server can be used via MODEL_BASE_URL.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()


class ClientConfig(BaseModel):
    """Configuration for the chat session and its HTTP collaborators.

    Attributes:
        store_base_url: Base URL of the conversation store API.
        model_base_url: Base URL of the model server (``/tags``, ``/chat``).
        default_model: Model used when the model list cannot be fetched.
        request_timeout: Timeout in seconds for HTTP requests.
        preview_limit: Characters kept in a history preview.
        copied_reset_seconds: Delay before the "copied" flag clears.
    """

    store_base_url: str = Field(
        default_factory=lambda: os.getenv("STORE_BASE_URL", "http://localhost:8000/api"),
        description="Conversation store base URL",
    )
    model_base_url: str = Field(
        default_factory=lambda: os.getenv("MODEL_BASE_URL", "http://localhost:11434/api"),
        description="Model server base URL",
    )
    default_model: str = Field(
        default_factory=lambda: os.getenv("DEFAULT_MODEL", "llama3.2:1b"),
        description="Fallback model identifier",
    )
    request_timeout: float = Field(
        default=120.0,
        gt=0.0,
        description="HTTP timeout in seconds",
    )
    preview_limit: int = Field(
        default=80,
        ge=1,
        description="Maximum preview length before truncation",
    )
    copied_reset_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Seconds until the copied indicator clears",
    )

    @field_validator("store_base_url", "model_base_url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so paths can be appended."""
        if not v or not v.strip():
            raise ValueError("Base URL must not be empty")
        return v.strip().rstrip("/")


def get_client_config() -> ClientConfig:
    """Create client configuration from environment.

    Returns:
        Configured ClientConfig instance.
    """
    return ClientConfig()
