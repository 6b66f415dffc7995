"""Unit tests for ClientConfig and StoreConfig."""

from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from streamchat.api.config import StoreConfig
from streamchat.client.config import ClientConfig, get_client_config


class TestClientConfig:
    """Tests for ClientConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = ClientConfig(
            store_base_url="http://store/api",
            model_base_url="http://model/api",
            default_model="qwen2.5:7b",
            request_timeout=30.0,
            preview_limit=40,
            copied_reset_seconds=1.0,
        )

        assert config.store_base_url == "http://store/api"
        assert config.model_base_url == "http://model/api"
        assert config.default_model == "qwen2.5:7b"
        assert config.request_timeout == 30.0
        assert config.preview_limit == 40
        assert config.copied_reset_seconds == 1.0

    def test_config_with_default_values(self) -> None:
        """Config uses sensible defaults for tuning fields."""
        config = ClientConfig(store_base_url="http://s", model_base_url="http://m")

        assert config.request_timeout == 120.0
        assert config.preview_limit == 80
        assert config.copied_reset_seconds == 2.0

    def test_config_strips_trailing_slash(self) -> None:
        """Base URLs are normalized without a trailing slash."""
        config = ClientConfig(store_base_url=" http://store/api/ ", model_base_url="http://m/")

        assert config.store_base_url == "http://store/api"
        assert config.model_base_url == "http://m"

    def test_config_fails_with_empty_base_url(self) -> None:
        """Config rejects an empty base URL."""
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(store_base_url="   ", model_base_url="http://m")

        assert "Base URL must not be empty" in str(exc_info.value)

    def test_config_fails_with_zero_timeout(self) -> None:
        """Config rejects a non-positive timeout."""
        with pytest.raises(ValidationError) as exc_info:
            ClientConfig(store_base_url="http://s", model_base_url="http://m", request_timeout=0)

        assert "request_timeout" in str(exc_info.value)

    def test_config_fails_with_zero_preview_limit(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(store_base_url="http://s", model_base_url="http://m", preview_limit=0)

    def test_config_fails_with_negative_copied_delay(self) -> None:
        with pytest.raises(ValidationError):
            ClientConfig(store_base_url="http://s", model_base_url="http://m", copied_reset_seconds=-1)


class TestGetClientConfig:
    """Tests for get_client_config factory function."""

    def test_get_config_from_environment(self) -> None:
        """get_client_config reads URLs and model from the environment."""
        env = {
            "STORE_BASE_URL": "http://env-store/api",
            "MODEL_BASE_URL": "http://env-model/api",
            "DEFAULT_MODEL": "mistral",
        }
        with patch.dict("os.environ", env):
            config = get_client_config()

        assert config.store_base_url == "http://env-store/api"
        assert config.model_base_url == "http://env-model/api"
        assert config.default_model == "mistral"

    def test_get_config_defaults_without_env(self) -> None:
        """Without environment overrides the local defaults apply."""
        with patch.dict("os.environ", {}, clear=True):
            config = get_client_config()

        assert config.store_base_url == "http://localhost:8000/api"
        assert config.model_base_url == "http://localhost:11434/api"
        assert config.default_model == "llama3.2:1b"


class TestStoreConfig:
    """Tests for StoreConfig validation."""

    def test_default_backend_is_memory(self) -> None:
        with patch.dict("os.environ", {}, clear=True):
            config = StoreConfig()

        assert config.backend == "memory"
        assert config.sqlite_path == Path("data/streamchat.db")

    def test_backend_is_normalized(self) -> None:
        assert StoreConfig(backend=" SQLite ").backend == "sqlite"

    def test_backend_from_environment(self) -> None:
        with patch.dict("os.environ", {"STORE_BACKEND": "sqlite", "STORE_SQLITE_PATH": "/tmp/x.db"}):
            config = StoreConfig()

        assert config.backend == "sqlite"
        assert config.sqlite_path == Path("/tmp/x.db")

    def test_unknown_backend_rejected(self) -> None:
        """Config rejects backends other than memory and sqlite."""
        with pytest.raises(ValidationError) as exc_info:
            StoreConfig(backend="postgres")

        assert "Unknown store backend" in str(exc_info.value)
