"""HTTP client for an Ollama-compatible model server.

Lists available models and opens streaming chat requests whose body is
newline-delimited JSON.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx

from streamchat.client.config import ClientConfig, get_client_config
from streamchat.client.errors import RequestFailed
from streamchat.client.transport import read_response_lines
from streamchat.models.schemas import ChatRequest, ChatTurn

logger = logging.getLogger(__name__)


class ModelClient:
    """Async client for ``/tags`` and ``/chat``.

    Args:
        config: Client configuration. Loads from environment if not provided.
        http: Optional preconfigured AsyncClient.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._http = http or httpx.AsyncClient(
            base_url=self._config.model_base_url,
            timeout=self._config.request_timeout,
        )

    @property
    def default_model(self) -> str:
        return self._config.default_model

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_models(self) -> list[str]:
        """Return available model ids, falling back to the default model."""
        try:
            response = await self._http.get("/tags")
            response.raise_for_status()
            data = response.json()
            names = [m["name"] for m in data.get("models", []) if m.get("name")]
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to fetch models, using {self.default_model}: {e}")
            return [self.default_model]

        return names or [self.default_model]

    @asynccontextmanager
    async def stream_chat(self, model: str, messages: list[ChatTurn]) -> AsyncIterator[AsyncIterator[str]]:
        """Open a streaming chat request.

        Usage:
            async with client.stream_chat(model, history) as lines:
                async for line in lines:
                    ...

        Yields:
            An async iterator over the response's NDJSON lines.

        Raises:
            RequestFailed: On network error or non-success status.
        """
        request = ChatRequest(model=model, messages=messages, stream=True)
        try:
            async with self._http.stream(
                "POST",
                "/chat",
                json=request.model_dump(mode="json"),
            ) as response:
                if not response.is_success:
                    raise RequestFailed(f"HTTP {response.status_code}", response.status_code)
                yield read_response_lines(response)
        except httpx.RequestError as e:
            raise RequestFailed(f"Connection failed: {e}") from e
