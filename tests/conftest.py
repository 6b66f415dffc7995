"""Pytest fixtures and shared test configuration.

Provides reusable fixtures for unit and integration tests.

Fixtures:
    - client_config: ClientConfig pointing at fake hosts
    - store_app: FastAPI store app with an isolated in-memory store
    - async_client: HTTPX client for store API testing
    - model_server: Scriptable fake of the model server
    - store_client / model_client: Clients wired to the fakes
    - session: ChatSession wired to both fakes
    - user: Simulated NiceGUI browser user (nicegui user plugin)

Every test gets its own store instance; nothing is shared between tests.
"""

import asyncio
import json
from collections.abc import AsyncGenerator, AsyncIterator, Iterable

import httpx
import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from streamchat.api.app import create_app
from streamchat.api.store import InMemoryStore
from streamchat.client.config import ClientConfig
from streamchat.client.model import ModelClient
from streamchat.client.store import StoreClient
from streamchat.session.state import ChatSession

STORE_BASE_URL = "http://store.test/api"
MODEL_BASE_URL = "http://model.test/api"

pytest_plugins = ["nicegui.testing.user_plugin"]


def ndjson_line(content: object) -> bytes:
    """Encode one streamed chat line carrying a content fragment."""
    chunk = {"model": "test", "message": {"role": "assistant", "content": content}}
    return (json.dumps(chunk, ensure_ascii=False) + "\n").encode()


def ndjson_body(*fragments: str) -> bytes:
    return b"".join(ndjson_line(f) for f in fragments)


async def achunks(chunks: Iterable[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        yield chunk


class GatedStream(httpx.AsyncByteStream):
    """Response body that pauses before chunk ``pause_at`` until ``gate`` is set."""

    def __init__(self, chunks: list[bytes], gate: asyncio.Event, pause_at: int) -> None:
        self.chunks = chunks
        self.gate = gate
        self.pause_at = pause_at
        self.paused = asyncio.Event()

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(self.chunks):
            if index == self.pause_at:
                self.paused.set()
                await self.gate.wait()
            yield chunk


class FakeModelServer:
    """Scriptable stand-in for an Ollama-compatible model server.

    Attributes:
        models: Names returned by ``/tags``; None makes ``/tags`` fail.
        chat_chunks: Body chunks returned by ``/chat``.
        chat_status: Status code returned by ``/chat``.
        chat_stream: Optional custom body stream for ``/chat``.
        chat_requests: JSON bodies received by ``/chat``.
    """

    def __init__(self) -> None:
        self.models: list[str] | None = ["llama3.2:1b", "qwen2.5:7b"]
        self.chat_chunks: list[bytes] = [ndjson_body("Hello", "!")]
        self.chat_status = 200
        self.chat_stream: httpx.AsyncByteStream | None = None
        self.chat_requests: list[dict] = []

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/tags"):
            if self.models is None:
                return httpx.Response(503)
            return httpx.Response(200, json={"models": [{"name": name} for name in self.models]})

        if request.url.path.endswith("/chat"):
            self.chat_requests.append(json.loads(request.content))
            if self.chat_status != 200:
                return httpx.Response(self.chat_status, json={"error": "boom"})
            stream = self.chat_stream or GatedStream(self.chat_chunks, asyncio.Event(), pause_at=-1)
            return httpx.Response(200, headers={"Content-Type": "application/x-ndjson"}, stream=stream)

        return httpx.Response(404)


@pytest.fixture
def client_config() -> ClientConfig:
    """Client configuration with a short copied-indicator delay."""
    return ClientConfig(
        store_base_url=STORE_BASE_URL,
        model_base_url=MODEL_BASE_URL,
        default_model="llama3.2:1b",
        copied_reset_seconds=0.05,
    )


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def store_app(memory_store: InMemoryStore) -> FastAPI:
    """Store API backed by a fresh in-memory store."""
    return create_app(store=memory_store)


@pytest.fixture
async def async_client(store_app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for store API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=store_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def model_server() -> FakeModelServer:
    return FakeModelServer()


@pytest.fixture
async def store_client(store_app: FastAPI, client_config: ClientConfig) -> AsyncGenerator[StoreClient]:
    http = AsyncClient(transport=ASGITransport(app=store_app), base_url=STORE_BASE_URL)
    client = StoreClient(client_config, http=http)
    yield client
    await client.aclose()


@pytest.fixture
async def model_client(model_server: FakeModelServer, client_config: ClientConfig) -> AsyncGenerator[ModelClient]:
    http = AsyncClient(transport=httpx.MockTransport(model_server.handler), base_url=MODEL_BASE_URL)
    client = ModelClient(client_config, http=http)
    yield client
    await client.aclose()


@pytest.fixture
def clipboard() -> list[str]:
    """Texts written to the fake clipboard."""
    return []


@pytest.fixture
async def session(
    store_client: StoreClient,
    model_client: ModelClient,
    client_config: ClientConfig,
    clipboard: list[str],
) -> AsyncGenerator[ChatSession]:
    """ChatSession with a loaded first conversation."""

    async def write_clipboard(text: str) -> None:
        clipboard.append(text)

    chat = ChatSession(store_client, model_client, client_config, clipboard=write_clipboard)
    await chat.load_initial()
    await chat.drain()
    yield chat
    await chat.drain()
