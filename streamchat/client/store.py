"""HTTP client for the conversation store.

Reads degrade to "no data" on any failure. Writes raise
PersistenceFailed so the caller decides where the failure is reported.
"""

import logging

import httpx
from pydantic import TypeAdapter, ValidationError

from streamchat.client.config import ClientConfig, get_client_config
from streamchat.client.errors import PersistenceFailed
from streamchat.models.schemas import (
    Conversation,
    ConversationCreate,
    Message,
    MessageRecord,
)

logger = logging.getLogger(__name__)

_conversations_adapter = TypeAdapter(list[Conversation])
_records_adapter = TypeAdapter(list[MessageRecord])


class StoreClient:
    """Async client for ``/conversations`` and ``/messages``.

    Args:
        config: Client configuration. Loads from environment if not provided.
        http: Optional preconfigured AsyncClient (tests inject ASGI transports).
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        http: httpx.AsyncClient | None = None,
    ) -> None:
        self._config = config or get_client_config()
        self._http = http or httpx.AsyncClient(
            base_url=self._config.store_base_url,
            timeout=self._config.request_timeout,
        )

    async def aclose(self) -> None:
        await self._http.aclose()

    async def list_conversations(self) -> list[Conversation]:
        """Return all conversations, or an empty list if the store is unreachable."""
        try:
            response = await self._http.get("/conversations")
            response.raise_for_status()
            return _conversations_adapter.validate_json(response.content)
        except (httpx.HTTPError, ValidationError) as e:
            logger.warning(f"Failed to list conversations: {e}")
            return []

    async def get_messages(self, conversation_id: str) -> list[Message]:
        """Return stored messages for a conversation, or an empty list."""
        try:
            response = await self._http.get(f"/messages/{conversation_id}")
            response.raise_for_status()
            records = _records_adapter.validate_json(response.content)
            return [Message.from_record(record) for record in records]
        except (httpx.HTTPError, ValidationError, ValueError) as e:
            logger.warning(f"Failed to load messages for {conversation_id}: {e}")
            return []

    async def save_conversation(self, payload: ConversationCreate) -> Conversation:
        """Create or update a conversation.

        Raises:
            PersistenceFailed: On network error or non-success status.
        """
        try:
            response = await self._http.post(
                "/conversations",
                json=payload.model_dump(exclude_none=True),
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise PersistenceFailed(f"Failed to save conversation {payload.id}: {e}") from e

        fields = payload.model_dump(exclude_none=True)
        return Conversation(**fields)

    async def create_conversation(self, payload: ConversationCreate) -> Conversation | None:
        """Create a conversation, returning None if the store rejects it."""
        try:
            return await self.save_conversation(payload)
        except PersistenceFailed as e:
            logger.warning(str(e))
            return None

    async def save_message(self, message: Message) -> None:
        """Persist a message.

        Raises:
            PersistenceFailed: On an invalid body, network error or non-success status.
        """
        try:
            body = message.to_create().model_dump(mode="json", by_alias=True)
            response = await self._http.post("/messages", json=body)
            response.raise_for_status()
        except (httpx.HTTPError, ValidationError) as e:
            raise PersistenceFailed(f"Failed to save message {message.id}: {e}") from e
