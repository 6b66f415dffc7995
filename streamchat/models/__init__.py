"""Pydantic models for conversations, messages and wire payloads.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - Conversation: History entry with title and preview
    - Message: Transcript entry, possibly partial while streaming
    - Attachment: Image staged in the composer
    - ConversationCreate / MessageCreate / MessageRecord: Store payloads
    - ChatRequest / ChatChunk: Model endpoint request and stream line
"""

from streamchat.models.schemas import (
    Attachment,
    ChatChunk,
    ChatRequest,
    ChatTurn,
    Conversation,
    ConversationCreate,
    Message,
    MessageCreate,
    MessageRecord,
    Reaction,
    Role,
    StoreAck,
    new_id,
)

__all__ = [
    "Attachment",
    "ChatChunk",
    "ChatRequest",
    "ChatTurn",
    "Conversation",
    "ConversationCreate",
    "Message",
    "MessageCreate",
    "MessageRecord",
    "Reaction",
    "Role",
    "StoreAck",
    "new_id",
]
