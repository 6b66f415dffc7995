"""Conversation and message endpoints.

Plain JSON arrays for reads; writes return ``{"ok": true, "id": ...}``
with status 201.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from streamchat.api.store import ConversationStore
from streamchat.models.schemas import (
    Conversation,
    ConversationCreate,
    MessageCreate,
    MessageRecord,
    StoreAck,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["store"])


def get_store(request: Request) -> ConversationStore:
    """Return the store owned by the running application."""
    return request.app.state.store


StoreDep = Annotated[ConversationStore, Depends(get_store)]


@router.get("/conversations", response_model=list[Conversation])
async def list_conversations(store: StoreDep) -> list[Conversation]:
    """List conversations, most recent first."""
    return store.list_conversations()


@router.post("/conversations", response_model=StoreAck, status_code=status.HTTP_201_CREATED)
async def upsert_conversation(payload: ConversationCreate, store: StoreDep) -> StoreAck:
    """Create a conversation, or update the one with the same id.

    Args:
        payload: Conversation id and title, optional preview and timestamp.

    Returns:
        Acknowledgement with the conversation id.
    """
    conversation = store.upsert_conversation(payload)
    logger.debug(f"Saved conversation {conversation.id}")
    return StoreAck(id=conversation.id)


@router.get(
    "/messages/{conversation_id}",
    response_model=list[MessageRecord],
    response_model_by_alias=True,
)
async def list_messages(conversation_id: str, store: StoreDep) -> list[MessageRecord]:
    """List a conversation's messages in creation order.

    Attachments are returned as JSON text.
    """
    return store.list_messages(conversation_id)


@router.post("/messages", response_model=StoreAck, status_code=status.HTTP_201_CREATED)
async def add_message(payload: MessageCreate, store: StoreDep) -> StoreAck:
    """Store a message.

    Args:
        payload: Message fields; name, avatarFallback and markdown default by role.

    Returns:
        Acknowledgement with the message id.
    """
    record = store.add_message(payload)
    logger.debug(f"Saved message {record.id} in {record.conversation_id}")
    return StoreAck(id=record.id)
