"""FastAPI endpoints for the conversation store.

Endpoints:
    - GET /health: Service health status
    - GET /api/conversations: History list
    - POST /api/conversations: Create or update a conversation
    - GET /api/messages/{conversation_id}: Conversation transcript
    - POST /api/messages: Store a message
"""

from streamchat.api.app import create_app
from streamchat.api.store import ConversationStore, InMemoryStore, SqliteStore, build_store

__all__ = ["ConversationStore", "InMemoryStore", "SqliteStore", "build_store", "create_app"]
