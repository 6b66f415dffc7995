"""streamchat - Browser chat client for a hosted language-model endpoint.

Combines httpx for streaming model responses, FastAPI for the
conversation store, NiceGUI for the chat interface, and Pydantic for
data validation.

Components:
    - client: NDJSON transport reader, stream reducer, HTTP clients
    - session: Session state for the active conversation
    - api: Conversation/message persistence endpoints
    - ui: Web interface for chat interactions
    - models: Conversation, message and wire schemas
"""

__version__ = "0.1.0"
