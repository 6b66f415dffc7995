"""Session state for the chat interface.

Responsibilities:
    - Active conversation, cached transcripts and history previews
    - Composer draft and image attachment staging
    - Streaming assistant replies through the stream reducer
    - Reactions and the copied indicator

Contains no rendering code. The UI subscribes to state changes.
"""

from streamchat.session.attachments import UploadedFile, format_file_size
from streamchat.session.state import (
    ERROR_TEXT,
    NEW_CHAT_GREETING,
    ChatSession,
    placeholder_messages,
    truncate_text,
)

__all__ = [
    "ERROR_TEXT",
    "NEW_CHAT_GREETING",
    "ChatSession",
    "UploadedFile",
    "format_file_size",
    "placeholder_messages",
    "truncate_text",
]
