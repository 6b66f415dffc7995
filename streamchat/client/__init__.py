"""Streaming pipeline and HTTP collaborators.

Responsibilities:
    - Byte chunks to NDJSON lines (transport reader)
    - Line-by-line folding into an assistant message (stream reducer)
    - Model server access: model list and streaming chat
    - Conversation store access with graceful degradation

Keeps all network I/O out of the session state.
"""

from streamchat.client.config import ClientConfig, get_client_config
from streamchat.client.errors import (
    LineParseError,
    PersistenceFailed,
    RequestFailed,
    StreamChatError,
    TransportUnavailable,
)
from streamchat.client.model import ModelClient
from streamchat.client.reducer import Decoded, DecodeFailure, StreamReducer, decode_line, reduce_stream
from streamchat.client.store import StoreClient
from streamchat.client.transport import iter_lines, read_response_lines

__all__ = [
    "ClientConfig",
    "DecodeFailure",
    "Decoded",
    "LineParseError",
    "ModelClient",
    "PersistenceFailed",
    "RequestFailed",
    "StoreClient",
    "StreamChatError",
    "StreamReducer",
    "TransportUnavailable",
    "decode_line",
    "get_client_config",
    "iter_lines",
    "read_response_lines",
    "reduce_stream",
]
