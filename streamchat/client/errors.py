"""Error taxonomy for the streaming chat client."""


class StreamChatError(Exception):
    """Base class for client-side failures."""


class TransportUnavailable(StreamChatError):
    """Raised when a response has no readable body."""


class LineParseError(StreamChatError):
    """A streamed line is not valid JSON or carries no content fragment.

    Never raised out of the reducer; carried inside ``DecodeFailure``.
    """

    def __init__(self, line: str, reason: str) -> None:
        super().__init__(f"{reason}: {line[:120]!r}")
        self.line = line
        self.reason = reason


class RequestFailed(StreamChatError):
    """Raised when the chat request fails or returns a non-success status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceFailed(StreamChatError):
    """Raised when a write to the conversation store fails."""
