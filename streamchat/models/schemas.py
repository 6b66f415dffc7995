import json
import secrets
import string
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ID_ALPHABET = string.ascii_lowercase + string.digits

ASSISTANT_NAME = "Ollama"
ASSISTANT_AVATAR = "OL"
USER_NAME = "You"
USER_AVATAR = "YO"


def new_id() -> str:
    """Return an 8-character base-36 identifier."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(8))


def utc_now() -> datetime:
    return datetime.now(UTC)


class Role(str, Enum):
    """Speaker of a message."""

    USER = "user"
    ASSISTANT = "assistant"


class Reaction(str, Enum):
    """User feedback on an assistant message."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Attachment(BaseModel):
    """An image staged in the composer or attached to a user message.

    Attributes:
        id: Attachment identifier.
        name: Original filename.
        type: Declared MIME type.
        size: Size in bytes.
        preview: Inline data URL. Never sent to the store.
    """

    id: str = Field(default_factory=new_id)
    name: str
    type: str
    size: int = Field(ge=0)
    preview: str = ""

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(exclude={"preview"})


class Conversation(BaseModel):
    """A conversation entry in the history list.

    Attributes:
        id: Unique conversation identifier.
        title: Display title ("Chat N").
        preview: Truncated text of the latest message.
        timestamp: ISO timestamp of the last activity.
    """

    id: str
    title: str
    preview: str = "New conversation"
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())


class Message(BaseModel):
    """A single message in a conversation transcript.

    Content may be partial while the message is streaming. The wire
    name of ``avatar_fallback`` is ``avatarFallback``.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(default_factory=new_id)
    conversation_id: str
    role: Role
    name: str
    avatar_fallback: str = Field(alias="avatarFallback")
    content: str = ""
    markdown: bool = False
    attachments: list[Attachment] | None = None
    reaction: Reaction | None = None
    created_at: datetime = Field(default_factory=utc_now)

    @classmethod
    def assistant(cls, conversation_id: str, content: str = "", **kwargs: Any) -> "Message":
        kwargs.setdefault("markdown", True)
        return cls(
            conversation_id=conversation_id,
            role=Role.ASSISTANT,
            name=ASSISTANT_NAME,
            avatar_fallback=ASSISTANT_AVATAR,
            content=content,
            **kwargs,
        )

    @classmethod
    def user(cls, conversation_id: str, content: str, **kwargs: Any) -> "Message":
        return cls(
            conversation_id=conversation_id,
            role=Role.USER,
            name=USER_NAME,
            avatar_fallback=USER_AVATAR,
            content=content,
            **kwargs,
        )

    @classmethod
    def from_record(cls, record: "MessageRecord") -> "Message":
        """Build a message from a stored record, filling role defaults."""
        is_user = record.role == Role.USER
        attachments = None
        if record.attachments:
            attachments = [Attachment.model_validate(a) for a in json.loads(record.attachments)]
        return cls(
            id=record.id,
            conversation_id=record.conversation_id,
            role=record.role,
            name=record.name or (USER_NAME if is_user else ASSISTANT_NAME),
            avatar_fallback=record.avatar_fallback or (USER_AVATAR if is_user else ASSISTANT_AVATAR),
            content=record.content or "",
            markdown=record.markdown if record.markdown is not None else not is_user,
            attachments=attachments,
            created_at=record.created_at or utc_now(),
        )

    def to_create(self) -> "MessageCreate":
        return MessageCreate(
            id=self.id,
            conversation_id=self.conversation_id,
            role=self.role,
            name=self.name,
            avatar_fallback=self.avatar_fallback,
            content=self.content,
            markdown=self.markdown,
            attachments=[a.to_record() for a in self.attachments] if self.attachments else None,
        )


class ConversationCreate(BaseModel):
    """Request body for creating or updating a conversation."""

    id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1)
    preview: str | None = None
    timestamp: str | None = None


class MessageCreate(BaseModel):
    """Request body for storing a message.

    Attachments travel as a list of metadata objects and are stored as
    JSON text. User messages need content; an assistant reply may be empty.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1)
    conversation_id: str = Field(..., min_length=1)
    role: Role
    name: str | None = None
    avatar_fallback: str | None = Field(None, alias="avatarFallback")
    content: str
    markdown: bool | None = None
    attachments: list[dict[str, Any]] | None = None

    @model_validator(mode="after")
    def user_content_required(self) -> "MessageCreate":
        if self.role == Role.USER and not self.content:
            raise ValueError("User messages must have content")
        return self


class MessageRecord(BaseModel):
    """A message as returned by ``GET /messages/{conversation_id}``."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    conversation_id: str
    role: Role
    name: str | None = None
    avatar_fallback: str | None = Field(None, alias="avatarFallback")
    content: str | None = None
    markdown: bool | None = None
    attachments: str | None = None
    created_at: datetime | None = None


class StoreAck(BaseModel):
    """Acknowledgement returned by store writes."""

    ok: bool = True
    id: str


class ChatTurn(BaseModel):
    """One message of the history sent to the model."""

    role: Role
    content: str


class ChatRequest(BaseModel):
    """Request payload for the model's streaming chat endpoint."""

    model: str = Field(..., min_length=1)
    messages: list[ChatTurn]
    stream: bool = True


class ChunkMessage(BaseModel):
    content: str | None = None

    @field_validator("content", mode="before")
    @classmethod
    def stringify_content(cls, v: Any) -> Any:
        """Coerce scalar fragments (numbers, booleans) to text."""
        if isinstance(v, bool):
            return str(v).lower()
        if isinstance(v, int | float):
            return str(v)
        return v


class ChatChunk(BaseModel):
    """One NDJSON line of a streamed chat response.

    Extra keys (model, created_at, done, ...) are ignored.
    """

    message: ChunkMessage | None = None
