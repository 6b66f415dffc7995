"""Conversation and message storage backends.

A store is constructed once per application and injected into the
request handlers; nothing here is module-level state.
"""

import json
import logging
import sqlite3
from abc import ABC, abstractmethod
from pathlib import Path

from streamchat.api.config import StoreConfig
from streamchat.models.schemas import (
    ASSISTANT_AVATAR,
    ASSISTANT_NAME,
    USER_AVATAR,
    USER_NAME,
    Conversation,
    ConversationCreate,
    MessageCreate,
    MessageRecord,
    Role,
    utc_now,
)

logger = logging.getLogger(__name__)


def conversation_from_create(payload: ConversationCreate) -> Conversation:
    return Conversation(
        id=payload.id,
        title=payload.title,
        preview=payload.preview or "New conversation",
        timestamp=payload.timestamp or utc_now().isoformat(),
    )


def record_from_create(payload: MessageCreate) -> MessageRecord:
    """Fill role defaults and serialize attachments as JSON text."""
    is_user = payload.role == Role.USER
    return MessageRecord(
        id=payload.id,
        conversation_id=payload.conversation_id,
        role=payload.role,
        name=payload.name or (USER_NAME if is_user else ASSISTANT_NAME),
        avatar_fallback=payload.avatar_fallback or (USER_AVATAR if is_user else ASSISTANT_AVATAR),
        content=payload.content,
        markdown=payload.markdown if payload.markdown is not None else not is_user,
        attachments=json.dumps(payload.attachments) if payload.attachments else None,
        created_at=utc_now(),
    )


class ConversationStore(ABC):
    """Storage for conversations and their messages."""

    @abstractmethod
    def list_conversations(self) -> list[Conversation]:
        """Return conversations, latest activity first."""

    @abstractmethod
    def upsert_conversation(self, payload: ConversationCreate) -> Conversation:
        """Create a conversation or replace an existing one with the same id."""

    @abstractmethod
    def list_messages(self, conversation_id: str) -> list[MessageRecord]:
        """Return a conversation's messages in creation order."""

    @abstractmethod
    def add_message(self, payload: MessageCreate) -> MessageRecord:
        """Store a message. Re-sending an id replaces the stored message."""

    def close(self) -> None:  # noqa: B027 - optional hook
        pass


class InMemoryStore(ConversationStore):
    """Per-instance in-memory store for development and tests."""

    def __init__(self) -> None:
        self._conversations: list[Conversation] = []
        self._messages: dict[str, list[MessageRecord]] = {}

    def list_conversations(self) -> list[Conversation]:
        # Latest activity first; ties go to the most recently written.
        return sorted(self._conversations, key=lambda c: c.timestamp, reverse=True)

    def upsert_conversation(self, payload: ConversationCreate) -> Conversation:
        conversation = conversation_from_create(payload)
        others = [c for c in self._conversations if c.id != conversation.id]
        self._conversations = [conversation, *others]
        self._messages.setdefault(conversation.id, [])
        return conversation

    def list_messages(self, conversation_id: str) -> list[MessageRecord]:
        return list(self._messages.get(conversation_id, []))

    def add_message(self, payload: MessageCreate) -> MessageRecord:
        record = record_from_create(payload)
        messages = self._messages.setdefault(record.conversation_id, [])
        for index, existing in enumerate(messages):
            if existing.id == record.id:
                messages[index] = record.model_copy(update={"created_at": existing.created_at})
                return messages[index]
        messages.append(record)
        return record


class SqliteStore(ConversationStore):
    """SQLite-backed store."""

    def __init__(self, db_path: Path | str) -> None:
        if str(db_path) != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._migrate()

    def _migrate(self) -> None:
        self.conn.executescript("""
            CREATE TABLE IF NOT EXISTS conversations (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                preview TEXT,
                timestamp TEXT,
                position INTEGER NOT NULL
            );

            CREATE TABLE IF NOT EXISTS messages (
                id TEXT NOT NULL,
                conversation_id TEXT NOT NULL,
                role TEXT NOT NULL,
                name TEXT,
                avatarFallback TEXT,
                content TEXT NOT NULL,
                markdown INTEGER,
                attachments TEXT,
                created_at TEXT NOT NULL,
                seq INTEGER PRIMARY KEY AUTOINCREMENT,
                UNIQUE (conversation_id, id)
            );

            CREATE INDEX IF NOT EXISTS idx_messages_conv
                ON messages(conversation_id);
        """)

    def list_conversations(self) -> list[Conversation]:
        rows = self.conn.execute(
            "SELECT id, title, preview, timestamp FROM conversations ORDER BY timestamp DESC, position DESC"
        ).fetchall()
        return [Conversation(**dict(row)) for row in rows]

    def upsert_conversation(self, payload: ConversationCreate) -> Conversation:
        conversation = conversation_from_create(payload)
        with self.conn:
            self.conn.execute(
                """INSERT INTO conversations (id, title, preview, timestamp, position)
                   VALUES (?, ?, ?, ?, (SELECT COALESCE(MAX(position), 0) + 1 FROM conversations))
                   ON CONFLICT (id) DO UPDATE SET
                       title = excluded.title,
                       preview = excluded.preview,
                       timestamp = excluded.timestamp,
                       position = excluded.position""",
                (conversation.id, conversation.title, conversation.preview, conversation.timestamp),
            )
        return conversation

    def list_messages(self, conversation_id: str) -> list[MessageRecord]:
        rows = self.conn.execute(
            """SELECT id, conversation_id, role, name, avatarFallback, content,
                      markdown, attachments, created_at
               FROM messages WHERE conversation_id = ? ORDER BY seq ASC""",
            (conversation_id,),
        ).fetchall()
        return [MessageRecord.model_validate(dict(row)) for row in rows]

    def add_message(self, payload: MessageCreate) -> MessageRecord:
        record = record_from_create(payload)
        with self.conn:
            self.conn.execute(
                """INSERT INTO messages
                       (id, conversation_id, role, name, avatarFallback, content,
                        markdown, attachments, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                   ON CONFLICT (conversation_id, id) DO UPDATE SET
                       content = excluded.content,
                       markdown = excluded.markdown,
                       attachments = excluded.attachments""",
                (
                    record.id,
                    record.conversation_id,
                    record.role.value,
                    record.name,
                    record.avatar_fallback,
                    record.content,
                    int(bool(record.markdown)),
                    record.attachments,
                    record.created_at.isoformat() if record.created_at else None,
                ),
            )
        return record

    def close(self) -> None:
        self.conn.close()


def build_store(config: StoreConfig) -> ConversationStore:
    """Create the store selected by configuration."""
    if config.backend == "sqlite":
        logger.info(f"Using SQLite store at {config.sqlite_path}")
        return SqliteStore(config.sqlite_path)
    logger.info("Using in-memory store")
    return InMemoryStore()
