"""Session state for the chat interface.

Single source of truth for the active conversation, its messages, the
composer draft, staged attachments and in-flight streams.

Mutation rules:

1. **One update primitive** - Every change to the conversation->messages
   mapping goes through ``_update_messages``. It never awaits, so a
   read-modify-write from the submit path, the stream path or the load
   path cannot interleave with another.

2. **Per-conversation streams** - The conversation id is captured when a
   request starts and the reducer updates its message by id. Switching
   away does not cancel the stream; it completes and persists in the
   background.

3. **Fire-and-forget persistence** - Store writes run as tasks, each
   starting after the previous one finished. Failures are logged through
   the module logger and counted, never surfaced in the transcript.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine, Iterable
from functools import partial
from typing import Any

from streamchat.client.config import ClientConfig, get_client_config
from streamchat.client.errors import RequestFailed, TransportUnavailable
from streamchat.client.model import ModelClient
from streamchat.client.reducer import StreamReducer, reduce_stream
from streamchat.client.store import StoreClient
from streamchat.models.schemas import (
    Attachment,
    ChatTurn,
    Conversation,
    ConversationCreate,
    Message,
    Reaction,
    Role,
    new_id,
    utc_now,
)
from streamchat.session.attachments import UploadedFile, is_image, read_attachment

logger = logging.getLogger(__name__)

ERROR_TEXT = "⚠️ Failed to reach AI. Check your connection."
FIRST_RUN_GREETING = "Hello! I'm running on your private Ollama instance."
NEW_CHAT_GREETING = "New chat started. How can I help you today?"
NEW_CHAT_PREVIEW = "New conversation started."
ATTACHMENT_ONLY_CONTENT = "Sent a message"
UNTITLED = "Untitled chat"

Clipboard = Callable[[str], Awaitable[None]]
Listener = Callable[[], None]


def truncate_text(text: str, limit: int = 80) -> str:
    if len(text) <= limit:
        return text
    return f"{text[:limit]}…"


def placeholder_messages(conversation_id: str, title: str, preview: str) -> list[Message]:
    """Synthesize a transcript for a conversation with no stored history."""
    return [Message.assistant(conversation_id, f"Placeholder for **{title}**. {preview}")]


class ChatSession:
    """In-memory state of one chat client.

    Args:
        store: Conversation store client.
        model: Model server client.
        config: Client configuration. Loads from environment if not provided.
        clipboard: Async callable writing text to the platform clipboard.
    """

    def __init__(
        self,
        store: StoreClient,
        model: ModelClient,
        config: ClientConfig | None = None,
        clipboard: Clipboard | None = None,
    ) -> None:
        self._store = store
        self._model = model
        self._config = config or get_client_config()
        self._clipboard = clipboard

        self.conversations: list[Conversation] = []
        self.messages: dict[str, list[Message]] = {}
        self.active_conversation_id: str | None = None
        self.draft: str = ""
        self.attachments: list[Attachment] = []
        self.copied_message_id: str | None = None
        self.models: list[str] = []
        self.selected_model: str = model.default_model
        self.persistence_failures: int = 0

        self._chat_counter = 2
        self._history_loads = 0
        self._generating: set[str] = set()
        self._streaming: dict[str, str] = {}
        self._pending: set[asyncio.Task[Any]] = set()
        self._last_write: asyncio.Task[Any] | None = None
        self._copied_reset: asyncio.TimerHandle | None = None
        self._listeners: list[Listener] = []

    # === Read-only views ===

    @property
    def active_messages(self) -> list[Message]:
        if self.active_conversation_id is None:
            return []
        return self.messages.get(self.active_conversation_id, [])

    @property
    def active_conversation(self) -> Conversation | None:
        if self.active_conversation_id is None:
            return None
        return self.find_conversation(self.active_conversation_id)

    @property
    def is_generating(self) -> bool:
        """Whether the active conversation has a request in flight."""
        return self.active_conversation_id in self._generating

    @property
    def is_loading_history(self) -> bool:
        """Whether any history or transcript load is still in flight."""
        return self._history_loads > 0

    @property
    def streaming_message_id(self) -> str | None:
        if self.active_conversation_id is None:
            return None
        return self._streaming.get(self.active_conversation_id)

    @property
    def has_pending_input(self) -> bool:
        return bool(self.draft.strip()) or bool(self.attachments)

    def is_streaming(self, conversation_id: str) -> bool:
        return conversation_id in self._streaming

    def find_conversation(self, conversation_id: str) -> Conversation | None:
        return next((c for c in self.conversations if c.id == conversation_id), None)

    def find_message(self, message_id: str, conversation_id: str | None = None) -> Message | None:
        conversation_id = conversation_id or self.active_conversation_id
        if conversation_id is None:
            return None
        return next((m for m in self.messages.get(conversation_id, []) if m.id == message_id), None)

    # === Observers ===

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback run after every state change.

        Returns:
            A function that removes the listener.
        """
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    # === Mutation primitive ===

    def _update_messages(
        self,
        conversation_id: str,
        updater: Callable[[list[Message]], list[Message]],
    ) -> None:
        current = self.messages.get(conversation_id, [])
        self.messages[conversation_id] = updater(current)
        self._notify()

    def _upsert_message(self, message: Message) -> None:
        def upsert(current: list[Message]) -> list[Message]:
            if any(m.id == message.id for m in current):
                return [message if m.id == message.id else m for m in current]
            return [*current, message]

        self._update_messages(message.conversation_id, upsert)

    def _reset_composer(self) -> None:
        self.draft = ""
        self.attachments = []
        self._clear_copied()

    # === Persistence tasks ===

    def _persist(self, coro: Coroutine[Any, Any, Any], description: str) -> None:
        previous = self._last_write

        async def write() -> Any:
            # Store writes land in the order they were issued.
            if previous is not None and not previous.done():
                await asyncio.wait([previous])
            return await coro

        task = asyncio.create_task(write())
        self._last_write = task
        self._pending.add(task)
        task.add_done_callback(partial(self._on_persisted, description))

    def _on_persisted(self, description: str, task: asyncio.Task[Any]) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        if (error := task.exception()) is not None:
            self.persistence_failures += 1
            logger.warning(f"Failed to persist {description}: {error}")

    async def drain(self) -> None:
        """Wait for all outstanding persistence tasks."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Finish outstanding writes and close both clients."""
        self._clear_copied()
        await self.drain()
        await self._store.aclose()
        await self._model.aclose()

    def _refresh_history_preview(self, conversation_id: str, preview: str) -> None:
        conversation = self.find_conversation(conversation_id)
        if conversation is None:
            return

        updated = conversation.model_copy(
            update={
                "preview": truncate_text(preview, self._config.preview_limit),
                "timestamp": utc_now().isoformat(),
            }
        )
        self.conversations = [updated if c.id == conversation_id else c for c in self.conversations]
        self._persist(
            self._store.save_conversation(ConversationCreate(**updated.model_dump())),
            f"conversation {conversation_id}",
        )
        self._notify()

    # === Loading ===

    async def load_models(self) -> list[str]:
        """Fetch available models and select the first one."""
        self.models = await self._model.list_models()
        if self.models and self.selected_model not in self.models:
            self.selected_model = self.models[0]
        self._notify()
        return self.models

    def select_model(self, model_id: str) -> None:
        self.selected_model = model_id
        self._notify()

    async def load_initial(self) -> None:
        """Load the history list and activate the most recent conversation.

        With an empty store, creates "Chat 1". If the store cannot be
        reached either, falls back to a local seed conversation.
        """
        self._history_loads += 1
        self._notify()
        try:
            conversations = await self._store.list_conversations()
            if conversations:
                await self._activate_existing(conversations)
            else:
                await self._activate_first_run()
        finally:
            self._history_loads -= 1
            self._notify()

    async def _activate_existing(self, conversations: list[Conversation]) -> None:
        self.conversations = conversations
        first = conversations[0]
        self.active_conversation_id = first.id
        loaded = await self._store.get_messages(first.id)
        if not loaded:
            loaded = placeholder_messages(first.id, first.title, first.preview)
        self._update_messages(first.id, lambda _: loaded)

    async def _activate_first_run(self) -> None:
        payload = ConversationCreate(
            id=new_id(),
            title="Chat 1",
            preview="New chat",
            timestamp=utc_now().isoformat(),
        )
        created = await self._store.create_conversation(payload)
        if created is None:
            seed = Conversation(
                id=new_id(),
                title="Chat with Ollama",
                preview="Powered by your private AI endpoint.",
            )
            self.conversations = [seed]
            self.active_conversation_id = seed.id
            self._update_messages(seed.id, lambda _: placeholder_messages(seed.id, seed.title, seed.preview))
            return

        self.conversations = [created]
        self.active_conversation_id = created.id
        greeting = Message.assistant(created.id, FIRST_RUN_GREETING)
        self._update_messages(created.id, lambda _: [greeting])
        self._persist(self._store.save_message(greeting), "greeting")

    # === User intents ===

    async def select_conversation(self, conversation_id: str) -> None:
        """Make a conversation active, loading its messages if not cached.

        An in-flight stream of the previous conversation keeps running.
        """
        if conversation_id == self.active_conversation_id:
            return

        self.active_conversation_id = conversation_id
        self._reset_composer()
        self._notify()

        if conversation_id in self.messages:
            return

        self._history_loads += 1
        try:
            loaded = await self._store.get_messages(conversation_id)
        finally:
            self._history_loads -= 1

        conversation = self.find_conversation(conversation_id)
        title = conversation.title if conversation else UNTITLED
        preview = conversation.preview if conversation else ""

        def merge(current: list[Message]) -> list[Message]:
            if not loaded:
                return current or placeholder_messages(conversation_id, title, preview)
            known = {m.id for m in loaded}
            return [*loaded, *(m for m in current if m.id not in known)]

        self._update_messages(conversation_id, merge)

    async def new_conversation(self) -> Conversation:
        """Create "Chat N", seed it with a greeting and make it active."""
        conversation_id = new_id()
        title = f"Chat {self._chat_counter}"
        self._chat_counter += 1
        payload = ConversationCreate(
            id=conversation_id,
            title=title,
            preview=NEW_CHAT_PREVIEW,
            timestamp=utc_now().isoformat(),
        )

        created = await self._store.create_conversation(payload)
        conversation = created or Conversation(**payload.model_dump())

        self.conversations = [conversation, *self.conversations]
        self.active_conversation_id = conversation_id
        self._reset_composer()

        greeting = Message.assistant(conversation_id, NEW_CHAT_GREETING)
        self._update_messages(conversation_id, lambda _: [greeting])
        self._persist(self._store.save_message(greeting), "greeting")
        return conversation

    def toggle_reaction(self, message_id: str, kind: Reaction | str) -> Reaction | None:
        """Set a reaction, or clear it if it is already set.

        Returns:
            The message's reaction after the toggle.
        """
        kind = Reaction(kind)
        message = self.find_message(message_id)
        if message is None:
            return None

        reaction = None if message.reaction == kind else kind
        self._upsert_message(message.model_copy(update={"reaction": reaction}))
        return reaction

    async def copy_message(self, message_id: str) -> bool:
        """Copy message text to the clipboard and show the copied flag.

        Returns:
            True if the text reached the clipboard.
        """
        message = self.find_message(message_id)
        if message is None or self._clipboard is None:
            return False

        try:
            await self._clipboard(message.content)
        except Exception as e:
            logger.warning(f"Clipboard write failed: {e}")
            self._clear_copied()
            self._notify()
            return False

        self._clear_copied()
        self.copied_message_id = message_id
        loop = asyncio.get_running_loop()
        self._copied_reset = loop.call_later(
            self._config.copied_reset_seconds, self._expire_copied, message_id
        )
        self._notify()
        return True

    def _expire_copied(self, message_id: str) -> None:
        self._copied_reset = None
        if self.copied_message_id == message_id:
            self.copied_message_id = None
            self._notify()

    def _clear_copied(self) -> None:
        if self._copied_reset is not None:
            self._copied_reset.cancel()
            self._copied_reset = None
        self.copied_message_id = None

    # === Attachments ===

    async def stage_files(self, files: Iterable[UploadedFile]) -> list[Attachment]:
        """Decode image files into staged attachments.

        Non-image files are ignored. Staging stops if the active
        conversation changes while decoding.
        """
        conversation_id = self.active_conversation_id
        staged: list[Attachment] = []
        for file in files:
            if not is_image(file):
                logger.debug(f"Ignoring non-image attachment {file.name!r} ({file.type})")
                continue
            attachment = await read_attachment(file, len(self.attachments) + 1)
            if self.active_conversation_id != conversation_id:
                break
            self.attachments = [*self.attachments, attachment]
            staged.append(attachment)
            self._notify()
        return staged

    def remove_attachment(self, attachment_id: str) -> None:
        self.attachments = [a for a in self.attachments if a.id != attachment_id]
        self._notify()

    def clear_attachments(self) -> None:
        self.attachments = []
        self._notify()

    # === Send / streaming ===

    async def submit(
        self,
        text: str | None = None,
        attachments: list[Attachment] | None = None,
    ) -> None:
        """Send a user message and stream the assistant's reply.

        Defaults to the current draft and staged attachments. Does nothing
        if there is nothing to send or the active conversation already
        has a request in flight.
        """
        conversation_id = self.active_conversation_id
        text = self.draft if text is None else text
        attachments = list(self.attachments if attachments is None else attachments)

        if conversation_id is None or conversation_id in self._generating:
            return
        if not text.strip() and not attachments:
            return

        content = text.strip() or ATTACHMENT_ONLY_CONTENT
        history = [
            ChatTurn(role=m.role, content=m.content)
            for m in self.messages.get(conversation_id, [])
            if m.role in (Role.USER, Role.ASSISTANT)
        ]
        history.append(ChatTurn(role=Role.USER, content=content))

        user_message = Message.user(conversation_id, content, attachments=attachments or None)
        self._generating.add(conversation_id)
        self._reset_composer()
        self._upsert_message(user_message)
        self._refresh_history_preview(conversation_id, content)
        self._persist(self._store.save_message(user_message), f"user message {user_message.id}")

        try:
            await self._stream_reply(conversation_id, history)
        finally:
            self._generating.discard(conversation_id)
            self._streaming.pop(conversation_id, None)
            self._notify()

    async def _stream_reply(self, conversation_id: str, history: list[ChatTurn]) -> None:
        streaming: Message | None = None
        try:
            async with self._model.stream_chat(self.selected_model, history) as lines:
                streaming = Message.assistant(conversation_id)
                self._streaming[conversation_id] = streaming.id
                self._upsert_message(streaming)
                reducer = StreamReducer(streaming, self._upsert_message)
                final = await reduce_stream(lines, reducer)
        except (RequestFailed, TransportUnavailable) as e:
            logger.warning(f"Chat request failed for {conversation_id}: {e}")
            if streaming is None:
                error_message = Message.assistant(conversation_id, ERROR_TEXT, markdown=False)
            else:
                error_message = streaming.model_copy(update={"content": ERROR_TEXT, "markdown": False})
            self._upsert_message(error_message)
            self._persist(self._store.save_message(error_message), f"error message {error_message.id}")
            return

        logger.info(f"Stream finished for {conversation_id} ({len(final.content)} chars)")
        self._persist(self._store.save_message(final), f"assistant message {final.id}")
        if final.content:
            self._refresh_history_preview(conversation_id, final.content)
