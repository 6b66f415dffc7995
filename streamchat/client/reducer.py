"""Stream reducer for incremental assistant messages.

Folds content fragments from streamed NDJSON lines into one growing
assistant message. Every applied fragment publishes a snapshot of the
message synchronously, so observers see monotonically growing content.
"""

import logging
from collections.abc import AsyncIterable, Callable
from dataclasses import dataclass

from pydantic import ValidationError

from streamchat.client.errors import LineParseError
from streamchat.models.schemas import ChatChunk, Message

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decoded:
    """A line that carried a content fragment."""

    fragment: str


@dataclass(frozen=True)
class DecodeFailure:
    """A line that was skipped, with the reason."""

    error: LineParseError


DecodeResult = Decoded | DecodeFailure


def decode_line(line: str) -> DecodeResult:
    """Decode one streamed line into a content fragment.

    Args:
        line: A single NDJSON line.

    Returns:
        Decoded with the fragment, or DecodeFailure if the line is not
        JSON or lacks ``message.content``.
    """
    try:
        chunk = ChatChunk.model_validate_json(line)
    except ValidationError as e:
        return DecodeFailure(LineParseError(line, f"invalid chunk ({e.error_count()} errors)"))

    if chunk.message is None or chunk.message.content is None:
        return DecodeFailure(LineParseError(line, "no content fragment"))

    return Decoded(chunk.message.content)


class StreamReducer:
    """Accumulates fragments for one in-flight assistant message.

    Args:
        message: The assistant message being streamed. Its id never changes.
        on_update: Called with a snapshot after every applied fragment.
    """

    def __init__(self, message: Message, on_update: Callable[[Message], None]) -> None:
        self._message = message
        self._on_update = on_update
        self._accumulator = message.content
        self._complete = False
        self.skipped = 0

    @property
    def message_id(self) -> str:
        return self._message.id

    @property
    def content(self) -> str:
        return self._accumulator

    @property
    def complete(self) -> bool:
        return self._complete

    def snapshot(self) -> Message:
        return self._message.model_copy(update={"content": self._accumulator})

    def apply(self, line: str) -> bool:
        """Apply one line. Returns True if it contributed a fragment."""
        if self._complete:
            raise RuntimeError(f"Stream for message {self.message_id} already finished")

        result = decode_line(line)
        if isinstance(result, DecodeFailure):
            self.skipped += 1
            logger.debug(f"Skipping line: {result.error}")
            return False

        self._accumulator += result.fragment
        self._on_update(self.snapshot())
        return True

    def finish(self, trailing: str = "") -> Message:
        """Parse any unterminated trailing text and mark the stream complete.

        Returns:
            The final message snapshot.
        """
        if trailing.strip():
            self.apply(trailing.strip())
        self._complete = True
        return self.snapshot()


async def reduce_stream(lines: AsyncIterable[str], reducer: StreamReducer) -> Message:
    """Drive a reducer over a line stream until it ends.

    The transport reader already flushes an unterminated trailing line,
    so ``finish`` runs with nothing left over.
    """
    async for line in lines:
        reducer.apply(line)
    return reducer.finish()
