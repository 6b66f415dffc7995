"""NDJSON transport reader.

Turns a byte-chunked response body into trimmed, non-empty text lines.
Chunk boundaries may split a line, or a multi-byte character, anywhere.
"""

import codecs
import logging
from collections.abc import AsyncIterable, AsyncIterator

import httpx

from streamchat.client.errors import TransportUnavailable

logger = logging.getLogger(__name__)


async def iter_lines(chunks: AsyncIterable[bytes], encoding: str = "utf-8") -> AsyncIterator[str]:
    """Yield trimmed non-empty lines from a stream of byte chunks.

    Bytes after the last newline are buffered until the next chunk.
    When the source is exhausted the remainder is flushed as a final,
    possibly malformed, line.

    Args:
        chunks: Async iterable of raw byte chunks.
        encoding: Text encoding of the body.

    Yields:
        Lines with surrounding whitespace removed.
    """
    decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
    buffer = ""

    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        while (index := buffer.find("\n")) != -1:
            line = buffer[:index].strip()
            buffer = buffer[index + 1 :]
            if line:
                yield line

    buffer += decoder.decode(b"", final=True)
    if remainder := buffer.strip():
        yield remainder


async def _response_bytes(response: httpx.Response) -> AsyncIterator[bytes]:
    try:
        async for chunk in response.aiter_bytes():
            yield chunk
    except httpx.StreamError as e:
        raise TransportUnavailable(f"Response body is not readable: {e}") from e


async def read_response_lines(response: httpx.Response) -> AsyncIterator[str]:
    """Yield NDJSON lines from a streaming httpx response.

    Raises:
        TransportUnavailable: If the body was already consumed or closed.
    """
    async for line in iter_lines(_response_bytes(response), response.encoding or "utf-8"):
        yield line
