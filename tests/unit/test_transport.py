"""Unit tests for the NDJSON transport reader."""

from collections.abc import AsyncIterator

import httpx
import pytest
import pytest_check as check

from streamchat.client.errors import TransportUnavailable
from streamchat.client.transport import iter_lines, read_response_lines
from tests.conftest import achunks, ndjson_body


async def collect(chunks: list[bytes]) -> list[str]:
    return [line async for line in iter_lines(achunks(chunks))]


def split_at(data: bytes, *offsets: int) -> list[bytes]:
    bounds = [0, *offsets, len(data)]
    return [data[start:end] for start, end in zip(bounds, bounds[1:], strict=False)]


class _AsyncBody(httpx.AsyncByteStream):
    def __init__(self, chunks: list[bytes]) -> None:
        self.chunks = chunks

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for chunk in self.chunks:
            yield chunk


class TestIterLines:
    """Tests for splitting byte chunks into lines."""

    async def test_yields_complete_lines(self) -> None:
        """Each newline-terminated record becomes one line."""
        lines = await collect([b'{"a": 1}\n{"b": 2}\n'])

        assert lines == ['{"a": 1}', '{"b": 2}']

    async def test_line_split_across_chunks(self) -> None:
        """A record split over several chunks is reassembled."""
        lines = await collect([b'{"mess', b'age": ', b'"x"}\n'])

        assert lines == ['{"message": "x"}']

    async def test_every_split_point_gives_same_lines(self) -> None:
        """Line output does not depend on where chunk boundaries fall."""
        body = ndjson_body("Hel", "lo", " wörld ✓")
        expected = await collect([body])

        for offset in range(1, len(body)):
            check.equal(await collect(split_at(body, offset)), expected, f"split at {offset}")

    async def test_one_byte_chunks(self) -> None:
        """Single-byte chunks decode the same as the whole body."""
        body = ndjson_body("naïve ", "日本語")

        lines = await collect([body[i : i + 1] for i in range(len(body))])

        assert lines == await collect([body])

    async def test_multibyte_character_split(self) -> None:
        """A UTF-8 character split between chunks is not garbled."""
        data = "é€😀\n".encode()

        lines = await collect([data[:1], data[1:4], data[4:6], data[6:]])

        assert lines == ["é€😀"]

    async def test_blank_lines_are_skipped(self) -> None:
        """Empty and whitespace-only lines produce nothing."""
        lines = await collect([b"\n\n  \r\n{}\n\n"])

        assert lines == ["{}"]

    async def test_lines_are_trimmed(self) -> None:
        """Surrounding whitespace and carriage returns are removed."""
        lines = await collect([b'  {"a": 1}  \r\n'])

        assert lines == ['{"a": 1}']

    async def test_trailing_remainder_flushed(self) -> None:
        """Text after the last newline is yielded when the stream ends."""
        lines = await collect([b'{"a": 1}\n{"b"', b": 2}"])

        assert lines == ['{"a": 1}', '{"b": 2}']

    async def test_malformed_remainder_still_flushed(self) -> None:
        """The trailing remainder is yielded even if it is not valid JSON."""
        lines = await collect([b'{"a": 1}\n{"trunc'])

        assert lines[-1] == '{"trunc'

    async def test_empty_stream(self) -> None:
        """No chunks yields no lines."""
        assert await collect([]) == []


class TestReadResponseLines:
    """Tests for reading lines from an httpx response."""

    async def test_reads_streaming_response(self) -> None:
        """Lines are read from a streamed response body."""
        response = httpx.Response(200, stream=_AsyncBody([b'{"a"', b": 1}\n{}\n"]))

        lines = [line async for line in read_response_lines(response)]

        assert lines == ['{"a": 1}', "{}"]

    async def test_closed_response_is_unavailable(self) -> None:
        """A closed response body raises TransportUnavailable."""
        response = httpx.Response(200, stream=_AsyncBody([b"{}\n"]))
        await response.aclose()

        with pytest.raises(TransportUnavailable):
            async for _ in read_response_lines(response):
                pass

    async def test_consumed_response_is_unavailable(self) -> None:
        """A body that was already streamed cannot be read again."""
        response = httpx.Response(200, stream=_AsyncBody([b"{}\n"]))
        async for _ in response.aiter_raw():
            pass

        with pytest.raises(TransportUnavailable, match="not readable"):
            async for _ in read_response_lines(response):
                pass
