"""Unit tests for session helpers and attachment staging utilities."""

import base64

import pytest_check as check

from streamchat.session.attachments import (
    UploadedFile,
    format_file_size,
    is_image,
    read_attachment,
    to_data_url,
)
from streamchat.session.state import placeholder_messages, truncate_text


class TestTruncateText:
    def test_short_text_unchanged(self) -> None:
        assert truncate_text("hello", 80) == "hello"

    def test_exact_limit_unchanged(self) -> None:
        assert truncate_text("x" * 80) == "x" * 80

    def test_long_text_gets_ellipsis(self) -> None:
        result = truncate_text("x" * 100, 80)

        assert result == "x" * 80 + "…"


class TestPlaceholderMessages:
    def test_single_assistant_message_mentions_preview(self) -> None:
        """A placeholder transcript is one assistant message with the preview."""
        messages = placeholder_messages("c1", "Chat 3", "Talked about rust")

        assert len(messages) == 1
        check.equal(messages[0].role.value, "assistant")
        check.equal(messages[0].conversation_id, "c1")
        check.equal(messages[0].content, "Placeholder for **Chat 3**. Talked about rust")


class TestAttachments:
    """Tests for decoding uploaded files."""

    def test_is_image_by_mime_type(self) -> None:
        check.is_true(is_image(UploadedFile(name="a.png", type="image/png", content=b"")))
        check.is_true(is_image(UploadedFile(name="a", type="image/webp", content=b"")))
        check.is_false(is_image(UploadedFile(name="a.png", type="application/pdf", content=b"")))

    def test_data_url(self) -> None:
        url = to_data_url(b"\x89PNG", "image/png")

        assert url == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()

    async def test_read_attachment(self) -> None:
        """A file becomes an attachment with size and inline preview."""
        file = UploadedFile(name="cat.png", type="image/png", content=b"abc")

        attachment = await read_attachment(file, 1)

        check.equal(attachment.name, "cat.png")
        check.equal(attachment.size, 3)
        check.is_true(attachment.preview.startswith("data:image/png;base64,"))

    async def test_unnamed_file_gets_pasted_name(self) -> None:
        attachment = await read_attachment(UploadedFile(type="image/png", content=b"x"), 3)

        assert attachment.name == "pasted-image-3.png"

    def test_format_file_size(self) -> None:
        check.equal(format_file_size(512), "512 B")
        check.equal(format_file_size(2048), "2.0 KB")
        check.equal(format_file_size(3 * 1024 * 1024), "3.0 MB")
