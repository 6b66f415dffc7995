"""Image attachment staging helpers."""

import asyncio
import base64

from pydantic import BaseModel

from streamchat.models.schemas import Attachment


class UploadedFile(BaseModel):
    """A file selected or pasted into the composer."""

    name: str = ""
    type: str
    content: bytes


def is_image(file: UploadedFile) -> bool:
    return file.type.startswith("image/")


def to_data_url(content: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(content).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


async def read_attachment(file: UploadedFile, index: int) -> Attachment:
    """Decode a file into an attachment with an inline preview.

    Args:
        file: The uploaded image.
        index: 1-based position used to name unnamed (pasted) files.
    """
    preview = await asyncio.to_thread(to_data_url, file.content, file.type)
    return Attachment(
        name=file.name or f"pasted-image-{index}.png",
        type=file.type,
        size=len(file.content),
        preview=preview,
    )


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
