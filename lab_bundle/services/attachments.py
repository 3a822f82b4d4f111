"""
Attachment encoding for DocumentReference/Binary pairs.

Files are read asynchronously (uploads, files on disk or in-memory bytes),
base64-encoded and tagged with their media type. When no file is supplied a
tiny placeholder PDF is used so that every bundle carries at least one
document pair.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Sequence

from lab_bundle.exceptions import AttachmentReadError

logger = logging.getLogger(__name__)

PLACEHOLDER_PDF_B64 = "JVBERi0xLjQKJeLjz9MK"
PLACEHOLDER_TITLE = "placeholder.pdf"
DEFAULT_MEDIA_TYPE = "application/pdf"

_DATA_URI_MARKER = "base64,"


@dataclass
class FileAttachment:
    """A picked file: display name, declared media type and an async reader."""

    name: str
    media_type: str
    read: Callable[[], Awaitable[bytes]]

    @classmethod
    def from_bytes(cls, name: str, media_type: str, content: bytes) -> FileAttachment:
        async def _read() -> bytes:
            return content

        return cls(name=name, media_type=media_type, read=_read)

    @classmethod
    def from_path(cls, path: str | Path, media_type: str = DEFAULT_MEDIA_TYPE) -> FileAttachment:
        path = Path(path)

        async def _read() -> bytes:
            return await asyncio.to_thread(path.read_bytes)

        return cls(name=path.name, media_type=media_type, read=_read)

    @classmethod
    def from_upload(cls, upload: Any) -> FileAttachment:
        """Wrap a FastAPI/Starlette ``UploadFile``."""
        return cls(
            name=upload.filename or "",
            media_type=upload.content_type or "",
            read=upload.read,
        )


@dataclass(frozen=True)
class EncodedAttachment:
    media_type: str
    data: str
    title: str


PLACEHOLDER = EncodedAttachment(
    media_type=DEFAULT_MEDIA_TYPE, data=PLACEHOLDER_PDF_B64, title=PLACEHOLDER_TITLE
)


def _to_base64(raw: bytes | str) -> str:
    # A reader returning text hands back a data URL; bytes are always file content.
    if isinstance(raw, str):
        if raw.startswith("data:") and _DATA_URI_MARKER in raw:
            return raw.split(_DATA_URI_MARKER, 1)[1].strip()
        raw = raw.encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


async def encode(file: FileAttachment | None) -> EncodedAttachment:
    """Encode one attachment, or return the placeholder when ``file`` is None."""
    if file is None:
        return PLACEHOLDER

    try:
        raw = await file.read()
    except Exception as exc:
        raise AttachmentReadError(f"File read error: {file.name or 'attachment'}") from exc
    data = _to_base64(raw)

    return EncodedAttachment(
        media_type=file.media_type or DEFAULT_MEDIA_TYPE,
        data=data,
        title=file.name or PLACEHOLDER_TITLE,
    )


async def encode_all(files: Sequence[FileAttachment]) -> list[EncodedAttachment]:
    """
    Encode every attachment concurrently.

    Results follow the order of ``files`` regardless of completion order. The
    first failure cancels the reads still in flight and is re-raised. With no
    files, a single placeholder is returned.
    """
    if not files:
        return [PLACEHOLDER]

    tasks = [asyncio.ensure_future(encode(f)) for f in files]
    try:
        encoded = await asyncio.gather(*tasks)
    except AttachmentReadError:
        for task in tasks:
            task.cancel()
        logger.error("Attachment encoding aborted after a read failure")
        raise
    logger.info("Encoded %d attachment(s)", len(encoded))
    return list(encoded)
