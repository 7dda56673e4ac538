from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from fastapi import UploadFile

from patent_intake.core.config import Settings
from patent_intake.core.errors import SubmissionError
from patent_intake.schemas.attachment import AttachmentMeta

logger = logging.getLogger(__name__)

ALLOWED_CONTENT_TYPES = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-powerpoint",
        "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        "image/png",
        "image/jpeg",
        "image/webp",
        "text/plain",
        "application/zip",
        "application/x-zip-compressed",
    }
)
READ_CHUNK_BYTES = 64 * 1024

DISALLOWED_TYPE_MESSAGE = "Tipo di file non consentito."


def too_large_message(settings: Settings) -> str:
    return f"Allegati troppo grandi. Limite totale: {settings.max_total_label} MB."


def too_many_message(settings: Settings) -> str:
    return f"Troppi allegati: massimo {settings.MAX_ATTACHMENTS} file."


@dataclass
class SubmissionAttachment:
    """Attachment payload forwarded untouched to the mail message."""
    meta: AttachmentMeta
    content: bytes

    @property
    def filename(self) -> str:
        return self.meta.filename

    @property
    def content_type(self) -> str:
        return self.meta.content_type

    @property
    def size(self) -> int:
        return self.meta.size_bytes


def total_size(attachments: Sequence[SubmissionAttachment]) -> int:
    return sum(attachment.size for attachment in attachments)


def _media_type(content_type: Optional[str]) -> str:
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class AttachmentReader:
    """Ingress filter for the ``attachments`` form parts.

    Parts are checked in arrival order: count, then media type, then a
    running byte total kept while reading so an oversize upload is dropped as
    soon as it crosses the ceiling instead of after it is fully buffered.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.max_total_bytes = settings.max_total_bytes

    def _validate_count(self, uploads: Sequence[UploadFile]) -> None:
        if len(uploads) > self.settings.MAX_ATTACHMENTS:
            raise SubmissionError(too_many_message(self.settings))

    def _validate_content_type(self, upload: UploadFile) -> str:
        media_type = _media_type(upload.content_type)
        if media_type not in ALLOWED_CONTENT_TYPES:
            logger.info(
                "Attachment rejected filename=%s content_type=%s",
                upload.filename,
                upload.content_type,
            )
            raise SubmissionError(DISALLOWED_TYPE_MESSAGE)
        return media_type

    async def _read_capped(self, upload: UploadFile, already_read: int) -> bytes:
        chunks: List[bytes] = []
        running = already_read
        while True:
            chunk = await upload.read(READ_CHUNK_BYTES)
            if not chunk:
                break
            running += len(chunk)
            if running > self.max_total_bytes:
                logger.info(
                    "Attachments exceed ceiling while reading: >%s bytes (limit %s)",
                    running,
                    self.max_total_bytes,
                )
                raise SubmissionError(
                    too_large_message(self.settings),
                    status_code=413,
                )
            chunks.append(chunk)
        return b"".join(chunks)

    async def read_all(self, uploads: Sequence[UploadFile]) -> List[SubmissionAttachment]:
        # Browsers post an empty, nameless part when the file input is left blank
        uploads = [u for u in uploads if u.filename or (u.size or 0) > 0]
        self._validate_count(uploads)

        attachments: List[SubmissionAttachment] = []
        consumed = 0
        for upload in uploads:
            self._validate_content_type(upload)
            content = await self._read_capped(upload, consumed)
            consumed += len(content)

            meta = AttachmentMeta(
                filename=upload.filename or "allegato",
                content_type=upload.content_type or "application/octet-stream",
                size_bytes=len(content),
                sha256=hashlib.sha256(content).hexdigest(),
            )
            logger.info(
                "Attachment received filename=%s size=%s sha256=%s",
                meta.filename,
                meta.size_bytes,
                meta.sha256,
            )
            attachments.append(SubmissionAttachment(meta=meta, content=content))

        return attachments
