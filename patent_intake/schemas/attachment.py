from __future__ import annotations

from pydantic import BaseModel


class AttachmentMeta(BaseModel):
    filename: str
    content_type: str
    size_bytes: int
    sha256: str
