"""
Upload intake: validates image parts before anything is persisted.

A file is accepted only when both its declared MIME type and its filename
extension name one of jpeg, jpg, png or gif. The bytes themselves are not
inspected, so a text file named ``x.jpg`` and sent as ``image/jpeg`` is
accepted.
"""

from __future__ import annotations

import os
import re
import time
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from fastapi import UploadFile

from accounts_backend.errors import ErrorCode, UnsupportedFileType, ValidationError

ALLOWED_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".gif"})
ALLOWED_MIME_PATTERN = re.compile(r"jpeg|jpg|png|gif")

UNSUPPORTED_MESSAGE = (
    "Error: File upload only supports the following filetypes - jpeg, jpg, png, gif"
)


@dataclass
class StagedImage:
    filename: str
    content_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return file_extension(self.filename)


def file_extension(filename: str) -> str:
    return os.path.splitext(filename or "")[1].lower()


def is_allowed_image(filename: str, content_type: str) -> bool:
    mime_ok = bool(ALLOWED_MIME_PATTERN.search((content_type or "").lower()))
    return mime_ok and file_extension(filename) in ALLOWED_EXTENSIONS


def generate_filename(original: str) -> str:
    """Timestamp-based unique name that keeps the original extension."""
    millis = int(time.time() * 1000)
    return f"{millis}-{uuid4().hex[:8]}{file_extension(original)}"


def _single_upload(
    field_name: str, uploads: Optional[list[UploadFile]]
) -> Optional[UploadFile]:
    present = [u for u in uploads or [] if u is not None and u.filename]
    if len(present) > 1:
        raise ValidationError(
            f"Only one file is allowed for {field_name}.",
            code=ErrorCode.TOO_MANY_FILES,
        )
    return present[0] if present else None


async def stage_image(
    field_name: str, uploads: Optional[list[UploadFile]]
) -> Optional[StagedImage]:
    """
    Validate at most one file for ``field_name`` and read it into memory.

    Returns None when the field was not sent.
    """
    upload = _single_upload(field_name, uploads)
    if upload is None:
        return None
    content_type = upload.content_type or ""
    if not is_allowed_image(upload.filename, content_type):
        raise UnsupportedFileType(UNSUPPORTED_MESSAGE)
    data = await upload.read()
    return StagedImage(filename=upload.filename, content_type=content_type, data=data)


async def stage_images(
    fields: dict[str, Optional[list[UploadFile]]],
) -> dict[str, Optional[StagedImage]]:
    """Stage every field, failing the whole batch on the first rejected file."""
    staged: dict[str, Optional[StagedImage]] = {}
    for field_name, uploads in fields.items():
        staged[field_name] = await stage_image(field_name, uploads)
    return staged
