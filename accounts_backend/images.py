"""
Turns stored images into references a client can use directly.
"""

from __future__ import annotations

import base64
from typing import Optional

from accounts_backend.db import StoredImage


def data_uri(data: Optional[bytes], content_type: Optional[str]) -> Optional[str]:
    if data is None or not content_type:
        return None
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{content_type};base64,{payload}"


def static_url(path: Optional[str], prefix: str) -> Optional[str]:
    if not path:
        return None
    return f"{prefix.rstrip('/')}/{path.lstrip('/')}"


def materialize(image: Optional[StoredImage], static_prefix: str) -> Optional[str]:
    if image is None:
        return None
    if image.path:
        return static_url(image.path, static_prefix)
    return data_uri(image.data, image.content_type)
