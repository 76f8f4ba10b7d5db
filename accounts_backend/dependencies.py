"""
Dependency wiring for the FastAPI app.

Clients are built from the settings the app was created with and reused
across requests until a different settings object is seen.
"""

from __future__ import annotations

import logging

from fastapi import Depends

from accounts_backend.config import Settings, get_settings
from accounts_backend.db import DbClient, InMemoryDbClient, SqlDbClient
from accounts_backend.storage import (
    CosStorageClient,
    InMemoryStorageClient,
    LocalDiskStorageClient,
    StorageClient,
)

logger = logging.getLogger(__name__)

_db_client: DbClient | None = None
_db_settings: Settings | None = None
_storage_client: StorageClient | None = None
_storage_settings: Settings | None = None


def get_db_client(settings: Settings = Depends(get_settings)) -> DbClient:
    """
    Return a singleton DB client shared by every request.
    """
    global _db_client, _db_settings
    if _db_client is not None and _db_settings is settings:
        return _db_client

    if settings.use_in_memory_backends or not settings.database_url:
        if not settings.use_in_memory_backends:
            logger.warning("DATABASE_URL is not set, using in-memory database")
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    _db_settings = settings
    return _db_client


def get_storage_client(settings: Settings = Depends(get_settings)) -> StorageClient:
    global _storage_client, _storage_settings
    if _storage_client is not None and _storage_settings is settings:
        return _storage_client

    if settings.use_in_memory_backends:
        _storage_client = InMemoryStorageClient()
    elif settings.cos_bucket:
        _storage_client = CosStorageClient(
            bucket=settings.cos_bucket,
            region=settings.cos_region or "",
            endpoint=settings.cos_endpoint or "",
            access_key_id=settings.aws_access_key_id or "",
            secret_access_key=settings.aws_secret_access_key or "",
        )
    else:
        _storage_client = LocalDiskStorageClient(settings.static_root)
    _storage_settings = settings
    return _storage_client


def reset_clients() -> None:
    """Drop cached clients so the next request rebuilds them from settings."""
    global _db_client, _db_settings, _storage_client, _storage_settings
    _db_client = None
    _db_settings = None
    _storage_client = None
    _storage_settings = None
