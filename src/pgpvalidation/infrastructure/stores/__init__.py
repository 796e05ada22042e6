"""Request store implementations and factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pgpvalidation.application.ports.request_store import RequestStore
from pgpvalidation.domain.errors import StoreError
from pgpvalidation.infrastructure.stores.file_store import FileRequestStore
from pgpvalidation.infrastructure.stores.memory_store import MemoryRequestStore
from pgpvalidation.infrastructure.stores.none_store import NoneRequestStore
from pgpvalidation.infrastructure.stores.sqlite_store import SQLiteRequestStore

if TYPE_CHECKING:
    from pgpvalidation.infrastructure.settings import Settings

STORAGE_TYPES = ("none", "memory", "file", "sqlite")


def create_store(storage_type: str, settings: Settings | None = None) -> RequestStore:
    """Build the request store named by ``storage_type``."""
    logger.info(f"Using request store type '{storage_type}'")
    if storage_type == "none":
        return NoneRequestStore()
    if storage_type == "memory":
        return MemoryRequestStore()
    if storage_type == "file":
        return FileRequestStore(settings.storage_dir) if settings else FileRequestStore()
    if storage_type == "sqlite":
        return SQLiteRequestStore(settings.sqlite_db_path) if settings else SQLiteRequestStore()
    raise StoreError(f"Unknown storage type '{storage_type}', expected one of {', '.join(STORAGE_TYPES)}")


__all__ = [
    "FileRequestStore",
    "MemoryRequestStore",
    "NoneRequestStore",
    "SQLiteRequestStore",
    "STORAGE_TYPES",
    "create_store",
]
