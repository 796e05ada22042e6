"""Filesystem request store: one JSON document per nonce."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Optional

from loguru import logger
from pydantic import ValidationError as RecordValidationError

from pgpvalidation.application.nonce import nonce_to_string
from pgpvalidation.domain.entities.request_info import RequestInfo
from pgpvalidation.domain.errors import StoreError
from pgpvalidation.infrastructure.stores.records import RequestRecord


class FileRequestStore:
    """Stores each request as ``<hex nonce>.json`` under ``directory``.

    Writes go to a temporary file first and are moved into place, so a
    reader never sees a partial document.
    """

    def __init__(self, directory: str | Path = "./requests"):
        self.directory = Path(directory)
        try:
            self.directory.mkdir(parents=True, exist_ok=True, mode=0o700)
        except OSError as e:
            raise StoreError(f"Cannot create storage directory {self.directory}: {e}") from e
        self._lock = threading.Lock()
        logger.info(f"Using file store in {self.directory}")

    def _path(self, nonce: bytes) -> Path:
        return self.directory / f"{nonce_to_string(nonce)}.json"

    def get(self, nonce: bytes) -> Optional[RequestInfo]:
        path = self._path(nonce)
        with self._lock:
            try:
                document = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
        try:
            return RequestRecord.model_validate_json(document).to_request()
        except RecordValidationError as e:
            logger.error(f"Discarding unreadable request file {path.name}: {e}")
            return None

    def set(self, nonce: bytes, request: RequestInfo) -> None:
        path = self._path(nonce)
        tmp_path = path.with_suffix(".tmp")
        document = RequestRecord.from_request(request).model_dump_json()
        with self._lock:
            try:
                tmp_path.write_text(document, encoding="utf-8")
                os.replace(tmp_path, path)
            except OSError as e:
                raise StoreError(f"Cannot write request file {path.name}: {e}") from e

    def delete(self, nonce: bytes) -> None:
        path = self._path(nonce)
        with self._lock:
            try:
                path.unlink()
            except FileNotFoundError:
                logger.debug(f"Request file {path.name} already gone")
