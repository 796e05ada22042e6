"""In-process request store; pending requests are lost on restart."""

from __future__ import annotations

import threading
from typing import Optional

from pgpvalidation.domain.entities.request_info import RequestInfo


class MemoryRequestStore:
    """Dict of nonce to request, guarded by a lock."""

    def __init__(self) -> None:
        self._requests: dict[bytes, RequestInfo] = {}
        self._lock = threading.Lock()

    def get(self, nonce: bytes) -> Optional[RequestInfo]:
        with self._lock:
            return self._requests.get(bytes(nonce))

    def set(self, nonce: bytes, request: RequestInfo) -> None:
        with self._lock:
            self._requests[bytes(nonce)] = request

    def delete(self, nonce: bytes) -> None:
        with self._lock:
            self._requests.pop(bytes(nonce), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)
