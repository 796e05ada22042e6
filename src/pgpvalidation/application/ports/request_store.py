from __future__ import annotations

from typing import Optional, Protocol

from pgpvalidation.domain.entities.request_info import RequestInfo


class RequestStore(Protocol):
    # Implementations serialize concurrent access themselves.
    def get(self, nonce: bytes) -> Optional[RequestInfo]: ...
    def set(self, nonce: bytes, request: RequestInfo) -> None: ...
    def delete(self, nonce: bytes) -> None: ...
