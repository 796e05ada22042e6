"""Store that forgets everything; every nonce is unknown."""

from __future__ import annotations

from typing import Optional

from pgpvalidation.domain.entities.request_info import RequestInfo


class NoneRequestStore:
    def get(self, nonce: bytes) -> Optional[RequestInfo]:
        return None

    def set(self, nonce: bytes, request: RequestInfo) -> None:
        pass

    def delete(self, nonce: bytes) -> None:
        pass
