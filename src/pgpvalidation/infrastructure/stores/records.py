"""Serialized form of pending requests for the persistent stores."""

from __future__ import annotations

import base64
from datetime import datetime

from pydantic import BaseModel

from pgpvalidation.domain.entities.key import Identity, Key
from pgpvalidation.domain.entities.request_info import RequestInfo


class IdentityRecord(BaseModel):
    uid: str
    email: str


class RequestRecord(BaseModel):
    """JSON document stored per nonce."""

    fingerprint: str
    identities: list[IdentityRecord]
    key_data: str  # base64 of the armored public key
    email: str
    timestamp: datetime

    @classmethod
    def from_request(cls, request: RequestInfo) -> RequestRecord:
        return cls(
            fingerprint=request.key.fingerprint,
            identities=[IdentityRecord(uid=i.uid, email=i.email) for i in request.key.identities],
            key_data=base64.b64encode(request.key.data).decode("ascii"),
            email=request.email,
            timestamp=request.timestamp,
        )

    def to_request(self) -> RequestInfo:
        key = Key(
            fingerprint=self.fingerprint,
            identities=tuple(Identity(uid=i.uid, email=i.email) for i in self.identities),
            data=base64.b64decode(self.key_data),
        )
        return RequestInfo(key=key, email=self.email, timestamp=self.timestamp)
