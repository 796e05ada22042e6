from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from pgpvalidation.domain.entities.key import Key


@dataclass(frozen=True)
class RequestInfo:
    """Pending validation request, stored under its nonce until confirmed."""

    key: Key
    email: str
    timestamp: datetime
