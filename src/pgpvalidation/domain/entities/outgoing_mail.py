from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pgpvalidation.domain.entities.key import Key


@dataclass(frozen=True)
class OutgoingMail:
    """Response mail produced by the nonce protocol.

    Encoding (PGP/MIME) and delivery happen outside the core.
    """

    message: str
    recipient_email: str
    recipient_key: Key
    attachment: Optional[bytes] = field(default=None, repr=False)
