from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Identity:
    # Full user-ID string, e.g. "Alice <alice@example.org>"
    uid: str
    email: str


@dataclass(frozen=True)
class Key:
    """Parsed OpenPGP public key as handed out by the GPG capability.

    The core never builds or mutates keys, it only passes them around.
    """

    fingerprint: str
    identities: tuple[Identity, ...] = ()
    data: bytes = field(default=b"", repr=False)  # armored public key

    @property
    def key_id(self) -> str:
        return self.fingerprint[-16:].upper()

    @property
    def emails(self) -> list[str]:
        return [identity.email for identity in self.identities if identity.email]

    def identity_for(self, email: str) -> Identity | None:
        for identity in self.identities:
            if identity.email.lower() == email.lower():
                return identity
        return None
