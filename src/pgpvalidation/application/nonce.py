"""Single-use challenge tokens."""

from __future__ import annotations

import secrets

from pgpvalidation.domain.errors import InvalidNonceError

NONCE_LENGTH = 32  # bytes


def generate_nonce() -> bytes:
    return secrets.token_bytes(NONCE_LENGTH)


def nonce_to_string(nonce: bytes) -> str:
    return nonce.hex()


def nonce_from_string(value: str) -> bytes:
    """Decode a hex nonce as embedded in challenge mails and confirm links."""
    try:
        nonce = bytes.fromhex(value.strip())
    except ValueError as e:
        raise InvalidNonceError(f"Nonce is not valid hex: {e}") from e
    if len(nonce) != NONCE_LENGTH:
        raise InvalidNonceError(f"Nonce has invalid length: {len(nonce)}")
    return nonce
