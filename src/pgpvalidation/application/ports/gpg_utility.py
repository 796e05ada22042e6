from __future__ import annotations

from typing import Protocol

from pgpvalidation.domain.entities.key import Key


class GpgUtility(Protocol):
    """OpenPGP operations the parser and the nonce protocol rely on.

    Every method raises on failure; a normal return means success.
    """

    def read_key(self, data: bytes) -> Key: ...

    def check_message_signature(self, message: bytes, signature: bytes, signer_key: Key) -> None: ...

    def encrypt_message(self, plaintext: bytes, recipient_key: Key) -> bytes: ...

    def decrypt_message(self, ciphertext: bytes) -> bytes: ...

    def decrypt_signed_message(self, ciphertext: bytes, signer_key: Key) -> bytes: ...

    def sign_user_id(self, email: str, key: Key) -> bytes: ...

    @property
    def server_identity(self) -> str: ...
