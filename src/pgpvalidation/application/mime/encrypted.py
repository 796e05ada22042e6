"""RFC 3156 ``multipart/encrypted`` handling.

The body holds a ``Version: 1`` control part and the armored ciphertext.
The plaintext is itself a complete mail which, by convention of this
service, embeds the sender's public key. Decryption runs twice: once to
find that key, and once more requiring a valid signature made by it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pgpvalidation.application.mime.signed import KEYS_TYPE, read_signer_key
from pgpvalidation.domain.entities.media_type import MediaType
from pgpvalidation.domain.entities.mime_entity import MimeEntity, MimeHeader
from pgpvalidation.domain.errors import EncryptedPartError, MimeParseError

if TYPE_CHECKING:
    from pgpvalidation.application.mime.parser import MimeParser

ENCRYPTED_PROTOCOL = "application/pgp-encrypted"
PGP_MIME_VERSION = b"Version: 1"


def extract_ciphertext(parser: MimeParser, content_type: MediaType, header: MimeHeader, body: bytes) -> bytes:
    """Validate the encrypted container and return the trimmed ciphertext."""
    if content_type.params.get("protocol") != ENCRYPTED_PROTOCOL:
        raise EncryptedPartError(f"Multipart/encrypted mail protocol must be {ENCRYPTED_PROTOCOL}.")

    container = parser.parse_multipart(content_type, header, body)
    if len(container.parts) != 2:
        raise EncryptedPartError(
            f"Multipart/encrypted body must contain two parts, but got {len(container.parts)}."
        )

    control, payload = container.parts
    if control.content_type.value != ENCRYPTED_PROTOCOL:
        raise EncryptedPartError(
            f"Content-Type of first multipart/encrypted part must be {ENCRYPTED_PROTOCOL}."
        )
    if control.content is None or control.content.strip() != PGP_MIME_VERSION:
        raise EncryptedPartError("Content of first multipart/encrypted part must be 'Version: 1'.")
    if not payload.is_attachment:
        raise EncryptedPartError("Content of second multipart/encrypted part must be an attachment.")
    return payload.content.strip()


def parse_multipart_encrypted(
    parser: MimeParser, content_type: MediaType, header: MimeHeader, body: bytes
) -> MimeEntity:
    """Decrypt, re-parse and verify an encrypted mail.

    Returns the decrypted inner entity with ``signed_by`` set to the
    embedded signer key. Any failure, including a missing or foreign
    signature, raises EncryptedPartError.
    """
    gpg = parser.gpg
    if gpg is None:
        raise EncryptedPartError("No GPG capability available to decrypt messages.")

    ciphertext = extract_ciphertext(parser, content_type, header, body)

    try:
        plaintext = gpg.decrypt_message(ciphertext)
    except Exception as e:
        raise EncryptedPartError(f"Cannot decrypt message: {e}") from e

    try:
        inner = parser.parse_mail(plaintext)
    except MimeParseError as e:
        raise EncryptedPartError(f"Cannot parse decrypted mail: {e}") from e

    try:
        signer_key = read_signer_key(gpg, inner)
    except Exception as e:
        raise EncryptedPartError(f"Cannot parse signer key ({KEYS_TYPE}): {e}") from e

    try:
        gpg.decrypt_signed_message(ciphertext, signer_key)
    except Exception as e:
        raise EncryptedPartError(f"Could not verify message: {e}") from e

    logger.info(f"Decrypted message signed by key {signer_key.key_id}")
    inner.signed_by = signer_key
    return inner
