"""RFC 3156 ``multipart/signed`` handling.

The body must consist of exactly two parts: the signed data in MIME
canonical form, and an ``application/pgp-signature`` part holding the
detached signature. The signed bytes are cut out of the body exactly as
received; the parsed tree is never re-serialized for verification.

By convention of this service the signer embeds their public key as an
``application/pgp-keys`` attachment inside the signed part.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from pgpvalidation.application.mime.multipart import CRLF, delimiter_line_end, find_delimiter
from pgpvalidation.domain.entities.key import Key
from pgpvalidation.domain.entities.media_type import MediaType
from pgpvalidation.domain.entities.mime_entity import MimeEntity, MimeHeader
from pgpvalidation.domain.errors import (
    AttachmentNotFoundError,
    MediaTypeError,
    MimeParseError,
    SignatureVerificationError,
)

if TYPE_CHECKING:
    from pgpvalidation.application.mime.parser import MimeParser
    from pgpvalidation.application.ports.gpg_utility import GpgUtility

SIGNATURE_TYPE = "application/pgp-signature"
KEYS_TYPE = "application/pgp-keys"


def find_signed_part(data: bytes, boundary: str) -> bytes:
    """Bytes covered by the signature: the first part, ending in one CRLF.

    Starts right after the first delimiter line and stops before the next
    delimiter; any trailing run of CRLFs collapses into a single CRLF.
    """
    dash = b"--" + boundary.encode("utf-8", "surrogateescape")
    position = find_delimiter(data, dash)
    if position < 0 or data.startswith(b"--", position + len(dash)):
        raise SignatureVerificationError("Did not find start of signed part")
    try:
        start = delimiter_line_end(data, position + len(dash))
    except MimeParseError as e:
        raise SignatureVerificationError("Did not find start of signed part") from e
    end = find_delimiter(data, dash, start)
    if end < 0:
        raise SignatureVerificationError("Did not find end of signed part")

    signed = data[start:end]
    while signed.endswith(CRLF):
        signed = signed[:-2]
    return signed + CRLF


def read_signer_key(gpg: GpgUtility, entity: MimeEntity) -> Key:
    """Read the first embedded ``application/pgp-keys`` attachment of ``entity``."""
    key_data = entity.find_attachment(KEYS_TYPE)
    return gpg.read_key(key_data)


def _signature_of(entity: MimeEntity) -> bytes:
    signature_part = entity.parts[1]
    try:
        media_type = signature_part.content_type
    except MediaTypeError as e:
        raise SignatureVerificationError(f"Invalid signature content-type: {e}") from e
    if media_type.value != SIGNATURE_TYPE:
        raise SignatureVerificationError(f"Invalid signature content-type '{media_type.value}'.")
    if signature_part.content is None:
        raise SignatureVerificationError("Signature part has no content.")
    return signature_part.content


def verify_multipart_signed(gpg: GpgUtility | None, entity: MimeEntity, boundary: str, raw_body: bytes) -> Key:
    """Verify a parsed multipart/signed entity against its raw body.

    Returns the signer key; raises SignatureVerificationError otherwise.
    """
    if len(entity.parts) != 2:
        raise SignatureVerificationError(
            f"Multipart/signed body must contain two parts, but got {len(entity.parts)}."
        )
    if gpg is None:
        raise SignatureVerificationError("No GPG capability available to verify signatures.")

    signed_part = find_signed_part(raw_body, boundary)
    signature = _signature_of(entity)

    try:
        signer_key = read_signer_key(gpg, entity.parts[0])
    except AttachmentNotFoundError as e:
        raise SignatureVerificationError(f"Cannot find signer key: {e}") from e
    except Exception as e:
        raise SignatureVerificationError(f"Cannot read signer key: {e}") from e

    try:
        gpg.check_message_signature(signed_part, signature, signer_key)
    except Exception as e:
        logger.debug(
            f"Signature check failed for key {signer_key.key_id} with identities {signer_key.emails}"
        )
        raise SignatureVerificationError(f"Cannot verify message signature: {e}") from e
    return signer_key


def parse_multipart_signed(
    parser: MimeParser, content_type: MediaType, header: MimeHeader, body: bytes
) -> MimeEntity:
    """Parse a multipart/signed entity; ``signed_by`` is set only if it verifies.

    Structural problems raise MimeParseError. A failed verification is not
    an error: the entity is returned with ``signed_by`` left empty.
    """
    # TODO: cross-check micalg against the hash algorithm of the signature packet.
    if "micalg" not in content_type.params:
        raise MimeParseError("Multipart/signed mail must specify micalg parameter.")

    entity = parser.parse_multipart(content_type, header, body)
    try:
        entity.signed_by = verify_multipart_signed(parser.gpg, entity, content_type.params["boundary"], body)
    except SignatureVerificationError as e:
        logger.warning(f"Entity has no valid signature, because: {e}")
    else:
        logger.info(f"Verified signature of key {entity.signed_by.key_id}")
    return entity
