"""Exception hierarchy shared by the parser, the nonce protocol and the stores."""

from __future__ import annotations


class ValidationError(Exception):
    """Base class for all errors raised by the validation service."""


class MimeParseError(ValidationError):
    """A mail could not be parsed into a MIME entity tree."""


class MediaTypeError(MimeParseError):
    """A Content-Type or Content-Disposition value is malformed."""


class EncryptedPartError(MimeParseError):
    """A multipart/encrypted entity is malformed or failed decrypt/verify."""


class SignatureVerificationError(ValidationError):
    """A multipart/signed entity could not be verified."""


class AttachmentNotFoundError(ValidationError):
    """No attachment of the requested media type exists in an entity tree."""


class InvalidNonceError(ValidationError):
    """A nonce string does not decode to exactly NONCE_LENGTH bytes."""


class NonceNotFoundError(ValidationError):
    """No pending request is stored under the given nonce."""


class StoreError(ValidationError):
    """A request store could not be created or used."""


class GpgError(ValidationError):
    """An OpenPGP operation of the GPG capability failed."""
