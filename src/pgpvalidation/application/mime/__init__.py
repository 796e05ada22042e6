"""MIME parsing with RFC 3156 (PGP/MIME) verification."""

from pgpvalidation.application.mime.multipart import normalize_newlines
from pgpvalidation.application.mime.parser import EntityKind, MimeParser, classify
from pgpvalidation.application.mime.signed import find_signed_part

__all__ = [
    "EntityKind",
    "MimeParser",
    "classify",
    "find_signed_part",
    "normalize_newlines",
]
