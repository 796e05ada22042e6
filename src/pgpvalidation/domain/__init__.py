"""Domain models, entities and errors."""

from pgpvalidation.domain.entities import (
    Identity,
    Key,
    MediaType,
    MimeEntity,
    MimeHeader,
    OutgoingMail,
    RequestInfo,
)

__all__ = [
    "Identity",
    "Key",
    "MediaType",
    "MimeEntity",
    "MimeHeader",
    "OutgoingMail",
    "RequestInfo",
]
