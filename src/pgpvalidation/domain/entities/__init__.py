"""Domain entities."""

from pgpvalidation.domain.entities.key import Identity, Key
from pgpvalidation.domain.entities.media_type import MediaType, parse_media_type
from pgpvalidation.domain.entities.mime_entity import MimeEntity, MimeHeader, resolve_media_type
from pgpvalidation.domain.entities.outgoing_mail import OutgoingMail
from pgpvalidation.domain.entities.request_info import RequestInfo

__all__ = [
    "Identity",
    "Key",
    "MediaType",
    "parse_media_type",
    "MimeEntity",
    "MimeHeader",
    "resolve_media_type",
    "OutgoingMail",
    "RequestInfo",
]
