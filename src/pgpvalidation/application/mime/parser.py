"""Recursive MIME entity parser.

Turns a raw mail into a :class:`MimeEntity` tree. Every entity falls into
exactly one of five kinds (text, attachment, generic multipart, RFC 3156
signed, RFC 3156 encrypted); signed and encrypted entities are handed to
:mod:`.signed` and :mod:`.encrypted`, which use the GPG capability.
"""

from __future__ import annotations

import codecs
from enum import Enum
from typing import BinaryIO, Callable, Optional, Union

from loguru import logger

from pgpvalidation.application.mime.encrypted import parse_multipart_encrypted
from pgpvalidation.application.mime.multipart import (
    decode_transfer_encoding,
    normalize_newlines,
    parse_header_block,
    split_header_body,
    split_multipart,
)
from pgpvalidation.application.mime.signed import parse_multipart_signed
from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.domain.entities.media_type import MediaType
from pgpvalidation.domain.entities.mime_entity import MimeEntity, MimeHeader, resolve_media_type
from pgpvalidation.domain.errors import MimeParseError


class EntityKind(Enum):
    TEXT = "text"
    ATTACHMENT = "attachment"
    MULTIPART = "multipart"
    SIGNED = "signed"
    ENCRYPTED = "encrypted"


def classify(content_type: MediaType, disposition: MediaType, inline_attachments: bool = True) -> EntityKind:
    """Decide how an entity is parsed from its resolved media types."""
    if disposition.value == "attachment":
        return EntityKind.ATTACHMENT
    is_multipart = content_type.value.startswith("multipart/")
    if (
        inline_attachments
        and disposition.value == "inline"
        and not is_multipart
        and not content_type.value.startswith("text/")
    ):
        return EntityKind.ATTACHMENT
    if content_type.value == "multipart/signed":
        return EntityKind.SIGNED
    if content_type.value == "multipart/encrypted":
        return EntityKind.ENCRYPTED
    if is_multipart:
        return EntityKind.MULTIPART
    return EntityKind.TEXT


class MimeParser:
    """Parse mails into MimeEntity trees, verifying PGP/MIME on the way.

    Args:
        gpg: GPG capability used for signed/encrypted entities. Without it,
             signed entities parse but never verify and encrypted entities fail.
        inline_attachments: Treat ``Content-Disposition: inline`` leaves that
             are not text as attachments (how PGP/MIME clients label
             ``encrypted.asc`` and key files).
    """

    def __init__(self, gpg: Optional[GpgUtility] = None, *, inline_attachments: bool = True) -> None:
        self.gpg = gpg
        self.inline_attachments = inline_attachments
        self._handlers: dict[EntityKind, Callable[[MediaType, MimeHeader, bytes], MimeEntity]] = {
            EntityKind.ATTACHMENT: self.create_attachment,
            EntityKind.TEXT: self.parse_text,
            EntityKind.MULTIPART: self.parse_multipart,
            EntityKind.SIGNED: self.parse_multipart_signed,
            EntityKind.ENCRYPTED: self.parse_multipart_encrypted,
        }

    def parse_mail(self, mail: Union[bytes, BinaryIO]) -> MimeEntity:
        """Parse a complete raw mail (header block plus body).

        The input is read fully and its line endings are canonicalized to
        CRLF once, before any parsing.
        """
        data = mail if isinstance(mail, bytes) else mail.read()
        return self.parse_message(normalize_newlines(data))

    def parse_message(self, data: bytes) -> MimeEntity:
        header_bytes, body = split_header_body(data)
        header = parse_header_block(header_bytes)
        try:
            return self.parse_entity(header, decode_transfer_encoding(header, body))
        except MimeParseError as e:
            raise type(e)(f"Cannot parse entity: {e}") from e

    def parse_entity(self, header: MimeHeader, body: bytes) -> MimeEntity:
        disposition = resolve_media_type(header, "Content-Disposition")
        if disposition.value == "attachment":
            return self.create_attachment(disposition, header, body)
        content_type = resolve_media_type(header, "Content-Type", "text/plain")
        kind = classify(content_type, disposition, self.inline_attachments)
        logger.debug(f"Parsing {kind.value} entity of type {content_type.value}")
        return self._handlers[kind](content_type, header, body)

    def create_attachment(self, media_type: MediaType, header: MimeHeader, body: bytes) -> MimeEntity:
        return MimeEntity(header=header, content=body, is_attachment=True)

    def parse_text(self, content_type: MediaType, header: MimeHeader, body: bytes) -> MimeEntity:
        charset = content_type.params.get("charset")
        if charset:
            body = self._to_utf8(body, charset)
        return MimeEntity(header=header, content=body)

    @staticmethod
    def _to_utf8(body: bytes, charset: str) -> bytes:
        try:
            encoding = codecs.lookup(charset).name
        except LookupError:
            logger.warning(f"Unsupported charset {charset!r}, decoding as UTF-8")
            encoding = "utf-8"
        return body.decode(encoding, errors="replace").encode("utf-8")

    def parse_multipart(self, content_type: MediaType, header: MimeHeader, body: bytes) -> MimeEntity:
        boundary = content_type.params.get("boundary")
        if not boundary:
            raise MimeParseError(f"Multipart mail with type {content_type.value} has no boundary specified.")
        parts: list[MimeEntity] = []
        for part_header, part_body in split_multipart(body, boundary):
            try:
                parts.append(self.parse_entity(part_header, part_body))
            except MimeParseError as e:
                raise MimeParseError(f'Cannot parse entity from "{content_type.value}" "{boundary}": {e}') from e
        return MimeEntity(header=header, parts=parts)

    def parse_multipart_signed(self, content_type: MediaType, header: MimeHeader, body: bytes) -> MimeEntity:
        return parse_multipart_signed(self, content_type, header, body)

    def parse_multipart_encrypted(self, content_type: MediaType, header: MimeHeader, body: bytes) -> MimeEntity:
        return parse_multipart_encrypted(self, content_type, header, body)
