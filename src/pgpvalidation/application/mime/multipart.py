"""MIME framing: line endings, header blocks and multipart body splitting.

All functions operate on complete in-memory byte strings whose line endings
have already been canonicalized to CRLF by :func:`normalize_newlines`.
"""

from __future__ import annotations

import base64
import binascii
import re
from email import errors, policy
from email.parser import BytesHeaderParser

from pgpvalidation.domain.entities.mime_entity import MimeHeader
from pgpvalidation.domain.errors import MimeParseError

CRLF = b"\r\n"

_NEWLINE = re.compile(rb"\r?\n")
_FOLD = re.compile(r"\r?\n")
_HEADER_POLICY = policy.default
_header_parser = BytesHeaderParser(policy=_HEADER_POLICY)

# Parsed by parse_media_type, so kept exactly as received
_MIME_HEADERS = {"content-type", "content-disposition", "content-transfer-encoding"}


def normalize_newlines(data: bytes) -> bytes:
    """Convert every line ending to the canonical CRLF sequence."""
    return _NEWLINE.sub(CRLF, data)


def split_header_body(data: bytes) -> tuple[bytes, bytes]:
    """Split at the first empty line; a missing empty line means no body."""
    if data.startswith(CRLF):
        return b"", data[2:]
    end = data.find(CRLF + CRLF)
    if end < 0:
        return data, b""
    return data[: end + 2], data[end + 4 :]


def _decode_header(name: str, raw: str) -> str:
    try:
        return str(_HEADER_POLICY.header_fetch_parse(name, raw))
    except (errors.HeaderParseError, IndexError, AttributeError, ValueError):
        # Malformed address or Message-ID; kept as received, unfolded
        return _FOLD.sub("", raw).strip()


def parse_header_block(data: bytes) -> MimeHeader:
    """Parse a header block into a MimeHeader (unfolded, RFC 2047-decoded)."""
    header = MimeHeader()
    if not data.strip():
        return header
    message = _header_parser.parsebytes(data)
    for name, raw in message.raw_items():
        if name.lower() in _MIME_HEADERS:
            header.add(name, _FOLD.sub("", raw).strip())
        else:
            header.add(name, _decode_header(name, raw))
    return header


def _is_delimiter_end(data: bytes, after: int) -> bool:
    # A boundary match is only a delimiter if followed by "--" (close),
    # optional transport padding and CRLF, or the end of input.
    if data.startswith(b"--", after):
        return True
    i = after
    while i < len(data) and data[i] in b" \t":
        i += 1
    return i == len(data) or data.startswith(CRLF, i)


def find_delimiter(data: bytes, dash_boundary: bytes, start: int = 0) -> int:
    """Index of the next ``--boundary`` that starts a line, at or after ``start``."""
    if start == 0 and data.startswith(dash_boundary):
        if _is_delimiter_end(data, len(dash_boundary)):
            return 0
    search_from = max(start - 2, 0)
    while True:
        index = data.find(CRLF + dash_boundary, search_from)
        if index < 0:
            return -1
        candidate = index + 2
        if candidate >= start and _is_delimiter_end(data, candidate + len(dash_boundary)):
            return candidate
        search_from = index + 1


def delimiter_line_end(data: bytes, after: int) -> int:
    """Offset just past the CRLF terminating a delimiter line."""
    i = after
    while i < len(data) and data[i] in b" \t":
        i += 1
    if not data.startswith(CRLF, i):
        raise MimeParseError("unexpected end of multipart body after boundary")
    return i + 2


def decode_transfer_encoding(header: MimeHeader, body: bytes) -> bytes:
    """Undo quoted-printable/base64 transfer encoding and drop the header."""
    encoding = header.get("Content-Transfer-Encoding").strip().lower()
    if encoding == "quoted-printable":
        body = binascii.a2b_qp(body)
    elif encoding == "base64":
        try:
            body = base64.b64decode(body)
        except binascii.Error as e:
            raise MimeParseError(f"invalid base64 body: {e}") from e
    else:
        return body
    header.remove("Content-Transfer-Encoding")
    return body


def split_multipart(body: bytes, boundary: str) -> list[tuple[MimeHeader, bytes]]:
    """Split a multipart body into (header, decoded body) pairs, in order.

    The preamble and the epilogue are ignored. Reaching the end of input
    before the closing ``--boundary--`` delimiter is an error.
    """
    dash = b"--" + boundary.encode("utf-8", "surrogateescape")
    position = find_delimiter(body, dash)
    if position < 0:
        raise MimeParseError(f"no boundary {boundary!r} found in multipart body")

    parts: list[tuple[MimeHeader, bytes]] = []
    while True:
        after = position + len(dash)
        if body.startswith(b"--", after):
            return parts
        start = delimiter_line_end(body, after)
        position = find_delimiter(body, dash, start)
        if position < 0:
            raise MimeParseError(f"multipart body ended before closing boundary {boundary!r}")
        raw_part = body[start : max(start, position - 2)]
        header_bytes, part_body = split_header_body(raw_part)
        header = parse_header_block(header_bytes)
        parts.append((header, decode_transfer_encoding(header, part_body)))
