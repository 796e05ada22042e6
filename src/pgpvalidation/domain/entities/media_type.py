"""Media type values and the RFC 2045/2231 parameter grammar.

``Content-Type`` and ``Content-Disposition`` share one grammar::

    value      := token [ "/" token ]
    parameters := *( ";" attribute "=" ( token | quoted-string ) )

Type tokens and attribute names are case-insensitive and returned
lower-cased; parameter values keep their case. RFC 2231 extended values
(``name*=utf-8''...``) and continuations (``name*0=...``) are decoded.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import unquote_to_bytes

from pgpvalidation.domain.errors import MediaTypeError

_TSPECIALS = set('()<>@,;:\\"/[]?=')
_CONTINUATION = re.compile(r"^(?P<name>[^*]+)\*(?P<index>\d+)(?P<extended>\*?)$")


@dataclass(frozen=True)
class MediaType:
    value: str
    params: dict[str, str] = field(default_factory=dict)


def _is_token_char(c: str) -> bool:
    return " " < c < "\x7f" and c not in _TSPECIALS


def _consume_token(s: str) -> tuple[str, str]:
    i = 0
    while i < len(s) and _is_token_char(s[i]):
        i += 1
    return s[:i], s[i:]


def _consume_quoted(s: str) -> tuple[str, str]:
    # s starts right after the opening quote
    out: list[str] = []
    i = 0
    while i < len(s):
        c = s[i]
        if c == '"':
            return "".join(out), s[i + 1 :]
        if c == "\\" and i + 1 < len(s):
            i += 1
            c = s[i]
        out.append(c)
        i += 1
    raise MediaTypeError("unterminated quoted-string in media type parameter")


def _consume_value(s: str) -> tuple[str, str]:
    if s.startswith('"'):
        return _consume_quoted(s[1:])
    value, rest = _consume_token(s)
    if not value:
        raise MediaTypeError("missing media type parameter value")
    return value, rest


def _decode_extended(value: str, charset: str | None = None) -> tuple[str, str | None]:
    """Decode an RFC 2231 ``charset'lang'%xx`` value; returns (text, charset)."""
    if charset is None:
        parts = value.split("'", 2)
        if len(parts) != 3:
            raise MediaTypeError(f"invalid RFC 2231 parameter value {value!r}")
        charset, _language, value = parts
        charset = charset or "us-ascii"
    raw = unquote_to_bytes(value)
    try:
        return raw.decode(charset), charset
    except (LookupError, UnicodeDecodeError) as e:
        raise MediaTypeError(f"cannot decode RFC 2231 parameter: {e}") from e


def _merge_continuations(raw: dict[str, str]) -> dict[str, str]:
    params: dict[str, str] = {}
    pieces: dict[str, dict[int, tuple[str, bool]]] = {}
    for name, value in raw.items():
        match = _CONTINUATION.match(name)
        if match:
            pieces.setdefault(match["name"], {})[int(match["index"])] = (value, bool(match["extended"]))
        elif name.endswith("*"):
            params[name[:-1]], _ = _decode_extended(value)
        else:
            params[name] = value

    for name, sections in pieces.items():
        if name in params:
            continue
        charset: str | None = None
        text: list[str] = []
        for index in range(len(sections)):
            if index not in sections:
                break
            value, extended = sections[index]
            if extended:
                decoded, charset = _decode_extended(value, charset if index else None)
                text.append(decoded)
            else:
                text.append(value)
        params[name] = "".join(text)
    return params


def parse_media_type(value: str) -> MediaType:
    """Parse a header value such as ``multipart/signed; micalg=pgp-sha1``."""
    rest = value.strip()
    media, rest = _consume_token(rest)
    if not media:
        raise MediaTypeError(f"no media type in {value!r}")
    rest = rest.lstrip()
    if rest.startswith("/"):
        subtype, rest = _consume_token(rest[1:].lstrip())
        if not subtype:
            raise MediaTypeError(f"expected subtype in {value!r}")
        media = f"{media}/{subtype}"

    raw: dict[str, str] = {}
    while True:
        rest = rest.strip()
        if not rest:
            break
        if not rest.startswith(";"):
            raise MediaTypeError(f"unexpected content {rest!r} in media type {value!r}")
        rest = rest[1:].lstrip()
        if not rest:
            break  # trailing semicolon
        name, rest = _consume_token(rest)
        if not name:
            raise MediaTypeError(f"invalid parameter name in {value!r}")
        rest = rest.lstrip()
        if not rest.startswith("="):
            raise MediaTypeError(f"missing '=' after parameter {name!r} in {value!r}")
        param, rest = _consume_value(rest[1:].lstrip())
        name = name.lower()
        if name in raw:
            raise MediaTypeError(f"duplicate parameter {name!r} in {value!r}")
        raw[name] = param

    return MediaType(media.lower(), _merge_continuations(raw))
