from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from pgpvalidation.domain.entities.key import Key
from pgpvalidation.domain.entities.media_type import MediaType, parse_media_type
from pgpvalidation.domain.errors import AttachmentNotFoundError, MediaTypeError


class MimeHeader:
    """Ordered header multimap with case-insensitive names.

    Lookups are case-insensitive; the spelling of the first occurrence of a
    name is kept for iteration.
    """

    def __init__(self, items: Iterable[tuple[str, str]] = ()) -> None:
        self._items: list[tuple[str, str]] = []
        for name, value in items:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        self._items.append((name, value))

    def get(self, name: str, default: str = "") -> str:
        key = name.lower()
        for item_name, value in self._items:
            if item_name.lower() == key:
                return value
        return default

    def get_all(self, name: str) -> list[str]:
        key = name.lower()
        return [value for item_name, value in self._items if item_name.lower() == key]

    def remove(self, name: str) -> None:
        key = name.lower()
        self._items = [(n, v) for n, v in self._items if n.lower() != key]

    def names(self) -> list[str]:
        seen: dict[str, str] = {}
        for name, _ in self._items:
            seen.setdefault(name.lower(), name)
        return list(seen.values())

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and bool(self.get_all(name))

    def __len__(self) -> int:
        return len(self.names())

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MimeHeader):
            return NotImplemented
        return [(n.lower(), v) for n, v in self._items] == [(n.lower(), v) for n, v in other._items]

    def __repr__(self) -> str:
        return f"MimeHeader({self._items!r})"


def resolve_media_type(header: MimeHeader, key: str, default: str = "") -> MediaType:
    """Media type of the first ``key`` header, or ``default`` without params.

    Raises MediaTypeError when the header is present but malformed.
    """
    value = header.get(key).strip()
    if not value:
        return MediaType(default, {})
    return parse_media_type(value)


@dataclass(eq=True)
class MimeEntity:
    """Node of a parsed mail.

    A leaf carries ``content`` (text or attachment bytes), a composite
    carries ``parts``; never both. ``signed_by`` is set only when a signature
    over this entity was verified against the exact received bytes.
    """

    header: MimeHeader = field(default_factory=MimeHeader)
    content: Optional[bytes] = None
    parts: Optional[list[MimeEntity]] = None
    is_attachment: bool = False
    signed_by: Optional[Key] = None

    def __post_init__(self) -> None:
        if (self.content is None) == (self.parts is None):
            raise ValueError("MimeEntity must carry exactly one of content or parts")
        if self.is_attachment and self.parts is not None:
            raise ValueError("Only leaf entities can be attachments")

    @property
    def is_multipart(self) -> bool:
        return self.parts is not None

    @property
    def content_type(self) -> MediaType:
        return resolve_media_type(self.header, "Content-Type", "text/plain")

    def get_header(self, name: str, default: str = "") -> str:
        return self.header.get(name, default)

    @property
    def subject(self) -> str:
        return self.get_header("Subject")

    @property
    def sender(self) -> str:
        return self.get_header("From")

    def walk(self) -> Iterator[MimeEntity]:
        """Depth-first, pre-order traversal including this entity."""
        yield self
        for part in self.parts or ():
            yield from part.walk()

    def find_attachment_or_none(self, mime_type: str) -> Optional[bytes]:
        for entity in self.walk():
            if not entity.is_attachment:
                continue
            try:
                media = resolve_media_type(entity.header, "Content-Type")
            except MediaTypeError:
                continue
            if media.value == mime_type:
                return entity.content
        return None

    def find_attachment(self, mime_type: str) -> bytes:
        """Content of the first attachment of ``mime_type`` (depth-first)."""
        attachment = self.find_attachment_or_none(mime_type)
        if attachment is None:
            raise AttachmentNotFoundError(f'No attachment of type "{mime_type}".')
        return attachment
