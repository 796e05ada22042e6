from __future__ import annotations

from datetime import datetime, timezone

import pytest

from pgpvalidation.application.mime.parser import MimeParser
from pgpvalidation.domain.entities.request_info import RequestInfo
from pgpvalidation.infrastructure.stores.memory_store import MemoryRequestStore
from tests.unit.fakes import FakeGpg, make_key

ALICE_FPR = "A1B2C3D4E5F60718293A4B5C6D7E8F9012345678"
MALLORY_FPR = "FFEEDDCCBBAA99887766554433221100FFEEDDCC"


@pytest.fixture
def gpg() -> FakeGpg:
    return FakeGpg()


@pytest.fixture
def parser(gpg: FakeGpg) -> MimeParser:
    return MimeParser(gpg)


@pytest.fixture
def store() -> MemoryRequestStore:
    return MemoryRequestStore()


@pytest.fixture
def alice_key():
    return make_key(ALICE_FPR, "Alice <alice@example.org>", "Alice Work <alice@work.example>")


@pytest.fixture
def mallory_key():
    return make_key(MALLORY_FPR, "Mallory <mallory@example.net>")


@pytest.fixture
def alice_request(alice_key) -> RequestInfo:
    return RequestInfo(
        key=alice_key,
        email="alice@example.org",
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )
