from datetime import datetime, timezone

import pytest

from pgpvalidation.application.nonce import nonce_from_string
from pgpvalidation.application.use_cases.handle_mail import HandleMailUseCase
from pgpvalidation.infrastructure.stores.memory_store import MemoryRequestStore
from tests.unit.fakes import encrypted_mail, inner_request, make_key, signed_mail

NOW = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)


def nonce_in(message: str) -> bytes:
    token = next(line.strip() for line in message.splitlines() if len(line.strip()) == 64)
    return nonce_from_string(token)


def test_unsigned_mail_gets_no_answer(gpg, store):
    use_case = HandleMailUseCase(gpg, store)
    assert use_case.run(b"From: someone@example.org\r\nSubject: hi\r\n\r\nPlease sign my key") == []
    assert len(store) == 0


def test_badly_signed_mail_gets_no_answer(gpg, store, alice_key):
    use_case = HandleMailUseCase(gpg, store)
    assert use_case.run(signed_mail(gpg, alice_key, tamper=True)) == []
    assert len(store) == 0


def test_unparseable_mail_gets_no_answer(gpg, store):
    use_case = HandleMailUseCase(gpg, store)
    assert use_case.run(b"Content-Type: multipart/mixed\r\n\r\nbroken") == []


def test_one_challenge_per_identity(gpg, store, alice_key):
    use_case = HandleMailUseCase(gpg, store, now=lambda: NOW)
    responses = use_case.run(signed_mail(gpg, alice_key))

    assert [mail.recipient_email for mail in responses] == ["alice@example.org", "alice@work.example"]
    nonces = [nonce_in(mail.message) for mail in responses]
    assert len(set(nonces)) == 2
    assert len(store) == 2

    for mail, nonce in zip(responses, nonces):
        assert mail.recipient_key == alice_key
        assert mail.attachment is None
        assert alice_key.fingerprint in mail.message
        request = store.get(nonce)
        assert request.email == mail.recipient_email
        assert request.key == alice_key
        assert request.timestamp == NOW


def test_encrypted_request_is_challenged(gpg, store, alice_key):
    raw = encrypted_mail(gpg.encrypt(inner_request(alice_key), signer=alice_key))
    responses = HandleMailUseCase(gpg, store).run(raw)
    assert len(responses) == 2


def test_encrypted_request_without_signature_gets_no_answer(gpg, store, alice_key):
    raw = encrypted_mail(gpg.encrypt(inner_request(alice_key), signer=None))
    assert HandleMailUseCase(gpg, store).run(raw) == []


def test_confirm_link_is_included_when_configured(gpg, store, alice_key):
    use_case = HandleMailUseCase(gpg, store, confirm_base_url="https://validation.example/")
    mail = use_case.run(signed_mail(gpg, alice_key))[0]
    nonce = nonce_in(mail.message)
    assert f"https://validation.example/confirm/{nonce.hex()}" in mail.message


def test_identities_without_address_are_skipped(gpg):
    key = make_key("C" * 40, "Only A Name", "Bob <bob@example.org>", "Bob Again <BOB@example.org>")
    store = MemoryRequestStore()
    responses = HandleMailUseCase(gpg, store).run(signed_mail(gpg, key))
    assert [mail.recipient_email for mail in responses] == ["bob@example.org"]
    assert len(store) == 1


@pytest.mark.parametrize(
    "raw",
    [
        b'From: "\r\n\r\nhi',
        b"To: a@\r\n\r\nhi",
        b"Message-ID: <\r\n\r\nhi",
        b"To: a@[\r\n\r\nhi",
        b'Content-Type: multipart/mixed; boundary="\xffb"\r\n\r\n--\xffb\r\n\r\nx\r\n--\xffb--\r\n',
    ],
)
def test_hostile_mail_is_dropped_without_raising(gpg, store, raw):
    assert HandleMailUseCase(gpg, store).run(raw) == []
    assert len(store) == 0
