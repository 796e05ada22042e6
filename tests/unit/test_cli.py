from unittest.mock import MagicMock

import pytest

from pgpvalidation.application.nonce import generate_nonce
from pgpvalidation.application.use_cases.confirm_nonce import ConfirmNonceUseCase
from pgpvalidation.application.use_cases.handle_mail import HandleMailUseCase
from pgpvalidation.cli import main as cli
from pgpvalidation.domain.errors import GpgError
from pgpvalidation.infrastructure.mail.dispatch import OutgoingMailDispatcher
from tests.unit.fakes import RecordingSender, signed_mail


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def services(gpg, store, sender, monkeypatch):
    services = MagicMock()
    services.store = store
    services.handle_mail = HandleMailUseCase(gpg, store)
    services.confirm_nonce = ConfirmNonceUseCase(gpg, store)
    services.dispatcher = OutgoingMailDispatcher(gpg, sender=sender)
    monkeypatch.setattr(cli, "build_services", lambda settings: services)
    return services


def test_process_mail_sends_one_challenge_per_identity(services, sender, gpg, alice_key, tmp_path):
    mail_file = tmp_path / "request.eml"
    mail_file.write_bytes(signed_mail(gpg, alice_key))

    assert cli.main(["process-mail", "--file", str(mail_file)]) == 0
    assert sorted(envelope["recipients"][0] for envelope in sender.sent) == ["alice@example.org", "alice@work.example"]
    assert len(services.store) == 2


def test_confirm_nonce_sends_signed_key_and_consumes_nonce(services, sender, store, alice_request):
    nonce = generate_nonce()
    store.set(nonce, alice_request)

    assert cli.main(["confirm-nonce", "--nonce", nonce.hex()]) == 0
    assert len(sender.sent) == 1
    assert store.get(nonce) is None


def test_confirm_unknown_nonce_fails(services, sender):
    assert cli.main(["confirm-nonce", "--nonce", generate_nonce().hex()]) == 1
    assert sender.sent == []


def test_confirm_malformed_nonce_is_rejected(services):
    assert cli.main(["confirm-nonce", "--nonce", "not-hex"]) == 2


def test_startup_failure_is_reported(monkeypatch):
    def broken(settings):
        raise GpgError("PRIVATE_KEY_PATH must point to the service's secret key")

    monkeypatch.setattr(cli, "build_services", broken)
    assert cli.main(["confirm-nonce", "--nonce", "00" * 32]) == 1
