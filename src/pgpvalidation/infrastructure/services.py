"""Wiring of the service components from settings."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from loguru import logger

from pgpvalidation.application.mime.parser import MimeParser
from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.application.ports.request_store import RequestStore
from pgpvalidation.application.use_cases.confirm_nonce import ConfirmNonceUseCase
from pgpvalidation.application.use_cases.handle_mail import HandleMailUseCase
from pgpvalidation.domain.errors import GpgError
from pgpvalidation.infrastructure.confirmation_worker import ConfirmationWorker
from pgpvalidation.infrastructure.gpg.gnupg_utility import GnupgUtility
from pgpvalidation.infrastructure.mail.dispatch import OutgoingMailDispatcher
from pgpvalidation.infrastructure.mail.smtp_sender import SmtpMailSender
from pgpvalidation.infrastructure.settings import Settings
from pgpvalidation.infrastructure.stores import create_store


@dataclass
class Services:
    """Everything the CLI and the HTTP listener need, built once."""

    gpg: GpgUtility
    store: RequestStore
    handle_mail: HandleMailUseCase
    confirm_nonce: ConfirmNonceUseCase
    dispatcher: OutgoingMailDispatcher
    worker: ConfirmationWorker


def create_gpg(settings: Settings) -> GnupgUtility:
    if settings.private_key_path is None:
        raise GpgError("PRIVATE_KEY_PATH must point to the service's secret key")
    return GnupgUtility(
        gnupg_home=settings.gnupg_home,
        private_key_path=settings.private_key_path,
        passphrase=settings.passphrase.get_secret_value(),
        policy_url=settings.policy_url,
        gpg_binary=settings.gpg_binary,
    )


def build_services(
    settings: Settings,
    gpg: GpgUtility | None = None,
    store: RequestStore | None = None,
) -> Services:
    gpg = gpg or create_gpg(settings)
    store = store or create_store(settings.storage_type, settings)

    sender = SmtpMailSender(settings.smtp_host, settings.smtp_port) if settings.smtp_enabled else None
    if sender is None and settings.outbox_dir is None:
        logger.warning("Neither SMTP_HOST nor OUTBOX_DIR configured, outgoing mail is discarded")
    dispatcher = OutgoingMailDispatcher(gpg, sender=sender, outbox_dir=settings.outbox_dir)

    nonce_ttl = timedelta(seconds=settings.nonce_ttl_seconds) if settings.nonce_ttl_seconds else None
    handle_mail = HandleMailUseCase(
        gpg,
        store,
        parser=MimeParser(gpg, inline_attachments=settings.inline_attachments),
        confirm_base_url=settings.confirm_base_url,
    )
    confirm_nonce = ConfirmNonceUseCase(gpg, store, nonce_ttl=nonce_ttl)

    return Services(
        gpg=gpg,
        store=store,
        handle_mail=handle_mail,
        confirm_nonce=confirm_nonce,
        dispatcher=dispatcher,
        worker=ConfirmationWorker(confirm_nonce, dispatcher),
    )
