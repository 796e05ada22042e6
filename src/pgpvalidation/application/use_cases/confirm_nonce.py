"""Countersign the identity proven by a confirmed nonce."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from loguru import logger

from pgpvalidation.application.nonce import nonce_to_string
from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.application.ports.request_store import RequestStore
from pgpvalidation.domain.entities.outgoing_mail import OutgoingMail
from pgpvalidation.domain.errors import NonceNotFoundError

SIGNED_KEY_MESSAGE = "Here is your signed key!"


class ConfirmNonceUseCase:
    """Look up a pending request and produce the signed-key response.

    The nonce stays in the store until :meth:`complete` is called, which
    callers do only once the response has been handed to delivery.
    """

    def __init__(
        self,
        gpg: GpgUtility,
        store: RequestStore,
        nonce_ttl: Optional[timedelta] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.gpg = gpg
        self.store = store
        self.nonce_ttl = nonce_ttl
        self.now = now

    def run(self, nonce: bytes) -> OutgoingMail:
        nonce_hex = nonce_to_string(nonce)
        request = self.store.get(nonce)
        if request is None:
            raise NonceNotFoundError(f"Nonce {nonce_hex} not found.")

        if self.nonce_ttl is not None and self.now() - request.timestamp > self.nonce_ttl:
            self.store.delete(nonce)
            raise NonceNotFoundError(f"Nonce {nonce_hex} expired.")

        logger.info(f"Correct nonce received for identity '{request.email}' of key {request.key.key_id}")
        signed_key = self.gpg.sign_user_id(request.email, request.key)
        return OutgoingMail(
            message=SIGNED_KEY_MESSAGE,
            recipient_email=request.email,
            recipient_key=request.key,
            attachment=signed_key,
        )

    def complete(self, nonce: bytes) -> None:
        """Consume the nonce after its response was dispatched."""
        logger.info(f"Deleting nonce {nonce_to_string(nonce)} after signed key has been sent")
        self.store.delete(nonce)
