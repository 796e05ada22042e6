"""Turn a verified key-validation request into per-identity challenges."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import BinaryIO, Callable, Optional, Union

from loguru import logger

from pgpvalidation.application.mime.parser import MimeParser
from pgpvalidation.application.nonce import generate_nonce, nonce_to_string
from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.application.ports.request_store import RequestStore
from pgpvalidation.domain.entities.key import Key
from pgpvalidation.domain.entities.outgoing_mail import OutgoingMail
from pgpvalidation.domain.entities.request_info import RequestInfo
from pgpvalidation.domain.errors import GpgError, MimeParseError

CHALLENGE_MESSAGE = """\
Hello,

someone asked to have the OpenPGP key {fingerprint}
certified for the address {email}.

If this was you, confirm with the following token:

    {nonce}
{confirm_line}
If you did not ask for this, ignore this mail and nothing will happen.
"""


def challenge_message(nonce: str, key: Key, email: str, confirm_base_url: Optional[str] = None) -> str:
    confirm_line = ""
    if confirm_base_url:
        confirm_line = f"\nor open this link:\n\n    {confirm_base_url.rstrip('/')}/confirm/{nonce}\n"
    return CHALLENGE_MESSAGE.format(
        fingerprint=key.fingerprint,
        email=email,
        nonce=nonce,
        confirm_line=confirm_line,
    )


class HandleMailUseCase:
    """Issue one challenge per email identity of a verified request.

    Flow:
    1. Parse the raw mail, verifying PGP/MIME signatures and decrypting
    2. Drop it silently unless a signer key was verified
    3. For each identity of the signer key: fresh nonce, persist the
       request under it, build a challenge mail to that identity

    Delivering the returned mails is the caller's job; each one is
    independent of the others.
    """

    def __init__(
        self,
        gpg: GpgUtility,
        store: RequestStore,
        parser: Optional[MimeParser] = None,
        confirm_base_url: Optional[str] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.gpg = gpg
        self.store = store
        self.parser = parser or MimeParser(gpg)
        self.confirm_base_url = confirm_base_url
        self.now = now

    def run(self, raw_mail: Union[bytes, BinaryIO]) -> list[OutgoingMail]:
        try:
            entity = self.parser.parse_mail(raw_mail)
        except (MimeParseError, GpgError) as e:
            logger.error(f"Cannot handle mail: {e}")
            return []

        request_key = entity.signed_by
        if request_key is None:
            logger.info(f"Dropping mail without valid signature (From: {entity.sender or 'unknown'})")
            return []

        logger.info(f"Mail has valid signature of key {request_key.key_id}")
        responses: list[OutgoingMail] = []
        seen: set[str] = set()
        for email in request_key.emails:
            if email.lower() in seen:
                continue
            seen.add(email.lower())
            responses.append(self._challenge(request_key, email))
        return responses

    def _challenge(self, key: Key, email: str) -> OutgoingMail:
        nonce = generate_nonce()
        self.store.set(nonce, RequestInfo(key=key, email=email, timestamp=self.now()))
        nonce_hex = nonce_to_string(nonce)
        logger.info(f"Issued challenge {nonce_hex} to {email}")
        return OutgoingMail(
            message=challenge_message(nonce_hex, key, email, self.confirm_base_url),
            recipient_email=email,
            recipient_key=key,
        )
