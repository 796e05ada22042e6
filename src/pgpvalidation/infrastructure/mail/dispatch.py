"""Render outgoing mails and hand them to delivery."""

from __future__ import annotations

import time
from email.utils import parseaddr
from pathlib import Path
from typing import Optional

from loguru import logger

from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.application.ports.mail_sender import MailSender
from pgpvalidation.domain.entities.outgoing_mail import OutgoingMail
from pgpvalidation.infrastructure.mail.pgp_mime import render_outgoing_mail


class OutgoingMailDispatcher:
    """Encrypts outgoing mails, keeps a copy in the outbox and relays them.

    Either destination is optional. Delivery is attempted once; a failure
    is logged and reported through the return value of :meth:`dispatch`.
    """

    def __init__(
        self,
        gpg: GpgUtility,
        sender: Optional[MailSender] = None,
        outbox_dir: Optional[str | Path] = None,
    ):
        self.gpg = gpg
        self.sender = sender
        self.outbox_dir = Path(outbox_dir) if outbox_dir else None
        if self.outbox_dir:
            self.outbox_dir.mkdir(parents=True, exist_ok=True)

    def outbox_path(self, kind: str, recipient: str) -> Path:
        return self.outbox_dir / f"{kind}_{int(time.time())}_{recipient}.eml"

    def dispatch(self, mail: OutgoingMail, kind: str) -> bool:
        """Deliver ``mail``; returns True only if every configured destination succeeded."""
        try:
            content = render_outgoing_mail(mail, self.gpg)
        except Exception as e:
            logger.error(f"Cannot create {kind} mail to {mail.recipient_email}: {e}")
            return False

        if self.outbox_dir:
            path = self.outbox_path(kind, mail.recipient_email)
            try:
                path.write_bytes(content)
            except OSError as e:
                logger.error(f"Cannot write {kind} mail to {path}: {e}")
                return False
            logger.info(f"Wrote {kind} mail to {path}")

        if self.sender:
            _, sender_address = parseaddr(self.gpg.server_identity)
            try:
                self.sender.send_mail(sender=sender_address, recipients=[mail.recipient_email], content=content)
            except Exception as e:
                logger.error(f"Cannot send {kind} mail to {mail.recipient_email}: {e}")
                return False
            logger.info(f"Sent {kind} mail to {mail.recipient_email}")

        return True
