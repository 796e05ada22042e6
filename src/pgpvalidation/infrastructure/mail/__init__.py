"""Outgoing mail construction and delivery."""

from pgpvalidation.infrastructure.mail.dispatch import OutgoingMailDispatcher
from pgpvalidation.infrastructure.mail.pgp_mime import build_encrypted_mail, render_outgoing_mail
from pgpvalidation.infrastructure.mail.smtp_sender import SmtpMailSender

__all__ = [
    "OutgoingMailDispatcher",
    "SmtpMailSender",
    "build_encrypted_mail",
    "render_outgoing_mail",
]
