"""Contracts for the collaborators the core consumes."""

from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.application.ports.mail_sender import MailSender
from pgpvalidation.application.ports.request_store import RequestStore

__all__ = [
    "GpgUtility",
    "MailSender",
    "RequestStore",
]
