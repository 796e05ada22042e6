"""Application layer - MIME parsing, nonce protocol and collaborator ports."""

from pgpvalidation.application.mime import MimeParser
from pgpvalidation.application.use_cases import ConfirmNonceUseCase, HandleMailUseCase

__all__ = [
    "MimeParser",
    "ConfirmNonceUseCase",
    "HandleMailUseCase",
]
