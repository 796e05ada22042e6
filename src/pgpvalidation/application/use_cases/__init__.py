"""Nonce protocol use cases."""

from pgpvalidation.application.use_cases.confirm_nonce import ConfirmNonceUseCase
from pgpvalidation.application.use_cases.handle_mail import HandleMailUseCase

__all__ = [
    "ConfirmNonceUseCase",
    "HandleMailUseCase",
]
