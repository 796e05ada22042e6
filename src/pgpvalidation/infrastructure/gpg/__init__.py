"""GnuPG-backed implementation of the GPG capability."""

from pgpvalidation.infrastructure.gpg.gnupg_utility import GnupgUtility, validation_notation

__all__ = [
    "GnupgUtility",
    "validation_notation",
]
