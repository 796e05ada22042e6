"""Infrastructure layer - configuration, GnuPG, request stores and outgoing mail."""

from pgpvalidation.infrastructure.services import Services, build_services, create_gpg
from pgpvalidation.infrastructure.settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Wiring
    "Services",
    "build_services",
    "create_gpg",
]
