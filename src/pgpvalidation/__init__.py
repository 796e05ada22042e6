"""OpenPGP key validation service.

Proves over email that a requester controls both a mailbox and an OpenPGP
key bound to it, then countersigns the matching user-ID with the service key.
"""

__version__ = "0.1.0"
