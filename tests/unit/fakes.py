"""Deterministic stand-ins for the GPG capability and the SMTP sender.

Keys, signatures and ciphertexts are plain-text blocks so tests can build
mails by hand and inspect what was produced.
"""

from __future__ import annotations

import base64
import hashlib
from typing import Optional

from pgpvalidation.domain.entities.key import Identity, Key
from pgpvalidation.domain.errors import GpgError
from pgpvalidation.infrastructure.gpg.gnupg_utility import identity_from_uid

SERVER_FINGERPRINT = "0" * 32 + "5E4F3A2B1C0D9E8F"
SERVER_IDENTITY = "Validation Server <validation@server.local>"


def key_block(fingerprint: str, *uids: str) -> bytes:
    lines = ["-----BEGIN FAKE KEY-----", fingerprint, *uids, "-----END FAKE KEY-----"]
    return ("\n".join(lines) + "\n").encode("utf-8")


def make_key(fingerprint: str, *uids: str) -> Key:
    return Key(
        fingerprint=fingerprint,
        identities=tuple(identity_from_uid(uid) for uid in uids),
        data=key_block(fingerprint, *uids),
    )


def _block_lines(data: bytes, kind: str) -> list[str]:
    lines = data.decode("utf-8", errors="replace").strip().splitlines()
    if len(lines) < 2 or lines[0] != f"-----BEGIN FAKE {kind}-----" or lines[-1] != f"-----END FAKE {kind}-----":
        raise GpgError(f"Not a fake {kind.lower()}")
    return lines[1:-1]


class FakeGpg:
    """In-memory GPG capability.

    Signatures are ``sha256(message)`` tagged with the signer fingerprint;
    ciphertexts are base64 plaintext tagged with the signer (if any).
    """

    def __init__(self, server_identity: str = SERVER_IDENTITY):
        self._server_identity = server_identity
        self.signed_user_ids: list[tuple[str, str]] = []
        self.encrypted_for: list[str] = []

    @property
    def server_identity(self) -> str:
        return self._server_identity

    # Test helpers

    def sign(self, message: bytes, key: Key) -> bytes:
        lines = ["-----BEGIN FAKE SIGNATURE-----", key.fingerprint, hashlib.sha256(message).hexdigest(), "-----END FAKE SIGNATURE-----"]
        return ("\n".join(lines) + "\n").encode("ascii")

    def encrypt(self, plaintext: bytes, signer: Optional[Key] = None) -> bytes:
        lines = [
            "-----BEGIN FAKE MESSAGE-----",
            signer.fingerprint if signer else "-",
            base64.b64encode(plaintext).decode("ascii"),
            "-----END FAKE MESSAGE-----",
        ]
        return ("\n".join(lines) + "\n").encode("ascii")

    # GpgUtility

    def read_key(self, data: bytes) -> Key:
        lines = _block_lines(data, "KEY")
        return make_key(lines[0], *lines[1:])

    def check_message_signature(self, message: bytes, signature: bytes, signer_key: Key) -> None:
        fingerprint, digest = _block_lines(signature, "SIGNATURE")
        if fingerprint != signer_key.fingerprint:
            raise GpgError(f"Signature made by {fingerprint}")
        if digest != hashlib.sha256(message).hexdigest():
            raise GpgError("Bad signature")

    def encrypt_message(self, plaintext: bytes, recipient_key: Key) -> bytes:
        self.encrypted_for.append(recipient_key.fingerprint)
        return self.encrypt(plaintext, make_key(SERVER_FINGERPRINT, self._server_identity))

    def _open(self, ciphertext: bytes) -> tuple[str, bytes]:
        signer, payload = _block_lines(ciphertext, "MESSAGE")
        return signer, base64.b64decode(payload)

    def decrypt_message(self, ciphertext: bytes) -> bytes:
        return self._open(ciphertext)[1]

    def decrypt_signed_message(self, ciphertext: bytes, signer_key: Key) -> bytes:
        signer, plaintext = self._open(ciphertext)
        if signer == "-":
            raise GpgError("Message is not signed")
        if signer != signer_key.fingerprint:
            raise GpgError(f"Message signed by {signer}")
        return plaintext

    def sign_user_id(self, email: str, key: Key) -> bytes:
        identity = key.identity_for(email)
        if identity is None:
            raise GpgError(f"Could not find {email} in identities of key {key.key_id}")
        self.signed_user_ids.append((key.fingerprint, identity.uid))
        return key.data + f"certified {identity.uid}\n".encode("utf-8")


class RecordingSender:
    """MailSender that keeps every envelope, optionally failing instead."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    def send_mail(self, *, sender: str, recipients: list[str], content: bytes) -> None:
        if self.fail:
            raise ConnectionRefusedError("relay unavailable")
        self.sent.append({"sender": sender, "recipients": recipients, "content": content})


def signed_mail(
    gpg: FakeGpg,
    key: Key,
    *,
    signing_key: Optional[Key] = None,
    text: str = "Please validate my key.",
    boundary: str = "signed-boundary",
    tamper: bool = False,
) -> bytes:
    """A multipart/signed request embedding ``key``, signed by ``signing_key`` (default ``key``)."""
    signed_part = (
        'Content-Type: multipart/mixed; boundary="inner"\r\n'
        "\r\n"
        "--inner\r\n"
        "Content-Type: text/plain; charset=utf-8\r\n"
        "\r\n"
        f"{text}\r\n"
        "--inner\r\n"
        'Content-Type: application/pgp-keys; name="key.asc"\r\n'
        'Content-Disposition: attachment; filename="key.asc"\r\n'
        "\r\n"
    ).encode("utf-8") + key.data.replace(b"\n", b"\r\n") + b"--inner--"
    signature = gpg.sign(signed_part + b"\r\n", signing_key or key)
    if tamper:
        signed_part = signed_part.replace(text.encode("utf-8"), text.upper().encode("utf-8"))
    return (
        f"From: {key.identities[0].uid if key.identities else 'someone@example.org'}\r\n"
        "To: validation@server.local\r\n"
        "Subject: Validate my key\r\n"
        "MIME-Version: 1.0\r\n"
        f'Content-Type: multipart/signed; boundary="{boundary}"; micalg="pgp-sha256";\r\n'
        ' protocol="application/pgp-signature"\r\n'
        "\r\n"
        "This is an OpenPGP/MIME signed message.\r\n"
        f"--{boundary}\r\n"
    ).encode("utf-8") + signed_part + (
        f"\r\n--{boundary}\r\n"
        'Content-Type: application/pgp-signature; name="signature.asc"\r\n'
        "\r\n"
    ).encode("utf-8") + signature.replace(b"\n", b"\r\n") + f"\r\n--{boundary}--\r\n".encode("utf-8")


def inner_request(key: Key, text: str = "Please validate my key.") -> bytes:
    """Plaintext request mail carrying ``key`` as it sits inside an encrypted mail."""
    return (
        "From: requester\r\n"
        'Content-Type: multipart/mixed; boundary="inner"\r\n'
        "\r\n"
        "--inner\r\n"
        "Content-Type: text/plain\r\n"
        "\r\n"
        f"{text}\r\n"
        "--inner\r\n"
        "Content-Type: application/pgp-keys\r\n"
        "Content-Disposition: attachment\r\n"
        "\r\n"
    ).encode("utf-8") + key.data + b"\r\n--inner--\r\n"


def encrypted_mail(ciphertext: bytes, boundary: str = "enc-boundary", version: str = "Version: 1") -> bytes:
    return (
        "From: requester\r\n"
        "MIME-Version: 1.0\r\n"
        f'Content-Type: multipart/encrypted; protocol="application/pgp-encrypted"; boundary="{boundary}"\r\n'
        "\r\n"
        f"--{boundary}\r\n"
        "Content-Type: application/pgp-encrypted\r\n"
        "\r\n"
        f"{version}\r\n"
        f"--{boundary}\r\n"
        'Content-Type: application/octet-stream; name="encrypted.asc"\r\n'
        'Content-Disposition: inline; filename="encrypted.asc"\r\n'
        "\r\n"
    ).encode("utf-8") + ciphertext + f"\r\n--{boundary}--\r\n".encode("utf-8")
