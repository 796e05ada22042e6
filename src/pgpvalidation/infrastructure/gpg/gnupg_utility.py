"""GPG capability backed by a GnuPG home directory via python-gnupg."""

from __future__ import annotations

import json
import os
import subprocess
import tempfile
from datetime import date
from email.utils import parseaddr
from pathlib import Path

import gnupg
from loguru import logger

from pgpvalidation.domain.entities.key import Identity, Key
from pgpvalidation.domain.errors import GpgError

VALIDATION_NOTATION = "validation@openpgp-email.org"
VALIDATION_APPROACH = "enc-email-click"
CERTIFICATION_LIFETIME_DAYS = 396  # ~13 months


def validation_notation(email: str, today: date | None = None) -> str:
    """JSON notation value attached to every user-ID certification."""
    today = today or date.today()
    return json.dumps(
        {
            "validation": {
                "validations": [
                    {"date": today.isoformat(), "approach": VALIDATION_APPROACH, "email": email},
                ]
            }
        },
        separators=(",", ":"),
    )


def identity_from_uid(uid: str) -> Identity:
    _, address = parseaddr(uid)
    return Identity(uid=uid, email=address if "@" in address else "")


class GnupgUtility:
    """OpenPGP operations on behalf of the service key.

    Args:
        gnupg_home: Keyring directory; created if missing. Request keys are
             imported into it as they are read.
        private_key_path: Armored or binary secret key of the service.
        passphrase: Passphrase protecting the service key.
        policy_url: Policy URL embedded in user-ID certifications.
    """

    def __init__(
        self,
        gnupg_home: str | Path,
        private_key_path: str | Path,
        passphrase: str = "",
        policy_url: str = "",
        gpg_binary: str = "gpg",
    ):
        self.gnupg_home = Path(gnupg_home)
        self.gnupg_home.mkdir(parents=True, exist_ok=True, mode=0o700)
        self.passphrase = passphrase
        self.policy_url = policy_url
        self.gpg = gnupg.GPG(gnupghome=str(self.gnupg_home), gpgbinary=gpg_binary)
        self.gpg.encoding = "utf-8"

        result = self.gpg.import_keys(Path(private_key_path).read_bytes(), passphrase=passphrase)
        if not result.fingerprints:
            raise GpgError(f"Cannot import service key from {private_key_path}: {result.stderr}")
        self.fingerprint = result.fingerprints[0]

        secret_keys = self.gpg.list_keys(secret=True, keys=[self.fingerprint])
        if not secret_keys:
            raise GpgError(f"Service key {self.fingerprint} has no secret part")
        uids = secret_keys[0]["uids"]
        self._server_identity = uids[0] if uids else ""
        logger.info(f"Loaded service key {self.fingerprint} ({self._server_identity})")

    @property
    def server_identity(self) -> str:
        return self._server_identity

    def read_key(self, data: bytes) -> Key:
        result = self.gpg.import_keys(data)
        if not result.fingerprints:
            raise GpgError(f"Cannot read key: {result.stderr.strip() or 'no key found'}")
        return self._load_key(result.fingerprints[0])

    def _load_key(self, fingerprint: str) -> Key:
        listed = self.gpg.list_keys(keys=[fingerprint])
        if not listed:
            raise GpgError(f"Key {fingerprint} is not in the keyring")
        armored = self.gpg.export_keys(fingerprint, armor=True)
        return Key(
            fingerprint=listed[0]["fingerprint"],
            identities=tuple(identity_from_uid(uid) for uid in listed[0]["uids"]),
            data=armored.encode("ascii"),
        )

    def _ensure_imported(self, key: Key) -> None:
        if not self.gpg.list_keys(keys=[key.fingerprint]):
            self.read_key(key.data)

    def _is_signed_by(self, result, key: Key) -> bool:
        signer = (result.pubkey_fingerprint or result.fingerprint or "").upper()
        return bool(result.valid) and signer == key.fingerprint.upper()

    def check_message_signature(self, message: bytes, signature: bytes, signer_key: Key) -> None:
        self._ensure_imported(signer_key)
        # verify_data only takes the detached signature from a file
        with tempfile.NamedTemporaryFile(suffix=".asc", delete=False) as sig_file:
            sig_file.write(signature)
        try:
            verified = self.gpg.verify_data(sig_file.name, message)
        finally:
            os.unlink(sig_file.name)

        if not self._is_signed_by(verified, signer_key):
            raise GpgError(f"Invalid signature for key {signer_key.key_id}: {verified.status}")

    def encrypt_message(self, plaintext: bytes, recipient_key: Key) -> bytes:
        self._ensure_imported(recipient_key)
        result = self.gpg.encrypt(
            plaintext,
            [recipient_key.fingerprint],
            sign=self.fingerprint,
            passphrase=self.passphrase,
            always_trust=True,
            armor=True,
        )
        if not result.ok:
            raise GpgError(f"Cannot encrypt for key {recipient_key.key_id}: {result.status}")
        return result.data

    def decrypt_message(self, ciphertext: bytes) -> bytes:
        result = self.gpg.decrypt(ciphertext, passphrase=self.passphrase)
        if not result.ok:
            raise GpgError(f"Cannot decrypt message: {result.status}")
        return result.data

    def decrypt_signed_message(self, ciphertext: bytes, signer_key: Key) -> bytes:
        self._ensure_imported(signer_key)
        result = self.gpg.decrypt(ciphertext, passphrase=self.passphrase)
        if not result.ok:
            raise GpgError(f"Cannot decrypt message: {result.status}")
        if not self._is_signed_by(result, signer_key):
            raise GpgError(f"Message is not signed by key {signer_key.key_id}")
        return result.data

    def sign_user_id(self, email: str, key: Key) -> bytes:
        """Certify the user-ID of ``key`` carrying ``email``; returns the armored key."""
        identity = key.identity_for(email)
        if identity is None:
            raise GpgError(f"Could not find {email} in identities of key {key.key_id}")
        self._ensure_imported(key)

        # GPG.quick_sign_key certifies every user ID and takes no policy URL,
        # notation or expiry options, so gpg is driven directly
        command = [
            self.gpg.gpgbinary,
            "--batch",
            "--yes",
            "--homedir", str(self.gnupg_home),
            "--pinentry-mode", "loopback",
            "--passphrase-fd", "0",
            "--local-user", self.fingerprint,
            "--cert-policy-url", self.policy_url,
            "--cert-notation", f"{VALIDATION_NOTATION}={validation_notation(identity.email)}",
            "--default-cert-expire", f"{CERTIFICATION_LIFETIME_DAYS}d",
            "--quick-sign-key", key.fingerprint, identity.uid,
        ]
        completed = subprocess.run(
            command,
            input=(self.passphrase + "\n").encode("utf-8"),
            capture_output=True,
        )
        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            raise GpgError(f"Cannot sign identity '{identity.uid}': {stderr}")

        logger.info(f"Signed identity '{identity.uid}' of key {key.key_id}")
        return self.gpg.export_keys(key.fingerprint, armor=True).encode("ascii")
