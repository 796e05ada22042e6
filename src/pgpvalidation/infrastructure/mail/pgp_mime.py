"""RFC 3156 construction of outgoing, encrypted and signed mails.

multipart/encrypted
+-> application/pgp-encrypted  (control information, "Version: 1")
+-> application/octet-stream   (encrypted.asc, inline)
    encrypts multipart/mixed
    +-> text/plain             (message)
    +-> application/pgp-keys   (0x<KEYID>.asc, optional)
"""

from __future__ import annotations

import io
from datetime import datetime
from email import policy
from email.encoders import encode_7or8bit
from email.generator import BytesGenerator
from email.message import Message
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import format_datetime, make_msgid, parseaddr
from typing import Optional

from pgpvalidation.application.ports.gpg_utility import GpgUtility
from pgpvalidation.domain.entities.outgoing_mail import OutgoingMail

SUBJECT = "OpenPGP Key Validation"
X_MAILER = "pgpvalidation"


def flatten(message: Message) -> bytes:
    """Serialize a message with CRLF line endings."""
    buffer = io.BytesIO()
    BytesGenerator(buffer, policy=policy.SMTP).flatten(message)
    return buffer.getvalue()


def server_domain(identity: str) -> str:
    _, address = parseaddr(identity)
    _, at, domain = address.rpartition("@")
    return domain if at and domain else "localhost"


def build_plaintext(mail: OutgoingMail) -> MIMEMultipart:
    """The multipart/mixed payload that ends up inside the ciphertext."""
    mixed = MIMEMultipart("mixed")
    mixed.attach(MIMEText(mail.message, "plain", "utf-8"))
    if mail.attachment is not None:
        keys = MIMEApplication(mail.attachment, "pgp-keys", _encoder=encode_7or8bit)
        keys.add_header(
            "Content-Disposition", "attachment", filename=f"0x{mail.recipient_key.key_id}.asc"
        )
        keys["Content-Description"] = "Your PGP Key"
        mixed.attach(keys)
    return mixed


def build_encrypted_mail(mail: OutgoingMail, gpg: GpgUtility, now: Optional[datetime] = None) -> MIMEMultipart:
    """Wrap ``mail`` as a multipart/encrypted message from the service identity."""
    now = now or datetime.now().astimezone()
    ciphertext = gpg.encrypt_message(flatten(build_plaintext(mail)), mail.recipient_key)

    control = MIMEApplication(b"Version: 1\r\n", "pgp-encrypted", _encoder=encode_7or8bit)
    control["Content-Description"] = "PGP/MIME version identification"

    encrypted = MIMEApplication(ciphertext, "octet-stream", _encoder=encode_7or8bit)
    encrypted.add_header("Content-Disposition", "inline", filename="encrypted.asc")
    encrypted["Content-Description"] = "OpenPGP encrypted message"

    message = MIMEMultipart("encrypted", protocol="application/pgp-encrypted")
    message["Date"] = format_datetime(now)
    message["From"] = gpg.server_identity
    message["To"] = mail.recipient_email
    message["Message-ID"] = make_msgid(domain=server_domain(gpg.server_identity))
    message["Subject"] = SUBJECT
    message["X-Mailer"] = X_MAILER
    message["Content-Description"] = "OpenPGP encrypted message"
    message.attach(control)
    message.attach(encrypted)
    return message


def render_outgoing_mail(mail: OutgoingMail, gpg: GpgUtility, now: Optional[datetime] = None) -> bytes:
    return flatten(build_encrypted_mail(mail, gpg, now))
