"""Relay outgoing mail through a single SMTP server."""

from __future__ import annotations

import smtplib

from loguru import logger


class SmtpMailSender:
    def __init__(self, host: str, port: int = 25, timeout: float = 30.0):
        self.host = host
        self.port = port
        self.timeout = timeout

    def send_mail(self, *, sender: str, recipients: list[str], content: bytes) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.sendmail(sender, recipients, content)
        logger.debug(f"Relayed mail to {', '.join(recipients)} via {self.host}:{self.port}")
