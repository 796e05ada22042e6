from __future__ import annotations

from typing import Protocol


class MailSender(Protocol):
    def send_mail(self, *, sender: str, recipients: list[str], content: bytes) -> None: ...
