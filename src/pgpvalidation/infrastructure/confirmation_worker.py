"""Single consumer of confirmed nonces."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from typing import Optional

from loguru import logger

from pgpvalidation.application.nonce import nonce_to_string
from pgpvalidation.application.use_cases.confirm_nonce import ConfirmNonceUseCase
from pgpvalidation.domain.errors import ValidationError
from pgpvalidation.infrastructure.mail.dispatch import OutgoingMailDispatcher

_STOP = object()


@dataclass
class WorkerStats:
    """Track worker statistics."""

    confirmed: int = 0
    failed: int = 0


def confirm_and_dispatch(
    use_case: ConfirmNonceUseCase, dispatcher: OutgoingMailDispatcher, nonce: bytes
) -> bool:
    """Confirm ``nonce``, send the signed key and consume the nonce once sent.

    Returns True when the signed key was dispatched.
    """
    try:
        response = use_case.run(nonce)
    except ValidationError as e:
        logger.warning(f"Cannot confirm nonce {nonce_to_string(nonce)}: {e}")
        return False

    if not dispatcher.dispatch(response, "signature"):
        logger.error(f"Keeping nonce {nonce_to_string(nonce)}, signed key was not sent")
        return False
    use_case.complete(nonce)
    return True


class ConfirmationWorker:
    """Processes confirmed nonces one at a time on a background thread.

    The HTTP listener only validates the nonce format and enqueues it;
    lookup, signing, delivery and deletion all happen here, in order.
    """

    def __init__(self, use_case: ConfirmNonceUseCase, dispatcher: OutgoingMailDispatcher):
        self.use_case = use_case
        self.dispatcher = dispatcher
        self.stats = WorkerStats()
        self._queue: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None

    def submit(self, nonce: bytes) -> None:
        self._queue.put(bytes(nonce))

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._thread = threading.Thread(target=self.run, name="confirmation-worker", daemon=True)
        self._thread.start()
        logger.info("Confirmation worker started")

    def stop(self, timeout: float = 10.0) -> None:
        if not self._thread:
            return
        self._queue.put(_STOP)
        self._thread.join(timeout)
        self._thread = None
        logger.info(f"Confirmation worker stopped ({self.stats.confirmed} confirmed, {self.stats.failed} failed)")

    def join(self) -> None:
        """Block until every submitted nonce has been processed."""
        self._queue.join()

    def run(self) -> None:
        while True:
            nonce = self._queue.get()
            try:
                if nonce is _STOP:
                    return
                self.process(nonce)
            finally:
                self._queue.task_done()

    def process(self, nonce: bytes) -> bool:
        try:
            confirmed = confirm_and_dispatch(self.use_case, self.dispatcher, nonce)
        except Exception:
            logger.exception(f"Unexpected error confirming nonce {nonce_to_string(nonce)}")
            confirmed = False
        if confirmed:
            self.stats.confirmed += 1
        else:
            self.stats.failed += 1
        return confirmed
