"""
Best-effort delivery of "reservation cancelled" notices.

Sending happens on a small worker pool so that a slow or failing SMTP server
never holds up a reconciliation pass. Failures are logged and dropped: the
cancellation is already committed when a notice is queued.
"""

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from parking.services.email import EmailService

logger = logging.getLogger(__name__)


class CancellationNotifier:
    def __init__(self, email_service: Optional[EmailService] = None, workers: int = 2):
        self.email_service = email_service or EmailService()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="notifier"
        )

    def notify_cancelled(
        self, recipient_contact: str, recipient_name: str, reservation_id: int
    ) -> Optional[Future]:
        """Queue a cancellation email. Never raises."""
        try:
            future = self._executor.submit(
                self.email_service.send_reservation_cancelled,
                recipient_contact,
                recipient_name,
                str(reservation_id),
            )
        except RuntimeError as e:
            # Executor already shut down
            logger.error(
                f"Could not queue cancellation notice for reservation "
                f"{reservation_id}: {e}"
            )
            return None

        future.add_done_callback(
            lambda f: self._log_outcome(f, reservation_id, recipient_contact)
        )
        return future

    @staticmethod
    def _log_outcome(future: Future, reservation_id: int, recipient_contact: str):
        error = future.exception()
        if error is not None:
            logger.error(
                f"Cancellation notice for reservation {reservation_id} "
                f"to {recipient_contact} failed: {error}"
            )
        elif not future.result():
            logger.warning(
                f"Cancellation notice for reservation {reservation_id} "
                f"to {recipient_contact} was not delivered"
            )

    def shutdown(self, wait: bool = True):
        self._executor.shutdown(wait=wait)
