"""
Automatic cancellation of late preorder reservations.

A subscriber holding a ``preorder`` reservation who is more than the grace
threshold late (15 minutes by default) loses the reservation and the spot is
given back. Each pass reads the late candidates first and then moves each one
in its own unit of work; the snapshot may be stale by the time a candidate is
processed, which the conditional update in the transition absorbs.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from sqlalchemy.orm import Session, sessionmaker

from parking.config import DEFAULT_LATE_THRESHOLD_MINUTES
from parking.crud import reservation as reservation_crud
from parking.models.reservation import ReservationStatus
from parking.services.transition_executor import StorageFaultError, transition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileResult:
    scanned_count: int = 0
    cancelled_count: int = 0
    failed_count: int = 0
    notified_count: int = 0
    interrupted: bool = False


class LateReservationReconciler:
    """Cancels preorder reservations whose subscriber did not show up in time."""

    def __init__(
        self,
        session_factory: sessionmaker,
        notifier=None,
        threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.session_factory = session_factory
        self.notifier = notifier
        self.threshold_minutes = threshold_minutes
        self.clock = clock

    def reconcile_once(
        self,
        threshold_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> ReconcileResult:
        """
        Run one reconciliation pass.

        Args:
            threshold_minutes: Grace period, defaults to the configured one
            now: Reference time, defaults to the reconciler clock
            should_stop: Checked between candidates to end the pass early

        Returns:
            ReconcileResult; ``cancelled_count`` only counts reservations this
            pass actually moved

        Raises:
            SQLAlchemyError: the candidate scan itself failed
        """
        threshold = (
            self.threshold_minutes if threshold_minutes is None else threshold_minutes
        )
        now = now or self.clock()

        with self.session_factory() as db:
            candidates = reservation_crud.get_late_preorders(db, now, threshold)

        cancelled = failed = notified = 0
        interrupted = False

        for row in candidates:
            if should_stop is not None and should_stop():
                interrupted = True
                logger.info("Auto-cancellation pass interrupted by shutdown")
                break

            minutes_late = int((now - row.estimated_start_time).total_seconds() // 60)

            try:
                with self.session_factory() as db:
                    result = self._cancel_late_reservation(db, row.id, row.spot_id)
            except StorageFaultError as e:
                failed += 1
                logger.error(f"Skipping late reservation {row.id}: {e}")
                continue

            if not result.applied:
                # Activated or cancelled by someone else since the scan
                continue

            cancelled += 1
            logger.info(
                f"AUTO-CANCELLED: Reservation {row.id} for {row.username} "
                f"(Spot {row.spot_id}) - {minutes_late} minutes late"
            )

            if self._notify(row):
                notified += 1

        if cancelled > 0:
            logger.info(
                f"Auto-cancellation completed: {cancelled} preorder reservations "
                f"cancelled, {cancelled} spots freed, {notified} notifications queued"
            )

        return ReconcileResult(
            scanned_count=len(candidates),
            cancelled_count=cancelled,
            failed_count=failed,
            notified_count=notified,
            interrupted=interrupted,
        )

    def _cancel_late_reservation(self, db: Session, reservation_id: int, spot_id: int):
        return transition(
            db,
            reservation_id,
            ReservationStatus.PREORDER,
            ReservationStatus.CANCELLED,
            spot_id=spot_id,
        )

    def _notify(self, row) -> bool:
        if self.notifier is None:
            return False

        if not row.email or not row.name:
            logger.warning(
                f"Reservation {row.id}: subscriber {row.username} has no email "
                f"or name, cancellation notice not sent"
            )
            return False

        try:
            self.notifier.notify_cancelled(row.email, row.name, row.id)
        except Exception as e:
            # The cancellation is committed; a notice failure must not undo it
            logger.error(
                f"Cancellation notice for reservation {row.id} failed: {e}"
            )
            return False
        return True
