"""
Periodic trigger for the late-reservation reconciler.

One daemon worker thread runs a pass immediately on start and then once per
interval. Passes never overlap: :meth:`AutoCancellationScheduler.run_pass` is a
single-slot runner, so a manual trigger arriving while the periodic pass runs
is skipped instead of starting a second pass.
"""

import logging
import threading
import time
from datetime import datetime
from typing import Callable, Optional

from parking.config import (
    DEFAULT_AUTO_CANCEL_INTERVAL_SECONDS,
    DEFAULT_LATE_THRESHOLD_MINUTES,
)
from parking.services.reconciler import LateReservationReconciler, ReconcileResult

logger = logging.getLogger(__name__)


class AutoCancellationScheduler:
    def __init__(
        self,
        reconciler: LateReservationReconciler,
        interval_seconds: float = DEFAULT_AUTO_CANCEL_INTERVAL_SECONDS,
        threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES,
        stop_timeout_seconds: float = 5.0,
        notifier=None,
    ):
        self.reconciler = reconciler
        self.interval_seconds = interval_seconds
        self.threshold_minutes = threshold_minutes
        self.stop_timeout_seconds = stop_timeout_seconds
        self.notifier = notifier

        self._state_lock = threading.Lock()
        self._pass_lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.total_passes = 0
        self.total_cancelled = 0
        self.last_pass_started_at: Optional[datetime] = None
        self.last_pass_finished_at: Optional[datetime] = None
        self.last_result: Optional[ReconcileResult] = None
        self.last_error: Optional[str] = None

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return (
            thread is not None and thread.is_alive() and not self._stop_event.is_set()
        )

    @property
    def pass_in_progress(self) -> bool:
        return self._pass_lock.locked()

    def start(self) -> bool:
        """Start the periodic passes. Returns False if already running."""
        with self._state_lock:
            if self.is_running:
                logger.info("Auto-cancellation service is already running")
                return False

            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_loop,
                args=(self._stop_event,),
                name="auto-cancellation",
                daemon=True,
            )
            self._thread.start()

        logger.info(
            f"Auto-cancellation service started: checking every "
            f"{self.interval_seconds:g}s for preorders "
            f"{self.threshold_minutes}+ minutes late"
        )
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Stop scheduling passes and wait for the in-flight one.

        The running pass is asked to stop between reservations. Returns False
        when the worker did not finish within ``timeout`` seconds; the daemon
        worker is then abandoned.
        """
        timeout = self.stop_timeout_seconds if timeout is None else timeout

        with self._state_lock:
            thread = self._thread
            self._stop_event.set()

        if thread is None:
            return True

        if thread is not threading.current_thread():
            thread.join(timeout)

        if thread.is_alive():
            logger.warning(
                f"Auto-cancellation pass still running after {timeout:g}s, "
                f"abandoning worker thread"
            )
            return False

        with self._state_lock:
            if self._thread is thread:
                self._thread = None
        logger.info("Auto-cancellation service stopped")
        return True

    def shutdown(self, timeout: Optional[float] = None) -> bool:
        stopped = self.stop(timeout)
        if self.notifier is not None:
            self.notifier.shutdown(wait=stopped)
        return stopped

    def run_pass(
        self, should_stop: Optional[Callable[[], bool]] = None
    ) -> Optional[ReconcileResult]:
        """
        Run one reconciliation pass now unless one is already in flight.

        Returns the pass result, or None when the pass was skipped or failed.
        Errors are logged and never propagate.
        """
        if not self._pass_lock.acquire(blocking=False):
            logger.info("Auto-cancellation pass already in progress, skipping")
            return None

        try:
            self.last_pass_started_at = datetime.now()
            try:
                result = self.reconciler.reconcile_once(
                    threshold_minutes=self.threshold_minutes,
                    should_stop=should_stop,
                )
            except Exception as e:
                self.last_error = f"{type(e).__name__}: {e}"
                logger.exception("Error in auto-cancellation service")
                return None

            self.last_result = result
            self.last_error = None
            self.total_cancelled += result.cancelled_count
            return result
        finally:
            self.total_passes += 1
            self.last_pass_finished_at = datetime.now()
            self._pass_lock.release()

    def status(self) -> dict:
        return {
            "running": self.is_running,
            "interval_seconds": self.interval_seconds,
            "threshold_minutes": self.threshold_minutes,
            "pass_in_progress": self.pass_in_progress,
            "total_passes": self.total_passes,
            "total_cancelled": self.total_cancelled,
            "last_pass_started_at": self.last_pass_started_at,
            "last_pass_finished_at": self.last_pass_finished_at,
            "last_cancelled_count": (
                self.last_result.cancelled_count if self.last_result else None
            ),
            "last_error": self.last_error,
        }

    def _run_loop(self, stop_event: threading.Event):
        while not stop_event.is_set():
            started = time.monotonic()
            self.run_pass(should_stop=stop_event.is_set)
            # Fixed rate: the next tick is one interval after this one started
            elapsed = time.monotonic() - started
            stop_event.wait(max(0.0, self.interval_seconds - elapsed))
