"""
Tests for the periodic auto-cancellation scheduler.
"""
import threading
import time

import pytest

from parking.services.reconciler import ReconcileResult
from parking.services.scheduler import AutoCancellationScheduler


class FakeReconciler:
    """Counts passes; optional behaviour per call"""

    def __init__(self, behaviour=None):
        self.calls = 0
        self.thresholds = []
        self.called = threading.Event()
        self.behaviour = behaviour

    def reconcile_once(self, threshold_minutes=None, now=None, should_stop=None):
        self.calls += 1
        self.thresholds.append(threshold_minutes)
        self.called.set()
        if self.behaviour is not None:
            return self.behaviour(self.calls, should_stop)
        return ReconcileResult(scanned_count=1, cancelled_count=1)


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def scheduler_factory():
    created = []

    def _make(reconciler, **kwargs):
        scheduler = AutoCancellationScheduler(reconciler, **kwargs)
        created.append(scheduler)
        return scheduler

    yield _make

    for scheduler in created:
        scheduler.stop(timeout=1)


def test_first_pass_runs_immediately(scheduler_factory):
    reconciler = FakeReconciler()
    scheduler = scheduler_factory(reconciler, interval_seconds=60, threshold_minutes=15)

    assert scheduler.start() is True

    assert reconciler.called.wait(2)
    assert reconciler.thresholds[0] == 15


def test_start_is_idempotent(scheduler_factory):
    scheduler = scheduler_factory(FakeReconciler(), interval_seconds=60)

    assert scheduler.start() is True
    assert scheduler.start() is False
    assert scheduler.is_running is True

    assert scheduler.stop() is True
    assert scheduler.is_running is False


def test_can_restart_after_stop(scheduler_factory):
    reconciler = FakeReconciler()
    scheduler = scheduler_factory(reconciler, interval_seconds=60)

    scheduler.start()
    assert _wait_for(lambda: reconciler.calls == 1)
    scheduler.stop()

    assert scheduler.start() is True
    assert _wait_for(lambda: reconciler.calls == 2)


def test_runs_periodically(scheduler_factory):
    reconciler = FakeReconciler()
    scheduler = scheduler_factory(reconciler, interval_seconds=0.02)

    scheduler.start()

    assert _wait_for(lambda: reconciler.calls >= 3)
    assert scheduler.total_cancelled >= 3


def test_failing_pass_does_not_stop_schedule(scheduler_factory):
    def fail_first(call, should_stop):
        if call == 1:
            raise RuntimeError("database unreachable")
        return ReconcileResult()

    reconciler = FakeReconciler(fail_first)
    scheduler = scheduler_factory(reconciler, interval_seconds=0.02)

    scheduler.start()

    assert _wait_for(lambda: reconciler.calls >= 3)
    assert scheduler.is_running is True
    assert _wait_for(lambda: scheduler.last_error is None)


def test_failed_pass_is_reported_in_status(scheduler_factory):
    def always_fail(call, should_stop):
        raise RuntimeError("database unreachable")

    scheduler = scheduler_factory(FakeReconciler(always_fail))

    assert scheduler.run_pass() is None

    status = scheduler.status()
    assert status["last_error"] == "RuntimeError: database unreachable"
    assert status["total_passes"] == 1


def test_passes_never_overlap(scheduler_factory):
    release = threading.Event()
    entered = threading.Event()

    def blocking(call, should_stop):
        entered.set()
        release.wait(2)
        return ReconcileResult(cancelled_count=1)

    reconciler = FakeReconciler(blocking)
    scheduler = scheduler_factory(reconciler)

    worker = threading.Thread(target=scheduler.run_pass)
    worker.start()
    assert entered.wait(2)

    # A second trigger while the first pass is in flight is skipped
    assert scheduler.pass_in_progress is True
    assert scheduler.run_pass() is None
    assert reconciler.calls == 1

    release.set()
    worker.join(2)
    assert scheduler.pass_in_progress is False
    assert scheduler.total_cancelled == 1


def test_stop_interrupts_pass_cooperatively(scheduler_factory):
    started = threading.Event()

    def long_pass(call, should_stop):
        started.set()
        while not should_stop():
            time.sleep(0.01)
        return ReconcileResult(interrupted=True)

    scheduler = scheduler_factory(FakeReconciler(long_pass), interval_seconds=60)
    scheduler.start()
    assert started.wait(2)

    assert scheduler.stop(timeout=2) is True
    assert scheduler.last_result.interrupted is True


def test_stop_wait_is_bounded(scheduler_factory):
    started = threading.Event()
    release = threading.Event()

    def stuck_pass(call, should_stop):
        started.set()
        release.wait(5)
        return ReconcileResult()

    scheduler = scheduler_factory(FakeReconciler(stuck_pass), interval_seconds=60)
    scheduler.start()
    assert started.wait(2)

    begin = time.monotonic()
    assert scheduler.stop(timeout=0.1) is False
    assert time.monotonic() - begin < 1.0

    release.set()


def test_stop_without_start():
    scheduler = AutoCancellationScheduler(FakeReconciler())

    assert scheduler.stop() is True


def test_shutdown_stops_notifier(scheduler_factory, notifier):
    calls = []
    notifier.shutdown = lambda wait=True: calls.append(wait)
    scheduler = scheduler_factory(FakeReconciler(), notifier=notifier)

    scheduler.start()
    assert scheduler.shutdown(timeout=1) is True
    assert calls == [True]
