import threading
import time

from scheduler import RetryScheduler


def test_timezone_is_reported():
    assert RetryScheduler("UTC").timezone == "UTC"


def test_retry_runs_callback_once():
    fired = threading.Event()
    calls = []

    def callback():
        calls.append("retry")
        fired.set()

    scheduler = RetryScheduler("UTC")
    scheduler.start()
    try:
        scheduler.schedule_retry(0.05, callback)
        assert scheduler.pending_retry
        assert fired.wait(5)
        time.sleep(0.1)
    finally:
        scheduler.shutdown()

    assert calls == ["retry"]
    assert not scheduler.pending_retry


def test_new_retry_replaces_pending_one():
    fired = threading.Event()
    calls = []

    def first():
        calls.append("first")

    def second():
        calls.append("second")
        fired.set()

    scheduler = RetryScheduler("UTC")
    scheduler.start()
    try:
        scheduler.schedule_retry(0.3, first)
        scheduler.schedule_retry(0.05, second)
        assert fired.wait(5)
        time.sleep(0.5)
    finally:
        scheduler.shutdown()

    assert calls == ["second"]


def test_start_and_shutdown_are_idempotent():
    scheduler = RetryScheduler("UTC")
    scheduler.start()
    scheduler.start()
    scheduler.shutdown()
    scheduler.shutdown()
    assert not scheduler.pending_retry
