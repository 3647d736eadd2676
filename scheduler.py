"""Scheduling utilities for delayed schedule reload attempts."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.date import DateTrigger

LOGGER = logging.getLogger(__name__)


class RetryScheduler:
    """Wrap APScheduler to run one-off retry jobs after a delay."""

    def __init__(self, timezone: str) -> None:
        self._scheduler = BackgroundScheduler(timezone=timezone)
        self._retry_job_id: Optional[str] = None

    def start(self) -> None:
        if not self._scheduler.running:
            LOGGER.info("Starting background scheduler")
            self._scheduler.start()

    def shutdown(self) -> None:
        if self._scheduler.running:
            LOGGER.info("Stopping background scheduler")
            self._scheduler.shutdown(wait=False)

    @property
    def timezone(self) -> str:
        tzinfo = self._scheduler.timezone
        zone = getattr(tzinfo, "zone", None)
        return str(zone or tzinfo)

    @property
    def pending_retry(self) -> bool:
        return self._retry_job_id is not None

    def schedule_retry(self, delay_seconds: float, callback: Callable[[], None]) -> None:
        """Run *callback* once after *delay_seconds*, replacing a pending retry."""
        if self._retry_job_id:
            with suppress_not_found():
                self._scheduler.remove_job(self._retry_job_id)
            self._retry_job_id = None

        run_date = datetime.now(self._scheduler.timezone) + timedelta(seconds=delay_seconds)
        job = self._scheduler.add_job(self._run_retry, trigger=DateTrigger(run_date=run_date), args=[callback])
        LOGGER.debug("Scheduled retry job %s at %s", job.id, run_date)
        self._retry_job_id = job.id

    def _run_retry(self, callback: Callable[[], None]) -> None:
        self._retry_job_id = None
        callback()


class suppress_not_found:
    """Context manager that suppresses APScheduler job lookup errors."""

    def __enter__(self) -> None:  # pragma: no cover - trivial
        return None

    def __exit__(self, exc_type, exc, tb) -> bool:  # pragma: no cover - trivial
        from apscheduler.jobstores.base import JobLookupError

        if exc_type is None:
            return False
        return isinstance(exc, JobLookupError)
