from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError

from simpligest.services.notification_service import run_daily_summary

logger = logging.getLogger(__name__)

_SCHEDULED_JOB_EXCEPTIONS = (OSError, RuntimeError, ValueError, SQLAlchemyError)


@dataclass
class ScheduledJob:
    name: str
    interval: timedelta
    func: Callable[[], object]
    run_in_thread: bool = False
    next_run: Optional[datetime] = None
    running: bool = False


class Scheduler:
    """Polling scheduler; each job decides by itself whether there is work to do."""

    def __init__(self, *, timezone_mode: str = "local", poll_seconds: int = 1):
        self._jobs: list[ScheduledJob] = []
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._poll_seconds = max(1, int(poll_seconds))
        self._tz = timezone.utc if timezone_mode.lower() == "utc" else None

    @property
    def jobs(self) -> list[ScheduledJob]:
        with self._lock:
            return list(self._jobs)

    def _now(self) -> datetime:
        return datetime.now(tz=self._tz)

    def add_interval_job(
        self,
        name: str,
        seconds: int,
        func: Callable[[], object],
        *,
        run_in_thread: bool = False,
        run_immediately: bool = True,
    ) -> None:
        interval = timedelta(seconds=max(1, int(seconds)))
        job = ScheduledJob(
            name=name,
            interval=interval,
            func=func,
            run_in_thread=run_in_thread,
        )
        job.next_run = self._now() if run_immediately else self._now() + interval
        with self._lock:
            self._jobs.append(job)

    def start(self) -> None:
        if self._thread and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("Scheduler started with %d job(s).", len(self._jobs))

    def stop(self) -> None:
        if not self._thread:
            return
        self._stop_event.set()
        self._thread.join(timeout=self._poll_seconds + 1)
        self._thread = None
        logger.info("Scheduler stopped.")

    def run_pending(self, now: Optional[datetime] = None) -> int:
        now = now or self._now()
        started = 0
        for job in self.jobs:
            if job.running or job.next_run is None or now < job.next_run:
                continue
            job.next_run = now + job.interval
            self._run_job(job)
            started += 1
        return started

    def _run_job(self, job: ScheduledJob) -> None:
        logger.debug("Running scheduled job: %s", job.name)
        if job.run_in_thread:
            threading.Thread(
                target=self._safe_run,
                args=(job,),
                name=f"job-{job.name}",
                daemon=True,
            ).start()
        else:
            self._safe_run(job)

    @staticmethod
    def _safe_run(job: ScheduledJob) -> None:
        job.running = True
        try:
            job.func()
        except _SCHEDULED_JOB_EXCEPTIONS:
            logger.exception("Scheduled job failed: %s", job.name)
        finally:
            job.running = False

    def _run(self) -> None:
        while not self._stop_event.is_set():
            self.run_pending()
            self._stop_event.wait(self._poll_seconds)


def build_scheduler(settings) -> Scheduler:
    scheduler = Scheduler(
        timezone_mode=settings.SCHEDULER_TZ,
        poll_seconds=settings.SCHEDULER_POLL_SECONDS,
    )
    scheduler.add_interval_job(
        "daily_sales_summary",
        settings.SCHEDULER_POLL_SECONDS,
        run_daily_summary,
    )
    return scheduler


__all__ = ["ScheduledJob", "Scheduler", "build_scheduler"]
