"""Debounced background analysis: a burst of observations for one client triggers one run."""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger("location_api.core.scheduler")


class AnalysisScheduler:
    """
    Per-client debounce on an APScheduler background scheduler. schedule() (re)places a
    one-shot job keyed by the client id; when it fires, run_fn(client_id) executes on the
    scheduler's worker pool. Callers serialize runs for the same client themselves
    (LocationTracker.refresh takes the client lock), so a run that overlaps a previous one
    waits instead of being skipped.
    """

    def __init__(self, run_fn: Callable[[str], object], delay_seconds: float):
        self.run_fn = run_fn
        self.delay_seconds = delay_seconds
        self._scheduler = BackgroundScheduler(timezone=timezone.utc, daemon=True)
        self._guard = threading.Lock()
        self._stopped = False

    def schedule(self, client_id: str) -> None:
        with self._guard:
            if self._stopped:
                return
            if not self._scheduler.running:
                self._scheduler.start()
            self._scheduler.add_job(
                self._run,
                "date",
                run_date=datetime.now(timezone.utc) + timedelta(seconds=self.delay_seconds),
                args=[client_id],
                id=client_id,
                replace_existing=True,
                misfire_grace_time=None,
            )
        logger.debug("analysis scheduled client_id=%s delay=%.2fs", client_id, self.delay_seconds)

    def _run(self, client_id: str) -> None:
        try:
            self.run_fn(client_id)
        except Exception:
            # Nothing above a worker thread can handle it; the on-demand path still raises.
            logger.exception("background analysis failed client_id=%s", client_id)

    def pending(self) -> list[str]:
        with self._guard:
            if self._stopped:
                return []
            return sorted(job.id for job in self._scheduler.get_jobs())

    def stop(self) -> None:
        """Drop pending runs and shut the scheduler down; later schedule() calls are ignored."""
        with self._guard:
            self._stopped = True
            if self._scheduler.running:
                self._scheduler.remove_all_jobs()
                self._scheduler.shutdown(wait=False)
