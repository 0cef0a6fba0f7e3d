"""
Interval scheduler for the country ranking job.
"""

import threading
from datetime import datetime
from typing import Callable

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from loguru import logger

from .core.models import RankingSnapshot

RANKING_JOB_ID = "country_rankings"


class RankingScheduler:
    """
    Runs the ranking job every ``interval_minutes``.

    Overlapping runs are skipped rather than queued; a failed run is logged
    and the previous snapshot stays published until the next run succeeds.
    """

    def __init__(self, ranking_func: Callable[[], RankingSnapshot], interval_minutes: int = 2):
        """
        Args:
            ranking_func: Builds and publishes one snapshot (e.g. a partial
                of jobs.update_country_rankings)
            interval_minutes: Minutes between runs
        """
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self.scheduler = BackgroundScheduler()
        self.ranking_func = ranking_func
        self.interval_minutes = interval_minutes
        self._run_lock = threading.Lock()
        self._last_success: datetime | None = None
        self._last_error: str | None = None
        self._run_count = 0

    def setup(self) -> None:
        self.scheduler.add_job(
            self.run_now,
            IntervalTrigger(minutes=self.interval_minutes),
            id=RANKING_JOB_ID,
            name="Country Rankings",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info(f"Country ranking job scheduled every {self.interval_minutes} min")

    def run_now(self) -> RankingSnapshot | None:
        """
        Run the ranking job once.

        Returns:
            The published snapshot, or None if skipped or failed
        """
        if not self._run_lock.acquire(blocking=False):
            logger.warning("Ranking update already in progress, skipping")
            return None

        try:
            snapshot = self.ranking_func()
        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Ranking update failed, previous snapshot kept: {e}")
            return None
        finally:
            self._run_lock.release()

        self._run_count += 1
        self._last_success = datetime.now()
        self._last_error = None
        return snapshot

    @property
    def is_running(self) -> bool:
        return self._run_lock.locked()

    def start(self) -> None:
        self.setup()
        self.scheduler.start()
        logger.info("Scheduler started")

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown()
        logger.info("Scheduler stopped")

    def get_status(self) -> dict:
        """Scheduler state for display."""
        jobs = []
        for job in self.scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            jobs.append({
                "id": job.id,
                "name": job.name,
                "next_run": next_run.isoformat() if next_run else None,
            })
        return {
            "is_running": self.is_running,
            "run_count": self._run_count,
            "last_success": self._last_success.isoformat() if self._last_success else None,
            "last_error": self._last_error,
            "jobs": jobs,
        }
