"""Retry sweeper: periodic redelivery of queued notifications."""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from notification_service.logging import get_logger

logger = get_logger(__name__, component="scheduler")

SWEEP_JOB_ID = "retry-queue-sweep"


class RetrySweeper:
    """
    Wraps APScheduler to run the retry-queue sweep on a fixed interval.

    Uses AsyncIOScheduler so the sweep runs as a task on the service's own
    event loop, alongside HTTP request handling. start() must therefore be
    called from inside a running loop (the FastAPI lifespan does this).
    """

    def __init__(
        self,
        sweep_callable: Callable[[], Awaitable[object]],
        interval_seconds: int = 10,
    ):
        """
        Initialize the sweeper.

        Args:
            sweep_callable: Coroutine function run on each tick
                (NotificationService.process_retry_queue)
            interval_seconds: Seconds between sweeps
        """
        self.sweep_callable = sweep_callable
        self.interval_seconds = interval_seconds

        self.job_defaults = {
            "max_instances": 1,  # A slow sweep skips the next tick instead of overlapping
            "coalesce": True,
            "misfire_grace_time": interval_seconds,
        }
        self.scheduler = AsyncIOScheduler(
            job_defaults=self.job_defaults,
            timezone=timezone.utc,
        )

    async def _run_sweep(self) -> None:
        try:
            await self.sweep_callable()
        except Exception as e:
            logger.error(
                f"Retry sweep failed: {e}",
                exc_info=True,
                extra={"event": "scheduler.sweep.failed", "error_type": type(e).__name__},
            )

    def start(self) -> None:
        """
        Register the sweep job and start the scheduler.

        The first sweep runs one interval after startup; the queue is always
        empty at boot.
        """
        self.scheduler.add_job(
            func=self._run_sweep,
            trigger=IntervalTrigger(seconds=self.interval_seconds, timezone=timezone.utc),
            id=SWEEP_JOB_ID,
            name="Retry Queue Sweep",
            replace_existing=True,
        )
        self.scheduler.start()

        next_run = self.get_next_run_time()
        logger.info(
            f"Retry sweeper started with interval: {self.interval_seconds} seconds",
            extra={
                "event": "scheduler.started",
                "interval_seconds": self.interval_seconds,
                "next_run_time": next_run.isoformat() if next_run else None,
            },
        )

    def shutdown(self, wait: bool = False) -> None:
        """
        Stop the scheduler.

        Args:
            wait: If True, wait for a running sweep to finish
        """
        logger.info(
            "Shutting down retry sweeper",
            extra={"event": "scheduler.stopping", "wait_for_jobs": wait},
        )

        if self.scheduler.running:
            self.scheduler.shutdown(wait=wait)

        logger.info("Retry sweeper shutdown complete", extra={"event": "scheduler.stopped"})

    async def trigger_now(self) -> None:
        """Run one sweep immediately in the current task."""
        logger.info("Triggering immediate retry sweep", extra={"event": "scheduler.trigger_now"})
        await self._run_sweep()

    def is_running(self) -> bool:
        return self.scheduler.running

    def get_next_run_time(self) -> Optional[datetime]:
        """Next scheduled sweep, or None if not scheduled."""
        job = self.scheduler.get_job(SWEEP_JOB_ID)
        return job.next_run_time if job else None
