"""
Pipeline worker loop.

A single long-running process that:
- re-reads the schedule every PIPELINE_SCHEDULE_REFRESH_INTERVAL seconds
- enqueues a scheduler job when the trigger is due
- claims the oldest PENDING job and runs it to completion

Jobs run one at a time; the next poll only happens after the current job
has finished.
"""

import asyncio
import logging
import time
from typing import Optional

from asgiref.sync import sync_to_async
from django.conf import settings

from content_pipeline.models import PipelineJob
from content_pipeline.services.job_queue import next_pending_job
from content_pipeline.services.pipeline_runner import PipelineRunner
from content_pipeline.services.scheduler import PipelineScheduler

logger = logging.getLogger(__name__)


class PipelineWorker:
    """
    Polls the job table and the schedule.

    Args:
        runner: PipelineRunner used for each claimed job
        scheduler: PipelineScheduler holding the armed trigger
        poll_interval: Seconds between polls
        refresh_interval: Seconds between schedule re-reads
    """

    def __init__(
        self,
        runner: Optional[PipelineRunner] = None,
        scheduler: Optional[PipelineScheduler] = None,
        poll_interval: Optional[float] = None,
        refresh_interval: Optional[float] = None,
    ):
        self.runner = runner or PipelineRunner()
        self.scheduler = scheduler or PipelineScheduler()
        self.poll_interval = (
            poll_interval
            if poll_interval is not None
            else getattr(settings, "PIPELINE_WORKER_POLL_INTERVAL", 3)
        )
        self.refresh_interval = (
            refresh_interval
            if refresh_interval is not None
            else getattr(settings, "PIPELINE_SCHEDULE_REFRESH_INTERVAL", 60)
        )
        self._last_refresh: Optional[float] = None
        self._stopping = False

    def _refresh_due(self) -> bool:
        if self._last_refresh is None:
            return True
        return time.monotonic() - self._last_refresh >= self.refresh_interval

    async def run_once(self) -> Optional[PipelineJob]:
        """
        One poll: refresh the schedule if due, tick it, run one pending job.

        Returns:
            The job that was run, or None when nothing was pending
        """
        if self._refresh_due():
            await sync_to_async(self.scheduler.reconcile, thread_sensitive=True)()
            self._last_refresh = time.monotonic()

        await sync_to_async(self.scheduler.tick, thread_sensitive=True)()

        job = await sync_to_async(next_pending_job, thread_sensitive=True)()
        if job is None:
            return None

        logger.info(f"Worker picked up job {job.id} ({job.triggered_by})")
        await self.runner.run(job)
        return job

    async def run_forever(self, max_iterations: Optional[int] = None) -> None:
        """
        Poll until stop() is called (or max_iterations polls have run).

        Errors in one iteration are logged and the loop continues.
        """
        logger.info(
            f"Pipeline worker started (poll {self.poll_interval}s, "
            f"schedule refresh {self.refresh_interval}s)"
        )
        iterations = 0
        while not self._stopping:
            try:
                await self.run_once()
            except Exception as e:
                logger.exception(f"Worker iteration failed: {e}")

            iterations += 1
            if max_iterations is not None and iterations >= max_iterations:
                break
            await asyncio.sleep(self.poll_interval)

        logger.info("Pipeline worker stopped")

    def stop(self) -> None:
        self._stopping = True
