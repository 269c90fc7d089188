"""
Pipeline runner - executes one PipelineJob to completion.

Order of effects for a job:
1. status RUNNING + started_at, before any pipeline work
2. discovery (only when the job carries no listing URLs)
3. orchestrator run; each progress line is one awaited PipelineLog insert
4. status DONE, or FAILED followed by a "FATAL: <message>" log line

A cancelled run (worker shutdown) is recorded as FAILED with
"FATAL: cancelled" before the cancellation propagates, so the in-flight
slot is released.
"""

import asyncio
import logging
from typing import Callable, Optional

from asgiref.sync import sync_to_async

from content_pipeline.fetchers.playwright_crawler import PlaywrightCrawler
from content_pipeline.models import PipelineJob, PipelineLog
from content_pipeline.monitoring import add_pipeline_breadcrumb, capture_job_failure
from content_pipeline.services.discovery import ListingDiscoveryService
from content_pipeline.services.pipeline_orchestrator import PipelineOrchestrator
from content_pipeline.services.pipeline_types import (
    LogCallback,
    PipelineParams,
    PipelineRunResult,
)
from content_pipeline.services.skill_store import FileSkillRepository

logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Runs PipelineJobs with one shared browser per job.

    Args:
        llm: LLM runner (built from settings when omitted)
        crawler_factory: Callable returning a crawler with crawl_existing_product()
            and close()
        skills: Skill repository shared by discovery and the orchestrator
    """

    def __init__(
        self,
        llm=None,
        crawler_factory: Optional[Callable] = None,
        skills: Optional[FileSkillRepository] = None,
    ):
        if llm is None:
            from content_pipeline.services.llm_runner import get_llm_runner

            llm = get_llm_runner()
        self.llm = llm
        self.crawler_factory = crawler_factory or PlaywrightCrawler
        self.skills = skills or FileSkillRepository()

    def make_job_logger(self, job: PipelineJob) -> LogCallback:
        """Log callback that persists every line for the job, in order."""

        @sync_to_async(thread_sensitive=True)
        def _insert(message: str):
            PipelineLog.objects.create(job_id=job.id, message=message)

        async def log(message: str) -> None:
            logger.info(f"[job {job.id}] {message}")
            await _insert(message)

        return log

    async def execute(self, job: PipelineJob, log: LogCallback) -> PipelineRunResult:
        """Discovery (if needed) then the orchestrator, sharing one crawler."""
        crawler = self.crawler_factory()
        try:
            listing_urls = list(job.listing_urls or [])
            if not listing_urls:
                discovery = ListingDiscoveryService(
                    self.llm, crawler=crawler, skills=self.skills
                )
                listing_urls = await discovery.discover_listing_urls(
                    job.category, job.makers, log
                )

            orchestrator = PipelineOrchestrator(self.llm, crawler=crawler, skills=self.skills)
            return await orchestrator.run(
                PipelineParams(
                    category=job.category,
                    makers=list(job.makers or []),
                    listing_urls=listing_urls,
                ),
                log,
            )
        finally:
            await crawler.close()

    async def run(self, job: PipelineJob) -> bool:
        """
        Run a PENDING job and record its outcome.

        Pipeline exceptions are caught and recorded; only a failure to record
        state (e.g. the job is not PENDING) propagates.

        Returns:
            True if the job finished DONE, False if FAILED
        """
        await sync_to_async(job.start, thread_sensitive=True)()
        add_pipeline_breadcrumb(
            f"Job {job.id} started",
            data={"category": job.category, "triggered_by": job.triggered_by},
        )
        log = self.make_job_logger(job)

        try:
            result = await self.execute(job, log)
        except asyncio.CancelledError:
            logger.warning(f"Pipeline job {job.id} cancelled")
            await sync_to_async(job.complete, thread_sensitive=True)(
                success=False, error_message="cancelled"
            )
            await log("FATAL: cancelled")
            raise
        except Exception as e:
            logger.exception(f"Pipeline job {job.id} failed: {e}")
            await sync_to_async(job.complete, thread_sensitive=True)(
                success=False, error_message=str(e)
            )
            await log(f"FATAL: {e}")
            capture_job_failure(
                e,
                job_id=job.id,
                category=job.category,
                triggered_by=job.triggered_by,
            )
            return False

        await sync_to_async(job.complete, thread_sensitive=True)(success=True)
        logger.info(
            f"Pipeline job {job.id} done: {result.products_saved} products, "
            f"{len(result.errors)} item errors"
        )
        return True
