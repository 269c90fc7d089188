"""
Scheduled pipeline runs.

The schedule is a persisted singleton that admins can change at any time.
Instead of a long-lived cron object, the worker periodically calls
reconcile() to re-read it and replace the registered trigger, and tick()
on every poll to enqueue a job once the trigger is due.

Hour and minute are interpreted in settings.TIME_ZONE. day_of_week follows
the cron convention (0 = Sunday).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from django.utils import timezone

from content_pipeline.models import PipelineSchedule, ScheduleFrequency, TriggeredBy
from content_pipeline.services.job_queue import create_pipeline_job
from content_pipeline.services.pipeline_types import JobCreationResult

logger = logging.getLogger(__name__)


def _cron_weekday(moment: datetime) -> int:
    """Python weekday (Monday=0) to cron weekday (Sunday=0)."""
    return (moment.weekday() + 1) % 7


def compute_next_run(schedule: PipelineSchedule, now: datetime) -> Optional[datetime]:
    """
    Next fire time strictly after now, or None when the schedule is disabled.

    Weekly schedules without a day_of_week fire daily, like "M H * * *".
    """
    if not schedule.enabled:
        return None

    local_now = timezone.localtime(now)
    candidate = local_now.replace(
        hour=schedule.hour, minute=schedule.minute, second=0, microsecond=0
    )

    if schedule.frequency == ScheduleFrequency.WEEKLY and schedule.day_of_week is not None:
        days_ahead = (schedule.day_of_week - _cron_weekday(local_now)) % 7
        candidate += timedelta(days=days_ahead)
        if candidate <= local_now:
            candidate += timedelta(days=7)
    elif candidate <= local_now:
        candidate += timedelta(days=1)

    return candidate


@dataclass
class RegisteredTrigger:
    """The trigger currently armed by the scheduler."""

    cron_expression: str
    next_run_at: datetime
    schedule: PipelineSchedule


class PipelineScheduler:
    """
    Re-read-and-reconcile scheduler.

    Holds at most one RegisteredTrigger. Not thread-safe; owned by the
    single worker process.
    """

    def __init__(self, create_job=create_pipeline_job):
        self.create_job = create_job
        self.trigger: Optional[RegisteredTrigger] = None

    @property
    def next_run_at(self) -> Optional[datetime]:
        return self.trigger.next_run_at if self.trigger else None

    def reconcile(self, now: Optional[datetime] = None) -> Optional[RegisteredTrigger]:
        """
        Re-read the schedule and register, replace or cancel the trigger.

        An unchanged cron expression keeps its armed fire time so a due run
        is not skipped by a refresh.
        """
        now = now or timezone.now()
        schedule = PipelineSchedule.load()

        if not schedule.enabled:
            if self.trigger is not None:
                logger.info(f"[scheduler] Unregistered: {self.trigger.cron_expression}")
            self.trigger = None
            return None

        expression = schedule.cron_expression()
        if self.trigger is not None and self.trigger.cron_expression == expression:
            self.trigger.schedule = schedule
            return self.trigger

        self.trigger = RegisteredTrigger(
            cron_expression=expression,
            next_run_at=compute_next_run(schedule, now),
            schedule=schedule,
        )
        logger.info(
            f"[scheduler] Registered: {expression} "
            f"(next run {self.trigger.next_run_at.isoformat()})"
        )
        return self.trigger

    def tick(self, now: Optional[datetime] = None) -> Optional[JobCreationResult]:
        """
        Enqueue a SCHEDULER job if the trigger is due, then re-arm it.

        A single-flight conflict skips this run with a warning.
        """
        now = now or timezone.now()
        trigger = self.trigger
        if trigger is None or now < trigger.next_run_at:
            return None

        logger.info(f"[scheduler] Triggering pipeline at {now.isoformat()}")
        result = self.create_job(
            trigger.schedule.category,
            list(trigger.schedule.makers or []),
            triggered_by=TriggeredBy.SCHEDULER,
        )
        if result.conflict:
            logger.warning("[scheduler] Skipped scheduled run: a pipeline job is already in flight")

        trigger.next_run_at = compute_next_run(trigger.schedule, now)
        return result
