"""
Pipeline job queue.

Jobs are rows in pipeline_jobs. At most one job may be PENDING or RUNNING
at a time: creation checks for an in-flight job inside a transaction, and
the partial unique index on PipelineJob.in_flight rejects a second insert
if two creators race past the check.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from django.db import IntegrityError, transaction

from content_pipeline.exceptions import JobConflictError
from content_pipeline.models import (
    IN_FLIGHT_STATUSES,
    PipelineJob,
    PipelineJobStatus,
    TriggeredBy,
)
from content_pipeline.services.pipeline_types import JobCreationResult

logger = logging.getLogger(__name__)

LATEST_STATUS_LOG_LIMIT = 100
HISTORY_LIMIT = 20


def _isoformat(value) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_job(job: PipelineJob, logs: Optional[List[str]] = None) -> Dict[str, Any]:
    """JSON-ready representation of a job, with log lines when given."""
    data = {
        "id": str(job.id),
        "status": job.status,
        "triggered_by": job.triggered_by,
        "category": job.category,
        "makers": list(job.makers or []),
        "listing_urls": list(job.listing_urls or []),
        "created_at": _isoformat(job.created_at),
        "started_at": _isoformat(job.started_at),
        "completed_at": _isoformat(job.completed_at),
        "duration_seconds": job.duration_seconds,
        "error_message": job.error_message or None,
    }
    if logs is not None:
        data["logs"] = logs
    return data


def insert_pipeline_job(
    category: str,
    makers: Sequence[str],
    triggered_by: str = TriggeredBy.MANUAL,
    listing_urls: Optional[Sequence[str]] = None,
) -> PipelineJob:
    """
    Insert a PENDING job, claiming the single in-flight slot.

    Raises:
        JobConflictError: If a PENDING or RUNNING job already exists, or a
            concurrent insert claimed the slot first
    """
    try:
        with transaction.atomic():
            if PipelineJob.objects.filter(status__in=IN_FLIGHT_STATUSES).exists():
                raise JobConflictError("another job is in flight")

            return PipelineJob.objects.create(
                category=category,
                makers=list(makers),
                listing_urls=list(listing_urls or []),
                triggered_by=triggered_by,
            )
    except IntegrityError as e:
        raise JobConflictError("concurrent creation won the in-flight slot") from e


def create_pipeline_job(
    category: str,
    makers: Sequence[str],
    triggered_by: str = TriggeredBy.MANUAL,
    listing_urls: Optional[Sequence[str]] = None,
) -> JobCreationResult:
    """
    Enqueue a pipeline job unless another job is in flight.

    Returns:
        JobCreationResult(conflict=True) without inserting anything when a
        PENDING or RUNNING job exists, otherwise the new job's id
    """
    try:
        job = insert_pipeline_job(category, makers, triggered_by, listing_urls)
    except JobConflictError as e:
        logger.info(f"Pipeline job rejected: {e}")
        return JobCreationResult(conflict=True)

    logger.info(f"Created pipeline job {job.id} ({triggered_by}) for {category}")
    return JobCreationResult(conflict=False, job_id=job.id)


def get_latest_pipeline_status() -> Optional[Dict[str, Any]]:
    """Newest job with its first 100 log lines, or None when no job exists."""
    job = PipelineJob.objects.order_by("-created_at").first()
    if job is None:
        return None
    return serialize_job(job, logs=job.log_lines(limit=LATEST_STATUS_LOG_LIMIT))


def get_pipeline_job(job_id) -> Optional[Dict[str, Any]]:
    """Job with its full log history, or None when the id is unknown."""
    job = PipelineJob.objects.filter(id=job_id).first()
    if job is None:
        return None
    return serialize_job(job, logs=job.log_lines())


def list_pipeline_history(limit: int = HISTORY_LIMIT) -> List[Dict[str, Any]]:
    """Most recent jobs, newest first, without logs."""
    return [serialize_job(job) for job in PipelineJob.objects.order_by("-created_at")[:limit]]


def next_pending_job() -> Optional[PipelineJob]:
    """Oldest PENDING job."""
    return (
        PipelineJob.objects.filter(status=PipelineJobStatus.PENDING)
        .order_by("created_at")
        .first()
    )
