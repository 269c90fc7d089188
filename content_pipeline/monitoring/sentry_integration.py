"""
Sentry error tracking for pipeline jobs.

The SDK is initialised in settings/base.py only when SENTRY_DSN is set;
without it these helpers are no-ops on the SDK side.

Usage:
    from content_pipeline.monitoring import capture_job_failure

    try:
        await orchestrator.run(params, log)
    except Exception as e:
        capture_job_failure(e, job_id=job.id, category=job.category)
"""

import logging
from typing import Any, Dict, Optional

import sentry_sdk

logger = logging.getLogger(__name__)

# Sensitive fields to filter from Sentry events
SENSITIVE_FIELDS = {
    "cookie",
    "api_key",
    "apikey",
    "api-key",
    "authorization",
    "password",
    "secret",
    "token",
    "x-api-key",
}


def _filter_sensitive_data(data: Dict[str, Any]) -> Dict[str, Any]:
    """
    Replace values of keys that look like credentials, recursively.
    """
    if not isinstance(data, dict):
        return data

    filtered = {}
    for key, value in data.items():
        key_lower = str(key).lower()
        if any(sensitive in key_lower for sensitive in SENSITIVE_FIELDS):
            filtered[key] = "[Filtered]"
        elif isinstance(value, dict):
            filtered[key] = _filter_sensitive_data(value)
        else:
            filtered[key] = value
    return filtered


def add_pipeline_breadcrumb(
    message: str,
    level: str = "info",
    data: Optional[Dict[str, Any]] = None,
) -> None:
    """Record a pipeline step so a later error carries its history."""
    try:
        sentry_sdk.add_breadcrumb(
            category="pipeline",
            message=message,
            level=level,
            data=_filter_sensitive_data(data or {}),
        )
    except Exception as e:
        logger.warning(f"Failed to add Sentry breadcrumb: {e}")


def capture_job_failure(
    error: Exception,
    job_id=None,
    category: Optional[str] = None,
    triggered_by: Optional[str] = None,
    extra_context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Report a job-level pipeline failure with job context attached.

    Args:
        error: The exception that failed the job
        job_id: PipelineJob id
        category: Job category
        triggered_by: manual or scheduler
        extra_context: Additional context (filtered for sensitive data)
    """
    try:
        with sentry_sdk.new_scope() as scope:
            scope.set_tag("pipeline.category", category or "unknown")
            scope.set_tag("pipeline.triggered_by", triggered_by or "unknown")
            if job_id:
                scope.set_extra("job_id", str(job_id))
            if extra_context:
                scope.set_extra("job_context", _filter_sensitive_data(extra_context))
            sentry_sdk.capture_exception(error)
    except Exception as e:
        logger.warning(f"Failed to capture exception to Sentry: {e}")
