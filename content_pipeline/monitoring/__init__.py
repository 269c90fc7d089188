"""
Error tracking helpers for the content pipeline.
"""

from content_pipeline.monitoring.sentry_integration import (
    add_pipeline_breadcrumb,
    capture_job_failure,
)

__all__ = ["add_pipeline_breadcrumb", "capture_job_failure"]
