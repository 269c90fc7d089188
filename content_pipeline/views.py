"""
Content pipeline views.

Includes health check endpoint for monitoring and load balancer checks.
"""

import logging

from django.db import DatabaseError, connection
from django.http import JsonResponse

from content_pipeline.models import PipelineJob

logger = logging.getLogger(__name__)


def health_check(request):
    """
    Health check endpoint for the pipeline service.

    Endpoint: GET /api/health/
    No authentication required (for load balancer checks).

    Response fields:
        - status: "healthy" or "unhealthy"
        - database: "connected" or "error"
        - latest_job: {id, status, created_at} of the newest job, or null

    Returns:
        JsonResponse: HTTP 200 for healthy, HTTP 503 for unhealthy
    """
    status = "healthy"
    http_status = 200

    # Check database connection
    database_status = "connected"
    try:
        connection.ensure_connection()
    except DatabaseError as e:
        logger.error(f"Health check database error: {e}")
        database_status = "error"
        status = "unhealthy"
        http_status = 503

    latest_job = None
    if database_status == "connected":
        job = PipelineJob.objects.order_by("-created_at").first()
        if job is not None:
            latest_job = {
                "id": str(job.id),
                "status": job.status,
                "created_at": job.created_at.isoformat(),
            }

    response_data = {
        "status": status,
        "database": database_status,
        "latest_job": latest_job,
    }

    return JsonResponse(response_data, status=http_status)
