"""
Pipeline admin API views.

REST API endpoints for the admin UI.

This module provides endpoints for:
- Triggering pipeline jobs (single-flight; 409 while one is in flight)
- Job status, per-job log history and recent job history
- Reading and updating the pipeline schedule
- Queueing review generation for a saved product

All endpoints require authentication.
"""

import logging
from urllib.parse import urlparse

from django.conf import settings
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_spectacular.utils import extend_schema, OpenApiParameter
from drf_spectacular.types import OpenApiTypes

from content_pipeline.api.throttling import GenerationThrottle, PipelineTriggerThrottle
from content_pipeline.models import PipelineSchedule, Product, ScheduleFrequency
from content_pipeline.services.job_queue import (
    create_pipeline_job,
    get_latest_pipeline_status,
    get_pipeline_job,
    list_pipeline_history,
)
from content_pipeline.tasks import generate_product_review

logger = logging.getLogger(__name__)

SCHEDULE_FIELDS = ("enabled", "frequency", "hour", "minute", "day_of_week", "category", "makers")


def _is_valid_url(url) -> bool:
    """Check if a value is an http(s) URL."""
    if not isinstance(url, str):
        return False
    result = urlparse(url)
    return result.scheme in ('http', 'https') and bool(result.netloc)


def _is_string_list(value) -> bool:
    return isinstance(value, list) and all(isinstance(v, str) and v.strip() for v in value)


def _is_int_in_range(value, low: int, high: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def _serialize_schedule(schedule: PipelineSchedule) -> dict:
    return {
        'enabled': schedule.enabled,
        'frequency': schedule.frequency,
        'hour': schedule.hour,
        'minute': schedule.minute,
        'day_of_week': schedule.day_of_week,
        'category': schedule.category,
        'makers': list(schedule.makers or []),
        'cron_expression': schedule.cron_expression(),
        'updated_at': schedule.updated_at.isoformat() if schedule.pk else None,
    }


def _validate_schedule(data: dict) -> list:
    """Return a list of validation errors for a schedule update."""
    errors = []
    if 'enabled' in data and not isinstance(data['enabled'], bool):
        errors.append('enabled must be a boolean')
    if 'frequency' in data and data['frequency'] not in ScheduleFrequency.values:
        errors.append(f"frequency must be one of {', '.join(ScheduleFrequency.values)}")
    if 'hour' in data and not _is_int_in_range(data['hour'], 0, 23):
        errors.append('hour must be an integer between 0 and 23')
    if 'minute' in data and not _is_int_in_range(data['minute'], 0, 59):
        errors.append('minute must be an integer between 0 and 59')
    if (
        'day_of_week' in data
        and data['day_of_week'] is not None
        and not _is_int_in_range(data['day_of_week'], 0, 6)
    ):
        errors.append('day_of_week must be null or an integer between 0 (Sunday) and 6')
    if 'category' in data and not (isinstance(data['category'], str) and data['category'].strip()):
        errors.append('category must be a non-empty string')
    if 'makers' in data and not _is_string_list(data['makers']):
        errors.append('makers must be a list of non-empty strings')
    return errors


# ============================================================
# Pipeline Job Endpoints
# ============================================================

@extend_schema(
    tags=['Pipeline'],
    summary='Trigger a pipeline job',
    description='''
    Enqueue a crawl/extract pipeline run.

    Only one job may be pending or running at a time; a second request
    while one is in flight returns 409. When listing_urls is omitted the
    worker discovers listing pages for the category and makers first.
    ''',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'category': {'type': 'string', 'description': 'Product category, e.g. 노트북'},
                'makers': {'type': 'array', 'items': {'type': 'string'}},
                'listing_urls': {'type': 'array', 'items': {'type': 'string', 'format': 'uri'}},
            },
        }
    },
    responses={
        202: {
            'description': 'Job queued',
            'content': {
                'application/json': {
                    'example': {
                        'job_id': '0b7c3a52-3e1f-4a4e-9d0a-6f2b8c1d9e10',
                        'status': 'pending',
                    }
                }
            }
        },
        400: {'description': 'Invalid category, makers or listing_urls'},
        409: {'description': 'Pipeline already running'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([PipelineTriggerThrottle])
def create_job(request):
    """
    Trigger a pipeline job.

    Category and makers default to the configured pipeline defaults.
    """
    data = request.data if isinstance(request.data, dict) else {}

    category = data.get('category', settings.PIPELINE_DEFAULT_CATEGORY)
    makers = data.get('makers', list(settings.PIPELINE_DEFAULT_MAKERS))
    listing_urls = data.get('listing_urls', [])

    if not isinstance(category, str) or not category.strip():
        return Response(
            {'error': 'category must be a non-empty string'},
            status=status.HTTP_400_BAD_REQUEST
        )
    if not _is_string_list(makers) or not makers:
        return Response(
            {'error': 'makers must be a non-empty list of strings'},
            status=status.HTTP_400_BAD_REQUEST
        )
    if not isinstance(listing_urls, list) or not all(_is_valid_url(u) for u in listing_urls):
        return Response(
            {'error': 'listing_urls must be a list of http(s) URLs'},
            status=status.HTTP_400_BAD_REQUEST
        )

    result = create_pipeline_job(category.strip(), makers, listing_urls=listing_urls)
    if result.conflict:
        return Response(
            {'error': 'Pipeline already running'},
            status=status.HTTP_409_CONFLICT
        )

    return Response(
        {'job_id': str(result.job_id), 'status': 'pending'},
        status=status.HTTP_202_ACCEPTED
    )


@extend_schema(
    tags=['Pipeline'],
    summary='Latest pipeline job',
    description='Newest job with its first 100 log lines, or null when no job exists.',
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def latest_job(request):
    """Get the latest pipeline job status."""
    return Response(get_latest_pipeline_status())


@extend_schema(
    tags=['Pipeline'],
    summary='Get pipeline job',
    parameters=[
        OpenApiParameter(
            name='job_id',
            type=OpenApiTypes.UUID,
            location=OpenApiParameter.PATH,
            description='The job ID returned when the job was created',
        ),
    ],
    responses={
        200: OpenApiTypes.OBJECT,
        404: {'description': 'Job not found'},
    },
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_detail(request, job_id):
    """
    Get a pipeline job with its full log history.
    """
    job = get_pipeline_job(job_id)
    if job is None:
        return Response(
            {'error': 'Job not found'},
            status=status.HTTP_404_NOT_FOUND
        )
    return Response(job)


@extend_schema(
    tags=['Pipeline'],
    summary='Pipeline job history',
    description='The 20 most recent jobs, newest first, without logs.',
    responses={200: OpenApiTypes.OBJECT},
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def job_history(request):
    return Response({'jobs': list_pipeline_history()})


# ============================================================
# Schedule Endpoint
# ============================================================

@extend_schema(
    tags=['Pipeline'],
    summary='Get or update the pipeline schedule',
    description='''
    The schedule is a singleton. GET returns the stored schedule or the
    defaults when none was saved yet. PUT accepts any subset of the fields;
    the worker picks up changes on its next schedule refresh.
    ''',
    request={
        'application/json': {
            'type': 'object',
            'properties': {
                'enabled': {'type': 'boolean'},
                'frequency': {'type': 'string', 'enum': ['daily', 'weekly']},
                'hour': {'type': 'integer', 'minimum': 0, 'maximum': 23},
                'minute': {'type': 'integer', 'minimum': 0, 'maximum': 59},
                'day_of_week': {'type': 'integer', 'minimum': 0, 'maximum': 6, 'nullable': True},
                'category': {'type': 'string'},
                'makers': {'type': 'array', 'items': {'type': 'string'}},
            },
        }
    },
    responses={
        200: OpenApiTypes.OBJECT,
        400: {'description': 'Invalid schedule fields'},
    },
)
@api_view(['GET', 'PUT'])
@permission_classes([IsAuthenticated])
def schedule(request):
    """
    Get or update the pipeline schedule.
    """
    current = PipelineSchedule.load()
    if request.method == 'GET':
        return Response(_serialize_schedule(current))

    data = request.data if isinstance(request.data, dict) else {}
    errors = _validate_schedule(data)
    if errors:
        return Response({'error': '; '.join(errors)}, status=status.HTTP_400_BAD_REQUEST)

    for field in SCHEDULE_FIELDS:
        if field in data:
            value = data[field]
            if field == 'category':
                value = value.strip()
            setattr(current, field, value)
    current.save()

    logger.info(f"Pipeline schedule updated: {current}")
    return Response(_serialize_schedule(current))


# ============================================================
# Generation Endpoints
# ============================================================

@extend_schema(
    tags=['Generation'],
    summary='Generate a product review',
    description='Queue generation of a new critique article for a saved product.',
    request=None,
    responses={
        202: {
            'description': 'Review generation queued',
            'content': {
                'application/json': {
                    'example': {
                        'slug': 'apple-macbook-air-13',
                        'task_id': 'c6f1b1a0-2f7e-4f43-8a0a-5e5e0a3a8d11',
                        'status': 'queued',
                    }
                }
            }
        },
        404: {'description': 'Product not found'},
    },
)
@api_view(['POST'])
@permission_classes([IsAuthenticated])
@throttle_classes([GenerationThrottle])
def generate_review(request, slug):
    """
    Queue review generation for a product.
    """
    if not Product.objects.filter(slug=slug).exists():
        return Response(
            {'error': f'Product "{slug}" not found'},
            status=status.HTTP_404_NOT_FOUND
        )

    task = generate_product_review.delay(slug)
    return Response(
        {'slug': slug, 'task_id': task.id, 'status': 'queued'},
        status=status.HTTP_202_ACCEPTED
    )
