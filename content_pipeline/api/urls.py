"""
Pipeline admin API URL configuration.

Endpoints:
- POST    /api/v1/pipeline/jobs/            - Trigger a pipeline job
- GET     /api/v1/pipeline/jobs/latest/     - Latest job with logs
- GET     /api/v1/pipeline/jobs/history/    - Recent jobs
- GET     /api/v1/pipeline/jobs/<job_id>/   - Job with full log history
- GET/PUT /api/v1/pipeline/schedule/        - Pipeline schedule
- POST    /api/v1/products/<slug>/review/   - Queue review generation
"""

from django.urls import path

from content_pipeline.api.views import (
    create_job,
    latest_job,
    job_history,
    job_detail,
    schedule,
    generate_review,
)

app_name = 'pipeline_api'

urlpatterns = [
    # Pipeline job endpoints
    path('pipeline/jobs/', create_job, name='create_job'),
    path('pipeline/jobs/latest/', latest_job, name='latest_job'),
    path('pipeline/jobs/history/', job_history, name='job_history'),
    path('pipeline/jobs/<uuid:job_id>/', job_detail, name='job_detail'),

    # Schedule endpoint
    path('pipeline/schedule/', schedule, name='schedule'),

    # Generation endpoints
    path('products/<str:slug>/review/', generate_review, name='generate_review'),
]
