"""
Celery configuration for the content pipeline.

This module configures Celery for asynchronous generation tasks. The
crawl/extract pipeline itself runs in the single polling worker
(`manage.py run_pipeline_worker`); Celery handles the review and
comparison generation flows triggered from the admin API.
"""

import os
from celery import Celery

# Set the default Django settings module for the 'celery' program.
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")

app = Celery("content_pipeline")

# Using a string here means the worker doesn't have to serialize
# the configuration object to child processes.
# - namespace='CELERY' means all celery-related configuration keys
#   should have a `CELERY_` prefix.
app.config_from_object("django.conf:settings", namespace="CELERY")

# Load task modules from all registered Django apps.
app.autodiscover_tasks()

# Configure task queues for different operations
app.conf.task_queues = {
    "generation": {
        "exchange": "generation",
        "routing_key": "generation",
    },
    "default": {
        "exchange": "default",
        "routing_key": "default",
    },
}

# Default task routing
app.conf.task_default_queue = "default"
app.conf.task_default_exchange = "default"
app.conf.task_default_routing_key = "default"

# Route generation tasks to their own queue
app.conf.task_routes = {
    "content_pipeline.tasks.generate_product_review": {"queue": "generation"},
    "content_pipeline.tasks.generate_product_comparison": {"queue": "generation"},
}
