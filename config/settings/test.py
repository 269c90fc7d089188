"""
Test settings for the content pipeline.

Uses in-memory SQLite and eager Celery for fast test execution.
"""

import os
import tempfile
from .base import *

# Test mode
DEBUG = False

ALLOWED_HOSTS = ["localhost", "127.0.0.1", "testserver"]

# Test database - in-memory SQLite for speed
DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

# Test Celery - run tasks synchronously
CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True

# Test logging - minimal output
LOGGING["loggers"]["django"]["level"] = "WARNING"
LOGGING["loggers"]["content_pipeline"]["level"] = "WARNING"

# Password validators disabled for faster tests
AUTH_PASSWORD_VALIDATORS = []

# Use faster password hasher for tests
PASSWORD_HASHERS = [
    "django.contrib.auth.hashers.MD5PasswordHasher",
]

# Disable Sentry in tests
SENTRY_DSN = ""

# Test crawler and LLM settings - fail fast
CRAWLER_NAVIGATION_TIMEOUT = 5
CRAWLER_SETTLE_DELAY = 0
LLM_TIMEOUT_SECONDS = 5
SERPAPI_API_KEY = ""

# Worker loop does not sleep in tests
PIPELINE_WORKER_POLL_INTERVAL = 0
PIPELINE_SCHEDULE_REFRESH_INTERVAL = 0

PRODUCT_IMAGE_ROOT = os.path.join(tempfile.gettempdir(), "content-pipeline-test-images")
