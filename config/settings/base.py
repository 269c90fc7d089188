"""
Django base settings for the affiliate content pipeline.

This module contains settings common to all environments.
For more information on this file, see
https://docs.djangoproject.com/en/4.2/topics/settings/
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent


# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = os.getenv(
    "SECRET_KEY",
    "django-insecure-content-pipeline-dev-key-change-in-production"
)

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = os.getenv("DEBUG", "True") == "True"

ALLOWED_HOSTS = os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1").split(",")


# Application definition

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party apps
    "rest_framework",
    "drf_spectacular",
    # Local apps
    "content_pipeline",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"


# Database
# https://docs.djangoproject.com/en/4.2/ref/settings/#databases
# Configured in environment-specific settings (development.py, production.py, test.py)

DATABASES = {
    # Override in environment-specific settings
}


# Password validation
# https://docs.djangoproject.com/en/4.2/ref/settings/#auth-password-validators

AUTH_PASSWORD_VALIDATORS = [
    {
        "NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.MinimumLengthValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.CommonPasswordValidator",
    },
    {
        "NAME": "django.contrib.auth.password_validation.NumericPasswordValidator",
    },
]


# Internationalization
# https://docs.djangoproject.com/en/4.2/topics/i18n/

LANGUAGE_CODE = "ko-kr"

# Schedule hour/minute values are interpreted in this time zone
TIME_ZONE = os.getenv("TIME_ZONE", "Asia/Seoul")

USE_I18N = True

USE_TZ = True


# Static files (CSS, JavaScript, Images)
# https://docs.djangoproject.com/en/4.2/howto/static-files/

STATIC_URL = "static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

# Default primary key field type
# https://docs.djangoproject.com/en/4.2/ref/settings/#default-auto-field

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# Celery Configuration
# https://docs.celeryproject.org/en/stable/django/first-steps-with-django.html

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/1")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", "redis://localhost:6379/1")
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_TRACK_STARTED = True
CELERY_TASK_TIME_LIMIT = 30 * 60  # 30 minutes max for generation tasks


# Django REST Framework Configuration
# https://www.django-rest-framework.org/

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
}


# DRF Spectacular (OpenAPI/Swagger) Configuration
# https://drf-spectacular.readthedocs.io/

SPECTACULAR_SETTINGS = {
    "TITLE": "Content Pipeline Admin API",
    "DESCRIPTION": "Job queue, schedule and generation endpoints for the storefront pipeline",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}


# Logging Configuration
# https://docs.djangoproject.com/en/4.2/topics/logging/

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {module} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
        "content_pipeline": {
            "handlers": ["console"],
            "level": os.getenv("LOG_LEVEL", "INFO"),
        },
    },
}


# Sentry Configuration
# https://docs.sentry.io/platforms/python/guides/django/

SENTRY_DSN = os.getenv("SENTRY_DSN", "")
SENTRY_ENVIRONMENT = os.getenv("SENTRY_ENVIRONMENT", "development")
SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.2"))

if SENTRY_DSN:
    import sentry_sdk

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        traces_sample_rate=SENTRY_TRACES_SAMPLE_RATE,
        environment=SENTRY_ENVIRONMENT,
    )


# Skill (prompt template) Configuration

PIPELINE_SKILLS_DIR = os.getenv(
    "PIPELINE_SKILLS_DIR",
    str(BASE_DIR / "content_pipeline" / "skills"),
)


# LLM Configuration

# "cli" runs the Claude CLI as a subprocess, "http" calls the Messages API
LLM_BACKEND = os.getenv("LLM_BACKEND", "cli")
LLM_CLI_COMMAND = os.getenv("LLM_CLI_COMMAND", "claude")
LLM_TIMEOUT_SECONDS = float(os.getenv("LLM_TIMEOUT_SECONDS", "120"))
LLM_DEFAULT_MODEL = os.getenv("LLM_DEFAULT_MODEL", "claude-sonnet-4-5")
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "4096"))
ANTHROPIC_API_KEY = os.getenv("ANTHROPIC_API_KEY", "")
ANTHROPIC_API_URL = os.getenv(
    "ANTHROPIC_API_URL",
    "https://api.anthropic.com/v1/messages",
)


# Crawler Configuration

# Navigation timeout per page (seconds)
CRAWLER_NAVIGATION_TIMEOUT = float(os.getenv("CRAWLER_NAVIGATION_TIMEOUT", "30"))

# Delay after DOM-ready before snapshotting HTML (seconds)
CRAWLER_SETTLE_DELAY = float(os.getenv("CRAWLER_SETTLE_DELAY", "3"))

# Resource types aborted by the headless browser
CRAWLER_BLOCKED_RESOURCE_TYPES = ["image", "stylesheet", "font", "media"]

# SerpAPI for third-party review search
SERPAPI_API_KEY = os.getenv("SERPAPI_API_KEY", "")
REVIEW_SEARCH_MAX_RESULTS = int(os.getenv("REVIEW_SEARCH_MAX_RESULTS", "3"))


# Pipeline Configuration

PIPELINE_DEFAULT_CATEGORY = os.getenv("PIPELINE_DEFAULT_CATEGORY", "노트북")
PIPELINE_DEFAULT_CATEGORY_ID = os.getenv("PIPELINE_DEFAULT_CATEGORY_ID", "laptop")
PIPELINE_DEFAULT_MAKERS = [
    maker.strip()
    for maker in os.getenv(
        "PIPELINE_DEFAULT_MAKERS", "Apple,Samsung,LG,ASUS,Lenovo,HP,Dell"
    ).split(",")
    if maker.strip()
]

# Character budgets for HTML handed to the LLM
PIPELINE_MAX_PRODUCT_LINKS = int(os.getenv("PIPELINE_MAX_PRODUCT_LINKS", "10"))
PIPELINE_LISTING_HTML_CHARS = int(os.getenv("PIPELINE_LISTING_HTML_CHARS", "15000"))
PIPELINE_IMAGE_HTML_CHARS = int(os.getenv("PIPELINE_IMAGE_HTML_CHARS", "10000"))
DISCOVERY_VALIDATION_HTML_CHARS = int(os.getenv("DISCOVERY_VALIDATION_HTML_CHARS", "5000"))
SPEC_EXTRACTION_HTML_CHARS = int(os.getenv("SPEC_EXTRACTION_HTML_CHARS", "50000"))
REVIEW_EXTRACTION_HTML_CHARS = int(os.getenv("REVIEW_EXTRACTION_HTML_CHARS", "10000"))

# Worker loop timing (seconds)
PIPELINE_WORKER_POLL_INTERVAL = float(os.getenv("PIPELINE_WORKER_POLL_INTERVAL", "3"))
PIPELINE_SCHEDULE_REFRESH_INTERVAL = float(
    os.getenv("PIPELINE_SCHEDULE_REFRESH_INTERVAL", "60")
)


# Product Image Configuration

PRODUCT_IMAGE_ROOT = os.getenv(
    "PRODUCT_IMAGE_ROOT",
    str(BASE_DIR / "public" / "images" / "products"),
)
PRODUCT_IMAGE_URL_PREFIX = os.getenv("PRODUCT_IMAGE_URL_PREFIX", "/images/products")
PRODUCT_IMAGE_SIZE = (600, 400)
PRODUCT_IMAGE_BACKGROUND = (253, 251, 247)
PRODUCT_IMAGE_QUALITY = int(os.getenv("PRODUCT_IMAGE_QUALITY", "80"))
PRODUCT_IMAGE_DOWNLOAD_TIMEOUT = float(os.getenv("PRODUCT_IMAGE_DOWNLOAD_TIMEOUT", "30"))
