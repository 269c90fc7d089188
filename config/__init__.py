"""
Django project package for the content pipeline.

Imports the Celery app so that shared tasks bind to it on startup.
"""

from .celery import app as celery_app

__all__ = ["celery_app"]
