"""
Content pipeline application configuration.
"""

from django.apps import AppConfig


class ContentPipelineConfig(AppConfig):
    """Configuration for the content_pipeline Django application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "content_pipeline"
    verbose_name = "Content Pipeline"
