"""
Management command to compare two saved products.

Usage:
    python manage.py generate_comparison <slug-a> <slug-b> [--category=노트북]
"""

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from content_pipeline.exceptions import PipelineError
from content_pipeline.models import Product
from content_pipeline.services.review_service import ReviewService


class Command(BaseCommand):
    help = "Generate comparison text for two products"

    def add_arguments(self, parser):
        parser.add_argument("slug_a", type=str)
        parser.add_argument("slug_b", type=str)
        parser.add_argument("--category", type=str, default=None)

    def handle(self, *args, **options):
        try:
            comparison = async_to_sync(ReviewService().generate_comparison_for_slugs)(
                options["slug_a"], options["slug_b"], options["category"]
            )
        except (Product.DoesNotExist, PipelineError) as e:
            raise CommandError(str(e))

        self.stdout.write(comparison)
