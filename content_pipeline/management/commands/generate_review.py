"""
Management command to generate a review for a saved product.

Runs sentiment analysis and strategy generation over the product's specs and
stored web review references, writes the critique article and saves it as a
new ProductReview.

Usage:
    python manage.py generate_review apple-macbook-air-13
"""

import json

from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from content_pipeline.exceptions import PipelineError
from content_pipeline.models import Product
from content_pipeline.services.review_service import ReviewService


class Command(BaseCommand):
    help = "Generate and save a critique article for a product"

    def add_arguments(self, parser):
        parser.add_argument("slug", type=str, help="Product slug")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the full article as JSON",
        )

    def handle(self, *args, **options):
        slug = options["slug"]
        try:
            generated = async_to_sync(ReviewService().generate_and_save_review)(slug)
        except (Product.DoesNotExist, PipelineError) as e:
            raise CommandError(str(e))

        if options["json"]:
            self.stdout.write(
                json.dumps(generated.article.to_dict(), ensure_ascii=False, indent=2)
            )

        self.stdout.write(self.style.SUCCESS(f"Saved review {generated.review_id} for {slug}"))
