"""
Management command to discover listing pages for a category.

Asks the LLM for candidate listing URLs, then verifies each one by crawling
it and asking the validation skill. Prints the verified URLs.

Usage:
    python manage.py discover_listings
    python manage.py discover_listings --category=노트북 --makers=Apple,Samsung
"""

import asyncio

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from content_pipeline.exceptions import PipelineError
from content_pipeline.services.discovery import discover_listing_urls


class Command(BaseCommand):
    help = "Discover and verify manufacturer listing pages"

    def add_arguments(self, parser):
        parser.add_argument(
            "--category",
            type=str,
            default=None,
            help="Product category (default: PIPELINE_DEFAULT_CATEGORY)",
        )
        parser.add_argument(
            "--makers",
            type=str,
            default=None,
            help="Comma separated makers (default: PIPELINE_DEFAULT_MAKERS)",
        )

    def handle(self, *args, **options):
        category = options["category"] or settings.PIPELINE_DEFAULT_CATEGORY
        makers = (
            [m.strip() for m in options["makers"].split(",") if m.strip()]
            if options["makers"]
            else list(settings.PIPELINE_DEFAULT_MAKERS)
        )

        async def log(message: str) -> None:
            self.stdout.write(message)

        try:
            urls = asyncio.run(discover_listing_urls(category, makers, log))
        except PipelineError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(f"\n{len(urls)} verified listing URLs:"))
        for url in urls:
            self.stdout.write(f"  {url}")
