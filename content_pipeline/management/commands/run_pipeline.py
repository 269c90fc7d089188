"""
Management command to run the crawl/extract pipeline in the foreground.

Bypasses the job queue: progress is printed to the console and nothing is
written to pipeline_jobs. Without --listing-url, listing pages are
discovered first.

Usage:
    python manage.py run_pipeline --listing-url=https://example.com/laptops
    python manage.py run_pipeline --category=노트북 --makers=Apple,LG
"""

import asyncio

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from content_pipeline.exceptions import PipelineError
from content_pipeline.fetchers.playwright_crawler import PlaywrightCrawler
from content_pipeline.services.discovery import ListingDiscoveryService
from content_pipeline.services.llm_runner import get_llm_runner
from content_pipeline.services.pipeline_orchestrator import PipelineOrchestrator
from content_pipeline.services.pipeline_types import PipelineParams


class Command(BaseCommand):
    help = "Run the crawl/extract pipeline without the job queue"

    def add_arguments(self, parser):
        parser.add_argument(
            "--listing-url",
            action="append",
            dest="listing_urls",
            default=[],
            help="Listing page to process (repeatable)",
        )
        parser.add_argument("--category", type=str, default=None)
        parser.add_argument(
            "--makers",
            type=str,
            default=None,
            help="Comma separated makers (default: PIPELINE_DEFAULT_MAKERS)",
        )
        parser.add_argument(
            "--category-id",
            type=str,
            default=None,
            help="Storefront category id for saved products",
        )

    def handle(self, *args, **options):
        category = options["category"] or settings.PIPELINE_DEFAULT_CATEGORY
        makers = (
            [m.strip() for m in options["makers"].split(",") if m.strip()]
            if options["makers"]
            else list(settings.PIPELINE_DEFAULT_MAKERS)
        )

        try:
            result = asyncio.run(
                self._run(category, makers, options["listing_urls"], options["category_id"])
            )
        except PipelineError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"\nSaved {result.products_saved} products from "
            f"{result.listings_processed} listing pages"
        ))
        if result.errors:
            self.stdout.write(self.style.WARNING(f"{len(result.errors)} errors:"))
            for error in result.errors:
                self.stdout.write(f"  {error}")

    async def _run(self, category, makers, listing_urls, category_id):
        async def log(message: str) -> None:
            self.stdout.write(message)

        llm = get_llm_runner()
        async with PlaywrightCrawler() as crawler:
            if not listing_urls:
                discovery = ListingDiscoveryService(llm, crawler=crawler)
                listing_urls = await discovery.discover_listing_urls(category, makers, log)

            orchestrator = PipelineOrchestrator(llm, crawler=crawler)
            return await orchestrator.run(
                PipelineParams(
                    category=category,
                    makers=makers,
                    listing_urls=listing_urls,
                    category_id=category_id,
                ),
                log,
            )
