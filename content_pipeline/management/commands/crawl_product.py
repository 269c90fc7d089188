"""
Management command to crawl and save a single product page.

Extracts the specs, searches the web for third-party reviews, and saves the
product with its image, crawl history and review references.

Usage:
    python manage.py crawl_product https://example.com/products/laptop-15
    python manage.py crawl_product <url> --keyword="LG gram 15"
"""

import asyncio

from django.core.management.base import BaseCommand, CommandError

from content_pipeline.exceptions import PipelineError
from content_pipeline.fetchers.playwright_crawler import PlaywrightCrawler
from content_pipeline.services.llm_runner import get_llm_runner
from content_pipeline.services.pipeline_orchestrator import PipelineOrchestrator
from content_pipeline.services.product_gathering import ProductGatheringService


class Command(BaseCommand):
    help = "Crawl one product page and save it with web review references"

    def add_arguments(self, parser):
        parser.add_argument("url", type=str, help="Product page URL")
        parser.add_argument(
            "--keyword",
            type=str,
            default=None,
            help='Review search keyword (default: "<maker> <model>")',
        )
        parser.add_argument("--category-id", type=str, default=None)

    def handle(self, *args, **options):
        try:
            saved = asyncio.run(
                self._crawl(options["url"], options["keyword"], options["category_id"])
            )
        except PipelineError as e:
            raise CommandError(str(e))

        self.stdout.write(self.style.SUCCESS(
            f"\nSaved {saved.specs.maker} {saved.specs.model} ({saved.slug})"
        ))
        self.stdout.write(f"  Product id: {saved.product_id}")
        self.stdout.write(f"  Image: {saved.image_url or '-'}")
        self.stdout.write(f"  Web reviews: {saved.web_reviews_saved}")

    async def _crawl(self, url, keyword, category_id):
        async def log(message: str) -> None:
            self.stdout.write(message)

        async with PlaywrightCrawler() as crawler:
            orchestrator = PipelineOrchestrator(get_llm_runner(), crawler=crawler)
            service = ProductGatheringService(orchestrator)
            return await service.crawl_and_save(url, keyword, category_id, log)
