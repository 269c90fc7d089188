"""
Pipeline Orchestrator - listing pages to saved products.

For each listing URL:
    crawl -> LLM link extraction -> for each product URL:
        crawl -> extract specs -> slug -> upsert product
        -> best-effort image -> crawl history (SHA-256 of the crawled HTML)

Every listing and every product is processed inside its own error guard:
a failure is logged through the log callback and the loop moves on. Only
errors raised outside those guards (e.g. a missing required skill) fail
the run.
"""

import logging
from typing import Optional

from django.conf import settings
from django.utils import timezone

from content_pipeline.fetchers.playwright_crawler import PlaywrightCrawler
from content_pipeline.services.image_processor import ImageProcessor
from content_pipeline.services.pipeline_types import (
    LogCallback,
    PipelineParams,
    PipelineRunResult,
    RawPage,
    log_to_logger,
)
from content_pipeline.services.product_repository import (
    ProductRepository,
    compute_html_hash,
)
from content_pipeline.services.skill_store import (
    AiSkill,
    FileSkillRepository,
    require_skill,
    run_skill,
)
from content_pipeline.services.spec_extractor import SpecExtractor
from content_pipeline.utils.slugs import build_slug
from content_pipeline.utils.urls import find_first_image_url, parse_discovered_urls

logger = logging.getLogger(__name__)

LINKS_SKILL = "extract-product-links"
IMAGE_SKILL = "extract-product-image"


class PipelineOrchestrator:
    """
    Runs the crawl-and-extract pipeline over a set of listing pages.

    Collaborators are injected so tests can substitute fakes. A crawler that
    the orchestrator creates itself is closed when run() returns.
    """

    def __init__(
        self,
        llm,
        crawler=None,
        repository: Optional[ProductRepository] = None,
        extractor: Optional[SpecExtractor] = None,
        image_processor: Optional[ImageProcessor] = None,
        skills: Optional[FileSkillRepository] = None,
        max_product_links: Optional[int] = None,
    ):
        self.llm = llm
        self.crawler = crawler
        self.skills = skills or FileSkillRepository()
        self.repository = repository or ProductRepository()
        self.extractor = extractor or SpecExtractor(llm, skills=self.skills)
        self.image_processor = image_processor or ImageProcessor()
        self.max_product_links = max_product_links or getattr(
            settings, "PIPELINE_MAX_PRODUCT_LINKS", 10
        )
        self.listing_html_chars = getattr(settings, "PIPELINE_LISTING_HTML_CHARS", 15000)
        self.image_html_chars = getattr(settings, "PIPELINE_IMAGE_HTML_CHARS", 10000)

    async def run(
        self,
        params: PipelineParams,
        log: LogCallback = log_to_logger,
    ) -> PipelineRunResult:
        """
        Process every listing URL in params.

        Args:
            params: Category, makers, listing URLs and optional category id
            log: Async callback receiving progress lines in emission order

        Returns:
            PipelineRunResult with counts and per-item error messages

        Raises:
            SkillNotFoundError: If the link extraction skill is missing
        """
        links_skill = require_skill(self.skills, LINKS_SKILL)
        image_skill = self.skills.find_by_name(IMAGE_SKILL)
        if image_skill is None:
            logger.info(f"Skill '{IMAGE_SKILL}' not installed; product images skipped")

        category_id = params.category_id or getattr(
            settings, "PIPELINE_DEFAULT_CATEGORY_ID", None
        )
        result = PipelineRunResult()

        owns_crawler = self.crawler is None
        crawler = self.crawler or PlaywrightCrawler()

        try:
            await log(f"Pipeline starting: {len(params.listing_urls)} listing pages")

            for listing_url in params.listing_urls:
                try:
                    await log(f"--- Processing listing: {listing_url} ---")
                    product_urls = await self._extract_product_urls(
                        crawler, links_skill, params.category, listing_url
                    )
                    await log(f"Found {len(product_urls)} product pages")

                    for product_url in product_urls:
                        try:
                            product_id = await self._process_product(
                                crawler, image_skill, product_url, category_id, log
                            )
                            result.products_saved += 1
                            result.product_ids.append(product_id)
                        except Exception as e:
                            logger.warning(f"Product {product_url} failed: {e}")
                            result.errors.append(f"{product_url}: {e}")
                            await log(f"  Error processing {product_url}: {e}")

                    result.listings_processed += 1

                except Exception as e:
                    logger.warning(f"Listing {listing_url} failed: {e}")
                    result.errors.append(f"{listing_url}: {e}")
                    await log(f"Error processing listing {listing_url}: {e}")

            await log("Pipeline complete!")
            return result

        finally:
            if owns_crawler:
                await crawler.close()

    async def _extract_product_urls(
        self,
        crawler,
        links_skill: AiSkill,
        category: str,
        listing_url: str,
    ):
        listing = await crawler.crawl_existing_product(listing_url)
        response = await run_skill(
            self.llm,
            links_skill,
            {
                "category": category,
                "maxLinks": str(self.max_product_links),
                "baseUrl": listing_url,
                "html": listing.html[: self.listing_html_chars],
            },
        )
        return parse_discovered_urls(response)[: self.max_product_links]

    async def _process_product(
        self,
        crawler,
        image_skill: Optional[AiSkill],
        product_url: str,
        category_id: Optional[str],
        log: LogCallback,
    ):
        await log(f"  Crawling: {product_url}")
        raw = await crawler.crawl_existing_product(product_url)
        specs = await self.extractor.extract_specs(raw)
        slug = build_slug(specs.maker, specs.model)

        product_id = await self.repository.save_product(slug, specs, category_id)
        await log(f"  Saved: {specs.maker} {specs.model} ({slug})")

        if image_skill is not None:
            await self.store_product_image(image_skill, raw, slug, product_id, log)

        await self.repository.save_crawl_history(
            product_id,
            product_url,
            compute_html_hash(raw.html),
            timezone.now(),
        )
        return product_id

    async def store_product_image(
        self,
        image_skill: AiSkill,
        raw: RawPage,
        slug: str,
        product_id,
        log: LogCallback,
    ) -> Optional[str]:
        """Best-effort image step; failures are logged and never raised."""
        try:
            response = await run_skill(
                self.llm,
                image_skill,
                {"url": raw.url, "html": raw.html[: self.image_html_chars]},
            )
            image_url = find_first_image_url(response)
            if not image_url:
                logger.info(f"No image URL found for {slug}")
                return None

            local_path = await self.image_processor.download_and_process(image_url, slug)
            if local_path:
                await self.repository.update_image_url(product_id, local_path)
                await log(f"  Image: {local_path}")
            return local_path

        except Exception as e:
            logger.warning(f"Image step skipped for {slug}: {e}")
            await log(f"  Image skipped for {slug}: {e}")
            return None


async def run_pipeline(
    params: PipelineParams,
    log: LogCallback = log_to_logger,
    llm=None,
) -> PipelineRunResult:
    """Run the pipeline with default collaborators and a private browser."""
    from content_pipeline.services.llm_runner import get_llm_runner

    orchestrator = PipelineOrchestrator(llm or get_llm_runner())
    return await orchestrator.run(params, log)
