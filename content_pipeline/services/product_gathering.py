"""
Single product gathering.

Crawls one product page, extracts its specs, searches the web for
third-party reviews and extracts review references from them. Used by the
crawl_product management command for ad-hoc (re)crawls outside the
listing-driven pipeline.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional
from uuid import UUID

from django.conf import settings
from django.utils import timezone

from content_pipeline.fetchers.review_search import search_web_for_reviews
from content_pipeline.services.pipeline_orchestrator import IMAGE_SKILL, PipelineOrchestrator
from content_pipeline.services.pipeline_types import (
    LogCallback,
    ProductSpecs,
    RawPage,
    WebReview,
    log_to_logger,
)
from content_pipeline.services.product_repository import compute_html_hash
from content_pipeline.utils.slugs import build_slug

logger = logging.getLogger(__name__)


@dataclass
class GatheredProduct:
    """Specs and review references gathered for one product page."""

    raw: RawPage
    specs: ProductSpecs
    references: List[WebReview] = field(default_factory=list)


@dataclass
class SavedProduct:
    """Outcome of crawl_and_save()."""

    product_id: UUID
    slug: str
    specs: ProductSpecs
    image_url: Optional[str] = None
    web_reviews_saved: int = 0


class ProductGatheringService:
    """
    Gathers and saves a single product.

    Wraps a PipelineOrchestrator to reuse its crawler, extractor, repository
    and image step.
    """

    def __init__(self, orchestrator: PipelineOrchestrator, review_search=search_web_for_reviews):
        if orchestrator.crawler is None:
            raise ValueError("ProductGatheringService needs an orchestrator with a crawler")
        self.orchestrator = orchestrator
        self.review_search = review_search

    async def gather_product_and_reviews(
        self,
        url: str,
        search_keyword: Optional[str] = None,
    ) -> GatheredProduct:
        """
        Crawl a product page and collect web review references for it.

        Args:
            url: Manufacturer product page
            search_keyword: Review search keyword; defaults to "<maker> <model>"
        """
        crawler = self.orchestrator.crawler
        raw = await crawler.crawl_existing_product(url)
        specs = await self.orchestrator.extractor.extract_specs(raw)

        keyword = search_keyword or f"{specs.maker} {specs.model}"
        review_pages = await self.review_search(keyword, crawler)
        references = await self.orchestrator.extractor.extract_web_reviews(review_pages)

        return GatheredProduct(raw=raw, specs=specs, references=references)

    async def crawl_and_save(
        self,
        url: str,
        search_keyword: Optional[str] = None,
        category_id: Optional[str] = None,
        log: LogCallback = log_to_logger,
    ) -> SavedProduct:
        """
        Gather a product and persist it with image, crawl history and web
        review references.
        """
        await log(f"Crawling: {url}")
        gathered = await self.gather_product_and_reviews(url, search_keyword)
        specs = gathered.specs
        slug = build_slug(specs.maker, specs.model)
        await log(f"Extracted: {specs.maker} {specs.model} (slug: {slug})")

        repository = self.orchestrator.repository
        category_id = category_id or getattr(settings, "PIPELINE_DEFAULT_CATEGORY_ID", None)
        product_id = await repository.save_product(slug, specs, category_id)
        await log(f"Saved product: {product_id}")

        image_url = None
        image_skill = self.orchestrator.skills.find_by_name(IMAGE_SKILL)
        if image_skill is not None:
            image_url = await self.orchestrator.store_product_image(
                image_skill, gathered.raw, slug, product_id, log
            )
        else:
            await log(f'Skill "{IMAGE_SKILL}" not found. Skipping image extraction.')

        await repository.save_crawl_history(
            product_id, url, compute_html_hash(gathered.raw.html), timezone.now()
        )

        saved_reviews = await repository.save_web_reviews(product_id, gathered.references)
        if saved_reviews:
            await log(f"Saved {saved_reviews} web reviews")

        return SavedProduct(
            product_id=product_id,
            slug=slug,
            specs=specs,
            image_url=image_url,
            web_reviews_saved=saved_reviews,
        )
