"""
Review and comparison generation for saved products.

Review flow: load specs + web review references -> sentiment analysis and
strategy (concurrently) -> critique article -> new ProductReview row.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from django.conf import settings

from content_pipeline.models import Product
from content_pipeline.services.content_generator import ContentGenerator
from content_pipeline.services.critique_writer import CritiqueWritingService
from content_pipeline.services.pipeline_types import ReviewArticle
from content_pipeline.services.product_repository import ProductRepository

logger = logging.getLogger(__name__)


@dataclass
class GeneratedReview:
    """A critique article and the ProductReview row it was saved as."""

    review_id: UUID
    article: ReviewArticle


class ReviewService:
    """Generates reviews and comparisons for products already in the database."""

    def __init__(
        self,
        llm=None,
        generator: Optional[ContentGenerator] = None,
        repository: Optional[ProductRepository] = None,
    ):
        if generator is None:
            from content_pipeline.services.llm_runner import get_llm_runner

            generator = ContentGenerator(llm or get_llm_runner())
        self.generator = generator
        self.writer = CritiqueWritingService(generator)
        self.repository = repository or ProductRepository()

    async def _require_product(self, slug: str):
        product_id = await self.repository.get_product_id(slug)
        if product_id is None:
            raise Product.DoesNotExist(f'Product "{slug}" not found')
        specs = await self.repository.find_by_slug(slug)
        return product_id, specs

    async def generate_and_save_review(self, slug: str) -> GeneratedReview:
        """
        Write and persist a new review for a product.

        Raises:
            Product.DoesNotExist: If no product has this slug
        """
        product_id, specs = await self._require_product(slug)
        references = await self.repository.list_web_reviews(product_id)
        logger.info(f"Generating review for {slug} ({len(references)} web reviews)")

        article = await self.writer.write_comprehensive_review(specs, references)
        review_id = await self.repository.save_review(product_id, article)
        logger.info(f"Saved review {review_id} for {slug}")
        return GeneratedReview(review_id=review_id, article=article)

    async def generate_comparison_for_slugs(
        self,
        slug_a: str,
        slug_b: str,
        category: Optional[str] = None,
    ) -> str:
        """
        Comparison text for two saved products.

        Raises:
            Product.DoesNotExist: If either slug is unknown
        """
        _, specs_a = await self._require_product(slug_a)
        _, specs_b = await self._require_product(slug_b)
        category = category or getattr(settings, "PIPELINE_DEFAULT_CATEGORY", "노트북")
        return await self.generator.generate_comparison(specs_a, specs_b, category)
