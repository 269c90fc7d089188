"""
Product repository - async persistence facade over the Django ORM.

Products are upserted by slug: the first save creates the row, later saves
overwrite the spec fields and keep the id. Crawl history, web review
references and generated reviews are insert-only.
"""

import hashlib
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence
from uuid import UUID

from asgiref.sync import sync_to_async
from django.db import transaction
from django.utils import timezone

from content_pipeline.models import (
    CrawlHistory,
    Product,
    ProductReview,
    WebReviewReference,
)
from content_pipeline.services.pipeline_types import ProductSpecs, ReviewArticle, WebReview

logger = logging.getLogger(__name__)


def compute_html_hash(html: str) -> str:
    """SHA-256 hex digest of the exact HTML handed to extraction."""
    return hashlib.sha256(html.encode("utf-8")).hexdigest()


def _spec_fields(specs: ProductSpecs) -> dict:
    return {
        "maker": specs.maker,
        "model": specs.model,
        "cpu": specs.cpu,
        "ram": float(specs.ram),
        "storage": specs.storage,
        "gpu": specs.gpu,
        "display_size": float(specs.display_size),
        "weight": float(specs.weight),
        "os": specs.os,
        "price": Decimal(str(specs.price)).quantize(Decimal("0.01")),
    }


class ProductRepository:
    """
    Async persistence port used by the pipeline services.

    Each public coroutine wraps one synchronous ORM method with
    sync_to_async(thread_sensitive=True).
    """

    # Synchronous implementations

    def _save_product(
        self,
        slug: str,
        specs: ProductSpecs,
        category_id: Optional[str] = None,
    ) -> UUID:
        defaults = _spec_fields(specs)
        if category_id is not None:
            defaults["category_id"] = category_id

        with transaction.atomic():
            product = Product.objects.select_for_update().filter(slug=slug).first()
            if product is None:
                product = Product.objects.create(slug=slug, **defaults)
                logger.info(f"Created product {slug}")
            else:
                for name, value in defaults.items():
                    setattr(product, name, value)
                product.save()
                logger.info(f"Updated product {slug}")
        return product.id

    def _save_crawl_history(
        self,
        product_id: UUID,
        url: str,
        html_hash: str,
        last_crawled_at: Optional[datetime] = None,
    ) -> CrawlHistory:
        return CrawlHistory.objects.create(
            product_id=product_id,
            url=url,
            html_hash=html_hash,
            last_crawled_at=last_crawled_at or timezone.now(),
        )

    def _save_web_reviews(self, product_id: UUID, reviews: Sequence[WebReview]) -> int:
        if not reviews:
            return 0
        created = WebReviewReference.objects.bulk_create(
            [
                WebReviewReference(
                    product_id=product_id,
                    source=review.source,
                    url=review.url,
                    summary_text=review.summary_text,
                    sentiment=review.sentiment,
                )
                for review in reviews
            ]
        )
        return len(created)

    def _find_by_slug(self, slug: str) -> Optional[ProductSpecs]:
        product = Product.objects.filter(slug=slug).first()
        return product.to_specs() if product else None

    def _get_product_id(self, slug: str) -> Optional[UUID]:
        return Product.objects.filter(slug=slug).values_list("id", flat=True).first()

    def _update_image_url(self, product_id: UUID, image_url: str) -> None:
        Product.objects.filter(id=product_id).update(
            image_url=image_url, updated_at=timezone.now()
        )

    def _list_web_reviews(self, product_id: UUID) -> List[WebReview]:
        return [
            WebReview(
                source=ref.source,
                url=ref.url,
                summary_text=ref.summary_text,
                sentiment=ref.sentiment,
            )
            for ref in WebReviewReference.objects.filter(product_id=product_id).order_by(
                "created_at", "id"
            )
        ]

    def _save_review(self, product_id: UUID, article: ReviewArticle) -> UUID:
        review = ProductReview.objects.create(
            product_id=product_id,
            summary=article.summary,
            pros=list(article.pros),
            cons=list(article.cons),
            recommended_for=article.recommended_for,
            not_recommended_for=article.not_recommended_for,
            spec_highlights=list(article.spec_highlights),
            strategy=article.strategy.to_dict() if article.strategy else None,
            sentiment_analysis=(
                article.sentiment_analysis.to_dict() if article.sentiment_analysis else None
            ),
        )
        return review.id

    # Async API

    async def save_product(
        self,
        slug: str,
        specs: ProductSpecs,
        category_id: Optional[str] = None,
    ) -> UUID:
        """
        Create or update the product with this slug.

        Safe to call repeatedly: the id never changes and the last write wins.
        category_id is left untouched when None.
        """
        return await sync_to_async(self._save_product, thread_sensitive=True)(
            slug, specs, category_id
        )

    async def save_crawl_history(
        self,
        product_id: UUID,
        url: str,
        html_hash: str,
        last_crawled_at: Optional[datetime] = None,
    ) -> CrawlHistory:
        return await sync_to_async(self._save_crawl_history, thread_sensitive=True)(
            product_id, url, html_hash, last_crawled_at
        )

    async def save_web_reviews(self, product_id: UUID, reviews: Sequence[WebReview]) -> int:
        """Bulk insert review references; an empty list is a no-op."""
        if not reviews:
            return 0
        return await sync_to_async(self._save_web_reviews, thread_sensitive=True)(
            product_id, list(reviews)
        )

    async def find_by_slug(self, slug: str) -> Optional[ProductSpecs]:
        return await sync_to_async(self._find_by_slug, thread_sensitive=True)(slug)

    async def get_product_id(self, slug: str) -> Optional[UUID]:
        return await sync_to_async(self._get_product_id, thread_sensitive=True)(slug)

    async def update_image_url(self, product_id: UUID, image_url: str) -> None:
        await sync_to_async(self._update_image_url, thread_sensitive=True)(
            product_id, image_url
        )

    async def list_web_reviews(self, product_id: UUID) -> List[WebReview]:
        return await sync_to_async(self._list_web_reviews, thread_sensitive=True)(product_id)

    async def save_review(self, product_id: UUID, article: ReviewArticle) -> UUID:
        return await sync_to_async(self._save_review, thread_sensitive=True)(
            product_id, article
        )
