"""
Celery tasks for the content pipeline.

- generate_product_review: write and save a critique article for a product
- generate_product_comparison: comparison text for two saved products

The crawl/extract pipeline is not a Celery task; it runs in the polling
worker (run_pipeline_worker) so that at most one job runs at a time.
"""

import logging
from typing import Any, Dict, Optional

from asgiref.sync import async_to_sync
from celery import shared_task

from content_pipeline.models import Product
from content_pipeline.services.review_service import ReviewService

logger = logging.getLogger(__name__)


@shared_task(name="content_pipeline.tasks.generate_product_review")
def generate_product_review(slug: str) -> Dict[str, Any]:
    """
    Generate and persist a new review for a product.

    Returns:
        Dict with the slug and the new review id, or an error for an
        unknown slug
    """
    logger.info(f"Generating review for {slug}")
    try:
        generated = async_to_sync(ReviewService().generate_and_save_review)(slug)
    except Product.DoesNotExist as e:
        logger.warning(str(e))
        return {"slug": slug, "error": str(e)}

    return {
        "slug": slug,
        "review_id": str(generated.review_id),
        "summary": generated.article.summary,
    }


@shared_task(name="content_pipeline.tasks.generate_product_comparison")
def generate_product_comparison(
    slug_a: str,
    slug_b: str,
    category: Optional[str] = None,
) -> Dict[str, Any]:
    """Comparison text for two products."""
    logger.info(f"Generating comparison {slug_a} vs {slug_b}")
    comparison = async_to_sync(ReviewService().generate_comparison_for_slugs)(
        slug_a, slug_b, category
    )
    return {"slug_a": slug_a, "slug_b": slug_b, "comparison": comparison}
