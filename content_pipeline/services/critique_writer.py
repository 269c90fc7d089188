"""
Critique writing service.
"""

import asyncio
import logging
from typing import Sequence

from content_pipeline.services.content_generator import ContentGenerator
from content_pipeline.services.pipeline_types import ProductSpecs, ReviewArticle, WebReview

logger = logging.getLogger(__name__)


class CritiqueWritingService:
    """
    Produces the full review for a product.

    Sentiment analysis and strategy generation read disjoint inputs (web
    reviews vs. specs), so they run concurrently before the critique step.
    """

    def __init__(self, generator: ContentGenerator):
        self.generator = generator

    async def write_comprehensive_review(
        self,
        specs: ProductSpecs,
        reviews: Sequence[WebReview],
    ) -> ReviewArticle:
        logger.info(
            f"Writing review for {specs.maker} {specs.model} from {len(reviews)} web reviews"
        )
        sentiment, strategy = await asyncio.gather(
            self.generator.analyze_web_sentiments(reviews),
            self.generator.generate_product_strategy(specs),
        )
        return await self.generator.generate_critique_article(specs, sentiment, strategy)
