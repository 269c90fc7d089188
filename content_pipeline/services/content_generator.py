"""
Content Generator - strategy, sentiment, critique and comparison text.

Every step is one skill rendered and run on the LLM. The critique article
is a composition: it runs only the review skill and embeds the strategy and
sentiment analysis it was given.
"""

import json
import logging
from typing import Optional, Sequence

from content_pipeline.services.pipeline_types import (
    ProductSpecs,
    ProductStrategy,
    ReviewArticle,
    SentimentAnalysis,
    WebReview,
)
from content_pipeline.services.skill_store import (
    FileSkillRepository,
    require_skill,
    run_skill,
)
from content_pipeline.services.spec_extractor import parse_llm_json

logger = logging.getLogger(__name__)


def _to_json(value) -> str:
    return json.dumps(value, ensure_ascii=False)


class ContentGenerator:
    """Generates review content for products."""

    STRATEGY_SKILL = "generate-strategy"
    SENTIMENT_SKILL = "analyze-sentiment"
    REVIEW_SKILL = "generate-review"
    COMPARISON_SKILL = "generate-comparison"

    def __init__(self, llm, skills: Optional[FileSkillRepository] = None):
        self.llm = llm
        self.skills = skills or FileSkillRepository()

    async def _run(self, skill_name: str, context) -> str:
        skill = require_skill(self.skills, skill_name)
        return await run_skill(self.llm, skill, context)

    async def generate_product_strategy(self, specs: ProductSpecs) -> ProductStrategy:
        response = await self._run(self.STRATEGY_SKILL, specs.to_context())
        return ProductStrategy.from_payload(parse_llm_json(response))

    async def analyze_web_sentiments(self, reviews: Sequence[WebReview]) -> SentimentAnalysis:
        """
        Summarise web reviews into a 0-100 score and a reliability tier.
        """
        summaries = "\n".join(
            f"[{review.source}] ({review.sentiment}) {review.summary_text}"
            for review in reviews
        )
        response = await self._run(self.SENTIMENT_SKILL, {"reviews": summaries or "(none)"})
        return SentimentAnalysis.from_payload(parse_llm_json(response))

    async def generate_critique_article(
        self,
        specs: ProductSpecs,
        sentiment: SentimentAnalysis,
        strategy: ProductStrategy,
    ) -> ReviewArticle:
        """
        Write the critique article.

        The strategy and sentiment analysis are passed to the prompt as context
        and attached to the result unchanged; they are not regenerated.
        """
        context = specs.to_context()
        context["strategy"] = _to_json(strategy.to_dict())
        context["sentiment"] = _to_json(sentiment.to_dict())

        response = await self._run(self.REVIEW_SKILL, context)
        return ReviewArticle.from_payload(
            parse_llm_json(response),
            strategy=strategy,
            sentiment_analysis=sentiment,
        )

    async def generate_comparison(
        self,
        specs_a: ProductSpecs,
        specs_b: ProductSpecs,
        category: str,
    ) -> str:
        """Free-form comparison text for two products."""
        return await self._run(
            self.COMPARISON_SKILL,
            {
                "category": category,
                "productA": _to_json(specs_a.to_dict()),
                "productB": _to_json(specs_b.to_dict()),
            },
        )
