"""
Tests for the content generator and the critique writing service.
"""

import asyncio
import json

import pytest

from content_pipeline.exceptions import LlmOutputParseError
from content_pipeline.services.content_generator import ContentGenerator
from content_pipeline.services.critique_writer import CritiqueWritingService
from content_pipeline.services.pipeline_types import (
    ProductSpecs,
    ProductStrategy,
    SentimentAnalysis,
    WebReview,
)
from content_pipeline.tests.fakes import ScriptedLlm, StubSkillRepository

SPECS = ProductSpecs(
    maker="LG",
    model="gram 16",
    cpu="Core Ultra 7",
    ram=16,
    storage="512GB",
    gpu="Arc",
    display_size=16,
    weight=1.19,
    os="Windows 11",
    price=2190000,
)

STRATEGY_JSON = json.dumps({
    "targetAudience": ["students", "office workers"],
    "keySellingPoints": ["light", "battery"],
    "competitors": ["MacBook Air 15"],
    "positioning": "Lightest 16-inch",
})
SENTIMENT_JSON = json.dumps({
    "overallScore": 78,
    "commonPraises": ["weight"],
    "commonComplaints": ["speakers"],
    "reliability": "MEDIUM",
})
ARTICLE_JSON = json.dumps({
    "summary": "가볍고 오래가는 16인치 노트북",
    "pros": ["무게", "배터리"],
    "cons": ["스피커"],
    "recommendedFor": "이동이 잦은 사용자",
    "notRecommendedFor": "게이머",
    "specHighlights": ["1.19kg"],
}, ensure_ascii=False)

REVIEWS = [
    WebReview(source="Naver Blog", url="https://blog.naver.com/1", summary_text="가볍다", sentiment="POSITIVE"),
    WebReview(source="Reddit", url="https://reddit.com/r/1", summary_text="tinny speakers", sentiment="NEGATIVE"),
]


def make_generator(responses, templates=None):
    llm = ScriptedLlm(responses)
    return llm, ContentGenerator(llm, skills=StubSkillRepository(templates=templates))


class TestContentGenerator:
    @pytest.mark.asyncio
    async def test_generate_product_strategy(self):
        _, generator = make_generator({ContentGenerator.STRATEGY_SKILL: STRATEGY_JSON})

        strategy = await generator.generate_product_strategy(SPECS)

        assert strategy.target_audience == ["students", "office workers"]
        assert strategy.positioning == "Lightest 16-inch"

    @pytest.mark.asyncio
    async def test_analyze_web_sentiments_formats_reviews(self):
        llm, generator = make_generator(
            {ContentGenerator.SENTIMENT_SKILL: SENTIMENT_JSON},
            templates={ContentGenerator.SENTIMENT_SKILL: "{{reviews}}"},
        )

        analysis = await generator.analyze_web_sentiments(REVIEWS)

        assert analysis.overall_score == 78
        assert analysis.reliability == "MEDIUM"
        assert llm.calls_for(ContentGenerator.SENTIMENT_SKILL) == [
            "[Naver Blog] (POSITIVE) 가볍다\n[Reddit] (NEGATIVE) tinny speakers"
        ]

    @pytest.mark.asyncio
    async def test_analyze_web_sentiments_without_reviews(self):
        llm, generator = make_generator(
            {ContentGenerator.SENTIMENT_SKILL: '{"overallScore": 50}'},
            templates={ContentGenerator.SENTIMENT_SKILL: "{{reviews}}"},
        )

        analysis = await generator.analyze_web_sentiments([])

        assert analysis.reliability == "LOW"
        assert llm.calls_for(ContentGenerator.SENTIMENT_SKILL) == ["(none)"]

    @pytest.mark.asyncio
    async def test_critique_article_embeds_inputs_without_regenerating(self):
        llm, generator = make_generator(
            {ContentGenerator.REVIEW_SKILL: ARTICLE_JSON},
            templates={ContentGenerator.REVIEW_SKILL: "{{model}}|{{strategy}}|{{sentiment}}"},
        )
        strategy = ProductStrategy.from_payload(json.loads(STRATEGY_JSON))
        sentiment = SentimentAnalysis.from_payload(json.loads(SENTIMENT_JSON))

        article = await generator.generate_critique_article(SPECS, sentiment, strategy)

        assert article.summary == "가볍고 오래가는 16인치 노트북"
        assert article.pros == ["무게", "배터리"]
        assert article.recommended_for == "이동이 잦은 사용자"
        assert article.strategy is strategy
        assert article.sentiment_analysis is sentiment
        assert [name for name, _ in llm.calls] == [ContentGenerator.REVIEW_SKILL]

        model, strategy_json, sentiment_json = llm.calls[0][1].split("|")
        assert model == "gram 16"
        assert json.loads(strategy_json)["positioning"] == "Lightest 16-inch"
        assert json.loads(sentiment_json)["overall_score"] == 78

    @pytest.mark.asyncio
    async def test_generate_comparison_returns_text(self):
        llm, generator = make_generator(
            {ContentGenerator.COMPARISON_SKILL: "A is lighter than B."},
            templates={ContentGenerator.COMPARISON_SKILL: "{{category}}|{{productA}}|{{productB}}"},
        )
        other = ProductSpecs(maker="Apple", model="MacBook Air 15")

        text = await generator.generate_comparison(SPECS, other, "노트북")

        assert text == "A is lighter than B."
        category, product_a, product_b = llm.calls[0][1].split("|")
        assert category == "노트북"
        assert json.loads(product_a)["model"] == "gram 16"
        assert json.loads(product_b)["maker"] == "Apple"


class ConcurrencyProbeLlm:
    """Answers sentiment and strategy only once both calls are in flight."""

    def __init__(self):
        self.both_started = asyncio.Event()
        self.started = set()
        self.order = []

    async def run(self, prompt, system_prompt=None, model=None, temperature=None):
        self.order.append(system_prompt)
        if system_prompt in (ContentGenerator.SENTIMENT_SKILL, ContentGenerator.STRATEGY_SKILL):
            self.started.add(system_prompt)
            if len(self.started) == 2:
                self.both_started.set()
            await asyncio.wait_for(self.both_started.wait(), timeout=2)
            if system_prompt == ContentGenerator.SENTIMENT_SKILL:
                return SENTIMENT_JSON
            return STRATEGY_JSON
        return ARTICLE_JSON


class TestCritiqueWritingService:
    @pytest.mark.asyncio
    async def test_sentiment_and_strategy_run_concurrently(self):
        llm = ConcurrencyProbeLlm()
        writer = CritiqueWritingService(ContentGenerator(llm, skills=StubSkillRepository()))

        article = await writer.write_comprehensive_review(SPECS, REVIEWS)

        assert llm.order[-1] == ContentGenerator.REVIEW_SKILL
        assert len(llm.order) == 3
        assert article.sentiment_analysis.overall_score == 78
        assert article.strategy.key_selling_points == ["light", "battery"]

    @pytest.mark.asyncio
    async def test_failure_in_one_branch_propagates(self):
        llm = ScriptedLlm({
            ContentGenerator.SENTIMENT_SKILL: SENTIMENT_JSON,
            ContentGenerator.STRATEGY_SKILL: "not json",
        })
        writer = CritiqueWritingService(ContentGenerator(llm, skills=StubSkillRepository()))

        with pytest.raises(LlmOutputParseError):
            await writer.write_comprehensive_review(SPECS, REVIEWS)
        assert llm.calls_for(ContentGenerator.REVIEW_SKILL) == []
