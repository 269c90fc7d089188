"""
Tests for JSON parsing, payload coercion and the spec extractor.
"""

import json

import pytest

from content_pipeline.exceptions import LlmOutputParseError, SkillNotFoundError
from content_pipeline.services.pipeline_types import (
    ProductSpecs,
    RawPage,
    SentimentAnalysis,
    WebReview,
    coerce_number,
)
from content_pipeline.services.spec_extractor import SpecExtractor, parse_llm_json
from content_pipeline.tests.fakes import ScriptedLlm, StubSkillRepository

SPECS_JSON = json.dumps({
    "maker": "Apple",
    "model": "MacBook Air 13",
    "cpu": "M3",
    "ram": "16GB",
    "storage": "512GB SSD",
    "gpu": "10-core GPU",
    "display_size": 13.6,
    "weight": "1.24 kg",
    "os": "macOS",
    "price": "1,890,000원",
})


class TestParseLlmJson:
    def test_plain_json(self):
        assert parse_llm_json('{"a": 1}') == {"a": 1}

    def test_json_inside_code_fence(self):
        text = 'Sure!\n```json\n{"maker": "LG", "ram": 16}\n```\nDone.'
        assert parse_llm_json(text) == {"maker": "LG", "ram": 16}

    def test_no_json_raises(self):
        with pytest.raises(LlmOutputParseError) as exc_info:
            parse_llm_json("I could not find any specs.")
        assert exc_info.value.raw_output == "I could not find any specs."

    def test_malformed_json_raises(self):
        with pytest.raises(LlmOutputParseError):
            parse_llm_json('result: {"maker": "LG", }')

    def test_non_object_raises(self):
        with pytest.raises(LlmOutputParseError):
            parse_llm_json("[1, 2, 3]")


class TestPayloadCoercion:
    def test_coerce_number(self):
        assert coerce_number(16) == 16
        assert coerce_number("16GB") == 16
        assert coerce_number("1,990,000원") == 1990000
        assert coerce_number("1.24 kg") == 1.24
        assert coerce_number("unknown") == 0
        assert coerce_number(None) == 0
        assert coerce_number(True) == 0

    def test_coerce_number_non_finite_becomes_zero(self):
        assert coerce_number(float("nan")) == 0
        assert coerce_number(float("inf")) == 0
        assert coerce_number(float("-inf")) == 0

    def test_product_specs_defaults(self):
        specs = ProductSpecs.from_payload({"maker": "LG"})
        assert specs.maker == "LG"
        assert specs.model == "Unknown"
        assert specs.cpu == "Unknown"
        assert specs.ram == 0
        assert specs.price == 0

    def test_product_specs_accepts_camel_case_display_size(self):
        assert ProductSpecs.from_payload({"displaySize": "15.6인치"}).display_size == 15.6

    def test_web_review_without_url_is_dropped(self):
        assert WebReview.from_payload({"source": "Blog", "summaryText": "good"}) is None

    def test_web_review_unknown_sentiment_becomes_neutral(self):
        review = WebReview.from_payload(
            {"source": "Blog", "url": "https://blog.example.com/1", "sentiment": "mixed"}
        )
        assert review.sentiment == "NEUTRAL"

    def test_sentiment_analysis_clamps_score(self):
        assert SentimentAnalysis.from_payload({"overallScore": 140}).overall_score == 100
        assert SentimentAnalysis.from_payload({"overallScore": -3}).overall_score == 0
        assert SentimentAnalysis.from_payload({"reliability": "certain"}).reliability == "LOW"


class TestSpecExtractor:
    @pytest.mark.asyncio
    async def test_extract_specs_coerces_fields(self):
        llm = ScriptedLlm({SpecExtractor.SPECS_SKILL: f"```json\n{SPECS_JSON}\n```"})
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        specs = await extractor.extract_specs(RawPage(url="https://a.com/p", html="<html/>"))

        assert specs.maker == "Apple"
        assert specs.ram == 16
        assert specs.display_size == 13.6
        assert specs.weight == 1.24
        assert specs.price == 1890000

    @pytest.mark.asyncio
    async def test_extract_specs_non_finite_numbers_default_to_zero(self):
        llm = ScriptedLlm({
            SpecExtractor.SPECS_SKILL:
                '{"maker": "LG", "model": "gram 16", "price": NaN, "weight": Infinity}'
        })
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        specs = await extractor.extract_specs(RawPage(url="https://a.com/p", html="<html/>"))

        assert specs.model == "gram 16"
        assert specs.price == 0
        assert specs.weight == 0

    @pytest.mark.asyncio
    async def test_extract_specs_truncates_html(self):
        llm = ScriptedLlm({SpecExtractor.SPECS_SKILL: SPECS_JSON})
        extractor = SpecExtractor(
            llm,
            skills=StubSkillRepository(templates={SpecExtractor.SPECS_SKILL: "{{html}}"}),
            spec_html_chars=10,
        )

        await extractor.extract_specs(RawPage(url="https://a.com/p", html="x" * 100))

        assert llm.calls_for(SpecExtractor.SPECS_SKILL) == ["x" * 10]

    @pytest.mark.asyncio
    async def test_extract_specs_unparseable_response(self):
        llm = ScriptedLlm({SpecExtractor.SPECS_SKILL: "Sorry, no product here."})
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        with pytest.raises(LlmOutputParseError):
            await extractor.extract_specs(RawPage(url="https://a.com/p", html=""))

    @pytest.mark.asyncio
    async def test_missing_skill_fails_before_llm_call(self):
        llm = ScriptedLlm()
        extractor = SpecExtractor(llm, skills=StubSkillRepository(names=[]))

        with pytest.raises(SkillNotFoundError):
            await extractor.extract_specs(RawPage(url="https://a.com/p", html=""))
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_validate_specs(self):
        llm = ScriptedLlm({
            SpecExtractor.VALIDATION_SKILL: '{"isValid": false, "errors": ["RAM mismatch"]}'
        })
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        result = await extractor.validate_specs(
            ProductSpecs(maker="LG"), RawPage(url="https://a.com", html="")
        )

        assert result.is_valid is False
        assert result.errors == ["RAM mismatch"]

    @pytest.mark.asyncio
    async def test_validate_specs_requires_literal_true(self):
        llm = ScriptedLlm({SpecExtractor.VALIDATION_SKILL: '{"isValid": "yes"}'})
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        result = await extractor.validate_specs(
            ProductSpecs(), RawPage(url="https://a.com", html="")
        )
        assert result.is_valid is False

    @pytest.mark.asyncio
    async def test_extract_web_reviews_empty_input_skips_llm(self):
        llm = ScriptedLlm()
        extractor = SpecExtractor(llm, skills=StubSkillRepository())

        assert await extractor.extract_web_reviews([]) == []
        assert llm.calls == []

    @pytest.mark.asyncio
    async def test_extract_web_reviews_formats_pages_and_filters_entries(self):
        payload = {
            "reviews": [
                {
                    "source": "Naver Blog",
                    "url": "https://blog.naver.com/1",
                    "summaryText": "배터리가 오래간다",
                    "sentiment": "positive",
                },
                {"source": "Reddit", "summaryText": "no url"},
                "garbage",
            ]
        }
        llm = ScriptedLlm({SpecExtractor.REVIEWS_SKILL: json.dumps(payload, ensure_ascii=False)})
        extractor = SpecExtractor(
            llm,
            skills=StubSkillRepository(templates={SpecExtractor.REVIEWS_SKILL: "{{pages}}"}),
        )

        reviews = await extractor.extract_web_reviews([
            RawPage(url="https://blog.naver.com/1", html="<p>a</p>"),
            RawPage(url="https://reddit.com/r/1", html="<p>b</p>"),
        ])

        assert len(reviews) == 1
        assert reviews[0].sentiment == "POSITIVE"
        assert reviews[0].summary_text == "배터리가 오래간다"
        prompt = llm.calls_for(SpecExtractor.REVIEWS_SKILL)[0]
        assert prompt == (
            "Page 1 (https://blog.naver.com/1):\n<p>a</p>\n\n"
            "Page 2 (https://reddit.com/r/1):\n<p>b</p>"
        )
