"""
Tests for review and comparison generation over saved products, and the
Celery tasks wrapping them.
"""

import json
from decimal import Decimal
from unittest.mock import patch

from asgiref.sync import async_to_sync
from django.test import TestCase

from content_pipeline.models import Product, ProductReview, WebReviewReference
from content_pipeline.services.content_generator import ContentGenerator
from content_pipeline.services.review_service import ReviewService
from content_pipeline.tasks import generate_product_comparison, generate_product_review
from content_pipeline.tests.fakes import ScriptedLlm, StubSkillRepository

SENTIMENT_JSON = json.dumps({
    "overallScore": 82,
    "commonPraises": ["가벼움"],
    "commonComplaints": ["발열"],
    "reliability": "HIGH",
})
STRATEGY_JSON = json.dumps({
    "targetAudience": ["대학생"],
    "keySellingPoints": ["1.2kg"],
    "competitors": ["MacBook Air"],
    "positioning": "휴대성 중심",
})
REVIEW_JSON = json.dumps({
    "summary": "가볍고 오래가는 노트북",
    "pros": ["배터리"],
    "cons": ["발열"],
    "recommendedFor": "학생",
    "notRecommendedFor": "게이머",
    "specHighlights": ["16GB RAM"],
})


def make_llm():
    return ScriptedLlm({
        ContentGenerator.SENTIMENT_SKILL: SENTIMENT_JSON,
        ContentGenerator.STRATEGY_SKILL: STRATEGY_JSON,
        ContentGenerator.REVIEW_SKILL: REVIEW_JSON,
        ContentGenerator.COMPARISON_SKILL: "gram이 더 가볍습니다.",
    })


def make_service(llm):
    return ReviewService(generator=ContentGenerator(llm, skills=StubSkillRepository()))


class ReviewServiceTests(TestCase):
    def setUp(self):
        self.product = Product.objects.create(
            slug="lg-gram-16", maker="LG", model="gram 16", ram=16, price=Decimal("1890000")
        )
        Product.objects.create(slug="apple-macbook-air-13", maker="Apple", model="MacBook Air 13")
        WebReviewReference.objects.create(
            product=self.product,
            source="YouTube",
            url="https://youtube.com/watch?v=gram",
            summary_text="배터리가 오래간다",
            sentiment="POSITIVE",
        )

    def test_generate_and_save_review_persists_article(self):
        llm = make_llm()

        generated = async_to_sync(make_service(llm).generate_and_save_review)("lg-gram-16")

        review = ProductReview.objects.get(id=generated.review_id)
        self.assertEqual(review.product_id, self.product.id)
        self.assertEqual(review.summary, "가볍고 오래가는 노트북")
        self.assertEqual(review.pros, ["배터리"])
        self.assertEqual(review.sentiment_analysis["overall_score"], 82)
        self.assertEqual(review.strategy["positioning"], "휴대성 중심")
        # web review summaries reach the sentiment prompt
        self.assertIn(
            "[YouTube] (POSITIVE) 배터리가 오래간다",
            llm.calls_for(ContentGenerator.SENTIMENT_SKILL)[0],
        )

    def test_each_generation_adds_a_new_review(self):
        service = make_service(make_llm())

        async_to_sync(service.generate_and_save_review)("lg-gram-16")
        async_to_sync(service.generate_and_save_review)("lg-gram-16")

        self.assertEqual(ProductReview.objects.filter(product=self.product).count(), 2)

    def test_unknown_slug_raises(self):
        with self.assertRaises(Product.DoesNotExist):
            async_to_sync(make_service(make_llm()).generate_and_save_review)("missing")
        self.assertEqual(ProductReview.objects.count(), 0)

    def test_comparison_for_slugs(self):
        llm = make_llm()

        text = async_to_sync(make_service(llm).generate_comparison_for_slugs)(
            "lg-gram-16", "apple-macbook-air-13", "노트북"
        )

        self.assertEqual(text, "gram이 더 가볍습니다.")
        prompt = llm.calls_for(ContentGenerator.COMPARISON_SKILL)[0]
        self.assertIn("category=노트북", prompt)
        self.assertIn('"model": "gram 16"', prompt)
        self.assertIn('"model": "MacBook Air 13"', prompt)

    def test_comparison_with_unknown_slug_raises(self):
        with self.assertRaises(Product.DoesNotExist):
            async_to_sync(make_service(make_llm()).generate_comparison_for_slugs)(
                "lg-gram-16", "missing"
            )


class GenerationTaskTests(TestCase):
    def setUp(self):
        Product.objects.create(slug="lg-gram-16", maker="LG", model="gram 16")
        Product.objects.create(slug="apple-macbook-air-13", maker="Apple", model="MacBook Air 13")
        self.service = make_service(make_llm())

    def test_review_task_returns_review_id(self):
        with patch("content_pipeline.tasks.ReviewService", return_value=self.service):
            result = generate_product_review.delay("lg-gram-16").get()

        self.assertEqual(result["slug"], "lg-gram-16")
        self.assertEqual(result["summary"], "가볍고 오래가는 노트북")
        self.assertTrue(ProductReview.objects.filter(id=result["review_id"]).exists())

    def test_review_task_reports_unknown_slug(self):
        with patch("content_pipeline.tasks.ReviewService", return_value=self.service):
            result = generate_product_review.delay("missing").get()

        self.assertEqual(result["slug"], "missing")
        self.assertIn("not found", result["error"])

    def test_comparison_task(self):
        with patch("content_pipeline.tasks.ReviewService", return_value=self.service):
            result = generate_product_comparison.delay(
                "lg-gram-16", "apple-macbook-air-13"
            ).get()

        self.assertEqual(result["comparison"], "gram이 더 가볍습니다.")
