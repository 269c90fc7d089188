"""
Tests for the PipelineOrchestrator.

Crawler and LLM are replaced by fakes; persistence goes through the real
ProductRepository against the test database.
"""

import json
from unittest.mock import AsyncMock

import pytest
from asgiref.sync import async_to_sync
from django.test import TestCase

from content_pipeline.exceptions import SkillNotFoundError
from content_pipeline.models import CrawlHistory, Product
from content_pipeline.services.pipeline_orchestrator import (
    IMAGE_SKILL,
    LINKS_SKILL,
    PipelineOrchestrator,
)
from content_pipeline.services.pipeline_types import PipelineParams
from content_pipeline.services.product_repository import compute_html_hash
from content_pipeline.services.spec_extractor import SpecExtractor
from content_pipeline.tests.fakes import (
    FakeCrawler,
    LogCollector,
    ScriptedLlm,
    StubSkillRepository,
)

LISTING_URL = "https://www.lge.co.kr/notebook"
PRODUCT_A = "https://www.lge.co.kr/notebook/16z90s"
PRODUCT_B = "https://www.lge.co.kr/notebook/14z90s"
PRODUCT_HTML = {
    PRODUCT_A: "<html>gram 16</html>",
    PRODUCT_B: "<html>gram 14</html>",
}


def specs_for(prompt):
    """Answer spec extraction based on which product page is in the prompt."""
    model = "gram 16" if "gram 16" in prompt else "gram 14"
    return json.dumps({"maker": "LG", "model": model, "ram": "16GB", "price": "1,500,000"})


def make_orchestrator(llm, crawler, skills=None, image_processor=None):
    skills = skills or StubSkillRepository()
    return PipelineOrchestrator(
        llm,
        crawler=crawler,
        extractor=SpecExtractor(llm, skills=skills),
        image_processor=image_processor or AsyncMock(),
        skills=skills,
    )


class OrchestratorRunTests(TestCase):
    def setUp(self):
        self.crawler = FakeCrawler({LISTING_URL: "<html>listing</html>", **PRODUCT_HTML})
        self.log = LogCollector()

    def test_two_links_saved_with_crawl_history(self):
        llm = ScriptedLlm({
            LINKS_SKILL: f"1. {PRODUCT_A}\n2. {PRODUCT_B}",
            SpecExtractor.SPECS_SKILL: specs_for,
            IMAGE_SKILL: "NONE",
        })
        orchestrator = make_orchestrator(llm, self.crawler)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", makers=["LG"], listing_urls=[LISTING_URL]),
            self.log,
        )

        self.assertEqual(result.products_saved, 2)
        self.assertEqual(result.listings_processed, 1)
        self.assertEqual(result.errors, [])
        self.assertEqual(
            set(Product.objects.values_list("slug", flat=True)), {"lg-gram-16", "lg-gram-14"}
        )
        self.assertEqual(CrawlHistory.objects.count(), 2)
        history = CrawlHistory.objects.get(url=PRODUCT_A)
        self.assertEqual(history.html_hash, compute_html_hash(PRODUCT_HTML[PRODUCT_A]))
        self.assertEqual(history.product.slug, "lg-gram-16")

        self.assertEqual(self.log.lines[0], "Pipeline starting: 1 listing pages")
        self.assertIn(f"--- Processing listing: {LISTING_URL} ---", self.log.lines)
        self.assertIn("Found 2 product pages", self.log.lines)
        self.assertIn("  Saved: LG gram 16 (lg-gram-16)", self.log.lines)
        self.assertEqual(self.log.lines[-1], "Pipeline complete!")
        # injected crawler belongs to the caller
        self.assertFalse(self.crawler.closed)

    def test_failed_product_does_not_stop_the_listing(self):
        crawler = FakeCrawler(
            {LISTING_URL: "<html>listing</html>", **PRODUCT_HTML}, failures=[PRODUCT_A]
        )
        llm = ScriptedLlm({
            LINKS_SKILL: f"{PRODUCT_A}\n{PRODUCT_B}",
            SpecExtractor.SPECS_SKILL: specs_for,
        })
        orchestrator = make_orchestrator(llm, crawler)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        self.assertEqual(result.products_saved, 1)
        self.assertEqual(len(result.errors), 1)
        self.assertTrue(result.errors[0].startswith(PRODUCT_A))
        self.assertTrue(Product.objects.filter(slug="lg-gram-14").exists())
        error_lines = [line for line in self.log.lines if "Error processing" in line]
        self.assertEqual(len(error_lines), 1)
        self.assertTrue(error_lines[0].startswith(f"  Error processing {PRODUCT_A}:"))
        self.assertEqual(self.log.lines[-1], "Pipeline complete!")

    def test_non_finite_numbers_do_not_drop_product(self):
        def specs_with_nan(prompt):
            if "gram 16" in prompt:
                return '{"maker": "LG", "model": "gram 16", "price": NaN, "weight": Infinity}'
            return specs_for(prompt)

        llm = ScriptedLlm({
            LINKS_SKILL: f"{PRODUCT_A}\n{PRODUCT_B}",
            SpecExtractor.SPECS_SKILL: specs_with_nan,
        })
        orchestrator = make_orchestrator(llm, self.crawler)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        self.assertEqual(result.products_saved, 2)
        self.assertEqual(result.errors, [])
        product = Product.objects.get(slug="lg-gram-16")
        self.assertEqual(product.price, 0)
        self.assertEqual(product.weight, 0)

    def test_failed_listing_does_not_stop_the_run(self):
        broken_listing = "https://broken.example.com/list"
        llm = ScriptedLlm({
            LINKS_SKILL: PRODUCT_B,
            SpecExtractor.SPECS_SKILL: specs_for,
        })
        orchestrator = make_orchestrator(llm, self.crawler)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[broken_listing, LISTING_URL]),
            self.log,
        )

        self.assertEqual(result.listings_processed, 1)
        self.assertEqual(result.products_saved, 1)
        self.assertTrue(
            any(line.startswith(f"Error processing listing {broken_listing}:") for line in self.log.lines)
        )

    def test_reprocessing_updates_instead_of_duplicating(self):
        llm = ScriptedLlm({LINKS_SKILL: PRODUCT_A, SpecExtractor.SPECS_SKILL: specs_for})
        orchestrator = make_orchestrator(llm, self.crawler)
        params = PipelineParams(category="노트북", listing_urls=[LISTING_URL])

        async_to_sync(orchestrator.run)(params, self.log)
        async_to_sync(orchestrator.run)(params, self.log)

        self.assertEqual(Product.objects.filter(slug="lg-gram-16").count(), 1)
        self.assertEqual(CrawlHistory.objects.count(), 2)

    def test_product_links_are_capped(self):
        links = "\n".join(f"https://shop.example.com/p/{i}" for i in range(5))
        llm = ScriptedLlm({LINKS_SKILL: links})
        orchestrator = make_orchestrator(llm, self.crawler)
        orchestrator.max_product_links = 3

        async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        self.assertIn("Found 3 product pages", self.log.lines)

    def test_image_is_stored_when_found(self):
        image_processor = AsyncMock()
        image_processor.download_and_process = AsyncMock(
            return_value="/images/products/lg-gram-16.webp"
        )
        llm = ScriptedLlm({
            LINKS_SKILL: PRODUCT_A,
            SpecExtractor.SPECS_SKILL: specs_for,
            IMAGE_SKILL: "https://www.lge.co.kr/images/gram16/main.jpg",
        })
        orchestrator = make_orchestrator(llm, self.crawler, image_processor=image_processor)

        async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        image_processor.download_and_process.assert_awaited_once_with(
            "https://www.lge.co.kr/images/gram16/main.jpg", "lg-gram-16"
        )
        product = Product.objects.get(slug="lg-gram-16")
        self.assertEqual(product.image_url, "/images/products/lg-gram-16.webp")
        self.assertIn("  Image: /images/products/lg-gram-16.webp", self.log.lines)

    def test_image_failure_keeps_product(self):
        llm = ScriptedLlm({
            LINKS_SKILL: PRODUCT_A,
            SpecExtractor.SPECS_SKILL: specs_for,
            IMAGE_SKILL: RuntimeError("LLM exited with status 1"),
        })
        orchestrator = make_orchestrator(llm, self.crawler)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        self.assertEqual(result.products_saved, 1)
        self.assertEqual(result.errors, [])
        self.assertEqual(CrawlHistory.objects.count(), 1)
        self.assertTrue(any(line.startswith("  Image skipped for lg-gram-16") for line in self.log.lines))

    def test_missing_image_skill_skips_image_step(self):
        skills = StubSkillRepository(names=[LINKS_SKILL, SpecExtractor.SPECS_SKILL])
        llm = ScriptedLlm({LINKS_SKILL: PRODUCT_A, SpecExtractor.SPECS_SKILL: specs_for})
        orchestrator = make_orchestrator(llm, self.crawler, skills=skills)

        result = async_to_sync(orchestrator.run)(
            PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
        )

        self.assertEqual(result.products_saved, 1)
        self.assertEqual(llm.calls_for(IMAGE_SKILL), [])

    def test_missing_links_skill_fails_the_run(self):
        skills = StubSkillRepository(names=[SpecExtractor.SPECS_SKILL])
        orchestrator = make_orchestrator(ScriptedLlm(), self.crawler, skills=skills)

        with pytest.raises(SkillNotFoundError):
            async_to_sync(orchestrator.run)(
                PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
            )
        self.assertEqual(self.log.lines, [])

    def test_category_id_defaults_from_settings(self):
        llm = ScriptedLlm({LINKS_SKILL: PRODUCT_A, SpecExtractor.SPECS_SKILL: specs_for})
        orchestrator = make_orchestrator(llm, self.crawler)

        with self.settings(PIPELINE_DEFAULT_CATEGORY_ID="laptop"):
            async_to_sync(orchestrator.run)(
                PipelineParams(category="노트북", listing_urls=[LISTING_URL]), self.log
            )

        self.assertEqual(Product.objects.get(slug="lg-gram-16").category_id, "laptop")
