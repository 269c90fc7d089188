"""
Listing page discovery.

Two LLM phases:
1. The discovery skill proposes one listing URL per maker for a category.
2. Each candidate is crawled and a separate validation skill decides
   whether the page really is a listing page for that category.

Per-candidate failures are logged and skipped.
"""

import logging
import re
from typing import List, Optional, Sequence

from django.conf import settings

from content_pipeline.fetchers.playwright_crawler import PlaywrightCrawler
from content_pipeline.services.pipeline_types import LogCallback, log_to_logger
from content_pipeline.services.skill_store import (
    FileSkillRepository,
    require_skill,
    run_skill,
)
from content_pipeline.utils.urls import parse_discovered_urls

logger = logging.getLogger(__name__)

DISCOVERY_SKILL = "discover-listing-urls"
VALIDATION_SKILL = "validate-listing-page"

# First word of the answer must be YES; leading quotes or markdown are ignored
_AFFIRMATIVE_RE = re.compile(r"^[\W_]*yes\b", re.IGNORECASE)


def is_affirmative(response: str) -> bool:
    """
    True when the validation answer starts with YES.

    "NO, this is not a listing page. YES pages have grids" is rejected.
    """
    return bool(_AFFIRMATIVE_RE.match((response or "").strip()))


class ListingDiscoveryService:
    """
    Discovers and verifies manufacturer listing pages.

    When no crawler is injected the service starts its own and closes it at
    the end of discover_listing_urls().
    """

    def __init__(
        self,
        llm,
        crawler=None,
        skills: Optional[FileSkillRepository] = None,
        validation_html_chars: Optional[int] = None,
    ):
        self.llm = llm
        self.crawler = crawler
        self.skills = skills or FileSkillRepository()
        self.validation_html_chars = validation_html_chars or getattr(
            settings, "DISCOVERY_VALIDATION_HTML_CHARS", 5000
        )

    async def discover_listing_urls(
        self,
        category: str,
        makers: Sequence[str],
        log: LogCallback = log_to_logger,
    ) -> List[str]:
        """
        Propose candidate listing URLs and keep the verified ones.

        Args:
            category: Product category, e.g. "노트북"
            makers: Manufacturer names
            log: Async callback receiving progress lines

        Returns:
            Verified URLs in the order the LLM proposed them, without duplicates
        """
        discover_skill = require_skill(self.skills, DISCOVERY_SKILL)
        validate_skill = require_skill(self.skills, VALIDATION_SKILL)

        owns_crawler = self.crawler is None
        crawler = self.crawler or PlaywrightCrawler()

        try:
            await log("Discovering listing URLs...")
            response = await run_skill(
                self.llm,
                discover_skill,
                {"category": category, "makers": ", ".join(makers)},
            )
            candidates = parse_discovered_urls(response)
            await log(f"Found {len(candidates)} candidate URLs")

            verified = []
            for url in candidates:
                await log(f"  Verifying: {url}")
                try:
                    page = await crawler.crawl_existing_product(url)
                    answer = await run_skill(
                        self.llm,
                        validate_skill,
                        {
                            "category": category,
                            "url": url,
                            "html": page.html[: self.validation_html_chars],
                        },
                    )
                    if is_affirmative(answer):
                        verified.append(url)
                        await log("    Verified")
                    else:
                        await log("    Not a listing page")
                except Exception as e:
                    logger.warning(f"Listing validation failed for {url}: {e}")
                    await log(f"    Failed: {e}")

            await log(f"Discover complete: {len(verified)} verified URLs")
            return verified

        finally:
            if owns_crawler:
                await crawler.close()


async def discover_listing_urls(
    category: str,
    makers: Sequence[str],
    log: LogCallback = log_to_logger,
    llm=None,
) -> List[str]:
    """Run discovery with default collaborators and a private browser."""
    from content_pipeline.services.llm_runner import get_llm_runner

    service = ListingDiscoveryService(llm or get_llm_runner())
    return await service.discover_listing_urls(category, makers, log)
