"""
Playwright crawler - rendered HTML snapshots of product pages.

Target sites are client-rendered, so pages are loaded in headless Chromium.
One browser is started lazily per crawler instance and shared by every
crawl until close() is called.
"""

import asyncio
import logging
from typing import Optional, Sequence

from django.conf import settings

from content_pipeline.services.pipeline_types import RawPage

logger = logging.getLogger(__name__)


class PlaywrightCrawler:
    """
    Headless Chromium crawler.

    Features:
    - Lazy browser start (Playwright imported on first use)
    - Image/stylesheet/font/media requests aborted
    - Bounded navigation timeout plus a fixed settle delay
    - Usable as an async context manager

    Usage:
        async with PlaywrightCrawler() as crawler:
            page = await crawler.crawl_existing_product(url)
    """

    def __init__(
        self,
        navigation_timeout: Optional[float] = None,
        settle_delay: Optional[float] = None,
        blocked_resource_types: Optional[Sequence[str]] = None,
    ):
        """
        Initialize the crawler.

        Args:
            navigation_timeout: Page load timeout in seconds
            settle_delay: Seconds to wait after DOM-ready before snapshotting
            blocked_resource_types: Playwright resource types to abort
        """
        self.navigation_timeout = navigation_timeout or getattr(
            settings, "CRAWLER_NAVIGATION_TIMEOUT", 30
        )
        if settle_delay is None:
            settle_delay = getattr(settings, "CRAWLER_SETTLE_DELAY", 3)
        self.settle_delay = settle_delay
        self.blocked_resource_types = frozenset(
            blocked_resource_types
            if blocked_resource_types is not None
            else getattr(
                settings,
                "CRAWLER_BLOCKED_RESOURCE_TYPES",
                ["image", "stylesheet", "font", "media"],
            )
        )

        self._playwright = None
        self._browser = None
        self._lock = asyncio.Lock()

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    @property
    def is_started(self) -> bool:
        return self._browser is not None

    async def _get_browser(self):
        """Start Playwright and Chromium on first use."""
        async with self._lock:
            if self._browser is not None:
                return self._browser

            try:
                from playwright.async_api import async_playwright
            except ImportError:
                raise RuntimeError(
                    "Playwright not installed. Install with: "
                    "pip install playwright && playwright install chromium"
                )

            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=True,
                args=[
                    "--disable-blink-features=AutomationControlled",
                    "--no-sandbox",
                    "--disable-dev-shm-usage",
                ],
            )
            logger.info("Playwright browser initialized")
            return self._browser

    async def _block_resources(self, route):
        if route.request.resource_type in self.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def crawl_existing_product(self, url: str) -> RawPage:
        """
        Fetch the rendered HTML of a URL.

        Navigation and timeout errors propagate; callers handle them per URL.

        Args:
            url: Page to load

        Returns:
            RawPage with the DOM snapshot after the settle delay
        """
        browser = await self._get_browser()
        page = await browser.new_page()

        try:
            await page.route("**/*", self._block_resources)
            await page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout * 1000,
            )

            # Let client-side rendering populate the DOM
            if self.settle_delay:
                await asyncio.sleep(self.settle_delay)

            html = await page.content()
            logger.debug(f"Crawled {url} ({len(html)} chars)")
            return RawPage(url=url, html=html)

        finally:
            await page.close()

    async def close(self):
        """Close browser and Playwright instance."""
        if self._browser:
            await self._browser.close()
            self._browser = None
            logger.info("Playwright browser closed")

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None
