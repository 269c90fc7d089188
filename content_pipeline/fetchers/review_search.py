"""
Third-party review search.

Finds review pages (blogs, forums, video descriptions) for a product with
SerpAPI Google search and crawls the top results with the shared crawler.
"""

import logging
from typing import Any, Dict, List, Optional

import requests
from asgiref.sync import sync_to_async
from django.conf import settings

from content_pipeline.services.pipeline_types import RawPage

logger = logging.getLogger(__name__)


class SerpAPIClient:
    """
    Wrapper for the SerpAPI Google Search API.

    Usage:
        client = SerpAPIClient()
        results = client.google_search("맥북 프로 16 리뷰")
    """

    BASE_URL = "https://serpapi.com/search"

    def __init__(self, api_key: str = None, timeout: float = 30):
        """
        Initialize SerpAPI client.

        Args:
            api_key: SerpAPI API key. If not provided, uses settings.SERPAPI_API_KEY

        Raises:
            ValueError: If no API key is configured
        """
        self.api_key = api_key or getattr(settings, "SERPAPI_API_KEY", None)
        self.timeout = timeout

        if not self.api_key:
            raise ValueError("SERPAPI_API_KEY not configured")

    def google_search(
        self,
        query: str,
        num_results: int = 10,
        **kwargs,
    ) -> Dict[str, Any]:
        """
        Perform Google organic search.

        Args:
            query: Search query string
            num_results: Number of results to return (default 10)
            **kwargs: Additional SerpAPI parameters (gl, hl, etc.)

        Returns:
            SerpAPI response dictionary with organic_results

        Raises:
            requests.RequestException: On network or API errors
        """
        params = {
            "engine": "google",
            "q": query,
            "num": num_results,
            "gl": "kr",
            "hl": "ko",
            "api_key": self.api_key,
            **kwargs,
        }
        return self._make_request(params)

    def _make_request(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = requests.get(self.BASE_URL, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.RequestException as e:
            logger.error(f"SerpAPI request failed: {e}")
            raise


def extract_result_urls(response: Dict[str, Any], limit: int) -> List[str]:
    """Organic result links in rank order, without duplicates."""
    urls = []
    for result in response.get("organic_results", []):
        link = result.get("link")
        if link and link not in urls:
            urls.append(link)
        if len(urls) >= limit:
            break
    return urls


async def search_web_for_reviews(
    keyword: str,
    crawler,
    client: Optional[SerpAPIClient] = None,
    max_results: Optional[int] = None,
) -> List[RawPage]:
    """
    Search for review pages about a product and crawl the top results.

    Returns an empty list (with a warning) when no SerpAPI key is configured
    or the search request fails.
    Individual crawl failures are logged and skipped.

    Args:
        keyword: Product search keyword, e.g. "Apple 맥북 프로 16"
        crawler: Object with an async crawl_existing_product(url) method
        client: SerpAPI client (built from settings when omitted)
        max_results: Number of result pages to crawl
    """
    max_results = max_results or getattr(settings, "REVIEW_SEARCH_MAX_RESULTS", 3)

    if client is None:
        try:
            client = SerpAPIClient()
        except ValueError:
            logger.warning("SERPAPI_API_KEY not configured; skipping web review search")
            return []

    try:
        response = await sync_to_async(client.google_search, thread_sensitive=False)(
            f"{keyword} 리뷰"
        )
    except requests.RequestException as e:
        logger.warning(f"Review search for '{keyword}' failed, continuing without reviews: {e}")
        return []
    urls = extract_result_urls(response, max_results)
    logger.info(f"Review search for '{keyword}' returned {len(urls)} URLs")

    pages = []
    for url in urls:
        try:
            pages.append(await crawler.crawl_existing_product(url))
        except Exception as e:
            logger.warning(f"Failed to crawl review page {url}: {e}")
    return pages
