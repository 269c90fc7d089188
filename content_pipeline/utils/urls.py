"""
URL extraction helpers for free-form LLM output and raw HTML.
"""

import re
from typing import List, Optional

URL_PATTERN = re.compile(r"https?://[^\s,)>\]\"']+")
TRAILING_PUNCTUATION = re.compile(r"[.,;]+$")
IMAGE_URL_PATTERN = re.compile(
    r"https?://[^\s\"'<>]+\.(?:jpg|jpeg|png|webp)", re.IGNORECASE
)


def parse_discovered_urls(text: str) -> List[str]:
    """
    Extract http(s) URLs from LLM text.

    Trailing '.', ',' and ';' are stripped, duplicates are removed and the
    first-seen order is kept.
    """
    seen = {}
    for match in URL_PATTERN.findall(text or ""):
        url = TRAILING_PUNCTUATION.sub("", match)
        if url and url not in seen:
            seen[url] = True
    return list(seen)


def find_first_image_url(text: str) -> Optional[str]:
    """Return the first jpg/jpeg/png/webp URL in text, if any."""
    match = IMAGE_URL_PATTERN.search(text or "")
    return match.group(0) if match else None
