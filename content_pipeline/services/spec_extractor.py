"""
Spec Extractor - structured product data from rendered HTML.

HTML is truncated to a fixed character budget before it is sent to the LLM.
Specs that only appear deep in a very long page can be missed; that is a
known limitation of the bounded prefix.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from django.conf import settings

from content_pipeline.exceptions import LlmOutputParseError
from content_pipeline.services.pipeline_types import (
    ProductSpecs,
    RawPage,
    SpecValidationResult,
    WebReview,
    coerce_list,
)
from content_pipeline.services.skill_store import (
    FileSkillRepository,
    require_skill,
    run_skill,
)

logger = logging.getLogger(__name__)

_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


def parse_llm_json(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object from an LLM response.

    Tries the whole (stripped) text first, then the span from the first "{"
    to the last "}" to get past prose or code fences.

    Raises:
        LlmOutputParseError: If neither attempt yields a JSON object
    """
    trimmed = (text or "").strip()
    try:
        parsed = json.loads(trimmed)
    except ValueError:
        match = _JSON_OBJECT_RE.search(trimmed)
        if not match:
            raise LlmOutputParseError(
                f"Failed to extract JSON from LLM response: {trimmed[:200]}",
                raw_output=trimmed,
            )
        try:
            parsed = json.loads(match.group(0))
        except ValueError as e:
            raise LlmOutputParseError(
                f"Failed to parse JSON from LLM response: {e}",
                raw_output=trimmed,
            ) from e

    if not isinstance(parsed, dict):
        raise LlmOutputParseError(
            f"Expected a JSON object, got {type(parsed).__name__}",
            raw_output=trimmed,
        )
    return parsed


class SpecExtractor:
    """
    Composes the skill store and an LLM runner to extract product specs and
    web review references.
    """

    SPECS_SKILL = "extract-product-specs"
    VALIDATION_SKILL = "validate-product-specs"
    REVIEWS_SKILL = "extract-web-reviews"

    def __init__(
        self,
        llm,
        skills: Optional[FileSkillRepository] = None,
        spec_html_chars: Optional[int] = None,
        review_html_chars: Optional[int] = None,
    ):
        self.llm = llm
        self.skills = skills or FileSkillRepository()
        self.spec_html_chars = spec_html_chars or getattr(
            settings, "SPEC_EXTRACTION_HTML_CHARS", 50000
        )
        self.review_html_chars = review_html_chars or getattr(
            settings, "REVIEW_EXTRACTION_HTML_CHARS", 10000
        )

    async def _run_structured(self, skill_name: str, context: Dict[str, Any]) -> Dict[str, Any]:
        skill = require_skill(self.skills, skill_name)
        response = await run_skill(self.llm, skill, context)
        return parse_llm_json(response)

    async def extract_specs(self, raw: RawPage) -> ProductSpecs:
        """
        Extract specs from a product page.

        Missing or unparseable numeric fields become 0 and missing strings
        become "Unknown", so a partial product can still be saved.
        """
        payload = await self._run_structured(
            self.SPECS_SKILL,
            {"url": raw.url, "html": raw.html[: self.spec_html_chars]},
        )
        specs = ProductSpecs.from_payload(payload)
        logger.debug(f"Extracted specs for {raw.url}: {specs.maker} {specs.model}")
        return specs

    async def validate_specs(self, specs: ProductSpecs, raw: RawPage) -> SpecValidationResult:
        """Ask the LLM to check extracted specs against the source HTML."""
        payload = await self._run_structured(
            self.VALIDATION_SKILL,
            {
                "specs": json.dumps(specs.to_dict(), ensure_ascii=False),
                "html": raw.html[: self.spec_html_chars],
            },
        )
        is_valid = payload.get("isValid", payload.get("is_valid", False))
        return SpecValidationResult(
            is_valid=is_valid is True,
            errors=coerce_list(payload.get("errors")),
        )

    async def extract_web_reviews(self, pages: Sequence[RawPage]) -> List[WebReview]:
        """
        Extract review references from third-party pages.

        No LLM call is made for an empty page list. Entries without a URL are
        dropped and unknown sentiments become NEUTRAL.
        """
        if not pages:
            return []

        sections = "\n\n".join(
            f"Page {index} ({page.url}):\n{page.html[: self.review_html_chars]}"
            for index, page in enumerate(pages, start=1)
        )
        payload = await self._run_structured(self.REVIEWS_SKILL, {"pages": sections})

        reviews = []
        for entry in payload.get("reviews") or []:
            if not isinstance(entry, dict):
                continue
            review = WebReview.from_payload(entry)
            if review is not None:
                reviews.append(review)
        return reviews
