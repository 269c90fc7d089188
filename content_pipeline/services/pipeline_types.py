"""
Data types shared by the crawl, extraction and generation services.

LLM payloads arrive as loosely-typed JSON (camelCase keys, numbers as
strings with units). The from_payload constructors coerce them into these
dataclasses so downstream code can rely on the field types.
"""

import logging
import math
import re
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional
from uuid import UUID

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

SENTIMENTS = ("POSITIVE", "NEUTRAL", "NEGATIVE")
RELIABILITY_LEVELS = ("HIGH", "MEDIUM", "LOW")

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


def coerce_number(value: Any) -> float:
    """
    Coerce an LLM value to a number.

    Accepts ints, floats and strings such as "16GB" or "1,990,000원".
    Anything unparseable, including NaN and infinities, becomes 0.
    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, (int, float)):
        return value if math.isfinite(value) else 0
    if isinstance(value, str):
        match = _NUMBER_RE.search(value.replace(",", ""))
        if match:
            number = float(match.group(0))
            return int(number) if number.is_integer() else number
    return 0


def coerce_text(value: Any) -> str:
    """Coerce an LLM value to a string, defaulting to "Unknown"."""
    if value is None:
        return UNKNOWN
    text = str(value).strip()
    return text or UNKNOWN


def coerce_list(value: Any) -> List[str]:
    """Coerce an LLM value to a list of strings."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value if item is not None and str(item).strip()]
    return [str(value)]


def _pick(payload: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """First present key, accepting both camelCase and snake_case spellings."""
    for key in keys:
        if key in payload and payload[key] is not None:
            return payload[key]
    return default


@dataclass
class RawPage:
    """Rendered HTML snapshot of one URL."""

    url: str
    html: str


@dataclass
class ProductSpecs:
    """Structured product specification extracted from a product page."""

    maker: str = UNKNOWN
    model: str = UNKNOWN
    cpu: str = UNKNOWN
    ram: float = 0
    storage: str = UNKNOWN
    gpu: str = UNKNOWN
    display_size: float = 0
    weight: float = 0
    os: str = UNKNOWN
    price: float = 0

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ProductSpecs":
        """Build specs from an LLM JSON object, defaulting missing fields."""
        payload = payload or {}
        return cls(
            maker=coerce_text(payload.get("maker")),
            model=coerce_text(payload.get("model")),
            cpu=coerce_text(payload.get("cpu")),
            ram=coerce_number(payload.get("ram")),
            storage=coerce_text(payload.get("storage")),
            gpu=coerce_text(payload.get("gpu")),
            display_size=coerce_number(_pick(payload, "displaySize", "display_size")),
            weight=coerce_number(payload.get("weight")),
            os=coerce_text(payload.get("os")),
            price=coerce_number(payload.get("price")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_context(self) -> Dict[str, str]:
        """Flat string map for skill template substitution."""
        return {key: str(value) for key, value in self.to_dict().items()}


@dataclass
class SpecValidationResult:
    """Outcome of checking extracted specs against the source HTML."""

    is_valid: bool
    errors: List[str] = field(default_factory=list)


@dataclass
class WebReview:
    """A third-party review reference extracted from a web page."""

    source: str
    url: str
    summary_text: str
    sentiment: str = "NEUTRAL"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> Optional["WebReview"]:
        """Returns None when the entry has no URL."""
        url = _pick(payload, "url", default="")
        if not url:
            return None
        sentiment = str(_pick(payload, "sentiment", default="NEUTRAL")).strip().upper()
        if sentiment not in SENTIMENTS:
            sentiment = "NEUTRAL"
        return cls(
            source=coerce_text(_pick(payload, "source")),
            url=str(url).strip(),
            summary_text=str(_pick(payload, "summaryText", "summary_text", "summary", default="")),
            sentiment=sentiment,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ProductStrategy:
    """Marketing and positioning strategy for one product."""

    target_audience: List[str] = field(default_factory=list)
    key_selling_points: List[str] = field(default_factory=list)
    competitors: List[str] = field(default_factory=list)
    positioning: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "ProductStrategy":
        payload = payload or {}
        return cls(
            target_audience=coerce_list(_pick(payload, "targetAudience", "target_audience")),
            key_selling_points=coerce_list(
                _pick(payload, "keySellingPoints", "key_selling_points")
            ),
            competitors=coerce_list(payload.get("competitors")),
            positioning=str(_pick(payload, "positioning", default="")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SentimentAnalysis:
    """Aggregate opinion over the collected web reviews."""

    overall_score: int = 50
    common_praises: List[str] = field(default_factory=list)
    common_complaints: List[str] = field(default_factory=list)
    reliability: str = "LOW"

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "SentimentAnalysis":
        """Score is clamped to 0-100; unknown reliability becomes LOW."""
        payload = payload or {}
        score = int(round(coerce_number(_pick(payload, "overallScore", "overall_score", default=50))))
        reliability = str(_pick(payload, "reliability", default="LOW")).strip().upper()
        if reliability not in RELIABILITY_LEVELS:
            reliability = "LOW"
        return cls(
            overall_score=max(0, min(100, score)),
            common_praises=coerce_list(_pick(payload, "commonPraises", "common_praises")),
            common_complaints=coerce_list(
                _pick(payload, "commonComplaints", "common_complaints")
            ),
            reliability=reliability,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ReviewArticle:
    """Generated critique article, ready to persist as a ProductReview."""

    summary: str = ""
    pros: List[str] = field(default_factory=list)
    cons: List[str] = field(default_factory=list)
    recommended_for: str = ""
    not_recommended_for: str = ""
    spec_highlights: List[str] = field(default_factory=list)
    strategy: Optional[ProductStrategy] = None
    sentiment_analysis: Optional[SentimentAnalysis] = None

    @classmethod
    def from_payload(
        cls,
        payload: Dict[str, Any],
        strategy: Optional[ProductStrategy] = None,
        sentiment_analysis: Optional[SentimentAnalysis] = None,
    ) -> "ReviewArticle":
        payload = payload or {}
        return cls(
            summary=str(_pick(payload, "summary", default="")),
            pros=coerce_list(payload.get("pros")),
            cons=coerce_list(payload.get("cons")),
            recommended_for=str(_pick(payload, "recommendedFor", "recommended_for", default="")),
            not_recommended_for=str(
                _pick(payload, "notRecommendedFor", "not_recommended_for", default="")
            ),
            spec_highlights=coerce_list(_pick(payload, "specHighlights", "spec_highlights")),
            strategy=strategy,
            sentiment_analysis=sentiment_analysis,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class PipelineParams:
    """Inputs of one pipeline run."""

    category: str
    makers: List[str] = field(default_factory=list)
    listing_urls: List[str] = field(default_factory=list)
    category_id: Optional[str] = None


@dataclass
class PipelineRunResult:
    """Counts and errors collected over one pipeline run."""

    listings_processed: int = 0
    products_saved: int = 0
    product_ids: List[UUID] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for JSON serialization."""
        return {
            "listings_processed": self.listings_processed,
            "products_saved": self.products_saved,
            "product_ids": [str(pid) for pid in self.product_ids],
            "errors": self.errors,
        }


@dataclass
class JobCreationResult:
    """Outcome of a job creation request."""

    conflict: bool
    job_id: Optional[UUID] = None


# Progress lines go through an async callback so callers decide where they land
LogCallback = Callable[[str], Awaitable[None]]


async def log_to_logger(message: str) -> None:
    """Default log callback: forward progress lines to the module logger."""
    logger.info(message)
