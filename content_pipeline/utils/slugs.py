"""
Slug generation for products.

Slugs are the natural key of a Product, so the function must stay pure:
the same maker/model pair always yields the same slug.
"""

import re

_WHITESPACE_RE = re.compile(r"\s+")
# Lowercase ASCII letters, digits, Hangul syllables and hyphens survive
_DISALLOWED_RE = re.compile(r"[^a-z0-9가-힣\-]")


def build_slug(maker: str, model: str) -> str:
    """
    Build the product slug from maker and model.

    Example:
        >>> build_slug("Apple", "맥북 프로 16 M4 Max")
        'apple-맥북-프로-16-m4-max'
    """
    slug = f"{maker}-{model}".lower()
    slug = _WHITESPACE_RE.sub("-", slug)
    return _DISALLOWED_RE.sub("", slug)
