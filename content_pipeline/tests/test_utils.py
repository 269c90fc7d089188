"""
Tests for slug and URL helpers.
"""

from content_pipeline.utils.slugs import build_slug
from content_pipeline.utils.urls import find_first_image_url, parse_discovered_urls


class TestBuildSlug:
    def test_lowercases_and_joins_with_hyphen(self):
        assert build_slug("Apple", "MacBook Air 13") == "apple-macbook-air-13"

    def test_keeps_hangul(self):
        assert build_slug("Apple", "맥북 프로 16 M4 Max") == "apple-맥북-프로-16-m4-max"

    def test_strips_disallowed_characters(self):
        assert build_slug("ASUS", "ROG Zephyrus (G14)!") == "asus-rog-zephyrus-g14"

    def test_collapses_whitespace_runs(self):
        assert build_slug("LG", "gram   16") == "lg-gram-16"

    def test_is_deterministic(self):
        assert build_slug("Samsung", "Galaxy Book4 Pro") == build_slug(
            "Samsung", "Galaxy Book4 Pro"
        )


class TestParseDiscoveredUrls:
    def test_extracts_urls_from_prose(self):
        text = (
            "Here are the pages:\n"
            "1. https://www.apple.com/kr/shop/buy-mac/macbook-air\n"
            "2. https://www.samsung.com/sec/pc/all-pcs/."
        )
        assert parse_discovered_urls(text) == [
            "https://www.apple.com/kr/shop/buy-mac/macbook-air",
            "https://www.samsung.com/sec/pc/all-pcs/",
        ]

    def test_strips_trailing_punctuation(self):
        assert parse_discovered_urls("see https://a.com/x;, and http://b.com/y.") == [
            "https://a.com/x",
            "http://b.com/y",
        ]

    def test_deduplicates_preserving_first_seen_order(self):
        text = "https://b.com https://a.com https://b.com"
        assert parse_discovered_urls(text) == ["https://b.com", "https://a.com"]

    def test_stops_at_closing_brackets_and_quotes(self):
        text = '[link](https://a.com/list) "https://b.com/q"'
        assert parse_discovered_urls(text) == ["https://a.com/list", "https://b.com/q"]

    def test_empty_text(self):
        assert parse_discovered_urls("") == []
        assert parse_discovered_urls("no links here") == []


class TestFindFirstImageUrl:
    def test_returns_first_image_url(self):
        text = "main: https://cdn.example.com/p/main.PNG other: https://cdn.example.com/b.jpg"
        assert find_first_image_url(text) == "https://cdn.example.com/p/main.PNG"

    def test_returns_none_without_image(self):
        assert find_first_image_url("NONE") is None
        assert find_first_image_url("https://example.com/page.html") is None
