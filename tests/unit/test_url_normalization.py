"""Unit tests for URL normalization helpers."""

from serpcluster.services.url_normalization import (
    canonicalize_for_serp_comparison,
    deduplicate_strings,
    extract_domain,
    intersection_size,
    normalize_url,
    same_domain,
    urls_match,
)


def test_canonicalize_strips_scheme_www_query_and_trailing_slash() -> None:
    canonical = canonicalize_for_serp_comparison(
        "https://WWW.Example.com/Guide/?utm_source=x#top"
    )
    assert canonical == "example.com/Guide"


def test_canonicalize_keeps_root_path() -> None:
    assert canonicalize_for_serp_comparison("https://example.com/") == "example.com/"
    assert canonicalize_for_serp_comparison("https://example.com") == "example.com/"


def test_canonicalize_treats_http_and_https_alike() -> None:
    assert canonicalize_for_serp_comparison(
        "http://example.com/a/"
    ) == canonicalize_for_serp_comparison("https://www.example.com/a")


def test_canonicalize_returns_malformed_url_unchanged() -> None:
    assert canonicalize_for_serp_comparison("not a url") == "not a url"
    assert canonicalize_for_serp_comparison("http://[::1") == "http://[::1"
    assert canonicalize_for_serp_comparison("") == ""


def test_normalize_url_drops_tracking_params_only() -> None:
    normalized = normalize_url(
        "https://www.example.com/page/?utm_source=news&id=7&gclid=abc#section"
    )
    assert normalized == "https://example.com/page?id=7#section"


def test_urls_match_ignores_tracking_and_trailing_slash() -> None:
    assert urls_match("https://example.com/a/?fbclid=1", "https://www.example.com/a")
    assert not urls_match("https://example.com/a", "https://example.com/b")


def test_extract_domain_and_same_domain() -> None:
    assert extract_domain("https://www.Shop.example.com/x") == "shop.example.com"
    assert extract_domain("garbage") == ""
    assert same_domain("https://example.com/a", "http://www.example.com/b")
    assert not same_domain("garbage", "also garbage")


def test_deduplicate_strings_keeps_first_spelling() -> None:
    values = ["Best CRM", "best  crm", " BEST CRM ", "crm pricing"]
    assert deduplicate_strings(values) == ["Best CRM", "crm pricing"]


def test_intersection_size_counts_unique_elements() -> None:
    assert intersection_size(["a", "a", "b"], ["a", "a", "c"]) == 1
