"""URL normalization and canonicalization utilities for SERP comparison."""

from __future__ import annotations

import re
from collections.abc import Hashable, Iterable
from urllib.parse import SplitResult, parse_qsl, urlencode, urlsplit

TRACKING_PARAMS = frozenset(
    {
        "utm_source",
        "utm_medium",
        "utm_campaign",
        "utm_term",
        "utm_content",
        "gclid",
        "fbclid",
        "msclkid",
        "_ga",
        "mc_cid",
        "mc_eid",
        "srsltid",  # Google Shopping auto-tagging
        "gbraid",
        "wbraid",
        "dclid",
        "ref",
        "source",
    }
)

WHITESPACE_PATTERN = re.compile(r"\s+")


def canonicalize_for_serp_comparison(url: str) -> str:
    """Reduce a URL to `host+path` for overlap counting.

    Scheme, `www.`, query string and fragment are dropped and a single
    trailing slash is trimmed unless the path is the root. Unparseable URLs
    are returned unchanged so one bad result cannot abort matrix construction.
    """
    parsed = _split(url)
    if parsed is None:
        return url

    path = parsed.path or "/"
    if path.endswith("/") and len(path) > 1:
        path = path[:-1]
    return f"{_host(parsed)}{path}"


def normalize_url(url: str) -> str:
    """Normalize a full URL, dropping tracking parameters.

    Keeps the scheme, non-tracking query parameters and the fragment; the
    host is lowercased without `www.` and the trailing slash is trimmed.
    """
    parsed = _split(url)
    if parsed is None:
        return url

    normalized = f"{parsed.scheme.lower()}://{_host(parsed)}{parsed.path or '/'}"
    if normalized.endswith("/"):
        normalized = normalized[:-1]

    params = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key not in TRACKING_PARAMS
    ]
    if params:
        normalized = f"{normalized}?{urlencode(params)}"
    if parsed.fragment:
        normalized = f"{normalized}#{parsed.fragment}"
    return normalized


def extract_domain(url: str) -> str:
    """Return the lowercased host without `www.`, or an empty string."""
    parsed = _split(url)
    if parsed is None:
        return ""
    return _host(parsed)


def urls_match(url_a: str, url_b: str) -> bool:
    """Return True when both URLs normalize to the same address."""
    return normalize_url(url_a) == normalize_url(url_b)


def same_domain(url_a: str, url_b: str) -> bool:
    """Return True when both URLs resolve to the same non-empty domain."""
    domain_a = extract_domain(url_a)
    return bool(domain_a) and domain_a == extract_domain(url_b)


def deduplicate_strings(values: Iterable[str]) -> list[str]:
    """Drop case/whitespace variants, keeping the first spelling seen."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        key = WHITESPACE_PATTERN.sub(" ", value.strip().lower())
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


def intersection_size(a: Iterable[Hashable], b: Iterable[Hashable]) -> int:
    """Count distinct elements present in both iterables."""
    return len(set(a) & set(b))


def _split(url: str) -> SplitResult | None:
    try:
        parsed = urlsplit((url or "").strip())
    except ValueError:
        return None
    if not parsed.scheme or not parsed.hostname:
        return None
    return parsed


def _host(parsed: SplitResult) -> str:
    host = (parsed.hostname or "").lower()
    if host.startswith("www."):
        host = host[4:]
    return host
