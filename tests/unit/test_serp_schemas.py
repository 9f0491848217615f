"""Unit tests for SERP snapshot schemas."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from serpcluster.schemas.serp import SerpResult


def test_serp_result_accepts_legacy_query_key_and_ai_overview_citations() -> None:
    serp = SerpResult.model_validate(
        {
            "q": "crm software",
            "ai_overview": "present",
            "ai_overview_data": {
                "text": "CRM tools organise customer data.",
                "urls": [{"url": "https://a.com/crm", "title": "A"}, {"url": "https://b.com"}],
            },
        }
    )

    assert serp.query == "crm software"
    assert serp.top10 == []
    assert serp.ai_overview_data is not None
    assert [link.url for link in serp.ai_overview_data.urls] == ["https://a.com/crm", "https://b.com"]
    assert serp.ai_overview_data.urls[1].title is None


def test_serp_result_defaults_to_unknown_ai_overview() -> None:
    assert SerpResult(query="crm").ai_overview == "unknown"


def test_serp_result_rejects_more_than_ten_results() -> None:
    top = [{"position": i + 1, "url": f"https://a.com/{i}", "title": "t"} for i in range(11)]
    with pytest.raises(ValidationError):
        SerpResult(query="crm", top10=top)
