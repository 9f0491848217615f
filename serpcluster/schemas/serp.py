"""SERP snapshot schemas."""

from typing import Literal

from pydantic import AliasChoices, BaseModel, Field

AIOverview = Literal["present", "absent", "unknown"]
QueryIntent = Literal["info", "comm", "trans", "nav"]


class OrganicResult(BaseModel):
    """Single organic result on page 1."""

    position: int = Field(ge=1)
    url: str
    title: str
    snippet: str | None = None

    model_config = {"frozen": True}


class AIOverviewLink(BaseModel):
    """URL cited by an AI Overview block."""

    url: str
    title: str | None = None

    model_config = {"frozen": True}


class AIOverviewData(BaseModel):
    """AI Overview text and cited sources."""

    text: str = ""
    urls: list[AIOverviewLink] = Field(default_factory=list)

    model_config = {"frozen": True}


class FirstMatch(BaseModel):
    """Highest-ranking result belonging to the analyzed domain."""

    position: int = Field(ge=1)
    url: str

    model_config = {"frozen": True}


class SerpResult(BaseModel):
    """SERP snapshot for one analyzed query."""

    query: str = Field(validation_alias=AliasChoices("query", "q"))
    top10: list[OrganicResult] = Field(default_factory=list, max_length=10)
    ai_overview: AIOverview = "unknown"
    ai_overview_data: AIOverviewData | None = None
    target_page_on_page1: bool = False
    same_domain_on_page1: bool = False
    first_match: FirstMatch | None = None

    model_config = {"frozen": True, "populate_by_name": True}


class SubQuery(BaseModel):
    """Fan-out candidate query produced upstream of clustering."""

    q: str
    intent: QueryIntent = "info"
    rationale: str = ""
