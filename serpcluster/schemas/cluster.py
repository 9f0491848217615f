"""Cluster, action and recommendation schemas."""

from typing import Annotated, Literal

from pydantic import BaseModel, Field

from serpcluster.schemas.serp import AIOverview

TARGET_CLUSTER_ID = "target"

ActionType = Literal[
    "great_target_page_ranking",
    "ok_other_page_diff_cluster",
    "cannibalisation",
    "expand_target_page",
    "new_page",
]
ACTION_TYPES: tuple[ActionType, ...] = (
    "great_target_page_ranking",
    "ok_other_page_diff_cluster",
    "cannibalisation",
    "expand_target_page",
    "new_page",
)
Priority = Literal["high", "medium", "low"]


class Cluster(BaseModel):
    """Group of queries competing for the same result set."""

    id: str
    queries: list[str]
    exemplar: str
    overlap_matrix: list[list[int]]

    model_config = {"frozen": True}


class ClusterStats(BaseModel):
    """Pairwise overlap statistics within one cluster."""

    size: int
    avg_overlap: float
    min_overlap: float
    max_overlap: float


# Actions
class TargetRanksAction(BaseModel):
    """Target page already ranks on page 1."""

    type: Literal["great_target_page_ranking"] = "great_target_page_ranking"
    query: str
    position: int | None = None

    model_config = {"frozen": True}


class OkDifferentClusterAction(BaseModel):
    """Another page of the domain ranks for a query outside the target's cluster."""

    type: Literal["ok_other_page_diff_cluster"] = "ok_other_page_diff_cluster"
    query: str
    competing_url: str
    position: int

    model_config = {"frozen": True}


class CannibalisationAction(BaseModel):
    """Another page of the domain ranks for a query inside the target's cluster."""

    type: Literal["cannibalisation"] = "cannibalisation"
    query: str
    competing_url: str
    position: int

    model_config = {"frozen": True}


class ExpandTargetPageAction(BaseModel):
    """Domain does not rank; the query belongs on the target page."""

    type: Literal["expand_target_page"] = "expand_target_page"
    query: str
    similarity: float | None = None

    model_config = {"frozen": True}


class NewPageAction(BaseModel):
    """Domain does not rank; the query warrants its own page."""

    type: Literal["new_page"] = "new_page"
    query: str
    similarity: float | None = None

    model_config = {"frozen": True}


Action = Annotated[
    TargetRanksAction
    | OkDifferentClusterAction
    | CannibalisationAction
    | ExpandTargetPageAction
    | NewPageAction,
    Field(discriminator="type"),
]


class QueryClassificationFailure(BaseModel):
    """Query whose classification failed, reported next to successful actions."""

    query: str
    error: str


class ClusterRecommendation(BaseModel):
    """Classified actions for every query of one cluster."""

    cluster_id: str
    exemplar: str
    queries: list[str]
    ai_overview_presence: list[AIOverview]
    actions: list[Action] = Field(default_factory=list)
    failures: list[QueryClassificationFailure] = Field(default_factory=list)


# Aggregates
class ActionSummary(BaseModel):
    """Action counts per kind across all recommendations."""

    great_target_page_ranking: int = 0
    ok_other_page_diff_cluster: int = 0
    cannibalisation: int = 0
    expand_target_page: int = 0
    new_page: int = 0


class AIOverviewStats(BaseModel):
    """AI Overview presence counts across all recommendations."""

    present: int = 0
    absent: int = 0
    unknown: int = 0
    percent_present: float = 0.0


class CannibalizationIssue(BaseModel):
    """Queries of one cluster where the same non-target URL competes."""

    cluster_id: str
    queries: list[str]
    competing_url: str


class ContentPriority(BaseModel):
    """Suggested follow-up with its priority."""

    priority: Priority
    action: str
    queries: list[str]
    rationale: str


class RecommendationSummary(BaseModel):
    """All aggregate views over one batch of recommendations."""

    actions: ActionSummary
    ai_overview: AIOverviewStats
    cannibalization_issues: list[CannibalizationIssue] = Field(default_factory=list)
    priorities: list[ContentPriority] = Field(default_factory=list)
