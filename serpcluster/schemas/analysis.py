"""Request/response schemas for the clustering API."""

from datetime import datetime

from pydantic import BaseModel, Field

from serpcluster.config import settings
from serpcluster.schemas.cluster import Cluster, ClusterRecommendation, RecommendationSummary
from serpcluster.schemas.serp import SerpResult, SubQuery


class ClusterRequest(BaseModel):
    """Schema for clustering a batch of SERP snapshots."""

    serp_results: list[SerpResult]
    target_query: str = Field(min_length=1)
    target_page_url: str | None = None
    clustering_overlap_threshold: int = Field(
        default_factory=lambda: settings.default_overlap_threshold,
    )
    openai_api_key: str | None = None
    mock_mode: bool = False


class ClusterDiagnostics(BaseModel):
    """Run metadata returned with clustering results."""

    timestamp: datetime
    cluster_count: int
    threshold: int
    similarity_provider: str
    failure_count: int = 0


class ClusterResponse(BaseModel):
    """Schema for clustering results."""

    clusters: list[Cluster]
    recommendations: list[ClusterRecommendation]
    summary: RecommendationSummary
    diagnostics: ClusterDiagnostics


class DedupeRequest(BaseModel):
    """Schema for near-duplicate filtering of candidate queries."""

    candidates: list[SubQuery]
    threshold: float | None = Field(default=None, gt=0.0, lt=1.0)


class DedupeResponse(BaseModel):
    """Schema for near-duplicate filtering results."""

    candidates: list[SubQuery]
    removed_count: int
    exact_duplicate_count: int = 0
