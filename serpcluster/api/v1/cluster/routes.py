"""Clustering API endpoints."""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, HTTPException, status

from serpcluster.api.v1.cluster.constants import PROVIDER_EMBEDDINGS, PROVIDER_TERM_FREQUENCY
from serpcluster.config import settings
from serpcluster.core.exceptions import InvalidThresholdError, ValidationError
from serpcluster.integrations.embeddings import EmbeddingsClient, EmbeddingSimilarityProvider
from serpcluster.schemas.analysis import (
    ClusterDiagnostics,
    ClusterRequest,
    ClusterResponse,
    DedupeRequest,
    DedupeResponse,
)
from serpcluster.schemas.cluster import Cluster, ClusterRecommendation
from serpcluster.schemas.serp import SubQuery
from serpcluster.services.bucketing import (
    SimilarityProvider,
    TermFrequencySimilarityProvider,
    generate_cluster_recommendations,
)
from serpcluster.services.clustering.clusterer import cluster_by_serp_similarity
from serpcluster.services.recommendations import summarize_recommendations
from serpcluster.services.text_similarity import filter_near_duplicates
from serpcluster.services.url_normalization import deduplicate_strings

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ClusterResponse,
    summary="Cluster queries and recommend actions",
    description=(
        "Group queries whose SERPs share enough URLs, then classify every query into a "
        "content action relative to the target page."
    ),
)
async def cluster_queries(request: ClusterRequest) -> ClusterResponse:
    """Cluster SERP snapshots and classify their queries."""
    try:
        clusters = cluster_by_serp_similarity(
            request.serp_results,
            request.clustering_overlap_threshold,
            request.target_query,
        )
    except InvalidThresholdError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    api_key = request.openai_api_key or settings.openai_api_key
    if request.mock_mode or not api_key:
        provider_name = PROVIDER_TERM_FREQUENCY
        recommendations = await _recommend(request, clusters, TermFrequencySimilarityProvider())
    else:
        provider_name = PROVIDER_EMBEDDINGS
        async with EmbeddingsClient(api_key=api_key) as client:
            recommendations = await _recommend(
                request,
                clusters,
                EmbeddingSimilarityProvider(client),
            )

    failure_count = sum(len(rec.failures) for rec in recommendations)
    logger.info(
        "Cluster request completed",
        extra={
            "query_count": len(request.serp_results),
            "cluster_count": len(clusters),
            "similarity_provider": provider_name,
            "failure_count": failure_count,
        },
    )

    return ClusterResponse(
        clusters=clusters,
        recommendations=recommendations,
        summary=summarize_recommendations(recommendations),
        diagnostics=ClusterDiagnostics(
            timestamp=datetime.now(timezone.utc),
            cluster_count=len(clusters),
            threshold=request.clustering_overlap_threshold,
            similarity_provider=provider_name,
            failure_count=failure_count,
        ),
    )


@router.post(
    "/dedupe",
    response_model=DedupeResponse,
    summary="Filter near-duplicate queries",
    description=(
        "Drop candidate queries that repeat an earlier candidate exactly (ignoring case and "
        "spacing) or nearly (term-frequency cosine above the threshold)."
    ),
)
async def dedupe_queries(request: DedupeRequest) -> DedupeResponse:
    """Remove near-duplicate candidate queries, keeping input order."""
    threshold = request.threshold or settings.near_duplicate_threshold
    unique = _drop_exact_duplicates(request.candidates)
    try:
        kept = filter_near_duplicates(unique, threshold)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message) from e

    return DedupeResponse(
        candidates=kept,
        removed_count=len(request.candidates) - len(kept),
        exact_duplicate_count=len(request.candidates) - len(unique),
    )


def _drop_exact_duplicates(candidates: list[SubQuery]) -> list[SubQuery]:
    # deduplicate_strings keeps first spellings in input order, so a single
    # forward walk maps them back to their candidates.
    remaining = iter(deduplicate_strings(candidate.q for candidate in candidates))
    expected = next(remaining, None)
    unique: list[SubQuery] = []
    for candidate in candidates:
        if candidate.q == expected:
            unique.append(candidate)
            expected = next(remaining, None)
    return unique


async def _recommend(
    request: ClusterRequest,
    clusters: list[Cluster],
    provider: SimilarityProvider,
) -> list[ClusterRecommendation]:
    return await generate_cluster_recommendations(
        request.serp_results,
        clusters,
        request.target_query,
        provider,
        target_page_url=request.target_page_url,
        expand_threshold=settings.expand_similarity_threshold,
        max_concurrency=settings.classification_max_concurrency,
    )
