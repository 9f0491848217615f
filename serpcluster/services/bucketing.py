"""Per-query action bucketing relative to a target page.

Decision order for each query (first match wins):
1. Target page ranks on page 1 -> great_target_page_ranking
2. Another page of the domain ranks -> cannibalisation when the query shares
   the target query's cluster, ok_other_page_diff_cluster otherwise
3. Domain does not rank -> expand_target_page when the query shares the
   target's cluster or its similarity to the target reaches the threshold,
   new_page otherwise
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Protocol

from serpcluster.schemas.cluster import (
    Action,
    CannibalisationAction,
    Cluster,
    ClusterRecommendation,
    ExpandTargetPageAction,
    NewPageAction,
    OkDifferentClusterAction,
    QueryClassificationFailure,
    TargetRanksAction,
)
from serpcluster.schemas.serp import SerpResult
from serpcluster.services.clustering.clusterer import are_in_same_cluster
from serpcluster.services.text_similarity import cosine_similarity

logger = logging.getLogger(__name__)

EXPAND_SIMILARITY_THRESHOLD = 0.75
DEFAULT_MAX_CONCURRENCY = 5


class SimilarityProvider(Protocol):
    """Scores how similar two texts are, in [0, 1]. May be slow or fail."""

    async def similarity(self, text1: str, text2: str) -> float: ...


class TermFrequencySimilarityProvider:
    """Offline provider using bag-of-words cosine similarity."""

    name = "term_frequency"

    async def similarity(self, text1: str, text2: str) -> float:
        return cosine_similarity(text1, text2)


async def determine_action(
    query: str,
    serp: SerpResult,
    target_query: str,
    clusters: Sequence[Cluster],
    similarity_provider: SimilarityProvider,
    *,
    target_page_url: str | None = None,
    expand_threshold: float = EXPAND_SIMILARITY_THRESHOLD,
) -> Action:
    """Decide the recommended action for one query.

    The similarity provider is only consulted when the domain does not rank
    and the query sits outside the target's cluster. Its errors propagate.
    """
    if serp.target_page_on_page1:
        position = serp.first_match.position if serp.first_match else None
        return TargetRanksAction(query=query, position=position)

    shares_target_cluster = are_in_same_cluster(query, target_query, clusters)

    if serp.same_domain_on_page1 and serp.first_match:
        if shares_target_cluster:
            return CannibalisationAction(
                query=query,
                competing_url=serp.first_match.url,
                position=serp.first_match.position,
            )
        return OkDifferentClusterAction(
            query=query,
            competing_url=serp.first_match.url,
            position=serp.first_match.position,
        )

    if shares_target_cluster:
        return ExpandTargetPageAction(query=query)

    similarity = await similarity_provider.similarity(query, target_page_url or target_query)
    if similarity >= expand_threshold:
        return ExpandTargetPageAction(query=query, similarity=similarity)
    return NewPageAction(query=query, similarity=similarity)


async def generate_cluster_recommendations(
    serp_results: Sequence[SerpResult],
    clusters: Sequence[Cluster],
    target_query: str,
    similarity_provider: SimilarityProvider,
    *,
    target_page_url: str | None = None,
    expand_threshold: float = EXPAND_SIMILARITY_THRESHOLD,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> list[ClusterRecommendation]:
    """Classify every clustered query and group the actions per cluster.

    Queries are classified concurrently. A query whose classification raises
    is reported in its recommendation's `failures` instead of aborting the
    batch. Queries without a SERP snapshot are skipped.
    """
    serp_by_query: dict[str, SerpResult] = {}
    for serp in serp_results:
        serp_by_query.setdefault(serp.query, serp)

    semaphore = asyncio.Semaphore(max(1, max_concurrency))

    async def _classify(query: str) -> Action | QueryClassificationFailure:
        async with semaphore:
            try:
                return await determine_action(
                    query,
                    serp_by_query[query],
                    target_query,
                    clusters,
                    similarity_provider,
                    target_page_url=target_page_url,
                    expand_threshold=expand_threshold,
                )
            except Exception as e:
                logger.warning(
                    "Query classification failed",
                    extra={"query": query, "error": str(e)},
                )
                return QueryClassificationFailure(query=query, error=str(e))

    per_cluster_queries = [
        [query for query in cluster.queries if query in serp_by_query]
        for cluster in clusters
    ]
    outcomes = await asyncio.gather(
        *[_classify(query) for queries in per_cluster_queries for query in queries]
    )

    recommendations: list[ClusterRecommendation] = []
    cursor = 0
    for cluster, queries in zip(clusters, per_cluster_queries):
        cluster_outcomes = outcomes[cursor:cursor + len(queries)]
        cursor += len(queries)

        recommendations.append(
            ClusterRecommendation(
                cluster_id=cluster.id,
                exemplar=cluster.exemplar,
                queries=list(cluster.queries),
                ai_overview_presence=[
                    serp_by_query[query].ai_overview if query in serp_by_query else "unknown"
                    for query in cluster.queries
                ],
                actions=[o for o in cluster_outcomes if not isinstance(o, QueryClassificationFailure)],
                failures=[o for o in cluster_outcomes if isinstance(o, QueryClassificationFailure)],
            )
        )

    failure_count = sum(len(rec.failures) for rec in recommendations)
    logger.info(
        "Recommendations generated",
        extra={
            "cluster_count": len(recommendations),
            "classified_count": cursor - failure_count,
            "failure_count": failure_count,
        },
    )
    return recommendations
