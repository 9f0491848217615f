"""Overlap-based clustering of queries by SERP similarity.

Queries whose top-10 results share at least `threshold` canonical URLs are
connected; each connected component becomes one cluster. The cluster holding
the target query is named "target", every other cluster keeps the id
`cluster-<k>` where k is its 1-based position in the full component list, so
ids can skip numbers.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from serpcluster.core.exceptions import InvalidThresholdError
from serpcluster.schemas.cluster import TARGET_CLUSTER_ID, Cluster, ClusterStats
from serpcluster.schemas.serp import SerpResult
from serpcluster.services.clustering.graph import (
    build_similarity_graph,
    find_connected_components,
)
from serpcluster.services.clustering.overlap import (
    SELF_OVERLAP,
    OverlapMatrix,
    build_overlap_matrix,
    sub_matrix,
)

logger = logging.getLogger(__name__)

MIN_THRESHOLD = 1
MAX_THRESHOLD = 10
DEFAULT_OVERLAP_THRESHOLD = 4


def validate_threshold(threshold: object) -> int:
    """Return the threshold if it is an integer in [1, 10], else raise."""
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise InvalidThresholdError(threshold)
    if not MIN_THRESHOLD <= threshold <= MAX_THRESHOLD:
        raise InvalidThresholdError(threshold)
    return threshold


def select_exemplar(component: Sequence[int], matrix: OverlapMatrix) -> int:
    """Pick the member with the highest average overlap to the other members.

    Ties go to the member listed first; a singleton is its own exemplar.
    """
    best_index = component[0]
    best_average = -1.0

    for idx in component:
        others = [matrix[idx][other] for other in component if other != idx]
        average = sum(others) / len(others) if others else 0.0
        if average > best_average:
            best_average = average
            best_index = idx

    return best_index


def assemble_clusters(
    components: Sequence[Sequence[int]],
    matrix: OverlapMatrix,
    queries: Sequence[str],
    target_query: str | None = None,
) -> list[Cluster]:
    """Turn index components into Cluster records."""
    target_position = -1
    if target_query:
        for position, component in enumerate(components):
            if any(queries[i] == target_query for i in component):
                target_position = position
                break

    clusters: list[Cluster] = []
    for position, component in enumerate(components):
        cluster_id = (
            TARGET_CLUSTER_ID if position == target_position else f"cluster-{position + 1}"
        )
        clusters.append(
            Cluster(
                id=cluster_id,
                queries=[queries[i] for i in component],
                exemplar=queries[select_exemplar(component, matrix)],
                overlap_matrix=sub_matrix(matrix, component),
            )
        )
    return clusters


def cluster_by_serp_similarity(
    serp_results: Sequence[SerpResult],
    threshold: int = DEFAULT_OVERLAP_THRESHOLD,
    target_query: str | None = None,
    *,
    log: logging.Logger | None = None,
) -> list[Cluster]:
    """Cluster queries whose SERPs overlap by at least `threshold` URLs.

    Raises:
        InvalidThresholdError: threshold is not an integer in [1, 10].
    """
    validate_threshold(threshold)
    log = log or logger

    if not serp_results:
        return []

    log.info(
        "Clustering queries by SERP overlap",
        extra={"query_count": len(serp_results), "threshold": threshold},
    )

    matrix = build_overlap_matrix(serp_results)
    queries = [serp.query for serp in serp_results]
    if log.isEnabledFor(logging.DEBUG):
        for i, row in enumerate(matrix):
            log.debug(
                "Overlap row",
                extra={"query": queries[i], "top10_count": len(serp_results[i].top10), "overlaps": row},
            )

    graph = build_similarity_graph(matrix, threshold)
    components = find_connected_components(graph)

    # Nodes the traversal never reached become singleton components
    covered = {i for component in components for i in component}
    components.extend([i] for i in range(len(queries)) if i not in covered)

    clusters = assemble_clusters(components, matrix, queries, target_query)
    log.info(
        "Clustering complete",
        extra={
            "cluster_count": len(clusters),
            "cluster_sizes": [len(cluster.queries) for cluster in clusters],
            "has_target_cluster": any(c.id == TARGET_CLUSTER_ID for c in clusters),
        },
    )
    return clusters


def get_cluster_for_query(query: str, clusters: Sequence[Cluster]) -> str | None:
    """Return the id of the first cluster containing the query."""
    for cluster in clusters:
        if query in cluster.queries:
            return cluster.id
    return None


def are_in_same_cluster(query_a: str, query_b: str, clusters: Sequence[Cluster]) -> bool:
    """Return True when both queries resolve to the same cluster."""
    cluster_a = get_cluster_for_query(query_a, clusters)
    cluster_b = get_cluster_for_query(query_b, clusters)
    return cluster_a is not None and cluster_a == cluster_b


def get_cluster_stats(cluster: Cluster) -> ClusterStats:
    """Summarize pairwise overlaps between the members of a cluster."""
    size = len(cluster.queries)
    if size <= 1:
        return ClusterStats(
            size=size,
            avg_overlap=float(SELF_OVERLAP),
            min_overlap=float(SELF_OVERLAP),
            max_overlap=float(SELF_OVERLAP),
        )

    matrix = cluster.overlap_matrix
    overlaps = [
        matrix[i][j]
        for i in range(len(matrix))
        for j in range(i + 1, len(matrix[i]))
    ]
    if not overlaps:
        return ClusterStats(size=size, avg_overlap=0.0, min_overlap=0.0, max_overlap=0.0)

    return ClusterStats(
        size=size,
        avg_overlap=sum(overlaps) / len(overlaps),
        min_overlap=float(min(overlaps)),
        max_overlap=float(max(overlaps)),
    )
