"""SERP overlap between queries."""

from __future__ import annotations

from collections.abc import Sequence

from serpcluster.schemas.serp import SerpResult
from serpcluster.services.url_normalization import canonicalize_for_serp_comparison

SELF_OVERLAP = 10

OverlapMatrix = list[list[int]]


def canonical_urls(serp: SerpResult) -> set[str]:
    """Canonicalized top-10 URLs of one SERP as a set."""
    return {canonicalize_for_serp_comparison(result.url) for result in serp.top10}


def compute_serp_overlap(serp_a: SerpResult, serp_b: SerpResult) -> int:
    """Count canonical URLs shared by two SERPs (duplicates count once)."""
    return len(canonical_urls(serp_a) & canonical_urls(serp_b))


def build_overlap_matrix(serp_results: Sequence[SerpResult]) -> OverlapMatrix:
    """Build the symmetric query-by-query overlap matrix.

    The diagonal is fixed at SELF_OVERLAP regardless of how many results a
    SERP actually has.
    """
    url_sets = [canonical_urls(serp) for serp in serp_results]
    n = len(url_sets)
    matrix = [[0] * n for _ in range(n)]

    for i in range(n):
        matrix[i][i] = SELF_OVERLAP
        for j in range(i + 1, n):
            overlap = len(url_sets[i] & url_sets[j])
            matrix[i][j] = overlap
            matrix[j][i] = overlap

    return matrix


def sub_matrix(matrix: OverlapMatrix, indices: Sequence[int]) -> OverlapMatrix:
    """Restrict the matrix to the given rows/columns, in the given order."""
    return [[matrix[i][j] for j in indices] for i in indices]
