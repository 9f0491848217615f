"""Similarity graph over queries and its connected components."""

from __future__ import annotations

from serpcluster.services.clustering.overlap import OverlapMatrix

SimilarityGraph = dict[int, set[int]]


def build_similarity_graph(matrix: OverlapMatrix, threshold: int) -> SimilarityGraph:
    """Connect every pair of queries whose overlap reaches the threshold.

    Every query index is a node, including isolated ones.
    """
    n = len(matrix)
    graph: SimilarityGraph = {i: set() for i in range(n)}

    for i in range(n):
        for j in range(i + 1, n):
            if matrix[i][j] >= threshold:
                graph[i].add(j)
                graph[j].add(i)

    return graph


def find_connected_components(graph: SimilarityGraph) -> list[list[int]]:
    """Partition the graph into connected components.

    Depth-first with an explicit stack. Seeds are taken in ascending index
    order and neighbors are explored in ascending order, so each component
    lists its members in the same preorder a recursive traversal would.
    """
    visited: set[int] = set()
    components: list[list[int]] = []

    for seed in sorted(graph):
        if seed in visited:
            continue

        component: list[int] = []
        stack = [seed]
        while stack:
            node = stack.pop()
            if node in visited:
                continue
            visited.add(node)
            component.append(node)
            # Reversed so the smallest neighbor is popped first
            for neighbor in sorted(graph.get(node, ()), reverse=True):
                if neighbor not in visited:
                    stack.append(neighbor)

        components.append(component)

    return components
