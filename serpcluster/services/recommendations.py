"""Summary statistics and priority suggestions over classified recommendations."""

from __future__ import annotations

from collections.abc import Sequence

from serpcluster.schemas.cluster import (
    ACTION_TYPES,
    ActionSummary,
    AIOverviewStats,
    CannibalisationAction,
    CannibalizationIssue,
    ClusterRecommendation,
    ContentPriority,
    ExpandTargetPageAction,
    NewPageAction,
    RecommendationSummary,
)

MIN_EXPAND_ACTIONS_FOR_PRIORITY = 3
MIN_NEW_PAGE_ACTIONS_FOR_PRIORITY = 2


def summarize_actions(recommendations: Sequence[ClusterRecommendation]) -> ActionSummary:
    """Count actions per kind; kinds that never occur stay at 0."""
    counts = dict.fromkeys(ACTION_TYPES, 0)
    for rec in recommendations:
        for action in rec.actions:
            counts[action.type] += 1
    return ActionSummary(**counts)


def ai_overview_stats(recommendations: Sequence[ClusterRecommendation]) -> AIOverviewStats:
    """Count AI Overview presence across all queries."""
    present = absent = unknown = 0
    for rec in recommendations:
        for presence in rec.ai_overview_presence:
            if presence == "present":
                present += 1
            elif presence == "absent":
                absent += 1
            else:
                unknown += 1

    total = present + absent + unknown
    return AIOverviewStats(
        present=present,
        absent=absent,
        unknown=unknown,
        percent_present=(present / total) * 100 if total else 0.0,
    )


def identify_cannibalization_issues(
    recommendations: Sequence[ClusterRecommendation],
) -> list[CannibalizationIssue]:
    """Group cannibalisation actions by competing URL within each cluster."""
    issues: list[CannibalizationIssue] = []
    for rec in recommendations:
        queries_by_url: dict[str, list[str]] = {}
        for action in rec.actions:
            if isinstance(action, CannibalisationAction) and action.competing_url:
                queries_by_url.setdefault(action.competing_url, []).append(action.query)

        issues.extend(
            CannibalizationIssue(cluster_id=rec.cluster_id, queries=queries, competing_url=url)
            for url, queries in queries_by_url.items()
        )
    return issues


def suggest_content_priorities(
    recommendations: Sequence[ClusterRecommendation],
) -> list[ContentPriority]:
    """Suggest follow-ups: cannibalisation fixes, page expansions, new pages."""
    priorities = [
        ContentPriority(
            priority="high",
            action="Fix cannibalization",
            queries=issue.queries,
            rationale=(
                f"Queries in cluster {issue.cluster_id} rank with {issue.competing_url} "
                "instead of the target page, indicating potential cannibalization."
            ),
        )
        for issue in identify_cannibalization_issues(recommendations)
    ]

    for rec in recommendations:
        expand_queries = [a.query for a in rec.actions if isinstance(a, ExpandTargetPageAction)]
        if len(expand_queries) >= MIN_EXPAND_ACTIONS_FOR_PRIORITY:
            priorities.append(
                ContentPriority(
                    priority="medium",
                    action="Expand target page",
                    queries=expand_queries,
                    rationale=(
                        f"Cluster {rec.cluster_id} has {len(expand_queries)} related queries "
                        "that could be addressed by expanding the target page."
                    ),
                )
            )

    for rec in recommendations:
        new_page_queries = [a.query for a in rec.actions if isinstance(a, NewPageAction)]
        if len(new_page_queries) >= MIN_NEW_PAGE_ACTIONS_FOR_PRIORITY:
            priorities.append(
                ContentPriority(
                    priority="low",
                    action="Create new page",
                    queries=new_page_queries,
                    rationale=(
                        f"Cluster {rec.cluster_id} has {len(new_page_queries)} queries "
                        "that warrant a separate content piece."
                    ),
                )
            )

    return priorities


def summarize_recommendations(
    recommendations: Sequence[ClusterRecommendation],
) -> RecommendationSummary:
    """Build every aggregate view for one batch of recommendations."""
    return RecommendationSummary(
        actions=summarize_actions(recommendations),
        ai_overview=ai_overview_stats(recommendations),
        cannibalization_issues=identify_cannibalization_issues(recommendations),
        priorities=suggest_content_priorities(recommendations),
    )
