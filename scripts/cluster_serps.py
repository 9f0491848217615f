"""Cluster a JSON file of SERP snapshots and print recommendations as JSON."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pydantic
from pydantic import TypeAdapter

from serpcluster.config import settings
from serpcluster.core.exceptions import SerpClusterError
from serpcluster.core.logging import setup_logging
from serpcluster.schemas.serp import SerpResult
from serpcluster.services.bucketing import (
    TermFrequencySimilarityProvider,
    generate_cluster_recommendations,
)
from serpcluster.services.clustering.clusterer import cluster_by_serp_similarity
from serpcluster.services.recommendations import summarize_recommendations

logger = logging.getLogger("serpcluster.scripts.cluster_serps")

SERP_LIST_ADAPTER = TypeAdapter(list[SerpResult])


def parse_args() -> argparse.Namespace:
    """Build CLI parser."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("input", help="Path to a JSON array of SERP results")
    parser.add_argument("--target-query", required=True, help="Query the target page is built for")
    parser.add_argument("--target-page-url", default=None, help="URL of the target page")
    parser.add_argument(
        "--threshold",
        type=int,
        default=settings.default_overlap_threshold,
        help=f"Minimum shared URLs to connect two queries (default: {settings.default_overlap_threshold})",
    )
    return parser.parse_args()


async def run(args: argparse.Namespace) -> dict[str, Any]:
    """Cluster and classify the SERP file using the offline similarity provider."""
    payload = json.loads(Path(args.input).read_text(encoding="utf-8"))
    serp_results = SERP_LIST_ADAPTER.validate_python(payload)

    clusters = cluster_by_serp_similarity(serp_results, args.threshold, args.target_query)
    recommendations = await generate_cluster_recommendations(
        serp_results,
        clusters,
        args.target_query,
        TermFrequencySimilarityProvider(),
        target_page_url=args.target_page_url,
        expand_threshold=settings.expand_similarity_threshold,
    )
    return {
        "clusters": [cluster.model_dump() for cluster in clusters],
        "recommendations": [rec.model_dump() for rec in recommendations],
        "summary": summarize_recommendations(recommendations).model_dump(),
    }


def main() -> int:
    setup_logging(stream=sys.stderr)
    args = parse_args()
    try:
        result = asyncio.run(run(args))
    except pydantic.ValidationError as e:
        logger.error(
            "Invalid SERP input",
            extra={"input": args.input, "error_count": e.error_count(), "errors": e.errors(include_url=False)},
        )
        return 1
    except SerpClusterError as e:
        logger.error("Clustering failed", extra={"error": e.message, **e.details})
        return 1
    print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
