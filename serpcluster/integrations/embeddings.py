"""Embeddings integration for semantic query similarity.

Uses an OpenAI-compatible embeddings endpoint; similarity falls back to
term-frequency cosine when the API cannot be reached.
"""

import logging
from typing import Any

import httpx
import numpy as np

from serpcluster.config import settings
from serpcluster.core.exceptions import (
    APIKeyMissingError,
    ExternalAPIError,
    SimilarityProviderError,
)
from serpcluster.services.text_similarity import cosine_similarity as tf_cosine_similarity

logger = logging.getLogger(__name__)


class EmbeddingsClient:
    """Client for generating text embeddings."""

    API_NAME = "OpenAI Embeddings"
    MAX_BATCH_SIZE = 100

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self.api_key = api_key or settings.openai_api_key
        self.model = model or settings.embeddings_model
        self.url = url or settings.embeddings_url
        self.timeout = timeout if timeout is not None else settings.embeddings_timeout
        self._client: httpx.AsyncClient | None = None

        if not self.api_key:
            raise APIKeyMissingError("OpenAI (for embeddings)")

    async def __aenter__(self) -> "EmbeddingsClient":
        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
        )
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("Client must be used as async context manager")
        return self._client

    async def get_embeddings(self, texts: list[str]) -> list[list[float]]:
        """Generate embeddings for a list of texts, in input order."""
        if not texts:
            return []
        logger.info("Generating embeddings", extra={"text_count": len(texts), "model": self.model})

        all_embeddings: list[list[float]] = []
        for i in range(0, len(texts), self.MAX_BATCH_SIZE):
            batch = texts[i:i + self.MAX_BATCH_SIZE]

            try:
                response = await self.client.post(
                    self.url,
                    json={"model": self.model, "input": batch},
                )
            except httpx.HTTPError as e:
                logger.warning("Embeddings HTTP error", extra={"error": str(e)})
                raise ExternalAPIError(self.API_NAME, str(e)) from e

            if response.status_code != 200:
                logger.warning("Embeddings API error", extra={"status": response.status_code})
                raise ExternalAPIError(
                    self.API_NAME,
                    f"API error: {response.status_code} - {response.text}",
                )

            data = self._parse_payload(response)
            if len(data) != len(batch):
                raise ExternalAPIError(
                    self.API_NAME,
                    f"Expected {len(batch)} embeddings, got {len(data)}",
                )

            # Sort by index to maintain order
            sorted_data = sorted(data, key=lambda x: x.get("index", 0))
            all_embeddings.extend(item["embedding"] for item in sorted_data)

        return all_embeddings

    def _parse_payload(self, response: httpx.Response) -> list[dict[str, Any]]:
        try:
            payload = response.json()
        except ValueError as e:
            logger.warning("Embeddings API returned non-JSON body", extra={"error": str(e)})
            raise ExternalAPIError(self.API_NAME, f"Malformed embeddings payload: {e}") from e

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or not all(isinstance(item, dict) for item in data):
            raise ExternalAPIError(
                self.API_NAME,
                f"Malformed embeddings payload: expected object with 'data' list, got {type(payload).__name__}",
            )
        return data

    @staticmethod
    def cosine_similarity(vec1: list[float], vec2: list[float]) -> float:
        """Calculate cosine similarity between two vectors."""
        a = np.array(vec1, dtype=float)
        b = np.array(vec2, dtype=float)

        norm_a = np.linalg.norm(a)
        norm_b = np.linalg.norm(b)
        if norm_a == 0 or norm_b == 0:
            return 0.0

        return float(np.dot(a, b) / (norm_a * norm_b))


class EmbeddingSimilarityProvider:
    """Similarity provider backed by embeddings with a TF-cosine fallback.

    Embeddings are cached per text for the lifetime of the provider, so the
    target text is embedded once per batch.
    """

    name = "embeddings"

    def __init__(self, client: EmbeddingsClient, *, use_fallback: bool = True) -> None:
        self.client = client
        self.use_fallback = use_fallback
        self._cache: dict[str, list[float]] = {}

    async def similarity(self, text1: str, text2: str) -> float:
        """Score two texts in [0, 1]."""
        try:
            vec1, vec2 = await self._embed_pair(text1, text2)
        except (ExternalAPIError, KeyError, TypeError) as e:
            if not self.use_fallback:
                raise SimilarityProviderError(self.client.API_NAME, str(e)) from e
            logger.warning(
                "Embedding similarity failed, using term-frequency fallback",
                extra={"error": str(e)},
            )
            return tf_cosine_similarity(text1, text2)

        return max(0.0, min(1.0, EmbeddingsClient.cosine_similarity(vec1, vec2)))

    async def _embed_pair(self, text1: str, text2: str) -> tuple[list[float], list[float]]:
        missing = [text for text in dict.fromkeys((text1, text2)) if text not in self._cache]
        if missing:
            vectors = await self.client.get_embeddings(missing)
            self._cache.update(zip(missing, vectors))
        return self._cache[text1], self._cache[text2]
