"""Unit tests for embeddings client and embedding similarity provider."""

from __future__ import annotations

import json as json_lib
from typing import Any

import httpx
import pytest

from serpcluster.config import settings
from serpcluster.core.exceptions import (
    APIKeyMissingError,
    ExternalAPIError,
    SimilarityProviderError,
)
from serpcluster.integrations.embeddings import EmbeddingsClient, EmbeddingSimilarityProvider
from serpcluster.services.text_similarity import cosine_similarity


def _install_fake_client(
    monkeypatch: pytest.MonkeyPatch,
    *,
    vectors: dict[str, list[float]] | None = None,
    status_code: int = 200,
    raise_error: bool = False,
    body: str | None = None,
) -> dict[str, Any]:
    captured: dict[str, Any] = {"posts": []}

    class FakeResponse:
        def __init__(self, payload: dict[str, Any]) -> None:
            self.status_code = status_code
            self.text = body if body is not None else "boom"
            self._payload = payload

        def json(self) -> Any:
            if body is not None:
                return json_lib.loads(body)
            return self._payload

    class FakeAsyncClient:
        def __init__(self, *args: Any, **kwargs: Any) -> None:
            captured["init"] = {"args": args, "kwargs": kwargs}

        async def post(self, url: str, json: dict[str, Any]) -> FakeResponse:
            captured["posts"].append({"url": url, "json": json})
            if raise_error:
                raise httpx.ConnectError("connection refused")
            # Reverse order to verify index sorting.
            data = [
                {"index": i, "embedding": (vectors or {}).get(text, [0.0, 1.0])}
                for i, text in enumerate(json["input"])
            ]
            return FakeResponse({"data": list(reversed(data))})

        async def aclose(self) -> None:
            return None

    monkeypatch.setattr("serpcluster.integrations.embeddings.httpx.AsyncClient", FakeAsyncClient)
    return captured


@pytest.mark.asyncio
async def test_get_embeddings_posts_model_and_restores_order(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """Client posts configured model and returns vectors in input order."""
    captured = _install_fake_client(
        monkeypatch, vectors={"alpha": [0.1, 0.2], "beta": [0.2, 0.3]}
    )

    async with EmbeddingsClient(api_key="sk-test") as client:
        vectors = await client.get_embeddings(["alpha", "beta"])

    assert captured["posts"][0]["url"] == settings.embeddings_url
    assert captured["posts"][0]["json"]["model"] == settings.embeddings_model
    assert captured["init"]["kwargs"]["headers"]["Authorization"] == "Bearer sk-test"
    assert vectors == [[0.1, 0.2], [0.2, 0.3]]


@pytest.mark.asyncio
async def test_get_embeddings_raises_on_api_error(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, status_code=500)

    async with EmbeddingsClient(api_key="sk-test") as client:
        with pytest.raises(ExternalAPIError):
            await client.get_embeddings(["alpha"])


def test_embeddings_client_requires_api_key() -> None:
    """Missing key raises API key error at construction time."""
    original_key = settings.openai_api_key
    try:
        settings.openai_api_key = None
        with pytest.raises(APIKeyMissingError):
            EmbeddingsClient()
    finally:
        settings.openai_api_key = original_key


def test_vector_cosine_similarity_handles_zero_vectors() -> None:
    assert EmbeddingsClient.cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
    assert EmbeddingsClient.cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
    assert EmbeddingsClient.cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0


@pytest.mark.asyncio
async def test_provider_scores_with_embeddings_and_caches_vectors(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    captured = _install_fake_client(
        monkeypatch,
        vectors={"crm": [1.0, 0.0], "target": [1.0, 0.0], "email": [0.0, 1.0]},
    )

    async with EmbeddingsClient(api_key="sk-test") as client:
        provider = EmbeddingSimilarityProvider(client)
        assert await provider.similarity("crm", "target") == pytest.approx(1.0)
        assert await provider.similarity("email", "target") == pytest.approx(0.0)

    inputs = [post["json"]["input"] for post in captured["posts"]]
    assert inputs == [["crm", "target"], ["email"]]


@pytest.mark.asyncio
async def test_provider_falls_back_to_term_frequency(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, raise_error=True)

    async with EmbeddingsClient(api_key="sk-test") as client:
        provider = EmbeddingSimilarityProvider(client)
        score = await provider.similarity("best crm software", "crm software")

    assert score == pytest.approx(cosine_similarity("best crm software", "crm software"))


@pytest.mark.asyncio
async def test_provider_without_fallback_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_client(monkeypatch, status_code=503)

    async with EmbeddingsClient(api_key="sk-test") as client:
        provider = EmbeddingSimilarityProvider(client, use_fallback=False)
        with pytest.raises(SimilarityProviderError):
            await provider.similarity("a", "b")


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>gateway</html>", "[1, 2]", '{"data": "nope"}'])
async def test_get_embeddings_rejects_malformed_payload(
    monkeypatch: pytest.MonkeyPatch, body: str
) -> None:
    """A 200 response that is not an embeddings object surfaces as an API error."""
    _install_fake_client(monkeypatch, body=body)

    async with EmbeddingsClient(api_key="sk-test") as client:
        with pytest.raises(ExternalAPIError, match="Malformed embeddings payload"):
            await client.get_embeddings(["alpha"])


@pytest.mark.asyncio
@pytest.mark.parametrize("body", ["<html>gateway</html>", "[1, 2]"])
async def test_provider_falls_back_on_malformed_payload(
    monkeypatch: pytest.MonkeyPatch, body: str
) -> None:
    _install_fake_client(monkeypatch, body=body)

    async with EmbeddingsClient(api_key="sk-test") as client:
        provider = EmbeddingSimilarityProvider(client)
        score = await provider.similarity("best crm software", "crm software")

    assert score == pytest.approx(cosine_similarity("best crm software", "crm software"))
