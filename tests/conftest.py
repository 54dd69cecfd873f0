"""Shared fixtures: log capture, a sample world book and a fake provider."""

import json

import httpx
import pytest
import structlog

from semantix.config.schema import (
    AppConfig,
    ProviderKind,
    ProviderProfile,
    VectorStoreConfig,
    VectorStoreType,
)

KEYWORDS = ("dragon", "king", "sea")


def keyword_vector(text: str) -> list[float]:
    """Three-dimensional vector counting a few keywords in the text."""
    lowered = text.lower()
    return [lowered.count(word) + 0.01 for word in KEYWORDS]


@pytest.fixture(autouse=True)
def log_output():
    """Capture structlog events instead of printing them."""
    with structlog.testing.capture_logs() as logs:
        yield logs


@pytest.fixture
def world_book_data():
    """A small world book as decoded from JSON."""
    return {
        "name": "Eldoria",
        "entries": {
            "0": {
                "uid": 0,
                "key": ["dragon", "wyrm"],
                "keysecondary": [],
                "comment": "Dragons",
                "content": "The red dragon sleeps under the mountain.",
                "constant": False,
                "order": 100,
            },
            "1": {
                "uid": 1,
                "key": ["king"],
                "keysecondary": ["crown"],
                "comment": "The King",
                "content": "King Aldric rules Eldoria from the white city.",
                "selective": True,
            },
            "2": {
                "uid": 2,
                "key": ["sea"],
                "comment": "The Sea",
                "content": "The grey sea swallows ships every winter.",
            },
            "3": {
                "uid": 3,
                "key": [],
                "comment": "",
                "content": "",
            },
        },
    }


@pytest.fixture
def provider_handler():
    """Request handler faking a llama.cpp embedding server with a /rerank endpoint.

    Rerank relevance is the share of query words found in each document,
    returned best first.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)

        if request.url.path == "/rerank":
            words = body["query"].lower().split()
            scored = [
                {
                    "index": i,
                    "relevance_score": sum(w in doc.lower() for w in words) / len(words),
                }
                for i, doc in enumerate(body["documents"])
            ]
            scored.sort(key=lambda r: r["relevance_score"], reverse=True)
            if body.get("top_n"):
                scored = scored[: body["top_n"]]
            return httpx.Response(200, json={"results": scored})

        return httpx.Response(200, json={"embedding": keyword_vector(body["content"])})

    return handler


@pytest.fixture
def http_client(provider_handler):
    """Async HTTP client routed to the fake provider."""
    return httpx.AsyncClient(transport=httpx.MockTransport(provider_handler))


@pytest.fixture
def app_config():
    """Configuration with one fake provider and an in-memory store."""
    return AppConfig(
        default_provider="fake",
        default_chunk_size=450,
        default_overlap_size=50,
        embedding_concurrency=2,
        providers={
            "fake": ProviderProfile(
                base_url="http://embed.test",
                embedding_endpoint="/embedding",
                model_name="fake-embed",
                kind=ProviderKind.LLAMACPP,
                dimension=3,
            ),
        },
        vector_store=VectorStoreConfig(store_type=VectorStoreType.MEMORY),
    )
