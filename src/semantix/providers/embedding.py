"""Embedding gateway: one contract over heterogeneous embedding APIs.

This gateway turns text into vectors through any provider in the
registry, speaking each provider's dialect (Ollama, OpenAI, llama.cpp or
a generic ``text`` endpoint) over plain HTTP.

Why this exists:
- Providers disagree on the request field name and the response shape
- A failed chunk must not sink the rest of a world book
- Failures must stay attributable to the chunk index that caused them

Trade-offs:
- One request per text; batching is left to the bounded concurrency
- Timeouts come from the httpx client, nothing is retried
"""

import asyncio
from collections.abc import Mapping, Sequence
from typing import Optional

import httpx

from semantix.config.schema import ProviderProfile
from semantix.entities import Chunk, EmbeddedChunk
from semantix.observability.logging import get_logger
from semantix.providers.base import (
    EmbeddingError,
    ProviderReportedError,
    UnexpectedResponseFormatError,
    build_headers,
    provider_label,
    resolve_provider,
)
from semantix.providers.payloads import build_embedding_request, parse_embedding_response

logger = get_logger(__name__)

PROGRESS_EVERY = 10


class EmbeddingGateway:
    """Generate embeddings through providers from a name-keyed registry.

    Example:
        gateway = EmbeddingGateway(config.providers, concurrency=4)
        vectors = await gateway.embed(["first", "second"], "ollama")
        await gateway.close()
    """

    def __init__(
        self,
        registry: Mapping[str, ProviderProfile],
        client: Optional[httpx.AsyncClient] = None,
        concurrency: int = 1,
    ) -> None:
        """Initialize the gateway.

        Args:
            registry: Provider profiles keyed by name
            client: Shared HTTP client; one is created (and owned) if omitted
            concurrency: Maximum embedding requests in flight per batch
        """
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")

        self.registry = registry
        self.concurrency = concurrency
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    def _resolve(self, provider: str | ProviderProfile) -> tuple[str, ProviderProfile]:
        if isinstance(provider, ProviderProfile):
            return provider_label(self.registry, provider), provider
        return provider, resolve_provider(self.registry, provider)

    async def embed_one(self, text: str, provider: str | ProviderProfile) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed
            provider: Registry name or a profile

        Returns:
            Embedding vector

        Raises:
            UnknownProviderError: If the provider name is not registered
            EmbeddingError: If the request fails or the response is unusable
        """
        name, profile = self._resolve(provider)
        return await self._request_embedding(name, profile, text)

    async def _request_embedding(self, name: str, profile: ProviderProfile, text: str) -> list[float]:
        request = build_embedding_request(
            profile.kind, text, profile.model_name, profile.default_params
        )
        url = profile.embedding_url

        logger.debug(
            "sending_embedding_request",
            provider=name,
            kind=profile.kind.value,
            url=url,
            text_length=len(text),
        )

        try:
            response = await self.client.post(
                url,
                json=request.to_payload(),
                headers=build_headers(profile),
                timeout=profile.timeout,
            )
        except httpx.HTTPError as e:
            raise EmbeddingError(
                message=f"Network error calling embedding provider: {e}",
                provider=name,
                original_error=e,
            ) from e
        except ValueError as e:
            # Body could not be encoded, e.g. a lone surrogate in the text
            raise EmbeddingError(
                message=f"Could not encode embedding request: {e}",
                provider=name,
                original_error=e,
            ) from e

        if response.is_error:
            self._raise_for_error_body(name, response)
            raise EmbeddingError(
                message=f"HTTP error! status: {response.status_code}, message: {response.text}",
                provider=name,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise UnexpectedResponseFormatError(
                message="Embedding response is not valid JSON",
                provider=name,
                original_error=e,
            ) from e

        vector = parse_embedding_response(body, name)

        if profile.dimension is not None and len(vector) != profile.dimension:
            raise UnexpectedResponseFormatError(
                message=(
                    f"Embedding dimension mismatch: expected {profile.dimension}, "
                    f"got {len(vector)}"
                ),
                provider=name,
            )

        return vector

    @staticmethod
    def _raise_for_error_body(name: str, response: httpx.Response) -> None:
        """Surface a structured ``error`` object from a non-2xx response."""
        try:
            body = response.json()
        except ValueError:
            return
        if isinstance(body, dict) and body.get("error"):
            error = body["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ProviderReportedError(
                message=f"Embedding API error: {message}",
                provider=name,
                status_code=response.status_code,
            )

    async def _embed_all(
        self, texts: Sequence[str], provider_name: str
    ) -> tuple[list[list[float]], list[Optional[str]]]:
        """Embed texts in input order, isolating per-item failures.

        Returns:
            Vectors (``[]`` where an item failed) and the per-item error messages
        """
        name, profile = self._resolve(provider_name)

        total = len(texts)
        vectors: list[list[float]] = [[] for _ in range(total)]
        errors: list[Optional[str]] = [None] * total
        semaphore = asyncio.Semaphore(self.concurrency)
        done = 0

        logger.info(
            "embedding_batch_started",
            provider=name,
            text_count=total,
            concurrency=self.concurrency,
        )

        async def embed_at(index: int, text: str) -> None:
            nonlocal done
            if not text.strip():
                logger.warning("skipping_empty_text", provider=name, index=index)
                errors[index] = "empty text"
                return

            async with semaphore:
                try:
                    vectors[index] = await self._request_embedding(name, profile, text)
                except EmbeddingError as e:
                    errors[index] = e.message
                    logger.error(
                        "embedding_failed",
                        provider=name,
                        index=index,
                        error=e.message,
                        status_code=e.status_code,
                    )
                    return

            done += 1
            if done % PROGRESS_EVERY == 0:
                logger.info("embedding_progress", provider=name, embedded=done, total=total)

        outcomes = await asyncio.gather(
            *(embed_at(i, text) for i, text in enumerate(texts)),
            return_exceptions=True,
        )
        # Re-raise only once every item has settled
        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                raise outcome

        failed = sum(1 for error in errors if error is not None)
        if failed:
            logger.error("embedding_batch_had_failures", provider=name, failed=failed, total=total)
        logger.info(
            "embedding_batch_completed",
            provider=name,
            succeeded=total - failed,
            total=total,
        )

        return vectors, errors

    async def embed(self, texts: Sequence[str], provider_name: str) -> list[list[float]]:
        """Embed many texts; a failed item yields an empty vector at its index.

        Raises:
            UnknownProviderError: If the provider is not registered (before any request)
        """
        vectors, _ = await self._embed_all(texts, provider_name)
        return vectors

    async def embed_chunks(self, chunks: Sequence[Chunk], provider_name: str) -> list[EmbeddedChunk]:
        """Embed world book chunks using ``comment + " " + content``, trimmed.

        Blank chunks are never sent; they come back with an empty vector.
        """
        vectors, errors = await self._embed_all(
            [chunk.embedding_text for chunk in chunks], provider_name
        )
        return [
            EmbeddedChunk(chunk=chunk, vector=vector, error=error)
            for chunk, vector, error in zip(chunks, vectors, errors)
        ]

    async def close(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EmbeddingGateway":
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit with automatic cleanup."""
        await self.close()
