"""Rerank gateway for Cohere/Jina/BananaBread style ``/rerank`` endpoints."""

from collections.abc import Sequence
from typing import Optional

import httpx

from semantix.config.schema import ProviderProfile
from semantix.observability.logging import get_logger
from semantix.providers.base import UNREGISTERED_PROFILE, RerankProviderError, build_headers
from semantix.providers.payloads import RerankRequest, RerankResult, parse_rerank_response

logger = get_logger(__name__)

RERANK_ENDPOINT = "/rerank"


class RerankGateway:
    """Score candidate documents against a query with a reranking provider.

    The provider is trusted to order results by descending relevance; the
    gateway returns them as received and does not filter the documents it
    is given.
    """

    def __init__(
        self,
        profile: ProviderProfile,
        client: Optional[httpx.AsyncClient] = None,
        provider_name: Optional[str] = None,
    ) -> None:
        self.profile = profile
        self.provider_name = provider_name or UNREGISTERED_PROFILE
        self._client = client
        self._owns_client = client is None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def rerank(
        self,
        query: str,
        documents: Sequence[str],
        top_n: Optional[int] = None,
    ) -> list[RerankResult]:
        """Rerank documents for a query.

        Args:
            query: Query text
            documents: Candidate documents, already stripped of blanks
            top_n: Maximum number of results the provider should return

        Returns:
            Results with indices into ``documents`` and relevance scores

        Raises:
            RerankProviderError: On transport failure, non-2xx status or an
                error reported by the provider
        """
        url = self.profile.url_for(RERANK_ENDPOINT)
        request = RerankRequest(
            query=query,
            documents=list(documents),
            model=self.profile.model_name,
            top_n=top_n,
            extra=self.profile.default_params,
        )

        logger.info(
            "sending_rerank_request",
            provider=self.provider_name,
            url=url,
            document_count=len(documents),
            top_n=top_n,
        )

        try:
            response = await self.client.post(
                url,
                json=request.to_payload(),
                headers=build_headers(self.profile),
                timeout=self.profile.timeout,
            )
        except httpx.HTTPError as e:
            logger.error("rerank_request_failed", provider=self.provider_name, error=str(e))
            raise RerankProviderError(
                message=f"Network error calling rerank provider: {e}",
                provider=self.provider_name,
                original_error=e,
            ) from e

        if response.is_error:
            logger.error(
                "rerank_request_failed",
                provider=self.provider_name,
                status_code=response.status_code,
            )
            raise RerankProviderError(
                message=f"HTTP error! status: {response.status_code}, message: {response.text}",
                provider=self.provider_name,
                status_code=response.status_code,
            )

        try:
            body = response.json()
        except ValueError as e:
            raise RerankProviderError(
                message="Rerank response is not valid JSON",
                provider=self.provider_name,
                original_error=e,
            ) from e

        results = parse_rerank_response(body, self.provider_name)
        logger.info("rerank_results_received", provider=self.provider_name, result_count=len(results))
        return results

    async def close(self) -> None:
        """Close the HTTP client if this gateway created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "RerankGateway":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
