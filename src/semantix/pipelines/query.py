"""Query pipeline: semantic search with optional reranking.

Why this exists:
- Orchestrates query embedding, vector search and reranking
- Over-fetches candidates so the reranker has something to reorder
- Decides how rerank scores are merged back onto search candidates

How to use:
    from semantix.pipelines.query import QueryPipeline

    pipeline = QueryPipeline(config, embedding_gateway, vector_store, rerank_gateway)
    results = await pipeline.search("who rules Eldoria?", "eldoria", limit=5, rerank=True)
"""

from collections.abc import Sequence
from typing import Optional

from semantix.config.schema import AppConfig
from semantix.entities import ScoredPoint
from semantix.observability.logging import get_logger
from semantix.providers.embedding import EmbeddingGateway
from semantix.providers.payloads import RerankResult
from semantix.providers.rerank import RerankGateway
from semantix.storage.base import VectorStore

logger = get_logger(__name__)

# Candidates fetched per requested result, to give the reranker headroom
OVERFETCH_FACTOR = 2


def select_rerank_documents(candidates: Sequence[ScoredPoint]) -> tuple[list[str], list[int]]:
    """Build rerank documents, dropping candidates with no text.

    Returns:
        The documents, and for each one the position of its candidate in
        ``candidates``
    """
    documents: list[str] = []
    positions: list[int] = []
    for position, candidate in enumerate(candidates):
        text = candidate.document_text
        if text:
            documents.append(text)
            positions.append(position)
    return documents, positions


def merge_reranked(
    candidates: Sequence[ScoredPoint],
    positions: Sequence[int],
    rerank_results: Sequence[RerankResult],
) -> list[ScoredPoint]:
    """Attach rerank scores to candidates and order by them.

    Each result's ``index`` points into the submitted documents, which
    ``positions`` maps back to the candidate list. Candidates the reranker
    did not return are dropped. The sort is stable, so equal rerank scores
    keep the provider's order.
    """
    merged: list[ScoredPoint] = []
    for result in rerank_results:
        if result.index >= len(positions):
            logger.warning(
                "rerank_index_out_of_range",
                index=result.index,
                document_count=len(positions),
            )
            continue
        candidate = candidates[positions[result.index]]
        merged.append(candidate.model_copy(update={"rerank_score": result.relevance_score}))

    merged.sort(key=lambda point: point.rerank_score, reverse=True)
    return merged


class QueryPipeline:
    """Pipeline for querying vectorized world books."""

    def __init__(
        self,
        config: AppConfig,
        embedding_gateway: EmbeddingGateway,
        vector_store: VectorStore,
        rerank_gateway: Optional[RerankGateway] = None,
    ):
        """Initialize the query pipeline.

        Args:
            config: Configuration snapshot for this request
            embedding_gateway: Gateway for embedding the query
            vector_store: Storage to search
            rerank_gateway: Reranker, required only when reranking is requested
        """
        self.config = config
        self.embedding_gateway = embedding_gateway
        self.vector_store = vector_store
        self.rerank_gateway = rerank_gateway

    async def search(
        self,
        query_text: str,
        collection_name: str,
        limit: int = 10,
        rerank: bool = False,
        provider: Optional[str] = None,
    ) -> list[ScoredPoint]:
        """Perform semantic search, optionally reranked.

        Args:
            query_text: Search query
            collection_name: Collection to search
            limit: Number of results to return
            rerank: Whether to rerank candidates
            provider: Embedding provider for the query (default from config)

        Returns:
            At most ``limit`` results, in rerank order when reranked

        Raises:
            QueryError: If the query or limit is invalid
            EmbeddingError: If the query cannot be embedded
            VectorStoreError: If the search fails
            RerankProviderError: If reranking fails
        """
        if not query_text or not query_text.strip():
            raise QueryError("Query text cannot be empty")
        if limit < 1:
            raise QueryError(f"limit must be at least 1, got {limit}")

        provider = provider or self.config.default_provider
        logger.info(
            "search_started",
            collection=collection_name,
            provider=provider,
            limit=limit,
            rerank=rerank,
        )

        query_vector = await self.embedding_gateway.embed_one(query_text, provider)
        candidates = await self.vector_store.search(
            collection_name, query_vector, limit * OVERFETCH_FACTOR
        )

        results: list[ScoredPoint] = list(candidates)

        if rerank and candidates:
            reranked = await self._rerank(query_text, candidates, limit)
            if reranked is not None:
                results = reranked

        results = results[:limit]
        logger.info(
            "search_completed",
            collection=collection_name,
            candidate_count=len(candidates),
            result_count=len(results),
        )
        return results

    async def _rerank(
        self, query_text: str, candidates: list[ScoredPoint], limit: int
    ) -> Optional[list[ScoredPoint]]:
        """Rerank candidates; None when no candidate has text to rerank."""
        documents, positions = select_rerank_documents(candidates)
        if not documents:
            logger.warning("no_documents_to_rerank", candidate_count=len(candidates))
            return None

        if self.rerank_gateway is None:
            raise QueryError("Reranking requested but no rerank gateway is configured")

        logger.info("reranking_results", document_count=len(documents), top_n=limit)
        rerank_results = await self.rerank_gateway.rerank(query_text, documents, top_n=limit)
        return merge_reranked(candidates, positions, rerank_results)


class QueryError(Exception):
    """Exception raised during query processing."""

    pass
