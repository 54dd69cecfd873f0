"""Retrieval orchestrator - the entry point an outer surface calls into.

Each call takes one configuration snapshot at its start and builds the
gateways and pipelines it needs from that snapshot, so a config reload
never changes providers or defaults halfway through a request.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Optional

import httpx

from semantix.config.loader import ConfigHolder
from semantix.config.schema import AppConfig
from semantix.entities import PointId, WorldBook
from semantix.observability.logging import get_logger
from semantix.pipelines.ingestion import IngestionPipeline, IngestionResult
from semantix.pipelines.query import QueryPipeline
from semantix.providers.base import resolve_provider
from semantix.providers.embedding import EmbeddingGateway
from semantix.providers.rerank import RerankGateway
from semantix.storage import create_vector_store
from semantix.storage.base import VectorStore

logger = get_logger(__name__)


class InvalidRequestError(Exception):
    """A request is missing required fields."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class RetrievalOrchestrator:
    """Ingestion, search and maintenance over one vector store."""

    def __init__(
        self,
        config_holder: ConfigHolder,
        vector_store: VectorStore,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            config_holder: Source of configuration snapshots
            vector_store: Backing vector store
            client: HTTP client shared by the gateways; created if omitted
        """
        self.config_holder = config_holder
        self.vector_store = vector_store
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient()

    @classmethod
    def from_config(cls, config: AppConfig) -> "RetrievalOrchestrator":
        """Build an orchestrator with the vector store named in the config."""
        return cls(ConfigHolder(config), create_vector_store(config.vector_store))

    def _embedding_gateway(self, config: AppConfig) -> EmbeddingGateway:
        return EmbeddingGateway(
            config.providers,
            client=self.client,
            concurrency=config.embedding_concurrency,
        )

    async def vectorize_and_store(
        self,
        document: WorldBook | dict[str, Any],
        collection_name: Optional[str] = None,
        provider: Optional[str] = None,
        chunk_size: Optional[int] = None,
        overlap_size: Optional[int] = None,
    ) -> IngestionResult:
        """Chunk, embed and store a world book.

        Raises:
            InvalidDocumentError: If the document has no entries mapping
        """
        world_book = document if isinstance(document, WorldBook) else WorldBook.from_dict(document)
        config = self.config_holder.snapshot()

        pipeline = IngestionPipeline(config, self._embedding_gateway(config), self.vector_store)
        return await pipeline.ingest(
            world_book,
            collection_name=collection_name,
            provider=provider,
            chunk_size=chunk_size,
            overlap_size=overlap_size,
        )

    async def search(
        self,
        query_text: str,
        collection_name: str,
        limit: int = 10,
        rerank: bool = False,
        provider: Optional[str] = None,
    ) -> list[dict[str, Any]]:
        """Search a collection and return serializable results.

        Raises:
            InvalidRequestError: If query text or collection name is missing
        """
        if not query_text or not collection_name:
            raise InvalidRequestError("Missing queryText or collectionName in request body.")

        config = self.config_holder.snapshot()

        rerank_gateway = None
        if rerank:
            rerank_name = config.rerank_provider_name
            rerank_gateway = RerankGateway(
                resolve_provider(config.providers, rerank_name),
                client=self.client,
                provider_name=rerank_name,
            )

        pipeline = QueryPipeline(
            config,
            self._embedding_gateway(config),
            self.vector_store,
            rerank_gateway=rerank_gateway,
        )
        results = await pipeline.search(
            query_text,
            collection_name,
            limit=limit,
            rerank=rerank,
            provider=provider,
        )
        return [result.to_result() for result in results]

    async def delete_records(self, collection_name: str, ids: Sequence[PointId]) -> None:
        """Delete points by id from a collection."""
        if not collection_name or ids is None or isinstance(ids, (str, bytes)):
            raise InvalidRequestError("Missing collectionName or ids array in request body.")

        logger.info("deleting_records", collection=collection_name, id_count=len(ids))
        await self.vector_store.delete_records(collection_name, list(ids))

    async def delete_collection(self, name: str) -> None:
        """Delete a whole collection."""
        if not name:
            raise InvalidRequestError("Missing collection name in request body.")

        logger.info("deleting_collection", collection=name)
        await self.vector_store.delete_collection(name)

    def reload_config(
        self, config_path: Optional[Path] = None, env_file: Optional[Path] = None
    ) -> AppConfig:
        """Load configuration from disk for subsequent requests.

        Requests already running keep the snapshot they started with. The
        vector store is not rebuilt.
        """
        return self.config_holder.reload(config_path, env_file)

    async def close(self) -> None:
        """Release the HTTP client and the vector store."""
        if self._owns_client:
            await self.client.aclose()
        await self.vector_store.close()

    async def __aenter__(self) -> "RetrievalOrchestrator":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
