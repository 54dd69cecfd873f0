"""Ingestion pipeline: chunk, embed, and store a world book.

Why this exists:
- Orchestrates the full world book vectorization flow
- Keeps per-chunk embedding failures from failing the whole document
- Reports how many chunks were produced and how many points were stored

How to use:
    from semantix.pipelines.ingestion import IngestionPipeline

    pipeline = IngestionPipeline(config, embedding_gateway, vector_store)
    result = await pipeline.ingest(world_book, collection_name="eldoria")
"""

import time
from dataclasses import dataclass
from typing import Optional

from semantix.config.schema import AppConfig
from semantix.core.chunking import process_world_book
from semantix.entities import EmbeddedChunk, VectorPoint, WorldBook
from semantix.observability.logging import get_logger
from semantix.providers.embedding import EmbeddingGateway
from semantix.storage.base import VectorStore

logger = get_logger(__name__)


@dataclass
class IngestionResult:
    """Result of world book ingestion."""
    collection_name: str
    chunks_processed: int
    points_stored: int
    failed_chunks: int = 0

    def to_dict(self) -> dict:
        return {
            "collectionName": self.collection_name,
            "chunksProcessed": self.chunks_processed,
            "pointsStored": self.points_stored,
            "failedChunks": self.failed_chunks,
        }


def default_collection_name() -> str:
    return f"worldbook_{int(time.time() * 1000)}"


def build_points(embedded_chunks: list[EmbeddedChunk]) -> list[VectorPoint]:
    """Turn embedded chunks into points, skipping chunks without a vector."""
    points = []
    for embedded in embedded_chunks:
        if not embedded.ok:
            logger.warning(
                "chunk_has_no_embedding",
                point_key=embedded.chunk.point_key,
                chunk_type=embedded.chunk.chunk_type.value,
                error=embedded.error,
            )
            continue
        points.append(VectorPoint.from_embedded_chunk(embedded))
    return points


class IngestionPipeline:
    """Pipeline for vectorizing world books into a vector store."""

    def __init__(
        self,
        config: AppConfig,
        embedding_gateway: EmbeddingGateway,
        vector_store: VectorStore,
    ):
        """Initialize the ingestion pipeline.

        Args:
            config: Configuration snapshot for this request
            embedding_gateway: Gateway for generating embeddings
            vector_store: Storage for points
        """
        self.config = config
        self.embedding_gateway = embedding_gateway
        self.vector_store = vector_store

    async def ingest(
        self,
        world_book: WorldBook,
        collection_name: Optional[str] = None,
        provider: Optional[str] = None,
        chunk_size: Optional[int] = None,
        overlap_size: Optional[int] = None,
    ) -> IngestionResult:
        """Chunk, embed and store a world book.

        Args:
            world_book: Validated world book
            collection_name: Target collection (default ``worldbook_<epoch ms>``)
            provider: Embedding provider name (default from config)
            chunk_size: Window size (default from config)
            overlap_size: Window overlap (default from config)

        Returns:
            IngestionResult with chunk and point counts

        Raises:
            InvalidConfigurationError: If the window sizes are invalid
            UnknownProviderError: If the provider is not registered
            VectorStoreError: If the store rejects an operation
        """
        collection_name = collection_name or default_collection_name()
        provider = provider or self.config.default_provider
        chunk_size = chunk_size if chunk_size is not None else self.config.default_chunk_size
        overlap_size = overlap_size if overlap_size is not None else self.config.default_overlap_size

        logger.info(
            "ingestion_started",
            collection=collection_name,
            provider=provider,
            chunk_size=chunk_size,
            overlap_size=overlap_size,
            entry_count=len(world_book.entries),
        )

        chunks = process_world_book(world_book, chunk_size, overlap_size)
        if not chunks:
            logger.warning("no_chunks_created", collection=collection_name)
            return IngestionResult(collection_name=collection_name, chunks_processed=0, points_stored=0)

        embedded_chunks = await self.embedding_gateway.embed_chunks(chunks, provider)
        points = build_points(embedded_chunks)
        failed = len(embedded_chunks) - len(points)

        if not points:
            logger.warning(
                "no_points_to_store",
                collection=collection_name,
                chunk_count=len(chunks),
                failed_chunks=failed,
            )
            return IngestionResult(
                collection_name=collection_name,
                chunks_processed=len(chunks),
                points_stored=0,
                failed_chunks=failed,
            )

        await self._ensure_collection(collection_name, provider, len(points[0].vector))
        await self.vector_store.upsert(collection_name, points)

        logger.info(
            "ingestion_completed",
            collection=collection_name,
            chunks_processed=len(chunks),
            points_stored=len(points),
            failed_chunks=failed,
        )

        return IngestionResult(
            collection_name=collection_name,
            chunks_processed=len(chunks),
            points_stored=len(points),
            failed_chunks=failed,
        )

    async def _ensure_collection(self, collection_name: str, provider: str, observed_dimension: int) -> None:
        """Create the collection unless it already exists.

        The dimension comes from the provider profile when declared, otherwise
        from the first vector produced.
        """
        if await self.vector_store.collection_exists(collection_name):
            logger.info("collection_exists", collection=collection_name)
            return

        profile = self.config.providers.get(provider)
        dimension = profile.dimension if profile and profile.dimension else observed_dimension

        await self.vector_store.create_collection(
            collection_name,
            vector_dimension=dimension,
            distance=self.config.distance_metric,
        )
