"""Qdrant vector store backed by the async Qdrant client.

Why this exists:
- Persistent storage for vectorized world books
- Native payload storage returned with search results
- Runs as a single container next to the embedding server

Trade-offs:
- Point ids must be unsigned integers or UUIDs (chunk ids are UUID5)
- Every call is one round trip; failures are not retried
"""

from collections.abc import Sequence
from contextlib import asynccontextmanager
from typing import Optional
from uuid import UUID

from qdrant_client import AsyncQdrantClient, models
from qdrant_client.http.exceptions import ResponseHandlingException, UnexpectedResponse

from semantix.config.schema import DistanceMetric, VectorStoreConfig
from semantix.entities import PointId, ScoredPoint, VectorPoint
from semantix.observability.logging import get_logger
from semantix.storage.base import VectorStore

logger = get_logger(__name__)


def _qdrant_id(point_id: PointId) -> int | str:
    if isinstance(point_id, UUID):
        return str(point_id)
    return point_id


class QdrantVectorStore(VectorStore):
    """Qdrant vector store implementation.

    Example:
        store = QdrantVectorStore(VectorStoreConfig(url="http://localhost:6333"))
        await store.create_collection("worldbook", 1024)
        await store.upsert("worldbook", points)
        await store.close()
    """

    storage_type = "qdrant"

    def __init__(
        self,
        config: VectorStoreConfig,
        client: Optional[AsyncQdrantClient] = None,
    ) -> None:
        super().__init__(config)
        self._owns_client = client is None
        self.client = client or AsyncQdrantClient(
            url=config.url,
            api_key=config.api_key,
            timeout=int(config.timeout),
        )

        logger.info("qdrant_vector_store_initialized", url=config.url)

    @asynccontextmanager
    async def _translate_errors(self, action: str):
        """Turn client failures into one VectorStoreError."""
        try:
            yield
        except UnexpectedResponse as e:
            logger.error("qdrant_request_failed", action=action, status=e.status_code)
            detail = e.content.decode("utf-8", errors="replace") if e.content else e.reason_phrase
            raise self._error(
                f"Failed to {action}: {detail}",
                status=e.status_code,
                original_error=e,
            ) from e
        except ResponseHandlingException as e:
            logger.error("qdrant_request_failed", action=action, error=str(e))
            raise self._error(f"Failed to {action}: {e}", original_error=e) from e

    async def create_collection(
        self,
        name: str,
        vector_dimension: int,
        distance: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        logger.info(
            "creating_collection",
            collection=name,
            vector_dimension=vector_dimension,
            distance=distance.value,
        )
        async with self._translate_errors("create collection"):
            await self.client.create_collection(
                collection_name=name,
                vectors_config=models.VectorParams(
                    size=vector_dimension,
                    distance=models.Distance(distance.value),
                ),
            )
        logger.info("collection_created", collection=name)

    async def collection_exists(self, name: str) -> bool:
        async with self._translate_errors("check collection"):
            return await self.client.collection_exists(collection_name=name)

    async def upsert(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        logger.info("upserting_points", collection=collection_name, point_count=len(points))
        async with self._translate_errors("upsert points"):
            await self.client.upsert(
                collection_name=collection_name,
                points=[
                    models.PointStruct(
                        id=_qdrant_id(point.id),
                        vector=point.vector,
                        payload=point.payload,
                    )
                    for point in points
                ],
                wait=True,
            )
        logger.info("points_upserted", collection=collection_name, point_count=len(points))

    async def search(
        self, collection_name: str, query_vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        async with self._translate_errors("perform search"):
            response = await self.client.query_points(
                collection_name=collection_name,
                query=query_vector,
                limit=limit,
                with_payload=True,
            )

        results = [
            ScoredPoint(
                id=point.id,
                score=point.score,
                payload=point.payload or {},
            )
            for point in response.points
        ]
        logger.info("search_returned", collection=collection_name, result_count=len(results))
        return results

    async def delete_records(self, collection_name: str, ids: Sequence[PointId]) -> None:
        logger.info("deleting_records", collection=collection_name, id_count=len(ids))
        async with self._translate_errors("delete records"):
            await self.client.delete(
                collection_name=collection_name,
                points_selector=models.PointIdsList(points=[_qdrant_id(i) for i in ids]),
                wait=True,
            )

    async def delete_collection(self, name: str) -> None:
        logger.info("deleting_collection", collection=name)
        async with self._translate_errors("delete collection"):
            deleted = await self.client.delete_collection(collection_name=name)
        if not deleted:
            raise self._error(f"Failed to delete collection: '{name}' not found", status=404)

    async def close(self) -> None:
        """Close the client if this store created it."""
        if self._owns_client:
            await self.client.close()
