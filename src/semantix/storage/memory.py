"""In-memory vector store for testing and development.

Useful for:
- Testing without external dependencies
- Development and prototyping
- Small world books that do not need persistence
"""

import math
from collections.abc import Sequence
from typing import Optional

from semantix.config.schema import DistanceMetric, VectorStoreConfig, VectorStoreType
from semantix.entities import PointId, ScoredPoint, VectorPoint
from semantix.storage.base import VectorStore


class _Collection:
    def __init__(self, dimension: int, distance: DistanceMetric) -> None:
        self.dimension = dimension
        self.distance = distance
        self.points: dict[str, VectorPoint] = {}


class InMemoryVectorStore(VectorStore):
    """In-memory vector store implementation.

    Points are kept per collection, keyed by the string form of their id.
    Scores follow the collection's metric: cosine similarity, dot product,
    or negated euclidean distance so that higher is always better.
    """

    storage_type = "memory"

    def __init__(self, config: Optional[VectorStoreConfig] = None) -> None:
        """Initialize in-memory vector store."""
        super().__init__(config or VectorStoreConfig(store_type=VectorStoreType.MEMORY))
        self.collections: dict[str, _Collection] = {}

    def _get(self, name: str) -> _Collection:
        collection = self.collections.get(name)
        if collection is None:
            raise self._error(f"Collection '{name}' not found", status=404)
        return collection

    async def create_collection(
        self,
        name: str,
        vector_dimension: int,
        distance: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        if name in self.collections:
            raise self._error(f"Collection '{name}' already exists", status=409)
        if vector_dimension <= 0:
            raise self._error(f"Invalid vector dimension: {vector_dimension}", status=400)
        self.collections[name] = _Collection(vector_dimension, distance)

    async def collection_exists(self, name: str) -> bool:
        return name in self.collections

    async def upsert(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        collection = self._get(collection_name)

        # Validate the whole batch before writing any of it
        for point in points:
            if len(point.vector) != collection.dimension:
                raise self._error(
                    f"Vector dimension error: expected dim: {collection.dimension}, "
                    f"got {len(point.vector)}",
                    status=400,
                )

        for point in points:
            collection.points[str(point.id)] = point

    async def search(
        self, collection_name: str, query_vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        collection = self._get(collection_name)
        if len(query_vector) != collection.dimension:
            raise self._error(
                f"Vector dimension error: expected dim: {collection.dimension}, "
                f"got {len(query_vector)}",
                status=400,
            )

        results = [
            ScoredPoint(
                id=point.id,
                score=self._score(collection.distance, query_vector, point.vector),
                payload=dict(point.payload),
            )
            for point in collection.points.values()
        ]

        # Stable: equal scores keep insertion order
        results.sort(key=lambda x: x.score, reverse=True)
        return results[:limit]

    @staticmethod
    def _score(distance: DistanceMetric, vec1: list[float], vec2: list[float]) -> float:
        if distance == DistanceMetric.DOT:
            return sum(a * b for a, b in zip(vec1, vec2))

        if distance == DistanceMetric.EUCLID:
            return -math.sqrt(sum((a - b) ** 2 for a, b in zip(vec1, vec2)))

        dot_product = sum(a * b for a, b in zip(vec1, vec2))
        magnitude1 = math.sqrt(sum(a * a for a in vec1))
        magnitude2 = math.sqrt(sum(b * b for b in vec2))

        if magnitude1 == 0 or magnitude2 == 0:
            return 0.0

        return dot_product / (magnitude1 * magnitude2)

    async def delete_records(self, collection_name: str, ids: Sequence[PointId]) -> None:
        collection = self._get(collection_name)
        for point_id in ids:
            collection.points.pop(str(point_id), None)

    async def delete_collection(self, name: str) -> None:
        self._get(name)
        del self.collections[name]

    async def close(self) -> None:
        """Nothing to release; data lives as long as the instance."""
        pass
