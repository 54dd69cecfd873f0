"""Abstract base class for vector storage backends.

Why this exists:
- Allows swapping between vector databases (Qdrant, in-memory, ...)
- Pins down the contract the pipelines rely on
- Enables testing with the in-memory implementation

Contract:
- Every operation is fail-fast: a failure surfaces as one VectorStoreError
  carrying the backend's status and message; nothing is retried
- ``upsert`` replaces points by id; it is the only operation that may
  overwrite data
- Operations on a collection that does not exist raise (status 404)
  rather than returning an empty result

How to extend:
1. Subclass VectorStore
2. Implement all abstract methods
3. Register in ``create_vector_store``
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Optional

from semantix.config.schema import DistanceMetric, VectorStoreConfig
from semantix.entities import PointId, ScoredPoint, VectorPoint


class VectorStoreError(Exception):
    """Base exception for vector store errors."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        storage_type: str = "unknown",
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.status = status
        self.storage_type = storage_type
        self.original_error = original_error
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.status is not None:
            return f"{self.message} (status {self.status})"
        return self.message


class VectorStore(ABC):
    """Abstract interface for vector storage backends."""

    storage_type = "unknown"

    def __init__(self, config: VectorStoreConfig) -> None:
        """Initialize storage with configuration."""
        self.config = config

    @abstractmethod
    async def create_collection(
        self,
        name: str,
        vector_dimension: int,
        distance: DistanceMetric = DistanceMetric.COSINE,
    ) -> None:
        """Create a collection.

        Raises:
            VectorStoreError: If it already exists (409) or creation fails
        """
        pass

    @abstractmethod
    async def collection_exists(self, name: str) -> bool:
        """Return True if the collection exists."""
        pass

    @abstractmethod
    async def upsert(self, collection_name: str, points: Sequence[VectorPoint]) -> None:
        """Insert points, replacing any existing point with the same id."""
        pass

    @abstractmethod
    async def search(
        self, collection_name: str, query_vector: list[float], limit: int
    ) -> list[ScoredPoint]:
        """Return up to ``limit`` nearest points, best score first, with payloads."""
        pass

    @abstractmethod
    async def delete_records(self, collection_name: str, ids: Sequence[PointId]) -> None:
        """Delete points by id. Unknown ids are ignored."""
        pass

    @abstractmethod
    async def delete_collection(self, name: str) -> None:
        """Delete a collection and all its points."""
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close connections and cleanup resources."""
        pass

    def _error(
        self,
        message: str,
        status: Optional[int] = None,
        original_error: Optional[Exception] = None,
    ) -> VectorStoreError:
        return VectorStoreError(
            message=message,
            status=status,
            storage_type=self.storage_type,
            original_error=original_error,
        )
