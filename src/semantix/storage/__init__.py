"""Storage layer: vector stores."""

from semantix.config.schema import VectorStoreConfig
from semantix.storage.base import VectorStore, VectorStoreError


def create_vector_store(config: VectorStoreConfig) -> VectorStore:
    """Factory function to create vector stores based on configuration.

    Args:
        config: Vector store configuration with store_type

    Returns:
        Initialized vector store

    Raises:
        ValueError: If store_type is unknown

    Example:
        config = VectorStoreConfig(store_type="qdrant", url="http://localhost:6333")
        store = create_vector_store(config)
    """
    store_type = getattr(config.store_type, "value", config.store_type).lower()

    if store_type == "memory":
        from semantix.storage.memory import InMemoryVectorStore

        return InMemoryVectorStore(config)

    elif store_type == "qdrant":
        from semantix.storage.qdrant import QdrantVectorStore

        return QdrantVectorStore(config)

    else:
        raise ValueError(
            f"Unknown vector store type: '{store_type}'. "
            f"Supported types: memory, qdrant"
        )


__all__ = [
    "VectorStore",
    "VectorStoreError",
    "create_vector_store",
]
