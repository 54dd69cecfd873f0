"""Entities - Domain models for the world book retrieval pipeline.

This module contains pure domain entities without business logic:
- WorldBook / WorldBookEntry: the source document
- Chunk: a window of one entry field, ready for embedding
- EmbeddedChunk: a chunk plus its vector (empty on failure)
- VectorPoint: what the vector store persists
- ScoredPoint: a search candidate with similarity and rerank scores
"""

from semantix.entities.chunk import Chunk, ChunkType, EmbeddedChunk, point_id_for
from semantix.entities.point import PointId, ScoredPoint, VectorPoint
from semantix.entities.world_book import InvalidDocumentError, WorldBook, WorldBookEntry

__all__ = [
    "Chunk",
    "ChunkType",
    "EmbeddedChunk",
    "InvalidDocumentError",
    "PointId",
    "ScoredPoint",
    "VectorPoint",
    "WorldBook",
    "WorldBookEntry",
    "point_id_for",
]
