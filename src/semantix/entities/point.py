"""Point entities - what the vector store persists and returns."""

from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from semantix.entities.chunk import EmbeddedChunk

PointId = UUID | str | int


class VectorPoint(BaseModel):
    """A vector with its payload, addressed by id."""

    id: PointId
    vector: list[float]
    payload: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_embedded_chunk(cls, embedded: EmbeddedChunk) -> "VectorPoint":
        return cls(
            id=embedded.chunk.point_id,
            vector=embedded.vector,
            payload=embedded.chunk.to_payload(),
        )


class ScoredPoint(BaseModel):
    """A search candidate: a stored point plus its similarity score.

    ``rerank_score`` is set once the candidate has been through a reranker.
    """

    id: PointId
    score: float
    payload: dict[str, Any] = Field(default_factory=dict)
    vector: Optional[list[float]] = None
    rerank_score: Optional[float] = None

    @property
    def document_text(self) -> str:
        comment = self.payload.get("comment") or ""
        content = self.payload.get("content") or ""
        return f"{comment} {content}".strip()

    def to_result(self) -> dict[str, Any]:
        """Serializable form returned to callers."""
        return self.model_dump(mode="json", exclude_none=True)
