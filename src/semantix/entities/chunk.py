"""Chunk entity - a window of one text field of a world book entry."""

from enum import Enum
from typing import Any, Optional
from uuid import NAMESPACE_URL, UUID, uuid5

from pydantic import BaseModel, ConfigDict, Field

_POINT_NAMESPACE = uuid5(NAMESPACE_URL, "semantix/worldbook-chunk")


def point_id_for(uid: int | str, chunk_index: int) -> UUID:
    """Deterministic point identifier for the chunk ``chunk_index`` of entry ``uid``."""
    return uuid5(_POINT_NAMESPACE, f"{uid}_{chunk_index}")


class ChunkType(str, Enum):
    """Which entry field a chunk was cut from."""

    CONTENT = "content"
    COMMENT = "comment"


class Chunk(BaseModel):
    """A segment of an entry's content or comment, ready for embedding.

    Content chunks carry the entry's whole comment as context; comment
    chunks carry an empty content.
    """

    model_config = ConfigDict(frozen=True)

    uid: int | str
    chunk_index: int = Field(..., ge=0, description="Position among the entry's chunks")
    chunk_type: ChunkType
    comment: str = ""
    content: str = ""
    key: list[str] = Field(default_factory=list)
    keysecondary: list[str] = Field(default_factory=list)
    flags: dict[str, Any] = Field(default_factory=dict)

    @property
    def embedding_text(self) -> str:
        return f"{self.comment} {self.content}".strip()

    @property
    def point_key(self) -> str:
        return f"{self.uid}_{self.chunk_index}"

    @property
    def point_id(self) -> UUID:
        return point_id_for(self.uid, self.chunk_index)

    def to_payload(self) -> dict[str, Any]:
        """Metadata stored alongside the vector."""
        return {
            **self.flags,
            "uid": self.uid,
            "key": list(self.key),
            "keysecondary": list(self.keysecondary),
            "comment": self.comment,
            "content": self.content,
            "chunkType": self.chunk_type.value,
            "chunkIndex": self.chunk_index,
            "pointKey": self.point_key,
        }


class EmbeddedChunk(BaseModel):
    """A chunk plus its vector; an empty vector marks a failed embedding."""

    chunk: Chunk
    vector: list[float] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return bool(self.vector)
