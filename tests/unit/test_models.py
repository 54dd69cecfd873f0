"""Unit tests for world book, chunk and point entities."""

from uuid import UUID

import pytest

from semantix.entities import (
    Chunk,
    ChunkType,
    EmbeddedChunk,
    InvalidDocumentError,
    ScoredPoint,
    VectorPoint,
    WorldBook,
    point_id_for,
)


class TestWorldBook:
    """Test WorldBook validation."""

    def test_from_dict(self, world_book_data):
        """Test a well-formed document is accepted."""
        book = WorldBook.from_dict(world_book_data)

        assert set(book.entries) == {"0", "1", "2", "3"}
        assert book.entries["1"].comment == "The King"
        assert book.entries["3"].is_empty

    def test_extra_fields_preserved(self, world_book_data):
        """Test descriptive fields outside entries survive validation."""
        book = WorldBook.from_dict(world_book_data)
        assert book.model_extra["name"] == "Eldoria"

    @pytest.mark.parametrize(
        "data",
        [None, [], "entries", {}, {"entries": None}, {"entries": []}, {"name": "x"}],
    )
    def test_missing_entries_rejected(self, data):
        """Test documents without an entries mapping raise."""
        with pytest.raises(InvalidDocumentError) as exc_info:
            WorldBook.from_dict(data)
        assert exc_info.value.message == "Invalid world book data. Missing entries."

    def test_entry_without_uid_rejected(self):
        """Test a malformed entry is reported as an invalid document."""
        with pytest.raises(InvalidDocumentError) as exc_info:
            WorldBook.from_dict({"entries": {"0": {"content": "no uid"}}})
        assert exc_info.value.original_error is not None

    def test_null_fields_become_empty(self):
        """Test null comment, content and key lists are read as empty."""
        book = WorldBook.from_dict(
            {"entries": {"0": {"uid": 1, "comment": None, "content": None, "key": None}}}
        )
        entry = book.entries["0"]

        assert entry.comment == ""
        assert entry.content == ""
        assert entry.key == []
        assert entry.is_empty

    def test_flags_only_present_values(self):
        """Test flags() reports only flags present on the entry."""
        book = WorldBook.from_dict(
            {"entries": {"0": {"uid": 1, "content": "x", "constant": True, "order": 5}}}
        )
        assert book.entries["0"].flags() == {"constant": True, "order": 5}

    def test_flags_are_opaque(self):
        """Test flag values of any type are kept exactly as given."""
        book = WorldBook.from_dict(
            {
                "entries": {
                    "0": {
                        "uid": 1,
                        "content": "x",
                        "order": 100.5,
                        "position": "before",
                        "constant": 1,
                        "displayIndex": "5",
                        "probability": 80,
                        "group": "",
                        "depth": None,
                    }
                }
            }
        )

        flags = book.entries["0"].flags()

        assert flags == {
            "order": 100.5,
            "position": "before",
            "constant": 1,
            "displayIndex": "5",
            "probability": 80,
            "group": "",
            "depth": None,
        }
        assert flags["constant"] is not True

    def test_string_uid(self):
        """Test uids may be strings."""
        book = WorldBook.from_dict({"entries": {"a": {"uid": "entry-a", "content": "x"}}})
        assert book.entries["a"].uid == "entry-a"


class TestChunk:
    """Test Chunk entity."""

    def _chunk(self, **overrides):
        values = dict(
            uid=3,
            chunk_index=2,
            chunk_type=ChunkType.CONTENT,
            comment="Dragons",
            content="fire",
            key=["dragon"],
            flags={"constant": True},
        )
        values.update(overrides)
        return Chunk(**values)

    def test_embedding_text(self):
        """Test embedding text joins comment and content."""
        assert self._chunk().embedding_text == "Dragons fire"

    def test_embedding_text_trimmed(self):
        """Test the separator is trimmed when one side is empty."""
        assert self._chunk(content="").embedding_text == "Dragons"
        assert self._chunk(comment="").embedding_text == "fire"

    def test_point_key_and_id(self):
        """Test point ids are deterministic per uid and index."""
        chunk = self._chunk()

        assert chunk.point_key == "3_2"
        assert isinstance(chunk.point_id, UUID)
        assert chunk.point_id == point_id_for(3, 2)
        assert chunk.point_id != point_id_for(3, 1)

    def test_payload(self):
        """Test payload carries text, keys, flags and position."""
        payload = self._chunk().to_payload()

        assert payload == {
            "uid": 3,
            "key": ["dragon"],
            "keysecondary": [],
            "comment": "Dragons",
            "content": "fire",
            "chunkType": "content",
            "chunkIndex": 2,
            "pointKey": "3_2",
            "constant": True,
        }

    def test_negative_index_rejected(self):
        """Test chunk indices cannot be negative."""
        with pytest.raises(ValueError):
            self._chunk(chunk_index=-1)


class TestPoints:
    """Test VectorPoint and ScoredPoint."""

    def test_vector_point_from_embedded_chunk(self):
        """Test a point takes the chunk's id and payload."""
        chunk = Chunk(uid=1, chunk_index=0, chunk_type=ChunkType.COMMENT, comment="note")
        point = VectorPoint.from_embedded_chunk(EmbeddedChunk(chunk=chunk, vector=[0.1, 0.2]))

        assert point.id == chunk.point_id
        assert point.vector == [0.1, 0.2]
        assert point.payload["chunkType"] == "comment"

    def test_embedded_chunk_ok(self):
        """Test an empty vector marks a failed embedding."""
        chunk = Chunk(uid=1, chunk_index=0, chunk_type=ChunkType.CONTENT, content="x")

        assert EmbeddedChunk(chunk=chunk, vector=[1.0]).ok
        assert not EmbeddedChunk(chunk=chunk, error="boom").ok

    def test_scored_point_document_text(self):
        """Test document text mirrors the embedding text."""
        point = ScoredPoint(id=1, score=0.5, payload={"comment": "Dragons", "content": "fire"})
        assert point.document_text == "Dragons fire"
        assert ScoredPoint(id=2, score=0.1, payload={}).document_text == ""

    def test_to_result_omits_unset(self):
        """Test results leave out vector and rerank score when absent."""
        result = ScoredPoint(id=5, score=0.5, payload={"uid": 1}).to_result()
        assert result == {"id": 5, "score": 0.5, "payload": {"uid": 1}}

        reranked = ScoredPoint(id=5, score=0.5, rerank_score=0.9).to_result()
        assert reranked["rerank_score"] == 0.9
