"""Unit tests for windowed chunking of world books."""

import pytest

from semantix.core.chunking import (
    InvalidConfigurationError,
    chunk_text,
    process_world_book,
    validate_window,
)
from semantix.entities import ChunkType, WorldBook


def _reassemble(chunks: list[str], overlap: int) -> str:
    """Drop each later window's overlapping prefix and join."""
    if not chunks:
        return ""
    return chunks[0] + "".join(c[overlap:] for c in chunks[1:])


class TestChunkText:
    """Test chunk_text function."""

    def test_empty_text(self):
        """Test that empty text returns no chunks."""
        assert chunk_text("", 5, 0) == []

    def test_no_overlap(self):
        """Test windows without overlap."""
        assert chunk_text("hello world", 5, 0) == ["hello", " worl", "d"]

    def test_with_overlap(self):
        """Test consecutive windows share the overlap."""
        assert chunk_text("abcdefgh", 4, 2) == ["abcd", "cdef", "efgh"]

    def test_text_shorter_than_chunk(self):
        """Test short text yields one window with the whole text."""
        assert chunk_text("short", 450, 50) == ["short"]

    def test_text_equal_to_chunk_size(self):
        """Test text exactly one window long yields one window."""
        assert chunk_text("abcd", 4, 2) == ["abcd"]

    def test_whitespace_is_kept(self):
        """Test whitespace is never stripped from windows."""
        assert chunk_text("  a  ", 3, 0) == ["  a", "  "]

    def test_defaults(self):
        """Test default sizes are 450 and 50."""
        text = "x" * 1000
        chunks = chunk_text(text)
        assert [len(c) for c in chunks] == [450, 450, 200]

    @pytest.mark.parametrize(
        "text,size,overlap",
        [
            ("abcdefghij", 4, 2),
            ("abcdefghijk", 3, 1),
            ("Der Drache schläft unter dem Berg. 龍は山の下で眠る。", 7, 3),
            ("x" * 1001, 450, 50),
        ],
    )
    def test_windows_reassemble_to_original(self, text, size, overlap):
        """Test dropping overlaps and joining gives the original text."""
        chunks = chunk_text(text, size, overlap)
        assert _reassemble(chunks, overlap) == text
        assert all(len(c) <= size for c in chunks)

    def test_consecutive_windows_share_overlap(self):
        """Test each window starts with the tail of the previous one."""
        chunks = chunk_text("0123456789abcdef", 6, 2)
        for prev, cur in zip(chunks, chunks[1:]):
            assert prev[-2:] == cur[:2]

    @pytest.mark.parametrize("size,overlap", [(5, 5), (5, 10), (0, 0), (-1, 0), (5, -1)])
    def test_invalid_window_rejected(self, size, overlap):
        """Test settings that cannot make progress raise."""
        with pytest.raises(InvalidConfigurationError):
            chunk_text("some text", size, overlap)

    def test_invalid_window_message(self):
        """Test the error names both sizes."""
        with pytest.raises(InvalidConfigurationError) as exc_info:
            validate_window(10, 10)
        assert "chunk_size=10" in exc_info.value.message
        assert "overlap_size=10" in exc_info.value.message


class TestProcessWorldBook:
    """Test process_world_book function."""

    def test_single_entry(self):
        """Test one short entry gives one content and one comment chunk."""
        book = WorldBook.from_dict(
            {"entries": {"0": {"uid": 7, "key": ["a"], "comment": "c", "content": "body"}}}
        )

        chunks = process_world_book(book, 450, 50)

        assert len(chunks) == 2
        content_chunk, comment_chunk = chunks
        assert content_chunk.chunk_type == ChunkType.CONTENT
        assert content_chunk.content == "body"
        assert content_chunk.comment == "c"
        assert content_chunk.chunk_index == 0
        assert comment_chunk.chunk_type == ChunkType.COMMENT
        assert comment_chunk.comment == "c"
        assert comment_chunk.content == ""
        assert comment_chunk.chunk_index == 1

    def test_content_chunks_keep_full_comment(self):
        """Test content windows carry the whole comment, not a window of it."""
        book = WorldBook.from_dict(
            {"entries": {"0": {"uid": 1, "comment": "abcdefgh", "content": "0123456789"}}}
        )

        chunks = process_world_book(book, 4, 2)

        content = [c for c in chunks if c.chunk_type == ChunkType.CONTENT]
        comment = [c for c in chunks if c.chunk_type == ChunkType.COMMENT]
        assert [c.content for c in content] == ["0123", "2345", "4567", "6789"]
        assert all(c.comment == "abcdefgh" for c in content)
        assert [c.comment for c in comment] == ["abcd", "cdef", "efgh"]

    def test_chunk_indices_run_across_both_fields(self):
        """Test indices are unique per entry, content first."""
        book = WorldBook.from_dict(
            {"entries": {"0": {"uid": 1, "comment": "abcdefgh", "content": "0123456789"}}}
        )

        chunks = process_world_book(book, 4, 2)

        assert [c.chunk_index for c in chunks] == list(range(7))
        assert len({c.point_key for c in chunks}) == 7

    def test_empty_entry_is_skipped(self, world_book_data):
        """Test an entry with neither comment nor content gives no chunks."""
        book = WorldBook.from_dict(world_book_data)

        chunks = process_world_book(book, 450, 50)

        assert 3 not in {c.uid for c in chunks}
        assert len(chunks) == 6

    def test_only_content(self):
        """Test an entry without comment yields only content chunks."""
        book = WorldBook.from_dict({"entries": {"0": {"uid": 1, "content": "body"}}})

        chunks = process_world_book(book, 450, 50)

        assert len(chunks) == 1
        assert chunks[0].chunk_type == ChunkType.CONTENT

    def test_only_comment(self):
        """Test an entry without content yields only comment chunks."""
        book = WorldBook.from_dict({"entries": {"0": {"uid": 1, "comment": "note"}}})

        chunks = process_world_book(book, 450, 50)

        assert len(chunks) == 1
        assert chunks[0].chunk_type == ChunkType.COMMENT
        assert chunks[0].chunk_index == 0

    def test_metadata_propagates(self, world_book_data):
        """Test keys and activation flags travel with every chunk."""
        book = WorldBook.from_dict(world_book_data)

        chunks = [c for c in process_world_book(book, 450, 50) if c.uid == 1]

        for chunk in chunks:
            assert chunk.key == ["king"]
            assert chunk.keysecondary == ["crown"]
            assert chunk.flags == {"selective": True}

    def test_unlisted_flags_reach_the_payload(self):
        """Test every extra entry field is copied onto each chunk payload unchanged."""
        book = WorldBook.from_dict(
            {
                "entries": {
                    "0": {
                        "uid": 7,
                        "comment": "Harbor",
                        "content": "Ships dock at dawn.",
                        "order": 100.5,
                        "position": "before",
                        "probability": 80,
                    }
                }
            }
        )

        chunks = process_world_book(book, 450, 50)

        assert len(chunks) == 2
        for chunk in chunks:
            payload = chunk.to_payload()
            assert payload["order"] == 100.5
            assert payload["position"] == "before"
            assert payload["probability"] == 80

    def test_invalid_window_rejected_before_chunking(self, world_book_data):
        """Test invalid sizes raise even for an empty world book."""
        with pytest.raises(InvalidConfigurationError):
            process_world_book(WorldBook.from_dict({"entries": {}}), 50, 50)

    def test_empty_world_book(self):
        """Test a world book without entries gives no chunks."""
        assert process_world_book(WorldBook.from_dict({"entries": {}})) == []
