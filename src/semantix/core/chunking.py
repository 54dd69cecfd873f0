"""Text chunking utilities.

Why this exists:
- Splits world book entries into embedding-sized windows
- Maintains context with overlapping windows
- Keeps content and comment fields apart so each is searchable on its own

Windows are cut on raw character offsets; no whitespace is stripped, so
dropping the overlapping prefix of every window after the first and
concatenating the rest gives back the original text.
"""

from semantix.entities import Chunk, ChunkType, WorldBook
from semantix.observability.logging import get_logger

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 450
DEFAULT_OVERLAP_SIZE = 50


class InvalidConfigurationError(ValueError):
    """Raised when chunk and overlap sizes cannot produce progress."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


def validate_window(chunk_size: int, overlap_size: int) -> None:
    """Reject window settings whose stride would not be positive.

    Raises:
        InvalidConfigurationError: If sizes are negative or overlap >= chunk size
    """
    if chunk_size <= 0:
        raise InvalidConfigurationError(f"Chunk size must be positive, got {chunk_size}.")
    if overlap_size < 0:
        raise InvalidConfigurationError(f"Overlap size cannot be negative, got {overlap_size}.")
    if chunk_size <= overlap_size:
        raise InvalidConfigurationError(
            f"Chunk size must be greater than overlap size "
            f"(chunk_size={chunk_size}, overlap_size={overlap_size})."
        )


def chunk_text(
    text: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap_size: int = DEFAULT_OVERLAP_SIZE,
) -> list[str]:
    """Split text into overlapping windows.

    Args:
        text: Text to chunk
        chunk_size: Window size in characters
        overlap_size: Characters shared by consecutive windows

    Returns:
        Windows in order; empty text gives an empty list

    Raises:
        InvalidConfigurationError: If chunk_size <= overlap_size
    """
    validate_window(chunk_size, overlap_size)

    chunks: list[str] = []
    text_length = len(text)
    stride = chunk_size - overlap_size
    start = 0

    while start < text_length:
        end = min(start + chunk_size, text_length)
        chunks.append(text[start:end])

        # Last window reached the end of the text
        if end == text_length:
            break

        start += stride

    return chunks


def process_world_book(
    world_book: WorldBook,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    overlap_size: int = DEFAULT_OVERLAP_SIZE,
) -> list[Chunk]:
    """Chunk every entry of a world book.

    Content and comment are windowed independently. Content chunks keep
    the entry's full comment as context; comment chunks have no content.
    Entries with neither field contribute nothing.

    Args:
        world_book: Validated world book
        chunk_size: Window size in characters
        overlap_size: Overlap between windows in characters

    Returns:
        Chunks grouped by entry, content chunks before comment chunks

    Raises:
        InvalidConfigurationError: If chunk_size <= overlap_size
    """
    validate_window(chunk_size, overlap_size)

    chunks: list[Chunk] = []
    skipped = 0

    for entry_key, entry in world_book.entries.items():
        if entry.is_empty:
            skipped += 1
            continue

        flags = entry.flags()
        content_windows = chunk_text(entry.content, chunk_size, overlap_size)
        comment_windows = chunk_text(entry.comment, chunk_size, overlap_size)

        index = 0
        for window in content_windows:
            chunks.append(
                Chunk(
                    uid=entry.uid,
                    chunk_index=index,
                    chunk_type=ChunkType.CONTENT,
                    comment=entry.comment,
                    content=window,
                    key=entry.key,
                    keysecondary=entry.keysecondary,
                    flags=flags,
                )
            )
            index += 1

        for window in comment_windows:
            chunks.append(
                Chunk(
                    uid=entry.uid,
                    chunk_index=index,
                    chunk_type=ChunkType.COMMENT,
                    comment=window,
                    content="",
                    key=entry.key,
                    keysecondary=entry.keysecondary,
                    flags=flags,
                )
            )
            index += 1

        logger.debug(
            "entry_chunked",
            entry_key=entry_key,
            uid=entry.uid,
            content_chunks=len(content_windows),
            comment_chunks=len(comment_windows),
        )

    logger.info(
        "world_book_chunked",
        entry_count=len(world_book.entries),
        skipped_entries=skipped,
        chunk_count=len(chunks),
        chunk_size=chunk_size,
        overlap_size=overlap_size,
    )

    return chunks
