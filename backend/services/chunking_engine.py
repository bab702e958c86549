"""Character-window chunking with boundary-aware splits."""
import logging
from typing import List

from config import CHUNK_MAX_CHARS, CHUNK_OVERLAP_CHARS
from models.chunk import Chunk
from models.document import Document

logger = logging.getLogger(__name__)


class ChunkingEngine:
    """Segments documents into overlapping, retrievable chunks."""

    # Preferred split points, in priority order
    SEPARATORS = ["\n\n", "\n", ". ", " "]

    def __init__(self, max_chars: int = CHUNK_MAX_CHARS, overlap_chars: int = CHUNK_OVERLAP_CHARS):
        """
        Initialize ChunkingEngine.

        Args:
            max_chars: Maximum chunk length in characters
            overlap_chars: Characters shared between consecutive chunks

        Raises:
            ValueError: If the overlap is not smaller than the chunk size
        """
        if max_chars <= 0:
            raise ValueError("max_chars must be positive")
        if not 0 <= overlap_chars < max_chars:
            raise ValueError("overlap_chars must be in [0, max_chars)")

        self.max_chars = max_chars
        self.overlap_chars = overlap_chars

    def _split_point(self, text: str, start: int, end: int) -> int:
        """Latest separator in the second half of the window, else the hard end."""
        floor = start + self.max_chars // 2
        for separator in self.SEPARATORS:
            index = text.rfind(separator, floor, end)
            if index != -1:
                return index + len(separator)
        return end

    def chunk_text(self, text: str) -> List[str]:
        text = text.replace("\r\n", "\n")
        if len(text) <= self.max_chars:
            stripped = text.strip()
            return [stripped] if stripped else []

        parts = []
        start = 0
        while start < len(text):
            end = min(start + self.max_chars, len(text))
            if end < len(text):
                end = self._split_point(text, start, end)

            piece = text[start:end].strip()
            if piece:
                parts.append(piece)
            if end >= len(text):
                break
            start = max(end - self.overlap_chars, start + 1)

        return parts

    def chunk_documents(self, documents: List[Document]) -> List[Chunk]:
        """
        Chunk every document.

        Returns:
            Chunks with ids "<source>#<index>", indexes counted per document
        """
        all_chunks = []
        for document in documents:
            parts = self.chunk_text(document.text)
            for index, content in enumerate(parts):
                all_chunks.append(Chunk(
                    id=f"{document.source}#{index}",
                    source=document.source,
                    chunk_index=index,
                    content=content
                ))
            logger.debug(f"Chunked {document.source} into {len(parts)} chunks")
        return all_chunks
