"""Chunk data models."""
from dataclasses import dataclass
from typing import Any, Dict
import numpy as np


@dataclass
class Chunk:
    """A piece of a source document, before embedding."""
    id: str  # Format: "{source}#{chunk_index}"
    source: str
    chunk_index: int
    content: str


@dataclass
class ChunkItem:
    """An embedded chunk held by the vector store."""
    id: str
    source: str
    chunk_index: int
    content: str
    embedding_unit: np.ndarray  # L2 norm 1

    @classmethod
    def from_chunk(cls, chunk: Chunk, embedding_unit: np.ndarray) -> "ChunkItem":
        return cls(
            id=chunk.id,
            source=chunk.source,
            chunk_index=chunk.chunk_index,
            content=chunk.content,
            embedding_unit=np.asarray(embedding_unit, dtype=np.float64)
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChunkItem":
        """Build an item from its index-file representation."""
        return cls(
            id=data["id"],
            source=data["source"],
            chunk_index=int(data["chunkIndex"]),
            content=data["content"],
            embedding_unit=np.asarray(data["embeddingUnit"], dtype=np.float64)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "source": self.source,
            "chunkIndex": self.chunk_index,
            "content": self.content,
            "embeddingUnit": self.embedding_unit.tolist(),
        }


@dataclass
class Hit:
    """Chunk with its similarity score for one search."""
    item: ChunkItem
    score: float  # cosine similarity, -1.0 to 1.0
