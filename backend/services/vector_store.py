"""In-memory vector store backed by a single JSON index file."""
import json
import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence
import numpy as np
from models.chunk import ChunkItem, Hit

logger = logging.getLogger(__name__)


def to_unit_embedding(vector: Sequence[float]) -> np.ndarray:
    """
    Normalize a raw embedding to unit L2 length.

    A zero vector is returned unchanged.
    """
    array = np.asarray(vector, dtype=np.float64)
    norm = np.linalg.norm(array)
    if norm == 0:
        return array
    return array / norm


class LocalVectorStore:
    """Store embedded chunks and run exact cosine similarity search."""

    def __init__(self, items: Optional[Iterable[ChunkItem]] = None):
        """
        Initialize the vector store.

        Args:
            items: Embedded chunks; all must share one dimensionality
        """
        self.items: List[ChunkItem] = []
        self._matrix: Optional[np.ndarray] = None
        for item in items or []:
            self.add(item)

    @classmethod
    def load(cls, file_path: str) -> "LocalVectorStore":
        """
        Load a store from its index file.

        Raises:
            FileNotFoundError: If the index file does not exist
        """
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
        store = cls(ChunkItem.from_dict(raw) for raw in data.get("items", []))
        logger.info(f"Loaded {len(store)} chunks from {file_path}")
        return store

    def save(self, file_path: str) -> None:
        """Write the whole store to the index file."""
        path = Path(file_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump({"items": [item.to_dict() for item in self.items]}, f)
        logger.info(f"Saved {len(self.items)} chunks to {file_path}")

    def add(self, item: ChunkItem) -> None:
        """
        Append an embedded chunk.

        Raises:
            ValueError: If its dimensionality differs from the stored items
        """
        dimension = self.dimension
        if dimension is not None and item.embedding_unit.shape[0] != dimension:
            raise ValueError(
                f"Embedding dimension {item.embedding_unit.shape[0]} does not match store dimension {dimension}"
            )
        self.items.append(item)
        self._matrix = None

    @property
    def dimension(self) -> Optional[int]:
        if not self.items:
            return None
        return int(self.items[0].embedding_unit.shape[0])

    def __len__(self) -> int:
        return len(self.items)

    def _embedding_matrix(self) -> np.ndarray:
        if self._matrix is None:
            self._matrix = np.vstack([item.embedding_unit for item in self.items])
        return self._matrix

    def search(self, query_embedding_unit: Sequence[float], top_k: int = 8) -> List[Hit]:
        """
        Find the chunks most similar to a unit query vector.

        Similarity is the dot product, which equals cosine similarity for
        unit vectors. Equal scores keep insertion order.

        Args:
            query_embedding_unit: Unit-normalized query vector
            top_k: Number of hits to return

        Returns:
            Hits sorted by descending score, at most top_k of them

        Raises:
            ValueError: If the query dimensionality does not match the store
        """
        if top_k <= 0 or not self.items:
            return []

        query = np.asarray(query_embedding_unit, dtype=np.float64)
        if query.shape != (self.dimension,):
            raise ValueError(
                f"Query dimension {query.shape} does not match store dimension {self.dimension}"
            )

        scores = self._embedding_matrix() @ query
        order = np.argsort(-scores, kind="stable")[:top_k]
        return [Hit(item=self.items[i], score=float(scores[i])) for i in order]

    def search_multi(
        self,
        query_embedding_units: Sequence[Sequence[float]],
        per_query_top_k: int = 8,
        final_top_k: int = 20
    ) -> List[Hit]:
        """
        Search with several query vectors and merge the results.

        Each query keeps its own top per_query_top_k; merged hits keep the best
        score seen for each chunk id, are re-sorted and cut to final_top_k.
        """
        if per_query_top_k <= 0 or final_top_k <= 0:
            return []

        best: Dict[str, Hit] = {}

        for query in query_embedding_units:
            for hit in self.search(query, top_k=per_query_top_k):
                previous = best.get(hit.item.id)
                if previous is None or hit.score > previous.score:
                    best[hit.item.id] = hit

        merged = sorted(best.values(), key=lambda hit: hit.score, reverse=True)
        logger.debug(
            f"Merged {len(merged)} unique chunks from {len(query_embedding_units)} queries"
        )
        return merged[:final_top_k]
