"""Retrieval engine: embed query variants, search, and select diverse chunks."""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from config import PipelineConfig
from models.chunk import Hit
from services.content_cache import CachedEmbedder
from services.diversity_selector import pick_diverse
from services.run_logger import RunLogger
from services.vector_store import LocalVectorStore

logger = logging.getLogger(__name__)


@dataclass
class RetrievalResult:
    merged: List[Hit] = field(default_factory=list)
    selected: List[Hit] = field(default_factory=list)


class RetrievalEngine:
    """Orchestrate variant embedding, multi-query search and MMR selection."""

    def __init__(
        self,
        vector_store: LocalVectorStore,
        embedder: CachedEmbedder,
        config: Optional[PipelineConfig] = None,
        run_logger: Optional[RunLogger] = None
    ):
        """
        Initialize the retrieval engine.

        Args:
            vector_store: Store to search
            embedder: Cached embedder for the query variants
            config: Top-K and diversity parameters
            run_logger: Receives the retrieval summary event
        """
        self.vector_store = vector_store
        self.embedder = embedder
        self.config = config or PipelineConfig()
        self.run_logger = run_logger or RunLogger()

    def retrieve(self, variant_texts: List[str]) -> RetrievalResult:
        """
        Retrieve a diverse set of chunks for the query variants.

        1. Embed every variant in one batch (cache first)
        2. Search per variant and merge by best score
        3. Pick a diverse subset with MMR

        Args:
            variant_texts: Question plus its augmentations, empty entries removed

        Returns:
            Merged hits and the selected subset; empty when there is nothing
            to search with or nothing stored

        Raises:
            ServiceClientError: If the embedding service fails for good
        """
        texts = [text for text in variant_texts if text and text.strip()]
        if not texts:
            logger.warning("No query variants provided, returning empty results")
            return RetrievalResult()

        if len(self.vector_store) == 0:
            self.run_logger.warning("empty_index")
            return RetrievalResult()

        vectors = self.embedder.embed_texts(texts)

        merged = self.vector_store.search_multi(
            vectors,
            per_query_top_k=self.config.per_query_top_k,
            final_top_k=self.config.final_top_k
        )

        selected = pick_diverse(
            merged,
            k=self.config.diverse_k,
            mmr_lambda=self.config.mmr_lambda,
            min_keep=self.config.min_keep
        )

        self.run_logger.info(
            "retrieved",
            variants=len(texts),
            merged=len(merged),
            selected=len(selected),
            top_score=round(merged[0].score, 4) if merged else None
        )
        return RetrievalResult(merged=merged, selected=selected)
