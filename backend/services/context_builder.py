"""Serialize selected chunks into the labeled context block."""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional
import tiktoken

from models.chunk import Hit

logger = logging.getLogger(__name__)

BLOCK_SEPARATOR = "\n\n---\n\n"


@dataclass
class ContextBlock:
    text: str
    token_count: int
    sources: List[str] = field(default_factory=list)


class ContextBuilder:
    """Builds the context handed to the answer model."""

    def __init__(self, encoding_name: str = "o200k_base", encoder: Optional[Any] = None):
        """
        Args:
            encoding_name: tiktoken encoding used for token counts
            encoder: Pre-built encoder (anything with encode(str) -> list)
        """
        self.encoding_name = encoding_name
        self._encoder = encoder

    @property
    def encoder(self) -> Any:
        if self._encoder is None:
            self._encoder = tiktoken.get_encoding(self.encoding_name)
            logger.debug(f"Loaded tiktoken encoding {self.encoding_name}")
        return self._encoder

    @staticmethod
    def format_hit(hit: Hit) -> str:
        item = hit.item
        return f"[source: {item.source}#{item.chunk_index}]\n{item.content}"

    def build(self, hits: List[Hit]) -> ContextBlock:
        """Label each chunk with its source and join them in selection order."""
        if not hits:
            return ContextBlock(text="", token_count=0)

        text = BLOCK_SEPARATOR.join(self.format_hit(hit) for hit in hits)
        token_count = len(self.encoder.encode(text))
        logger.debug(f"Built context from {len(hits)} chunks ({token_count} tokens)")
        return ContextBlock(
            text=text,
            token_count=token_count,
            sources=[hit.item.id for hit in hits]
        )
