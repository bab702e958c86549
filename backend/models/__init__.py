"""Data models for the local RAG tool."""
from .document import Document
from .chunk import Chunk, ChunkItem, Hit
from .answer import AugmentationResult, AnswerResult

__all__ = [
    "Document",
    "Chunk",
    "ChunkItem",
    "Hit",
    "AugmentationResult",
    "AnswerResult",
]
