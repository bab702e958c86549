"""Unit tests for ContextBuilder."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import numpy as np
from unittest.mock import Mock, patch
from models.chunk import ChunkItem, Hit
from services.context_builder import ContextBuilder


def make_hit(source: str, index: int, content: str) -> Hit:
    item = ChunkItem(
        id=f"{source}#{index}",
        source=source,
        chunk_index=index,
        content=content,
        embedding_unit=np.array([1.0, 0.0])
    )
    return Hit(item=item, score=0.5)


def word_encoder():
    return Mock(encode=lambda text: text.split())


class TestContextBuilder:
    """Test suite for ContextBuilder."""

    def test_labels_and_separators(self):
        builder = ContextBuilder(encoder=word_encoder())
        hits = [
            make_hit("data/billing.md", 0, "Plans are billed monthly."),
            make_hit("data/faq.txt", 3, "Refunds take 5 days."),
        ]

        block = builder.build(hits)

        assert block.text == (
            "[source: data/billing.md#0]\nPlans are billed monthly."
            "\n\n---\n\n"
            "[source: data/faq.txt#3]\nRefunds take 5 days."
        )
        assert block.sources == ["data/billing.md#0", "data/faq.txt#3"]

    def test_token_count_uses_encoder(self):
        builder = ContextBuilder(encoder=word_encoder())

        block = builder.build([make_hit("a.md", 0, "one two three")])

        assert block.token_count == len("[source: a.md#0]\none two three".split())

    def test_empty_selection(self):
        encoder = Mock()
        block = ContextBuilder(encoder=encoder).build([])

        assert block.text == ""
        assert block.token_count == 0
        encoder.encode.assert_not_called()

    @patch("services.context_builder.tiktoken.get_encoding")
    def test_encoder_loaded_lazily(self, mock_get_encoding):
        mock_get_encoding.return_value = word_encoder()
        builder = ContextBuilder()

        mock_get_encoding.assert_not_called()
        builder.build([make_hit("a.md", 0, "text")])
        builder.build([make_hit("a.md", 1, "more text")])

        mock_get_encoding.assert_called_once_with("o200k_base")
