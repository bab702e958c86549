"""Result models for augmentation and answering."""
from dataclasses import dataclass, field
from typing import List

from models.chunk import Hit


@dataclass
class AugmentationResult:
    """Alternative queries produced for one question."""
    rewrites: List[str] = field(default_factory=list)
    hypothetical: str = ""
    degraded: bool = False  # a strategy was skipped because of quota

    def variant_texts(self, question: str) -> List[str]:
        """Question, rewrites and hypothetical answer, empty entries removed."""
        return [text for text in [question, *self.rewrites, self.hypothetical] if text]


@dataclass
class AnswerResult:
    """Everything produced while answering one question."""
    question: str
    answer: str
    run_id: str
    rewrites: List[str] = field(default_factory=list)
    hypothetical: str = ""
    variant_texts: List[str] = field(default_factory=list)
    selected: List[Hit] = field(default_factory=list)
    context: str = ""
    context_tokens: int = 0
    degraded: bool = False
    answer_cached: bool = False

    @property
    def selected_ids(self) -> List[str]:
        return [hit.item.id for hit in self.selected]
