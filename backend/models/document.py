"""Document data models."""
from dataclasses import dataclass


@dataclass
class Document:
    """Represents a loaded text or markdown file."""
    source: str  # path relative to the working directory, forward slashes
    text: str
