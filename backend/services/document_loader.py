"""Document loading service for text and markdown files."""
import logging
from pathlib import Path
from typing import List, Sequence

from models.document import Document

logger = logging.getLogger(__name__)


class DocumentLoader:
    """Loads text files from a directory tree."""

    def __init__(self, docs_directory: str = "data", extensions: Sequence[str] = ("txt", "md")):
        """
        Initialize DocumentLoader.

        Args:
            docs_directory: Root directory to search recursively
            extensions: File extensions to load, without the dot
        """
        self.docs_directory = docs_directory
        self.extensions = tuple(ext.lower().lstrip(".") for ext in extensions)

    def find_files(self) -> List[Path]:
        root = Path(self.docs_directory)
        if not root.is_dir():
            logger.error(f"Documents directory not found: {self.docs_directory}")
            return []

        files = [
            path for path in root.rglob("*")
            if path.is_file() and path.suffix.lower().lstrip(".") in self.extensions
        ]
        return sorted(files, key=lambda path: path.as_posix())

    def load_documents(self) -> List[Document]:
        """
        Load every matching file, sorted by path.

        Returns:
            List of Document objects; unreadable files are skipped
        """
        documents = []
        files = self.find_files()
        logger.info(f"Found {len(files)} files in {self.docs_directory}")

        for path in files:
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.error(f"Error loading {path}: {str(e)}")
                continue

            documents.append(Document(source=path.as_posix(), text=text))
            logger.debug(f"Loaded {path}: {len(text)} characters")

        return documents
