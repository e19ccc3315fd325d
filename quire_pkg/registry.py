"""
The build-wide mapping from output URL to document metadata.
"""

from typing import Dict, Iterator, Optional, Tuple

from .document import DocumentMetadata


class Registry:
    """Insertion-ordered, URL-unique store of built documents.

    Entries are shared, never copied: snapshot() hands out the same
    DocumentMetadata instances the registry holds.
    """

    def __init__(self) -> None:
        self._documents: Dict[str, DocumentMetadata] = {}

    def insert(self, metadata: DocumentMetadata) -> Optional[DocumentMetadata]:
        """Store metadata under its URL, returning the entry it replaced."""
        previous = self._documents.get(metadata.url)
        self._documents[metadata.url] = metadata
        return previous

    def insert_if_absent(self, metadata: DocumentMetadata) -> bool:
        """Store metadata unless its URL is taken; first writer wins."""
        if metadata.url in self._documents:
            return False
        self._documents[metadata.url] = metadata
        return True

    def get(self, url: str) -> Optional[DocumentMetadata]:
        return self._documents.get(url)

    def snapshot(self) -> Tuple[DocumentMetadata, ...]:
        return tuple(self._documents.values())

    def urls(self) -> Tuple[str, ...]:
        return tuple(self._documents)

    def __contains__(self, url: str) -> bool:
        return url in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[DocumentMetadata]:
        return iter(self.snapshot())
