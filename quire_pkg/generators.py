"""
Generators derive extra documents from the full set of built documents.

They run once per build, after the walk, over one snapshot of the registry.
"""

import logging
from typing import Dict, List, Sequence

from .document import Document, DocumentMetadata, IndexContent
from .paths import ancestor_dirs, index_url


class Generator:
    """Base class for generators: a pure function of the document snapshot."""

    name = 'generator'

    def generate(self, documents: Sequence[DocumentMetadata]) -> List[Document]:
        raise NotImplementedError


def index_sort_key(metadata):
    """Newest first; undated documents last; ties broken by URL."""
    if metadata.created is None:
        return (1, 0.0, metadata.url)
    return (0, -metadata.created.timestamp(), metadata.url)


class IndexGenerator(Generator):
    """One index page per directory that has documents anywhere below it."""

    name = 'index'

    def __init__(self):
        self.logger = logging.getLogger('Quire.generators')

    def generate(self, documents):
        buckets: Dict[str, List[DocumentMetadata]] = {}
        for doc in documents:
            for directory in ancestor_dirs(doc.url):
                self.logger.debug(f"Adding page {doc.url} to the index of {directory or '/'}")
                buckets.setdefault(directory, []).append(doc)

        generated = []
        for directory in sorted(buckets):
            metadata = DocumentMetadata(
                url=index_url(directory),
                title=f"Index of {directory or '/'}",
            )
            content = IndexContent(tuple(sorted(buckets[directory], key=index_sort_key)))
            generated.append(Document(metadata, content))
        return generated
