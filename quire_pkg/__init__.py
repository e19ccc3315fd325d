"""
Quire - a static site generator.

Quire compiles a tree of content files into a static website. Markdown
files are rendered to HTML through Jinja2 layouts, their title and metadata
lifted from the top of the document; every other file is copied as is, and
each directory gets a generated index page listing the documents below it.
"""

__version__ = "1.0.0"

from .core import Compiler, Site
from .document import Document, DocumentMetadata, IndexContent, TextContent
from .settings import QuireSettings, Settings

__all__ = [
    'Compiler',
    'Site',
    'Document',
    'DocumentMetadata',
    'IndexContent',
    'TextContent',
    'QuireSettings',
    'Settings',
]
