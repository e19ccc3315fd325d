"""
Readers turn a source file into an HTML body and raw metadata.

The compiler picks a reader by file extension; files without a reader are
copied verbatim.
"""

import logging
from typing import Any, Dict, Iterable, List, Tuple

import mistune
import yaml
from mistune.core import BlockState

from .errors import ReaderError
from .extractor import Event, build_tree, extract, iter_events
from .metadata import parse_frontmatter

MARKDOWN_PLUGINS = ['table', 'task_lists', 'strikethrough']


class HtmlRenderer(mistune.HTMLRenderer):
    """Mistune renderer with wrapped code blocks."""

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code, info=None):
        escaped_code = mistune.escape(code)
        return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)


class Reader:
    """Base class for readers.

    Subclasses list the lower-case extensions they handle (without the dot)
    and implement load().
    """

    extensions: Tuple[str, ...] = ()

    def load(self, path: str) -> Tuple[str, Dict[str, Any]]:
        raise NotImplementedError


class MarkdownReader(Reader):
    extensions = ('markdown', 'md', 'mkd', 'mdown')

    def __init__(self):
        self.logger = logging.getLogger('Quire.readers')
        self._ast_parser = mistune.create_markdown(renderer='ast', plugins=MARKDOWN_PLUGINS)
        self._html_parser = mistune.create_markdown(renderer=HtmlRenderer(), plugins=MARKDOWN_PLUGINS)

    def parse_events(self, text: str) -> List[Event]:
        return list(iter_events(self._ast_parser(text)))

    def render_events(self, events: Iterable[Event]) -> str:
        return self._html_parser.renderer(build_tree(events), BlockState())

    def render_markdown(self, text: str) -> str:
        """Render markdown straight to HTML, without metadata extraction."""
        return self._html_parser(text)

    def convert(self, text: str) -> Tuple[str, Dict[str, Any]]:
        """Return (html_body, raw_metadata) for markdown source text.

        A leading ``---`` YAML block takes precedence; otherwise the title
        and metadata paragraph are lifted from the body itself.
        """
        frontmatter, body = parse_frontmatter(text)
        if frontmatter is not None:
            return self.render_markdown(body), frontmatter
        events, metadata = extract(self.parse_events(text))
        return self.render_events(events), metadata

    def load(self, path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                text = f.read()
        except (IOError, OSError, UnicodeDecodeError) as e:
            raise ReaderError(path, e)

        try:
            body, metadata = self.convert(text)
        except (yaml.YAMLError, ValueError) as e:
            raise ReaderError(path, e)

        self.logger.debug(f"Read {path} with {len(metadata)} metadata field(s)")
        return body, metadata
