"""
Metadata extraction from the head of a markdown document.

The mistune AST is flattened into a linear stream of events. The extractor
walks that stream once, lifting a leading heading into ``title`` and a
leading paragraph made only of ``key: value`` lines into the metadata map.
Every event it consumes is either folded into metadata or emitted again
unchanged, in order, so a document that does not follow the convention
renders exactly as it would without extraction.
"""

import html
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

METADATA_LINE_RE = re.compile(r'^\w[^:.!?]*:')


class EventKind(Enum):
    START = 'start'
    END = 'end'
    TEXT = 'text'
    SOFT_BREAK = 'softbreak'
    HARD_BREAK = 'linebreak'
    LEAF = 'leaf'


@dataclass(frozen=True)
class Event:
    kind: EventKind
    token: Optional[Dict[str, Any]] = None
    text: str = ''

    @property
    def token_type(self) -> Optional[str]:
        return self.token['type'] if self.token else None

    def is_start(self, token_type: str) -> bool:
        return self.kind is EventKind.START and self.token_type == token_type

    def is_end(self, token_type: str) -> bool:
        return self.kind is EventKind.END and self.token_type == token_type


def iter_events(tokens: Iterable[Dict[str, Any]]) -> Iterator[Event]:
    """Flatten mistune AST tokens into events.

    Blank lines are dropped (they render to nothing) and adjacent text
    tokens are merged into a single TEXT event.
    """
    pending = []
    for event in _walk(tokens):
        if event.kind is EventKind.TEXT:
            pending.append(event.text)
            continue
        if pending:
            yield Event(EventKind.TEXT, text=''.join(pending))
            pending = []
        yield event
    if pending:
        yield Event(EventKind.TEXT, text=''.join(pending))


def _walk(tokens):
    for token in tokens:
        token_type = token['type']
        if token_type == 'blank_line':
            continue
        if token_type == 'text':
            yield Event(EventKind.TEXT, text=token.get('raw', ''))
        elif token_type == 'softbreak':
            yield Event(EventKind.SOFT_BREAK)
        elif token_type == 'linebreak':
            yield Event(EventKind.HARD_BREAK)
        elif 'children' in token:
            shell = {key: value for key, value in token.items() if key != 'children'}
            yield Event(EventKind.START, shell)
            yield from _walk(token['children'])
            yield Event(EventKind.END, shell)
        else:
            yield Event(EventKind.LEAF, token)


def build_tree(events: Iterable[Event]) -> List[Dict[str, Any]]:
    """Reassemble an event stream into mistune AST tokens."""
    root = []
    stack = [root]
    for event in events:
        if event.kind is EventKind.START:
            node = dict(event.token)
            node['children'] = []
            stack[-1].append(node)
            stack.append(node['children'])
        elif event.kind is EventKind.END:
            if len(stack) == 1:
                raise ValueError(f"Unbalanced end event for {event.token_type}")
            stack.pop()
        elif event.kind is EventKind.TEXT:
            stack[-1].append({'type': 'text', 'raw': event.text})
        elif event.kind is EventKind.SOFT_BREAK:
            stack[-1].append({'type': 'softbreak'})
        elif event.kind is EventKind.HARD_BREAK:
            stack[-1].append({'type': 'linebreak'})
        else:
            stack[-1].append(event.token)
    if len(stack) != 1:
        raise ValueError("Unbalanced event stream: missing end events")
    return root


def looks_like_metadata(line: str) -> bool:
    return bool(METADATA_LINE_RE.match(line))


class State(Enum):
    BEFORE_TITLE = 'before_title'
    INSIDE_TITLE = 'inside_title'
    BEFORE_METADATA = 'before_metadata'
    INSIDE_METADATA = 'inside_metadata'
    INSIDE_BODY = 'inside_body'


class MetadataExtractor:
    """Single-use state machine separating title, metadata block and body.

    Feed events one at a time with feed(); each call returns the events to
    emit downstream. Call finish() at end of stream.
    """

    def __init__(self) -> None:
        self.state = State.BEFORE_TITLE
        self.metadata: Dict[str, str] = {}
        self._title: List[str] = []
        self._buffer: List[Event] = []

    def feed(self, event: Event) -> List[Event]:
        if self.state is State.INSIDE_BODY:
            return [event]
        if self.state is State.BEFORE_TITLE:
            if event.kind is EventKind.START and event.token_type == 'heading':
                self.state = State.INSIDE_TITLE
                return []
            return self._maybe_open_metadata(event)
        if self.state is State.INSIDE_TITLE:
            if event.kind is EventKind.TEXT:
                self._title.append(event.text)
            elif event.is_end('heading'):
                self.metadata['title'] = html.unescape(''.join(self._title)).strip()
                self.state = State.BEFORE_METADATA
            return []
        if self.state is State.BEFORE_METADATA:
            return self._maybe_open_metadata(event)
        return self._feed_metadata(event)

    def finish(self) -> List[Event]:
        """Settle any pending paragraph at end of stream."""
        if self.state is State.INSIDE_METADATA:
            self._fold_buffer()
        elif self.state is State.INSIDE_TITLE:
            self.metadata['title'] = html.unescape(''.join(self._title)).strip()
        self.state = State.INSIDE_BODY
        return []

    def extract(self, events: Iterable[Event]) -> Tuple[List[Event], Dict[str, str]]:
        output = []
        for event in events:
            output.extend(self.feed(event))
        output.extend(self.finish())
        return output, self.metadata

    def _maybe_open_metadata(self, event):
        if event.is_start('paragraph'):
            self.state = State.INSIDE_METADATA
            self._buffer = [event]
            return []
        self.state = State.INSIDE_BODY
        return [event]

    def _feed_metadata(self, event):
        if event.kind is EventKind.TEXT:
            if looks_like_metadata(event.text):
                self._buffer.append(event)
                return []
            return self._flush(event)
        if event.kind in (EventKind.SOFT_BREAK, EventKind.HARD_BREAK):
            self._buffer.append(event)
            return []
        if event.is_end('paragraph'):
            self._fold_buffer()
            self.state = State.INSIDE_BODY
            return []
        # inline markup inside the paragraph: not a metadata block
        return self._flush(event)

    def _flush(self, event):
        flushed = self._buffer + [event]
        self._buffer = []
        self.state = State.INSIDE_BODY
        return flushed

    def _fold_buffer(self):
        for event in self._buffer:
            if event.kind is not EventKind.TEXT:
                continue
            key, _, value = event.text.partition(':')
            self.metadata[html.unescape(key).strip().lower()] = html.unescape(value).strip()
        self._buffer = []


def extract(events: Iterable[Event]) -> Tuple[List[Event], Dict[str, str]]:
    """Run a fresh MetadataExtractor over an event stream."""
    return MetadataExtractor().extract(events)
