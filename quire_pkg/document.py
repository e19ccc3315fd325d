"""
Document records.

A DocumentMetadata is frozen once built: the registry and every index page
that lists it share the same instance.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .metadata import FieldCoercer, MetadataValue, format_rfc3339

_DEFAULT_COERCER = FieldCoercer()


@dataclass(frozen=True)
class DocumentMetadata:
    url: str = ''
    title: str = ''
    language: Optional[str] = None
    created: Optional[datetime] = None
    modified: Optional[datetime] = None
    keywords: Tuple[str, ...] = ()
    draft: bool = False
    extra: Mapping[str, MetadataValue] = field(default_factory=dict)

    def __post_init__(self):
        # shared records: keep the containers read-only too
        object.__setattr__(self, 'keywords', tuple(self.keywords))
        object.__setattr__(self, 'extra', MappingProxyType(dict(self.extra)))

    @classmethod
    def from_raw(cls, pairs: Iterable[Tuple[str, Any]], coercer: Optional[FieldCoercer] = None) -> 'DocumentMetadata':
        """Build metadata from raw (name, value) pairs.

        Names are lower-cased and the last occurrence of a name wins.
        A ``url`` entry is kept in ``extra``; the compiler sets the real URL.
        FieldError propagates for malformed recognized fields.
        """
        coercer = coercer or _DEFAULT_COERCER
        raw = {}
        for name, value in pairs:
            raw[name.strip().lower()] = value

        values = {}
        extra = {}
        for name, value in raw.items():
            coerced = coercer.coerce(name, value)
            if coercer.is_known(name):
                values[name] = coerced
            else:
                extra[name] = coerced

        kwargs = {'extra': extra}
        if 'title' in values:
            kwargs['title'] = values['title'].value
        if 'language' in values:
            kwargs['language'] = values['language'].value
        for name in ('created', 'modified'):
            if name in values:
                kwargs[name] = values[name].value
        if 'keywords' in values:
            kwargs['keywords'] = tuple(keyword.value for keyword in values['keywords'].value)
        if 'draft' in values:
            kwargs['draft'] = values['draft'].value
        return cls(**kwargs)

    def with_url(self, url: str) -> 'DocumentMetadata':
        return replace(self, url=url)

    def to_json(self) -> Dict[str, Any]:
        data = {key: value.to_json() for key, value in self.extra.items()}
        data.update({
            'url': self.url,
            'title': self.title,
            'language': self.language,
            'modified': format_rfc3339(self.modified) if self.modified else None,
            'created': format_rfc3339(self.created) if self.created else None,
            'keywords': list(self.keywords),
        })
        return data


@dataclass(frozen=True)
class TextContent:
    body: str


@dataclass(frozen=True)
class IndexContent:
    documents: Tuple[DocumentMetadata, ...]


DocumentContent = Union[TextContent, IndexContent]


@dataclass(frozen=True)
class Document:
    metadata: DocumentMetadata
    content: DocumentContent

    def to_json(self) -> Dict[str, Any]:
        """JSON-like view handed to templates as ``page``."""
        data = self.metadata.to_json()
        if isinstance(self.content, IndexContent):
            data['documents'] = [doc.to_json() for doc in self.content.documents]
        else:
            data['content'] = self.content.body
        return data
