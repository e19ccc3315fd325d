"""
Typed metadata values and the coercion of raw front-matter strings.

Raw metadata arrives as a mapping of lower-cased names to trimmed strings
(from the in-body heuristic) or to already-structured YAML values (from a
``---`` block). FieldCoercer turns each entry into a MetadataValue, or
raises a FieldError when a recognized field is malformed.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

import yaml

from .errors import InvalidDateError, InvalidValueError, UnknownMetadataFieldError

RFC3339_RE = re.compile(
    r'^(\d{4}-\d{2}-\d{2})[Tt ](\d{2}:\d{2}:\d{2})(?:\.(\d+))?([Zz]|[+-]\d{2}:\d{2})$'
)

FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)', re.S | re.M)

TRUE_VALUES = frozenset(['1', 't', 'true', 'on', 'yes'])
FALSE_VALUES = frozenset(['0', 'f', 'false', 'off', 'no'])


class ValueKind(Enum):
    NULL = 'null'
    BOOL = 'bool'
    INTEGER = 'integer'
    FLOAT = 'float'
    TEXT = 'text'
    DATE = 'date'
    LIST = 'list'
    MAP = 'map'


@dataclass(frozen=True)
class MetadataValue:
    """A coerced metadata value tagged with its kind.

    Lists are stored as tuples and maps as plain dicts keyed by strings.
    Only TEXT and DATE values can be ordered.
    """
    kind: ValueKind
    value: Any = None

    @classmethod
    def null(cls) -> 'MetadataValue':
        return cls(ValueKind.NULL)

    @classmethod
    def text(cls, value: str) -> 'MetadataValue':
        return cls(ValueKind.TEXT, value)

    @classmethod
    def date(cls, value: datetime) -> 'MetadataValue':
        return cls(ValueKind.DATE, value)

    @classmethod
    def from_python(cls, obj: Any) -> 'MetadataValue':
        """Wrap a plain Python (YAML) value."""
        if obj is None:
            return cls.null()
        if isinstance(obj, MetadataValue):
            return obj
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            return cls(ValueKind.INTEGER, obj)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls.text(obj)
        if isinstance(obj, datetime):
            if obj.tzinfo is not None:
                return cls.date(obj)
            return cls.text(obj.isoformat())
        if isinstance(obj, date):
            return cls.text(obj.isoformat())
        if isinstance(obj, (list, tuple)):
            return cls(ValueKind.LIST, tuple(cls.from_python(item) for item in obj))
        if isinstance(obj, dict):
            return cls(ValueKind.MAP, {str(k): cls.from_python(v) for k, v in obj.items()})
        return cls.text(str(obj))

    def to_json(self) -> Any:
        if self.kind is ValueKind.DATE:
            return format_rfc3339(self.value)
        if self.kind is ValueKind.LIST:
            return [item.to_json() for item in self.value]
        if self.kind is ValueKind.MAP:
            return {key: item.to_json() for key, item in self.value.items()}
        return self.value

    def __lt__(self, other: 'MetadataValue') -> bool:
        if not isinstance(other, MetadataValue):
            return NotImplemented
        if self.kind is not other.kind or self.kind not in (ValueKind.TEXT, ValueKind.DATE):
            raise TypeError(f"Cannot order {self.kind.value} and {other.kind.value} values")
        return self.value < other.value


def parse_rfc3339(raw: str) -> datetime:
    """Parse an offset-aware RFC 3339 timestamp, raising InvalidDateError."""
    match = RFC3339_RE.match(raw.strip())
    if not match:
        raise InvalidDateError(raw)
    day, clock, fraction, offset = match.groups()
    normalized = f"{day}T{clock}"
    if fraction:
        # fromisoformat only understands three or six digits
        normalized += '.' + fraction[:6].ljust(6, '0')
    normalized += '+00:00' if offset in ('Z', 'z') else offset
    try:
        return datetime.fromisoformat(normalized)
    except ValueError:
        raise InvalidDateError(raw)


def format_rfc3339(value: datetime) -> str:
    return value.isoformat()


def parse_frontmatter(text: str) -> Tuple[Optional[Dict[str, Any]], str]:
    """Split a leading ``---`` YAML block from a document.

    Returns (None, text) when the document does not start with a block.
    Raises yaml.YAMLError or ValueError when the block is not a mapping.
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return None, text
    loaded = yaml.safe_load(match.group(1))
    if loaded is None:
        loaded = {}
    if not isinstance(loaded, dict):
        raise ValueError("front matter must be a mapping of names to values")
    metadata = {str(key).strip().lower(): value for key, value in loaded.items()}
    return metadata, text[match.end():].lstrip('\r\n')


class Field:
    """A named converter from a raw value to a MetadataValue."""

    def __init__(self, name: str) -> None:
        self.name = name

    def coerce(self, raw: Any) -> MetadataValue:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class TextField(Field):
    def coerce(self, raw):
        if raw is None:
            return MetadataValue.text('')
        if isinstance(raw, (list, tuple, dict)):
            raise InvalidValueError(self.name, raw)
        return MetadataValue.text(str(raw).strip())


class DateField(Field):
    def coerce(self, raw):
        if isinstance(raw, datetime):
            if raw.tzinfo is None:
                raise InvalidDateError(raw.isoformat())
            return MetadataValue.date(raw)
        if isinstance(raw, str):
            return MetadataValue.date(parse_rfc3339(raw))
        if isinstance(raw, date):
            raise InvalidDateError(raw.isoformat())
        raise InvalidDateError(raw)


class KeywordsField(Field):
    """Keywords are split on ';' when the raw string has one, else on ','."""

    def coerce(self, raw):
        if raw is None:
            return MetadataValue(ValueKind.LIST, ())
        if isinstance(raw, (list, tuple)):
            pieces = [str(item) for item in raw if item is not None]
        elif isinstance(raw, dict):
            raise InvalidValueError(self.name, raw)
        else:
            raw = str(raw)
            pieces = raw.split(';' if ';' in raw else ',')
        keywords = [piece.strip() for piece in pieces]
        return MetadataValue(
            ValueKind.LIST,
            tuple(MetadataValue.text(keyword) for keyword in keywords if keyword),
        )


class BooleanField(Field):
    def coerce(self, raw):
        if isinstance(raw, bool):
            return MetadataValue(ValueKind.BOOL, raw)
        if isinstance(raw, (str, int)):
            lowered = str(raw).strip().lower()
            if lowered in TRUE_VALUES:
                return MetadataValue(ValueKind.BOOL, True)
            if lowered in FALSE_VALUES:
                return MetadataValue(ValueKind.BOOL, False)
        raise InvalidValueError(self.name, raw)


DEFAULT_FIELDS = (
    TextField('title'),
    TextField('language'),
    DateField('created'),
    DateField('modified'),
    KeywordsField('keywords'),
    BooleanField('draft'),
)


class FieldCoercer:
    """Coerce raw metadata entries by field name.

    Unknown names become TEXT (or the wrapped structured value) unless the
    coercer is strict, in which case they raise UnknownMetadataFieldError.
    """

    def __init__(self, fields: Optional[Iterable[Field]] = None, strict: bool = False) -> None:
        self.fields = {field.name: field for field in (fields if fields is not None else DEFAULT_FIELDS)}
        self.strict = strict

    def is_known(self, name: str) -> bool:
        return name.lower() in self.fields

    def coerce(self, name: str, raw: Any) -> MetadataValue:
        name = name.lower()
        field = self.fields.get(name)
        if field is not None:
            return field.coerce(raw)
        if self.strict:
            raise UnknownMetadataFieldError(name)
        if isinstance(raw, str):
            return MetadataValue.text(raw.strip())
        return MetadataValue.from_python(raw)
