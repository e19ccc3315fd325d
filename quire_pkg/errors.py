"""
Exception classes for Quire.

Per-file errors (ReaderError, RenderError, CopyError, OutputError and the
FieldError family) are caught by the build loop and the file is skipped.
Everything else aborts the build.
"""

from typing import Any, Optional


class QuireError(Exception):
    """Base exception for all Quire errors."""


class ReaderError(QuireError):
    """A source file could not be read or parsed."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"Error while reading {path}: {cause}")
        self.path = path
        self.cause = cause


class RenderError(QuireError):
    """A template failed to render a document."""

    def __init__(self, cause: Exception, template: Optional[str] = None) -> None:
        super().__init__(f"Rendering failed: {cause}")
        self.cause = cause
        self.template = template


class CopyError(QuireError):
    """A non-document file could not be copied to the output tree."""

    def __init__(self, source: str, dest: str, cause: Exception) -> None:
        super().__init__(f"Could not copy {source} to {dest}: {cause}")
        self.source = source
        self.dest = dest
        self.cause = cause


class OutputError(QuireError):
    """A rendered file could not be written."""

    def __init__(self, dest: str, cause: Exception) -> None:
        super().__init__(f"Could not write output file {dest}: {cause}")
        self.dest = dest
        self.cause = cause


class SettingsError(QuireError):
    """The build is misconfigured."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class LoadSettingsError(SettingsError):
    """A settings file could not be read or decoded."""

    def __init__(self, path: str, cause: Exception) -> None:
        super().__init__(f"Could not read settings file {path}: {cause}")
        self.path = path
        self.cause = cause


class TemplateLoadError(QuireError):
    """The page layout could not be loaded."""

    def __init__(self, name: str, cause: Exception) -> None:
        super().__init__(f"Could not load template {name}: {cause}")
        self.name = name
        self.cause = cause


class GeneratorError(QuireError):
    """A generator failed while deriving documents."""

    def __init__(self, generator: str, cause: Exception) -> None:
        super().__init__(f"Generator {generator} failed: {cause}")
        self.generator = generator
        self.cause = cause


class FieldError(QuireError):
    """Base class for metadata coercion failures."""


class InvalidDateError(FieldError):
    """A date field does not hold an offset-aware RFC 3339 timestamp."""

    def __init__(self, date: Any) -> None:
        super().__init__(f'"{str(date).strip()}" is not a valid date.')
        self.date = date


class InvalidValueError(FieldError):
    """A metadata field holds a value of the wrong shape."""

    def __init__(self, name: str, value: Any) -> None:
        super().__init__(f'Invalid value for metadata "{name}": {value!r}')
        self.name = name
        self.value = value


class UnknownMetadataFieldError(FieldError):
    """Raised in strict mode for front-matter keys Quire does not know."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Unknown metadata "{name}".')
        self.name = name
