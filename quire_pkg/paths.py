"""
Path helpers: visibility rules and site URL derivation.

Site URLs are relative and slash separated (``a/b/page.html``); the site
root directory is the empty string.
"""

import os
import posixpath
from typing import List


def is_hidden(name: str) -> bool:
    return name.startswith('.')


def is_public(name: str) -> bool:
    """Hidden entries and entries starting with '_' are not content."""
    return bool(name) and not is_hidden(name) and not name.startswith('_')


def relative_url(path: str, root: str) -> str:
    """Return the slash-separated path of ``path`` relative to ``root``."""
    relpath = os.path.relpath(path, root)
    return relpath.replace(os.sep, '/')


def document_url(path: str, root: str) -> str:
    """Output URL of a parsed document: its relative path with ``.html``."""
    stem, _ = posixpath.splitext(relative_url(path, root))
    return stem + '.html'


def url_to_path(url: str, root: str) -> str:
    """Map a site URL to a file path under ``root``.

    Leading slashes, ``.`` and ``..`` parts are dropped so the result can
    never escape ``root``.
    """
    parts = [part for part in url.split('/') if part not in ('', '.', '..')]
    return os.path.join(root, *parts)


def ancestor_dirs(url: str) -> List[str]:
    """All ancestor directories of a URL, nearest first, ending with ''.

    >>> ancestor_dirs('a/b/y.html')
    ['a/b', 'a', '']
    """
    ancestors = []
    directory = posixpath.dirname(url.strip('/'))
    while directory:
        ancestors.append(directory)
        directory = posixpath.dirname(directory)
    ancestors.append('')
    return ancestors


def index_url(directory: str) -> str:
    return f"{directory}/index.html" if directory else 'index.html'
