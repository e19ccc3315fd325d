"""Test configuration and fixtures for Quire tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from quire_pkg.settings import Settings


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def write_file():
    """Write text into a file, creating parent directories."""
    def _write(path, content):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding='utf-8')
        return str(path)
    return _write


@pytest.fixture
def mock_source_dir(temp_dir, write_file):
    """Create a mock source tree with nested documents and assets."""
    source_dir = Path(temp_dir) / 'source'
    source_dir.mkdir()

    write_file(source_dir / 'welcome.md', """# Welcome

Created: 2016-01-03T10:00:00+00:00
Keywords: intro, site

Hello world.
""")

    write_file(source_dir / 'a' / 'x.md', """# Page X

Created: 2016-01-01T00:00:00Z

Body of x.
""")

    write_file(source_dir / 'a' / 'b' / 'y.markdown', """# Page Y

Created: 2016-02-01T00:00:00Z
Language: fr

Body of y.
""")

    write_file(source_dir / 'css' / 'style.css', "body { color: black; }\n")
    write_file(source_dir / '.hidden.md', "# Hidden\n")
    write_file(source_dir / '_drafts' / 'z.md', "# Not content\n")

    return str(source_dir)


@pytest.fixture
def mock_output_dir(temp_dir):
    """Path of a not yet created output directory."""
    return str(Path(temp_dir) / 'output')


@pytest.fixture
def mock_settings(mock_source_dir, mock_output_dir):
    """Settings pointing at the mock source tree."""
    return Settings(
        source_dir=mock_source_dir,
        output_dir=mock_output_dir,
        site_title='Test Site',
    )
