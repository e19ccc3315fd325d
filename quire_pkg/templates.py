"""
Jinja2 template collaborator.

Layouts are looked up first in the site's ``_layouts`` directory, then in
the defaults shipped with the package.
"""

import os
import logging
from typing import Any, Dict, List

from jinja2 import ChoiceLoader, Environment, FileSystemLoader, TemplateError

from .errors import InvalidDateError, RenderError, TemplateLoadError
from .metadata import parse_rfc3339
from .paths import is_public, relative_url

LAYOUTS_DIR = '_layouts'
PAGE_TEMPLATE = 'page.html'
PACKAGE_LAYOUTS_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'layouts')


def date_filter(value, format='%Y-%m-%d'):
    """Format an RFC 3339 string; empty values render as ''."""
    if not value:
        return ''
    try:
        return parse_rfc3339(value).strftime(format)
    except InvalidDateError as e:
        raise ValueError(f"Parameter #1 is not a valid date: {e}")


class Templates:
    def __init__(self, source_dir: str) -> None:
        self.layouts_dir = os.path.join(source_dir, LAYOUTS_DIR)
        self.logger = logging.getLogger('Quire.templates')
        self.env = Environment(loader=ChoiceLoader([
            FileSystemLoader(self.layouts_dir),
            FileSystemLoader(PACKAGE_LAYOUTS_DIR),
        ]))
        self.env.filters['date'] = date_filter

    def layout_names(self) -> List[str]:
        """Names of the public template files under ``_layouts``."""
        names = []
        if not os.path.isdir(self.layouts_dir):
            return names
        for root, dirs, files in os.walk(self.layouts_dir):
            dirs[:] = sorted(d for d in dirs if is_public(d))
            for filename in sorted(files):
                if is_public(filename):
                    names.append(relative_url(os.path.join(root, filename), self.layouts_dir))
        return names

    def load(self) -> None:
        """Compile every layout, then require the page layout.

        A broken layout is logged and skipped; a page layout that cannot
        be loaded raises TemplateLoadError.
        """
        if self.env.cache is not None:
            self.env.cache.clear()
        for name in self.layout_names():
            try:
                self.env.get_template(name)
                self.logger.debug(f"Loaded template {name}")
            except (TemplateError, UnicodeDecodeError) as e:
                self.logger.error(f"Could not load template file {name}: {e}")

        try:
            self.env.get_template(PAGE_TEMPLATE)
        except (TemplateError, UnicodeDecodeError) as e:
            raise TemplateLoadError(PAGE_TEMPLATE, e)

    def render(self, template_name: str, context: Dict[str, Any]) -> str:
        try:
            template = self.env.get_template(template_name)
            return template.render(**context)
        except (TemplateError, ValueError, TypeError) as e:
            raise RenderError(e, template_name)
