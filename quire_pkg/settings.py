#!/usr/bin/env python3
"""
Settings loader for Quire static site generator.
Supports configuration from quire.yml, quire.yaml, or quire.json files.
"""

import os
import json
import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import yaml

from .errors import LoadSettingsError


@dataclass
class Settings:
    """Resolved build settings."""
    source_dir: str = '.'
    output_dir: str = '_output'
    max_depth: Optional[int] = None
    follow_links: bool = False
    strict_metadata: bool = False
    site_title: Optional[str] = None
    site_url: str = '/'
    site_language: Optional[str] = None


class QuireSettings:
    """Load and manage Quire configuration settings."""

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['quire.yml', 'quire.yaml', 'quire.json']

    SITE_KEYS = {'title': 'site_title', 'url': 'site_url', 'language': 'site_language'}
    GENERATOR_KEYS = ('source_dir', 'output_dir', 'max_depth', 'follow_links', 'strict_metadata')

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.config_file_path = None
        self.logger = logging.getLogger('Quire.settings')

    def load_settings(self, config_file: Optional[str] = None) -> Settings:
        """
        Load settings from a configuration file, or defaults if there is none.

        Args:
            config_file: Explicit settings file. When omitted, the first of
                CONFIG_FILES found in config_dir is used.

        Returns:
            Settings with relative directories resolved against the
            directory holding the settings file.

        Raises:
            LoadSettingsError: The file is missing, unreadable or invalid.
        """
        if config_file is None:
            config_file = self.find_config_file()
            if config_file is None:
                return Settings()

        self.config_file_path = config_file
        data = self._load_config_file(config_file)
        settings = self.from_dict(data, config_file)
        self.logger.info(f"Loading settings from {os.path.relpath(config_file)}.")
        return settings

    def find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.isfile(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    data = yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    data = json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except (IOError, OSError) as e:
            raise LoadSettingsError(config_path, e)
        except yaml.YAMLError as e:
            raise LoadSettingsError(config_path, e)
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            raise LoadSettingsError(config_path, e)

        if not isinstance(data, dict):
            raise LoadSettingsError(config_path, ValueError("top level must be a mapping"))
        return data

    def from_dict(self, data: Dict[str, Any], config_path: str) -> Settings:
        """Build Settings from the decoded ``site``/``generator`` sections."""
        settings = Settings()

        site = self._section(data, 'site', config_path)
        for key, value in site.items():
            if key not in self.SITE_KEYS:
                self.logger.warning(f"Ignoring unknown setting site.{key} in {config_path}")
                continue
            if value is not None and not isinstance(value, str):
                raise LoadSettingsError(config_path, ValueError(f"site.{key} must be a string"))
            if key == 'url' and value is None:
                continue
            setattr(settings, self.SITE_KEYS[key], value)

        generator = self._section(data, 'generator', config_path)
        for key, value in generator.items():
            if key not in self.GENERATOR_KEYS:
                self.logger.warning(f"Ignoring unknown setting generator.{key} in {config_path}")
                continue
            if value is None:
                continue
            if key in ('source_dir', 'output_dir') and not isinstance(value, str):
                raise LoadSettingsError(config_path, ValueError(f"generator.{key} must be a path"))
            if key == 'max_depth' and (isinstance(value, bool) or not isinstance(value, int) or value < 1):
                raise LoadSettingsError(config_path, ValueError("generator.max_depth must be a positive integer"))
            if key in ('follow_links', 'strict_metadata') and not isinstance(value, bool):
                raise LoadSettingsError(config_path, ValueError(f"generator.{key} must be true or false"))
            setattr(settings, key, value)

        # Make paths relative to the directory containing the settings file
        settings_dir = os.path.dirname(os.path.abspath(config_path))
        settings.source_dir = os.path.join(settings_dir, os.path.expanduser(settings.source_dir))
        settings.output_dir = os.path.join(settings_dir, os.path.expanduser(settings.output_dir))
        return settings

    def _section(self, data, name, config_path):
        section = data.get(name) or {}
        if not isinstance(section, dict):
            raise LoadSettingsError(config_path, ValueError(f"[{name}] must be a mapping"))
        return section

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        filename = f'quire.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        with open(config_path, 'w', encoding='utf-8') as f:
            if file_format in ['yml', 'yaml']:
                f.write(sample_config_yaml())
            elif file_format == 'json':
                json.dump(SAMPLE_CONFIG, f, indent=2)
            else:
                raise ValueError(f"Unsupported config file format: {file_format}")

        return config_path


SAMPLE_CONFIG = {
    'site': {
        'title': 'My Static Site',
        'url': '/',
        'language': 'en',
    },
    'generator': {
        'source_dir': '.',
        'output_dir': '_output',
        'follow_links': False,
        'strict_metadata': False,
    },
}


def sample_config_yaml() -> str:
    return (
        "# Quire Configuration File\n"
        "# Configure your static site generator settings here\n\n"
        "# Site information\n"
        "site:\n"
        "  title: My Static Site\n"
        "  url: /\n"
        "  language: en\n\n"
        "# Build settings (paths are relative to this file)\n"
        "generator:\n"
        "  source_dir: .\n"
        "  output_dir: _output\n"
        "  # max_depth: 3\n"
        "  follow_links: false\n"
        "  strict_metadata: false  # reject unknown metadata fields\n"
    )
