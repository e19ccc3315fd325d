"""Tests for the settings loader."""

import json
import logging
import os

import pytest

from quire_pkg.errors import LoadSettingsError, SettingsError
from quire_pkg.settings import QuireSettings, Settings


class TestQuireSettings:
    """Finding and decoding settings files."""

    def test_defaults_without_file(self, temp_dir):
        settings = QuireSettings(temp_dir).load_settings()

        assert settings == Settings()

    def test_yaml_file(self, temp_dir, write_file):
        write_file(os.path.join(temp_dir, 'quire.yml'), """
site:
  title: My Site
  url: https://example.com/
  language: en
generator:
  source_dir: content
  output_dir: ../public
  max_depth: 3
  follow_links: true
  strict_metadata: true
""")
        settings = QuireSettings(temp_dir).load_settings()

        assert settings.site_title == 'My Site'
        assert settings.site_url == 'https://example.com/'
        assert settings.site_language == 'en'
        assert settings.source_dir == os.path.join(os.path.abspath(temp_dir), 'content')
        assert settings.output_dir == os.path.join(os.path.abspath(temp_dir), '../public')
        assert settings.max_depth == 3
        assert settings.follow_links is True
        assert settings.strict_metadata is True

    def test_paths_default_to_settings_directory(self, temp_dir, write_file):
        path = write_file(os.path.join(temp_dir, 'conf', 'site.yaml'), "site:\n  title: T\n")
        settings = QuireSettings(temp_dir).load_settings(path)
        settings_dir = os.path.join(os.path.abspath(temp_dir), 'conf')

        assert settings.source_dir == os.path.join(settings_dir, '.')
        assert settings.output_dir == os.path.join(settings_dir, '_output')

    def test_json_file(self, temp_dir, write_file):
        write_file(os.path.join(temp_dir, 'quire.json'), json.dumps({'site': {'title': 'Json'}}))
        settings = QuireSettings(temp_dir).load_settings()

        assert settings.site_title == 'Json'

    def test_yml_is_preferred(self, temp_dir, write_file):
        write_file(os.path.join(temp_dir, 'quire.json'), json.dumps({'site': {'title': 'Json'}}))
        write_file(os.path.join(temp_dir, 'quire.yml'), "site:\n  title: Yaml\n")

        assert QuireSettings(temp_dir).load_settings().site_title == 'Yaml'

    def test_empty_file(self, temp_dir, write_file):
        write_file(os.path.join(temp_dir, 'quire.yml'), "")
        settings = QuireSettings(temp_dir).load_settings()

        assert settings.site_title is None
        assert settings.site_url == '/'

    def test_unknown_keys_are_ignored(self, temp_dir, write_file, caplog):
        write_file(os.path.join(temp_dir, 'quire.yml'), "site:\n  colour: red\n")
        with caplog.at_level(logging.WARNING, logger='Quire'):
            settings = QuireSettings(temp_dir).load_settings()

        assert not hasattr(settings, 'colour')
        assert 'site.colour' in caplog.text

    @pytest.mark.parametrize('content', [
        "site: [not, a, mapping]\n",
        "- a\n- b\n",
        "site:\n  title: [1, 2]\n",
        "generator:\n  max_depth: -1\n",
        "generator:\n  max_depth: 0\n",
        "generator:\n  max_depth: deep\n",
        "generator:\n  follow_links: sometimes\n",
        "generator:\n  output_dir: 3\n",
        "site: {title: [unclosed\n",
    ])
    def test_invalid_files(self, temp_dir, write_file, content):
        write_file(os.path.join(temp_dir, 'quire.yml'), content)

        with pytest.raises(LoadSettingsError):
            QuireSettings(temp_dir).load_settings()

    def test_invalid_json(self, temp_dir, write_file):
        write_file(os.path.join(temp_dir, 'quire.json'), "{not json")

        with pytest.raises(LoadSettingsError):
            QuireSettings(temp_dir).load_settings()

    def test_missing_explicit_file(self, temp_dir):
        path = os.path.join(temp_dir, 'nope.yml')

        with pytest.raises(SettingsError) as excinfo:
            QuireSettings(temp_dir).load_settings(path)
        assert excinfo.value.path == path

    @pytest.mark.parametrize('file_format', ['yml', 'json'])
    def test_sample_config_loads(self, temp_dir, file_format):
        loader = QuireSettings(temp_dir)
        path = loader.create_sample_config(file_format)

        assert loader.find_config_file() == path
        settings = loader.load_settings()
        assert settings.site_title == 'My Static Site'
        assert settings.site_language == 'en'
        assert settings.output_dir == os.path.join(os.path.abspath(temp_dir), '_output')
