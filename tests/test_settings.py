"""Tests for SiteSettings."""

import json
import os
import pytest

from disenchanted_pkg.settings import SiteSettings


class TestSiteSettings:
    """Test cases for configuration loading."""

    def test_defaults_without_config(self, temp_dir):
        settings = SiteSettings(temp_dir).load_settings()

        assert settings['default_locale'] == 'en'
        assert settings['locales'] == ['en', 'zh-hans']
        assert settings['content'] == 'content/blog'
        assert settings['output'] == 'public'

    def test_yaml_config_overrides_defaults(self, temp_dir):
        with open(os.path.join(temp_dir, 'disenchanted.yml'), 'w', encoding='utf-8') as f:
            f.write("site_url: https://mirone.me\nlocales: [en, ja]\n")

        loader = SiteSettings(temp_dir)
        settings = loader.load_settings()

        assert settings['site_url'] == 'https://mirone.me'
        assert settings['locales'] == ['en', 'ja']
        assert settings['feed_language'] == 'en-us'
        assert loader.config_file_path.endswith('disenchanted.yml')

    def test_yml_preferred_over_json(self, temp_dir):
        with open(os.path.join(temp_dir, 'disenchanted.yml'), 'w', encoding='utf-8') as f:
            f.write("site_title: From YAML\n")
        with open(os.path.join(temp_dir, 'disenchanted.json'), 'w', encoding='utf-8') as f:
            json.dump({'site_title': 'From JSON'}, f)

        assert SiteSettings(temp_dir).load_settings()['site_title'] == 'From YAML'

    def test_json_config(self, temp_dir):
        with open(os.path.join(temp_dir, 'disenchanted.json'), 'w', encoding='utf-8') as f:
            json.dump({'minify': True}, f)

        assert SiteSettings(temp_dir).load_settings()['minify'] is True

    def test_invalid_config_falls_back_to_defaults(self, temp_dir, caplog):
        with open(os.path.join(temp_dir, 'disenchanted.yml'), 'w', encoding='utf-8') as f:
            f.write("site_url: [unclosed\n")

        settings = SiteSettings(temp_dir).load_settings()

        assert settings['site_url'] is None
        assert 'Failed to load config file' in caplog.text
        assert caplog.records[-1].levelname == 'WARNING'

    def test_defaults_are_not_shared(self, temp_dir):
        first = SiteSettings(temp_dir).load_settings()
        first['locales'].append('fr')

        assert SiteSettings(temp_dir).load_settings()['locales'] == ['en', 'zh-hans']

    def test_merge_with_args(self, temp_dir):
        loader = SiteSettings(temp_dir)
        loader.load_settings()

        merged = loader.merge_with_args({'output': 'dist', 'site_url': None, 'locales': 'en, fr'})

        assert merged['output'] == 'dist'
        assert merged['site_url'] is None
        assert merged['locales'] == ['en', 'fr']

    def test_validate_rejects_default_outside_locales(self):
        with pytest.raises(ValueError, match="default_locale"):
            SiteSettings.validate({'default_locale': 'fr', 'locales': ['en']})

    def test_validate_rejects_empty_locales(self):
        with pytest.raises(ValueError, match="locale"):
            SiteSettings.validate({'default_locale': 'en', 'locales': []})

    @pytest.mark.parametrize('file_format', ['yml', 'json'])
    def test_create_sample_config_round_trips(self, temp_dir, file_format):
        loader = SiteSettings(temp_dir)
        path = loader.create_sample_config(file_format)

        assert os.path.basename(path) == f'disenchanted.{file_format}'
        settings = SiteSettings(temp_dir).load_settings()
        assert settings['site_url'] == 'https://example.com'
        assert settings['locales'] == ['en', 'zh-hans']
