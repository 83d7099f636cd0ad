#!/usr/bin/env python3
"""
Settings loader for the Disenchanted blog builder.
Supports configuration from disenchanted.yml, disenchanted.yaml, or disenchanted.json files.
"""

import copy
import os
import json
import logging
import yaml
from typing import Dict, Any, Optional

logger = logging.getLogger('Disenchanted.settings')


class SiteSettings:
    """Load and manage Disenchanted configuration settings."""

    # Default configuration
    DEFAULT_SETTINGS = {
        'content': 'content/blog',
        'output': 'public',
        'templates': 'templates',
        'assets': None,
        'site_url': None,
        'site_title': 'Disenchanted',
        'site_description': 'Personal blog by Mirone',
        'author': 'Mirone',
        'default_locale': 'en',
        'locales': ['en', 'zh-hans'],
        'feed_title': "Saul Mirone's Disenchanted Blog RSS Feed",
        'feed_language': 'en-us',
        'feed_limit': 1000,
        'minify': False,
        'offline': True,
        'manifest': {
            'name': 'Disenchanted',
            'short_name': 'Disenchanted',
            'start_url': '/',
            'background_color': '#ffffff',
            'theme_color': '#5E81AC',
            'display': 'minimal-ui',
            'icons': [],
        },
        'log_dir': 'logs',
        'host': '127.0.0.1',
        'port': 8000,
        'watch_interval': 1.0,
    }

    # Config file names to look for (in order of preference)
    CONFIG_FILES = ['disenchanted.yml', 'disenchanted.yaml', 'disenchanted.json']

    def __init__(self, config_dir: str = None):
        """
        Initialize settings loader.

        Args:
            config_dir: Directory to look for config files. Defaults to current directory.
        """
        self.config_dir = config_dir or os.getcwd()
        self.settings = copy.deepcopy(self.DEFAULT_SETTINGS)
        self.config_file_path = None

    def load_settings(self) -> Dict[str, Any]:
        """
        Load settings from configuration file if it exists.

        Returns:
            Dictionary of configuration settings
        """
        config_file = self._find_config_file()

        if config_file:
            self.config_file_path = config_file
            try:
                loaded_settings = self._load_config_file(config_file)
                if loaded_settings:
                    if not isinstance(loaded_settings, dict):
                        raise ValueError("top level must be a mapping")
                    # Merge with defaults, giving preference to loaded settings
                    self.settings.update(loaded_settings)
                    print(f"Loaded configuration from: {os.path.relpath(config_file)}")
            except (ValueError, IOError, OSError) as e:
                logger.warning(f"Failed to load config file {config_file}, using defaults: {e}")

        return copy.deepcopy(self.settings)

    def _find_config_file(self) -> Optional[str]:
        """
        Find the first available configuration file.

        Returns:
            Path to config file or None if not found
        """
        for filename in self.CONFIG_FILES:
            config_path = os.path.join(self.config_dir, filename)
            if os.path.exists(config_path):
                return config_path
        return None

    def _load_config_file(self, config_path: str) -> Dict[str, Any]:
        """
        Load configuration from a file.

        Args:
            config_path: Path to the configuration file

        Returns:
            Dictionary of configuration settings
        """
        file_ext = os.path.splitext(config_path)[1].lower()
        try:
            with open(config_path, 'r', encoding='utf-8') as f:
                if file_ext in ['.yml', '.yaml']:
                    return yaml.safe_load(f) or {}
                elif file_ext == '.json':
                    return json.load(f) or {}
                else:
                    raise ValueError(f"Unsupported config file format: {file_ext}")
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except PermissionError:
            raise PermissionError(f"Permission denied reading configuration file: {config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in configuration file {config_path}: {e}")
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file {config_path}: {e}")

    def create_sample_config(self, file_format: str = 'yml') -> str:
        """
        Create a sample configuration file.

        Args:
            file_format: Format for config file ('yml', 'yaml', or 'json')

        Returns:
            Path to created sample config file
        """
        sample_config = {
            'site_url': 'https://example.com',
            'site_title': 'My Blog',
            'site_description': 'Personal blog',
            'author': 'Me',
            'content': 'content/blog',
            'output': 'public',
            'templates': 'templates',
            'default_locale': 'en',
            'locales': ['en', 'zh-hans'],
            'feed_title': 'My Blog RSS Feed',
            'feed_language': 'en-us',
            'minify': False,
            'offline': True,
        }

        filename = f'disenchanted.{file_format}'
        config_path = os.path.join(self.config_dir, filename)

        try:
            with open(config_path, 'w', encoding='utf-8') as f:
                if file_format in ['yml', 'yaml']:
                    # Custom YAML output with comments
                    f.write("# Disenchanted configuration file\n\n")
                    f.write("# Site information\n")
                    f.write("site_url: https://example.com\n")
                    f.write("site_title: My Blog\n")
                    f.write("site_description: Personal blog\n")
                    f.write("author: Me\n\n")
                    f.write("# Build settings\n")
                    f.write("content: content/blog\n")
                    f.write("output: public\n")
                    f.write("templates: templates\n")
                    f.write("# assets: assets  # copied to <output>/assets when present\n\n")
                    f.write("# Locales (the default locale gets unprefixed URLs)\n")
                    f.write("default_locale: en\n")
                    f.write("locales:\n")
                    f.write("  - en\n")
                    f.write("  - zh-hans\n\n")
                    f.write("# Feed\n")
                    f.write("feed_title: My Blog RSS Feed\n")
                    f.write("feed_language: en-us\n\n")
                    f.write("# Output extras\n")
                    f.write("minify: false\n")
                    f.write("offline: true  # write sw.js and manifest.webmanifest\n")
                elif file_format == 'json':
                    json.dump(sample_config, f, indent=2)
                else:
                    raise ValueError(f"Unsupported config file format: {file_format}")
        except PermissionError:
            raise PermissionError(f"Permission denied creating configuration file: {config_path}")

        return config_path

    def merge_with_args(self, args_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge configuration settings with command-line arguments.
        Command-line arguments take precedence over config file settings.

        Args:
            args_dict: Dictionary of command-line arguments

        Returns:
            Merged configuration dictionary
        """
        merged = copy.deepcopy(self.settings)

        # Override with non-None command line arguments
        for key, value in args_dict.items():
            if value is not None:
                if key == 'locales' and isinstance(value, str):
                    # Convert comma-separated string to list
                    merged[key] = [lang.strip() for lang in value.split(',') if lang.strip()]
                else:
                    merged[key] = value

        return merged

    @staticmethod
    def validate(settings: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check the locale configuration.

        Raises:
            ValueError: no locales, or default_locale not among them
        """
        locales = settings.get('locales') or []
        if isinstance(locales, str):
            locales = [locales]
        if not locales:
            raise ValueError("At least one locale must be configured")
        if settings.get('default_locale') not in locales:
            raise ValueError(
                f"default_locale {settings.get('default_locale')!r} is not in locales {locales}"
            )
        settings['locales'] = list(locales)
        return settings
