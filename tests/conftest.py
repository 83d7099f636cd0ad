"""Test configuration and fixtures for Disenchanted tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path
from datetime import datetime

from disenchanted_pkg.content import Post


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def make_post():
    """Factory for Post records without touching the filesystem."""
    def _make_post(name, lang='en', date=(2020, 1, 1), group=None, slug=..., draft=False, **kwargs):
        if slug is ...:
            slug = f"/{name}/" if lang == 'en' else f"/{lang}/{name}/"
        return Post(
            slug=slug,
            language_tag=lang,
            translation_group=group,
            title=kwargs.pop('title', name.title()),
            date=datetime(*date),
            draft=draft,
            source_path=kwargs.pop('source_path', f"content/blog/{name}.{lang}.md"),
            **kwargs
        )
    return _make_post


def write_post(content_dir, rel_path, front_matter, body="Some *markdown* body."):
    path = Path(content_dir) / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"---\n{front_matter.strip()}\n---\n\n{body}\n", encoding='utf-8')
    return str(path)


@pytest.fixture
def mock_content_dir(temp_dir):
    """Create a bilingual content directory."""
    content_dir = Path(temp_dir) / 'content' / 'blog'

    write_post(content_dir, 'hello-world/index.md', """
title: Hello World
date: 2020-01-02
description: The first post
tags: [meta, intro]
""")
    write_post(content_dir, 'hello-world/index.zh-hans.md', """
title: 你好，世界
date: 2020-01-02
lang: zh-hans
""")
    write_post(content_dir, 'second-post.md', """
title: Second Post
date: 2020-01-01
description: Another post
""")
    write_post(content_dir, 'unfinished/index.md', """
title: Unfinished
date: 2021-05-01
draft: true
""")

    return str(content_dir)


@pytest.fixture
def site_settings(temp_dir, mock_content_dir):
    """Settings for a build inside temp_dir using the package templates."""
    return {
        'content': mock_content_dir,
        'output': os.path.join(temp_dir, 'public'),
        'templates': os.path.join(temp_dir, 'templates'),
        'assets': None,
        'site_url': 'https://example.com',
        'site_title': 'Disenchanted',
        'site_description': 'Personal blog',
        'author': 'Mirone',
        'default_locale': 'en',
        'locales': ['en', 'zh-hans'],
        'feed_title': 'Test Feed',
        'feed_language': 'en-us',
        'feed_limit': 1000,
        'minify': False,
        'offline': True,
        'manifest': {'name': 'Disenchanted', 'theme_color': '#5E81AC'},
        'log_dir': None,
        'host': '127.0.0.1',
        'port': 8000,
        'watch_interval': 0.1,
    }


@pytest.fixture
def post_writer():
    """Expose write_post to tests that build their own content trees."""
    return write_post
