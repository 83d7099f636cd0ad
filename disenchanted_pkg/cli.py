#!/usr/bin/env python3
"""
Command-line interface for Disenchanted - bilingual static blog builder.
"""

import os
import sys
import argparse
import time
from typing import List, Optional

from . import __version__
from .core import SiteBuilder, setup_logging
from .server import ChangeWatcher, serve
from .settings import SiteSettings

SAMPLE_POSTS = {
    os.path.join('hello-world', 'index.md'): """---
title: Hello World
date: 2024-01-01
description: The first post on this blog.
tags:
  - meta
---

This is the first post. Edit `content/blog/hello-world/index.md` to change it.

Posts in their own directory can be translated by adding a sibling file such
as `index.zh-hans.md`.
""",
    os.path.join('hello-world', 'index.zh-hans.md'): """---
title: 你好，世界
date: 2024-01-01
description: 这个博客的第一篇文章。
lang: zh-hans
---

这是第一篇文章。
""",
}


def create_sample_content(content_dir: str) -> None:
    """Create starter bilingual posts."""
    for rel_path, text in SAMPLE_POSTS.items():
        post_path = os.path.join(content_dir, rel_path)
        if os.path.exists(post_path):
            print(f"Sample post already exists: {post_path}")
            continue
        os.makedirs(os.path.dirname(post_path), exist_ok=True)
        with open(post_path, 'w', encoding='utf-8') as f:
            f.write(text)
        print(f"Created sample post: {post_path}")


def add_site_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--content', type=str,
                        help='Content directory containing markdown/MDX posts')
    parser.add_argument('--output', type=str,
                        help='Output directory for the generated site')
    parser.add_argument('--templates', type=str,
                        help='Templates directory')
    parser.add_argument('--assets', type=str,
                        help='Assets directory to copy to output')
    parser.add_argument('--site-url', type=str,
                        help='Site URL for the RSS feed and sitemap')
    parser.add_argument('--locales', type=str,
                        help='Comma-separated locale tags, e.g. en,zh-hans')
    parser.add_argument('--default-locale', type=str,
                        help='Locale served without a URL prefix')
    parser.add_argument('--minify', action='store_true', default=None,
                        help='Minify CSS and JS assets')


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('--host', type=str, help='Host to bind the local server to')
    parser.add_argument('--port', type=int, help='Port for the local server')


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='disenchanted',
                                     description='Disenchanted - bilingual static blog builder')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--config-dir', type=str,
                        help='Directory containing disenchanted.yml (defaults to current directory)')
    subparsers = parser.add_subparsers(dest='command')
    subparsers.required = True

    build_parser = subparsers.add_parser('build', help='Build the full static site')
    add_site_arguments(build_parser)

    dev_parser = subparsers.add_parser('dev', help='Build, serve and rebuild on changes')
    add_site_arguments(dev_parser)
    add_server_arguments(dev_parser)

    preview_parser = subparsers.add_parser('preview', help='Serve the already built site')
    preview_parser.add_argument('--output', type=str, help='Built site directory to serve')
    add_server_arguments(preview_parser)

    init_parser = subparsers.add_parser('init', help='Create a sample configuration and starter posts')
    init_parser.add_argument('--format', type=str, choices=['yml', 'yaml', 'json'], default='yml',
                             help='Configuration file format')
    return parser


def load_final_settings(args: argparse.Namespace) -> dict:
    """Config file settings overridden by non-None command line arguments."""
    settings_loader = SiteSettings(args.config_dir)
    settings_loader.load_settings()
    args_dict = {k: v for k, v in vars(args).items()
                 if v is not None and k not in ('command', 'config_dir', 'format')}
    return settings_loader.merge_with_args(args_dict)


def run_build(settings: dict) -> SiteBuilder:
    start_time = time.time()
    generator = SiteBuilder(settings)
    generator.build()
    total_time = time.time() - start_time
    generator.logger.info(f"Site build completed in {total_time:.6f} seconds.")
    return generator


def run_dev(settings: dict) -> None:
    generator = run_build(settings)
    watcher = ChangeWatcher(
        [generator.content_dir, generator.templates_dir, generator.assets_dir],
        lambda: run_build(settings),
        interval=settings.get('watch_interval', 1.0),
    )
    watcher.start()
    try:
        serve(generator.output_dir, settings['host'], settings['port'])
    finally:
        watcher.stop()


def main(argv: Optional[List[str]] = None) -> None:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'init':
            settings_loader = SiteSettings(args.config_dir)
            config_path = settings_loader.create_sample_config(args.format)
            print(f"Created sample configuration file: {config_path}")
            create_sample_content(os.path.join(settings_loader.config_dir, 'content', 'blog'))
            print("\nEdit the configuration file, then run 'disenchanted build' to build your site.")
            return

        settings = load_final_settings(args)
        if args.command == 'build':
            run_build(settings)
        elif args.command == 'dev':
            run_dev(settings)
        elif args.command == 'preview':
            setup_logging(settings.get('log_dir'))
            serve(settings['output'], settings['host'], settings['port'])
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
