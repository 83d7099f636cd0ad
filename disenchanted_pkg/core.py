import os
import json
import shutil
import logging
import tempfile
from datetime import datetime

import csscompressor
import rjsmin

from .content import load_posts
from .exceptions import BuildError
from .feed import build_rss, build_sitemap, select_feed_posts
from .offline import (
    DEFAULT_CACHE_RULES,
    SERVICE_WORKER_FILE,
    WEB_MANIFEST_FILE,
    build_precache_manifest,
    build_web_manifest,
    render_service_worker,
)
from .render import PageRenderer
from .routes import build_route_table
from .settings import SiteSettings


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Site build completed in",
            "Loaded",
            "Generated",
            "Generating RSS feed",
            "Generating XML sitemap",
            "Generating service worker",
            "Skipping RSS feed",
            "Serving",
            "Rebuilding",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


def setup_logging(log_dir='logs'):
    """Set up the Disenchanted logger: filtered console output plus a full log file."""
    logger = logging.getLogger('Disenchanted')
    logger.setLevel(logging.DEBUG)

    if not logger.handlers:
        # Console handler with filter
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.addFilter(InfoFilter())
        console_handler.setFormatter(logging.Formatter('%(message)s'))
        logger.addHandler(console_handler)

        # File handler for all logs
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
            log_filename = datetime.now().strftime('disenchanted_%Y-%m-%d_%H-%M-%S.log')
            file_handler = logging.FileHandler(os.path.join(log_dir, log_filename), encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
            logger.addHandler(file_handler)

    return logger


class SiteBuilder:
    """Builds the whole static site from a settings dict."""

    def __init__(self, settings=None):
        settings = settings if settings is not None else SiteSettings().load_settings()
        self.settings = SiteSettings.validate(dict(settings))

        self.content_dir = self.settings['content']
        self.templates_dir = self.settings['templates']
        self.assets_dir = self.settings.get('assets')
        output_dir = self.settings['output']
        self.output_dir = os.path.expanduser(output_dir) if output_dir.startswith("~/") else output_dir
        self.site_url = self.settings.get('site_url')
        if self.site_url:
            self.site_url = self.site_url.rstrip('/')
        self.locales = self.settings['locales']
        self.default_locale = self.settings['default_locale']

        self.logger = setup_logging(self.settings.get('log_dir'))
        self.route_table = None
        self.posts = []
        self.posts_generated = 0
        self.pages_generated = 0

    def build(self):
        """
        Build the site.

        Output is rendered into a staging directory and swapped into place only
        after every step succeeded, so a failed build leaves the previous output
        untouched.
        """
        self.logger.info("Starting site build...")
        self.posts_generated = 0
        self.pages_generated = 0

        try:
            self.posts = load_posts(self.content_dir, self.locales, self.default_locale)
            self.route_table = build_route_table(self.posts, self.locales, self.default_locale)
        except BuildError as e:
            self.logger.error(f"Build aborted: {e}")
            raise

        parent_dir = os.path.dirname(os.path.abspath(self.output_dir))
        os.makedirs(parent_dir, exist_ok=True)
        staging_dir = tempfile.mkdtemp(prefix='.disenchanted-', dir=parent_dir)
        os.chmod(staging_dir, 0o755)
        try:
            self.render_site(staging_dir)
            self.publish(staging_dir)
        except Exception as e:
            self.logger.error(f"Build aborted: {e}")
            shutil.rmtree(staging_dir, ignore_errors=True)
            raise

        return self.route_table

    def render_site(self, target_dir):
        """Write every page and generated file into target_dir."""
        renderer = PageRenderer(self.templates_dir, target_dir, self.route_table, self.settings)
        for route in self.route_table:
            renderer.write_route(route)
            if route.post is None:
                self.pages_generated += 1
            else:
                self.posts_generated += 1
        renderer.write_404_page()
        self.logger.info(f"Generated {self.posts_generated} posts and {self.pages_generated} index pages")

        self.copy_assets(target_dir)
        if self.settings.get('minify'):
            self.minify_assets(target_dir)

        if self.site_url:
            self.generate_rss_feed(target_dir)
            self.generate_xml_sitemap(target_dir)
        else:
            self.logger.info("Skipping RSS feed and XML sitemap (no site_url).")

        if self.settings.get('offline', True):
            self.generate_offline_files(target_dir)

    def copy_assets(self, target_dir):
        """Copy the assets directory into <target>/assets."""
        assets_dir = self.assets_dir
        if not assets_dir and os.path.isdir('assets'):
            assets_dir = 'assets'
        if not assets_dir:
            return
        if not os.path.isdir(assets_dir):
            raise FileNotFoundError(f"Assets directory not found: {assets_dir}")

        shutil.copytree(assets_dir, os.path.join(target_dir, 'assets'), dirs_exist_ok=True)
        self.logger.debug(f"Copied assets from {assets_dir}")

    def minify_assets(self, target_dir):
        """Minify CSS and JS assets in place."""
        assets_output_dir = os.path.join(target_dir, 'assets')
        if not os.path.isdir(assets_output_dir):
            return

        for root, _, files in os.walk(assets_output_dir):
            for file in files:
                path = os.path.join(root, file)
                if file.endswith('.css') and not file.endswith('.min.css'):
                    minify = csscompressor.compress
                elif file.endswith('.js') and not file.endswith('.min.js'):
                    minify = rjsmin.jsmin
                else:
                    continue
                with open(path, 'r', encoding='utf-8') as f:
                    source = f.read()
                with open(path, 'w', encoding='utf-8') as f:
                    f.write(minify(source))
                self.logger.debug(f"Minified {os.path.relpath(path, target_dir)}")

    def generate_rss_feed(self, target_dir):
        """Write rss.xml for published default-locale posts."""
        feed_posts = select_feed_posts(self.posts, self.default_locale)
        rss_content = build_rss(
            feed_posts,
            self.site_url,
            title=self.settings.get('feed_title') or self.settings.get('site_title') or '',
            description=self.settings.get('site_description') or '',
            language=self.settings.get('feed_language', 'en-us'),
            limit=self.settings.get('feed_limit'),
        )
        with open(os.path.join(target_dir, 'rss.xml'), 'w', encoding='utf-8') as f:
            f.write(rss_content)
        self.logger.info(f"Generating RSS feed ({len(feed_posts)} published posts)")

    def generate_xml_sitemap(self, target_dir):
        with open(os.path.join(target_dir, 'sitemap.xml'), 'w', encoding='utf-8') as f:
            f.write(build_sitemap(self.route_table, self.site_url))
        self.logger.info("Generating XML sitemap")

    def generate_offline_files(self, target_dir):
        """Write manifest.webmanifest and a service worker precaching the built site."""
        with open(os.path.join(target_dir, WEB_MANIFEST_FILE), 'w', encoding='utf-8') as f:
            json.dump(build_web_manifest(self.settings), f, indent=2, ensure_ascii=False)

        precache = build_precache_manifest(target_dir)
        with open(os.path.join(target_dir, SERVICE_WORKER_FILE), 'w', encoding='utf-8') as f:
            f.write(render_service_worker(DEFAULT_CACHE_RULES, precache))
        self.logger.info(f"Generating service worker ({len(precache)} precached files)")

    def publish(self, staging_dir):
        """
        Replace the output directory with the staged build, keeping dot-files.

        The previous output is moved aside first and restored if any move fails,
        so the published site is never left half-replaced.
        """
        if not os.path.isdir(self.output_dir):
            os.replace(staging_dir, self.output_dir)
            self.logger.debug(f"Published build to {self.output_dir}")
            return

        parent_dir = os.path.dirname(os.path.abspath(self.output_dir))
        previous_dir = tempfile.mkdtemp(prefix='.disenchanted-previous-', dir=parent_dir)
        set_aside = []
        placed = []
        try:
            for item in os.listdir(self.output_dir):
                if item.startswith('.'):
                    # Custom file/directory (.git, .nojekyll) - preserve it
                    continue
                shutil.move(os.path.join(self.output_dir, item), os.path.join(previous_dir, item))
                set_aside.append(item)
            for item in os.listdir(staging_dir):
                shutil.move(os.path.join(staging_dir, item), os.path.join(self.output_dir, item))
                placed.append(item)
        except Exception:
            self.logger.error(f"Publishing failed, restoring previous output in {self.output_dir}")
            for item in placed:
                item_path = os.path.join(self.output_dir, item)
                if os.path.isdir(item_path) and not os.path.islink(item_path):
                    shutil.rmtree(item_path)
                else:
                    os.remove(item_path)
            for item in set_aside:
                shutil.move(os.path.join(previous_dir, item), os.path.join(self.output_dir, item))
            shutil.rmtree(previous_dir, ignore_errors=True)
            raise

        shutil.rmtree(previous_dir)
        shutil.rmtree(staging_dir)
        self.logger.debug(f"Published build to {self.output_dir}")
