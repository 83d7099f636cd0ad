"""
Offline support: service worker cache rules, precache manifest and the web app manifest.

Cache rules are a static table evaluated in declaration order. The first rule
whose matcher accepts a request decides its caching strategy; a request that
matches nothing goes to the network uncached.
"""

import hashlib
import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple
from urllib.parse import urlparse

from jinja2 import Environment, FileSystemLoader

CACHE_FIRST = 'cache-first'
STALE_WHILE_REVALIDATE = 'stale-while-revalidate'
NETWORK_FIRST = 'network-first'

# Workbox strategy class for each strategy name.
STRATEGY_CLASSES = {
    CACHE_FIRST: 'CacheFirst',
    STALE_WHILE_REVALIDATE: 'StaleWhileRevalidate',
    NETWORK_FIRST: 'NetworkFirst',
}

PRECACHE_EXTENSIONS = (
    '.html', '.js', '.css', '.png', '.svg', '.jpg', '.jpeg', '.gif', '.webp',
    '.woff', '.woff2', '.ttf', '.eot', '.ico', '.xml',
)
MAX_PRECACHE_FILE_SIZE = 5 * 1024 * 1024
# Already content-hashed, so no revision is needed.
UNREVISIONED_PREFIX = '/assets/'

SERVICE_WORKER_FILE = 'sw.js'
WEB_MANIFEST_FILE = 'manifest.webmanifest'
WORKBOX_CDN = 'https://storage.googleapis.com/workbox-cdn/releases/7.3.0/workbox-sw.js'

GOOGLE_FONT_ORIGINS = ('https://fonts.googleapis.com', 'https://fonts.gstatic.com')

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')

DAY = 24 * 60 * 60

logger = logging.getLogger('Disenchanted.offline')


@dataclass(frozen=True)
class CacheRequest:
    """The parts of an outgoing request the cache rules look at."""

    url: str
    destination: str = ''
    mode: str = 'no-cors'

    @property
    def path(self) -> str:
        return urlparse(self.url).path

    @property
    def origin(self) -> str:
        parsed = urlparse(self.url)
        return f"{parsed.scheme}://{parsed.netloc}"


@dataclass(frozen=True)
class CacheRule:
    name: str
    strategy: str
    cache_name: str
    max_entries: int
    max_age_seconds: int
    matcher: Callable[[CacheRequest], bool]
    js_matcher: str
    statuses: Tuple[int, ...] = (0, 200)

    def __post_init__(self):
        if self.strategy not in STRATEGY_CLASSES:
            raise ValueError(f"Unknown caching strategy: {self.strategy}")

    @property
    def strategy_class(self) -> str:
        return STRATEGY_CLASSES[self.strategy]

    def matches(self, request: CacheRequest) -> bool:
        return bool(self.matcher(request))


def is_static_asset(request: CacheRequest) -> bool:
    return request.destination in ('image', 'font', 'style', 'script')


def is_navigation(request: CacheRequest) -> bool:
    return request.mode == 'navigate'


def is_api_call(request: CacheRequest) -> bool:
    return request.path.startswith('/api/')


def is_google_fonts(request: CacheRequest) -> bool:
    return request.origin in GOOGLE_FONT_ORIGINS


DEFAULT_CACHE_RULES = (
    CacheRule(
        name='static assets',
        strategy=CACHE_FIRST,
        cache_name='static-assets',
        max_entries=100,
        max_age_seconds=30 * DAY,
        matcher=is_static_asset,
        js_matcher=(
            "({ request }) => ['image', 'font', 'style', 'script']"
            ".includes(request.destination)"
        ),
    ),
    CacheRule(
        name='pages',
        strategy=STALE_WHILE_REVALIDATE,
        cache_name='pages',
        max_entries=50,
        max_age_seconds=7 * DAY,
        matcher=is_navigation,
        js_matcher="({ request }) => request.mode === 'navigate'",
    ),
    CacheRule(
        name='api',
        strategy=NETWORK_FIRST,
        cache_name='api-cache',
        max_entries=20,
        max_age_seconds=5 * 60,
        matcher=is_api_call,
        js_matcher="({ url }) => url.pathname.startsWith('/api/')",
    ),
    CacheRule(
        name='google fonts',
        strategy=STALE_WHILE_REVALIDATE,
        cache_name='google-fonts',
        max_entries=30,
        max_age_seconds=365 * DAY,
        matcher=is_google_fonts,
        js_matcher=(
            "({ url }) => url.origin === 'https://fonts.googleapis.com' || "
            "url.origin === 'https://fonts.gstatic.com'"
        ),
    ),
)


def select_rule(rules: Sequence[CacheRule], request: CacheRequest) -> Optional[CacheRule]:
    """Return the first rule matching request, or None to pass it through uncached."""
    for rule in rules:
        if rule.matches(request):
            return rule
    return None


def precache_url(rel_path: str) -> str:
    """Turn 'hello/index.html' into '/hello/' and 'about.html' into '/about'."""
    url = '/' + rel_path.replace(os.sep, '/')
    if url.endswith('.html'):
        url = url[:-len('.html')]
        if url.endswith('/index'):
            url = url[:-len('index')]
    return url


def file_revision(path: str) -> str:
    digest = hashlib.md5()
    with open(path, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b''):
            digest.update(chunk)
    return digest.hexdigest()


def build_precache_manifest(output_dir: str, exclude: Sequence[str] = (SERVICE_WORKER_FILE,)) -> List[Dict[str, Any]]:
    """
    Collect the built files the service worker should precache.

    Args:
        output_dir: Built site directory
        exclude: Root-relative files to leave out (the service worker itself)

    Returns:
        List of {'url', 'revision'} entries in sorted path order
    """
    manifest = []
    for root, dirnames, filenames in os.walk(output_dir):
        dirnames.sort()
        for filename in sorted(filenames):
            if not filename.lower().endswith(PRECACHE_EXTENSIONS):
                continue
            full_path = os.path.join(root, filename)
            rel_path = os.path.relpath(full_path, output_dir).replace(os.sep, '/')
            if rel_path in exclude:
                continue
            size = os.path.getsize(full_path)
            if size > MAX_PRECACHE_FILE_SIZE:
                logger.debug(f"Skipping {rel_path} from precache ({size} bytes)")
                continue

            url = precache_url(rel_path)
            revision = None if url.startswith(UNREVISIONED_PREFIX) else file_revision(full_path)
            manifest.append({'url': url, 'revision': revision})
    return manifest


def render_service_worker(rules: Sequence[CacheRule], manifest: List[Dict[str, Any]]) -> str:
    env = Environment(loader=FileSystemLoader(TEMPLATES_DIR), keep_trailing_newline=True)
    template = env.get_template('sw.js.j2')
    strategies = sorted({rule.strategy_class for rule in rules})
    return template.render(
        workbox_cdn=WORKBOX_CDN,
        strategies=strategies,
        rules=rules,
        manifest_json=json.dumps(manifest, indent=2, ensure_ascii=False),
    )


def build_web_manifest(settings: Dict[str, Any]) -> Dict[str, Any]:
    """Web app manifest from the 'manifest' settings, defaulting names to the site title."""
    manifest = dict(settings.get('manifest') or {})
    site_title = settings.get('site_title') or 'Disenchanted'
    manifest.setdefault('name', site_title)
    manifest.setdefault('short_name', manifest['name'])
    manifest.setdefault('start_url', '/')
    manifest.setdefault('display', 'minimal-ui')
    manifest.setdefault('lang', settings.get('default_locale', 'en'))
    manifest.setdefault('icons', [])
    if settings.get('site_description'):
        manifest.setdefault('description', settings['site_description'])
    return manifest
