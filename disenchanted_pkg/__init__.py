"""
Disenchanted - a bilingual static blog builder.

Disenchanted reads markdown/MDX posts with YAML front matter, links each post
to its translations, orders posts for older/newer navigation, and renders the
whole site with Jinja2 templates, together with an RSS feed, a sitemap and an
offline service worker.
"""

__version__ = "1.0.0"

from .core import SiteBuilder
from .routes import Route, build_route_table

__all__ = ['SiteBuilder', 'Route', 'build_route_table']
