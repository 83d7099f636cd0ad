"""
RSS feed and XML sitemap generation.
"""

import calendar
import re
from datetime import datetime
from email.utils import formatdate
from typing import Iterable, List, Optional
from xml.sax.saxutils import escape

from .content import Post
from .navigation import sort_by_date


def select_feed_posts(posts: Iterable[Post], default_locale: str) -> List[Post]:
    """Published default-locale posts, newest first."""
    return sort_by_date(
        post for post in posts
        if not post.draft and post.language_tag == default_locale
    )


def absolute_url(site_url: str, path: str) -> str:
    return f"{site_url.rstrip('/')}/{path.lstrip('/')}"


def rfc2822(moment: datetime) -> str:
    # Post dates are naive UTC.
    return formatdate(calendar.timegm(moment.timetuple()), usegmt=True)


def _clean_description(text: Optional[str]) -> str:
    text = re.sub(r'<.*?>', '', text or '')  # Remove any HTML tags
    return re.sub(r'\s+', ' ', text).strip()


def build_rss(posts: Iterable[Post], site_url: str, title: str, description: str = '',
              language: str = 'en-us', limit: Optional[int] = None,
              build_date: Optional[datetime] = None) -> str:
    """
    Render an RSS 2.0 document.

    Args:
        posts: Feed posts, already filtered and sorted
        site_url: Site origin used to build absolute links
        title: Channel title
        description: Channel description
        language: Channel language element
        limit: Maximum number of items
        build_date: lastBuildDate, defaults to now
    """
    posts = list(posts)
    if limit is not None:
        posts = posts[:limit]

    last_build = formatdate(usegmt=True) if build_date is None else rfc2822(build_date)

    rss_content = f'''<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
<channel>
<title>{escape(title)}</title>
<link>{escape(absolute_url(site_url, '/'))}</link>
<description>{escape(description)}</description>
<language>{escape(language)}</language>
<lastBuildDate>{last_build}</lastBuildDate>
'''

    for post in posts:
        link = escape(absolute_url(site_url, post.slug))
        rss_content += f'''
<item>
<title>{escape(post.title)}</title>
<link>{link}</link>
<description>{escape(_clean_description(post.description))}</description>
<pubDate>{rfc2822(post.date)}</pubDate>
<guid>{link}</guid>
</item>'''

    rss_content += '''
</channel>
</rss>
'''
    return rss_content


def format_xml_sitemap_entry(url: str, lastmod: datetime) -> str:
    """Format a single sitemap entry."""
    return f'''<url>
<loc>{escape(url)}</loc>
<lastmod>{lastmod.strftime('%Y-%m-%d')}</lastmod>
</url>
'''


def build_sitemap(routes, site_url: str, build_date: Optional[datetime] = None) -> str:
    """List every route under site_url; post routes use the post date as lastmod."""
    build_date = build_date or datetime.now()

    sitemap_content = '''<?xml version="1.0" encoding="UTF-8"?>
<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">
'''
    for route in routes:
        lastmod = route.post.date if route.post is not None else build_date
        sitemap_content += format_xml_sitemap_entry(absolute_url(site_url, route.path), lastmod)

    sitemap_content += '</urlset>\n'
    return sitemap_content
