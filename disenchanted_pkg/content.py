"""
Content store for Disenchanted.

Reads markdown/MDX files with YAML front matter from the content directory and
turns each one into an immutable Post record.
"""

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, date, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import yaml

from .exceptions import ContentError, FrontMatterError, InvalidDateError, UnknownLocaleError

CONTENT_EXTENSIONS = ('.md', '.mdx')

DATE_FORMATS = ['%Y-%m-%dT%H:%M:%S', '%Y-%m-%d', '%b %d, %Y']

FRONT_MATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)(?:\r?\n)?^---[ \t]*$\r?\n?', re.S | re.M)

logger = logging.getLogger('Disenchanted.content')


@dataclass(frozen=True)
class Post:
    """One published or draft content unit."""

    slug: Optional[str]
    language_tag: str
    translation_group: Optional[str]
    title: str
    date: datetime
    description: Optional[str] = None
    draft: bool = False
    tags: Tuple[str, ...] = ()
    body: str = ''
    source_path: str = ''


def parse_front_matter(text: str, path: str) -> Tuple[Dict[str, Any], str]:
    """
    Split a content file into its front-matter mapping and body.

    Args:
        text: Raw file contents
        path: File path, used in error messages

    Returns:
        Tuple of (metadata dict, stripped body)
    """
    text = text.lstrip('\ufeff')
    match = FRONT_MATTER_RE.match(text)
    if not match:
        raise FrontMatterError(path, "missing front matter header")

    try:
        metadata = yaml.safe_load(match.group(1))
    except yaml.YAMLError as e:
        raise FrontMatterError(path, f"invalid YAML front matter: {e}") from e
    except ValueError as e:
        # PyYAML raises ValueError for impossible timestamps such as 2020-02-30.
        raise InvalidDateError(path, f"invalid date in front matter: {e}") from e

    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise FrontMatterError(path, "front matter must be a mapping")

    return metadata, text[match.end():].strip()


def parse_date(value: Any, path: str) -> datetime:
    """Parse a front-matter date into a naive UTC datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        parsed = None
        text = value.strip()
        for fmt in DATE_FORMATS:
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
        if parsed is None:
            try:
                parsed = datetime.fromisoformat(text.replace('Z', '+00:00'))
            except ValueError:
                raise InvalidDateError(path, f"unparseable date {value!r}") from None
    elif value is None:
        raise InvalidDateError(path, "missing date")
    else:
        raise InvalidDateError(path, f"unsupported date value {value!r}")

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def split_language_suffix(stem: str, locales: Sequence[str]) -> Tuple[str, Optional[str]]:
    """Split 'index.zh-hans' into ('index', 'zh-hans') when the suffix is a known locale."""
    if '.' in stem:
        base, suffix = stem.rsplit('.', 1)
        if suffix in locales:
            return base, suffix
    return stem, None


def build_slug(name: Optional[str], language_tag: str, default_locale: str) -> Optional[str]:
    """Default-locale slugs are unprefixed, others live under /<lang>/."""
    if not name:
        return None
    if language_tag == default_locale:
        return f"/{name}/"
    return f"/{language_tag}/{name}/"


def normalize_tags(value: Any, path: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        raise FrontMatterError(path, "tags must be a list of strings")

    tags = []
    for tag in value:
        tag = str(tag).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def load_post(path: str, content_dir: str, locales: Sequence[str], default_locale: str) -> Post:
    """
    Read a single content file into a Post.

    Raises:
        ContentError: file unreadable
        FrontMatterError: malformed front matter, missing title, bad field types
        InvalidDateError: missing or unparseable date
        UnknownLocaleError: lang not among the configured locales
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            text = f.read()
    except (IOError, OSError) as e:
        raise ContentError(path, f"failed to read content file: {e}") from e

    metadata, body = parse_front_matter(text, path)

    rel_path = os.path.relpath(path, content_dir)
    rel_dir, filename = os.path.split(rel_path)
    rel_dir = rel_dir.replace(os.sep, '/')
    base, file_lang = split_language_suffix(os.path.splitext(filename)[0], locales)

    language_tag = metadata.get('lang') or file_lang or default_locale
    language_tag = str(language_tag)
    if language_tag not in locales:
        raise UnknownLocaleError(
            path, f"unknown locale {language_tag!r} (configured: {', '.join(locales)})"
        )

    if base == 'index' and rel_dir:
        name = rel_dir
    elif rel_dir:
        name = f"{rel_dir}/{base}"
    else:
        name = base

    # An explicit blank slug stays unresolved and is rejected at routing time.
    if 'slug' in metadata:
        override = metadata['slug']
        name = str(override).strip().strip('/') if override is not None else None
        if name and ('\\' in name or any(part in ('.', '..') for part in name.split('/'))):
            raise FrontMatterError(path, f"slug {override!r} must not contain '.' or '..' segments or backslashes")

    title = metadata.get('title')
    if not isinstance(title, str) or not title.strip():
        raise FrontMatterError(path, "front matter requires a 'title' string")

    draft = metadata.get('draft', False)
    if draft is None:
        draft = False
    if not isinstance(draft, bool):
        raise FrontMatterError(path, "'draft' must be true or false")

    description = metadata.get('description')

    return Post(
        slug=build_slug(name, language_tag, default_locale),
        language_tag=language_tag,
        translation_group=os.path.basename(rel_dir) if rel_dir else None,
        title=title.strip(),
        date=parse_date(metadata.get('date'), path),
        description=str(description) if description is not None else None,
        draft=draft,
        tags=normalize_tags(metadata.get('tags'), path),
        body=body,
        source_path=path,
    )


def discover_content_files(content_dir: str) -> List[str]:
    """Find markdown/MDX files under content_dir in sorted, deterministic order."""
    if not os.path.isdir(content_dir):
        raise FileNotFoundError(f"Content directory not found: {content_dir}")

    content_files = []
    for root, dirnames, filenames in os.walk(content_dir):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith('.'))
        for filename in sorted(filenames):
            if filename.startswith('.'):
                continue
            if filename.lower().endswith(CONTENT_EXTENSIONS):
                content_files.append(os.path.join(root, filename))
    return content_files


def load_posts(content_dir: str, locales: Sequence[str], default_locale: str) -> List[Post]:
    """Load every post under content_dir. The first bad file aborts the load."""
    posts = []
    for path in discover_content_files(content_dir):
        post = load_post(path, content_dir, locales, default_locale)
        logger.debug(f"Loaded {post.language_tag} post {post.slug} from {path}")
        posts.append(post)

    logger.info(f"Loaded {len(posts)} posts from {content_dir}")
    return posts
