"""
Route generation for Disenchanted.

The build runs an explicit pipeline over the loaded posts:

    group_by_locale -> sequence_posts -> generate_routes

The result is a flat list of Route objects, one per page the site publishes.
Any error aborts the whole table; callers never see a partial route list.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

from .content import Post
from .exceptions import DuplicateRouteError, MissingSlugError, UnknownLocaleError
from .i18n import LocaleGroups, TranslationIndex, group_by_locale, locale_index_path
from .navigation import SequencedPost, sequence_posts

INDEX_TEMPLATE = 'index.html'
POST_TEMPLATE = 'post.html'

logger = logging.getLogger('Disenchanted.routes')


@dataclass
class Route:
    path: str
    template: str
    context: Dict[str, Any] = field(default_factory=dict)
    post: Optional[Post] = None

    @property
    def source(self) -> str:
        if self.post is not None:
            return self.post.source_path
        return f"<{self.template} {self.context.get('lang_key')}>"


@dataclass
class RouteTable:
    """Generated routes plus the intermediate products they were built from."""

    routes: List[Route]
    groups: LocaleGroups
    sequenced: List[SequencedPost]

    def __iter__(self):
        return iter(self.routes)

    def __len__(self) -> int:
        return len(self.routes)

    @property
    def paths(self) -> List[str]:
        return [route.path for route in self.routes]


def _require_slug(post: Post) -> str:
    if not post.slug:
        raise MissingSlugError(post.source_path)
    return post.slug


def _check_locale(post: Post, locales: Sequence[str]) -> None:
    if post.language_tag not in locales:
        raise UnknownLocaleError(post.source_path, f"unknown locale {post.language_tag!r}")


def generate_routes(
    locales: Sequence[str],
    default_locale: str,
    sequenced: Iterable[SequencedPost],
    other_posts: Iterable[Post],
    translations: TranslationIndex,
) -> List[Route]:
    """
    Build the ordered route list.

    Args:
        locales: Configured locales, default included
        default_locale: Locale whose pages are unprefixed
        sequenced: Default-locale posts with their navigation links
        other_posts: Posts in every other locale
        translations: Translation group -> translated locales

    Returns:
        Index routes, then default-locale post routes, then translated post routes

    Raises:
        MissingSlugError: a post has no resolvable slug
        DuplicateRouteError: two routes share a path
        UnknownLocaleError: a post's locale is not configured
    """
    routes = []

    for lang in locales:
        routes.append(Route(
            path=locale_index_path(lang, default_locale),
            template=INDEX_TEMPLATE,
            context={'lang_key': lang},
        ))

    for item in sequenced:
        post = item.post
        _check_locale(post, locales)
        slug = _require_slug(post)
        routes.append(Route(
            path=slug,
            template=POST_TEMPLATE,
            context={
                'slug': slug,
                'lang_key': post.language_tag,
                'translations': translations.translations_for(post.translation_group),
                'previous': item.navigation.previous,
                'next': item.navigation.next,
            },
            post=post,
        ))

    # Translated posts link back to their original, not sideways.
    for post in other_posts:
        _check_locale(post, locales)
        slug = _require_slug(post)
        routes.append(Route(
            path=slug,
            template=POST_TEMPLATE,
            context={'slug': slug, 'lang_key': post.language_tag},
            post=post,
        ))

    seen: Dict[str, Route] = {}
    for route in routes:
        if route.path in seen:
            raise DuplicateRouteError(route.path, seen[route.path].source, route.source)
        seen[route.path] = route

    return routes


def build_route_table(posts: Iterable[Post], locales: Sequence[str], default_locale: str) -> RouteTable:
    """Run the grouper, sequencer and route generator over the full post set."""
    groups = group_by_locale(posts, default_locale)
    sequenced = sequence_posts(groups.default_language_posts)
    try:
        routes = generate_routes(
            locales,
            default_locale,
            sequenced,
            groups.other_language_posts,
            groups.translations,
        )
    except (MissingSlugError, DuplicateRouteError, UnknownLocaleError) as e:
        logger.error(f"Route generation aborted: {e}")
        raise

    logger.info(f"Generated {len(routes)} routes")
    return RouteTable(routes=routes, groups=groups, sequenced=sequenced)
