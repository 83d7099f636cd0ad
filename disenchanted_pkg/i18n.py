"""
Locale grouping for Disenchanted posts.

Partitions posts into the default locale and everything else, and records which
locales each translation group has been translated into.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from .content import Post

# Display names for the supported locales.
LANGUAGE_NAMES = {
    'en': 'English',
    'zh-hans': '简体中文',
}

logger = logging.getLogger('Disenchanted.i18n')


def language_name(language_tag: str) -> str:
    return LANGUAGE_NAMES.get(language_tag, language_tag)


def locale_index_path(language_tag: str, default_locale: str) -> str:
    """Path of a locale's index page: '/' for the default locale, '/<lang>/' otherwise."""
    if language_tag == default_locale:
        return '/'
    return f"/{language_tag}/"


class TranslationIndex:
    """Mapping of translation group -> non-default locales present for that group."""

    def __init__(self):
        self._groups: Dict[str, List[str]] = {}

    def add(self, group: str, language_tag: str) -> None:
        languages = self._groups.setdefault(group, [])
        if language_tag not in languages:
            languages.append(language_tag)

    def translations_for(self, group: Optional[str]) -> List[str]:
        """Translated locales for a group, or an empty list when there are none."""
        if group is None:
            return []
        return list(self._groups.get(group, []))

    def groups(self) -> List[str]:
        return list(self._groups)

    def __contains__(self, group) -> bool:
        return group in self._groups

    def __len__(self) -> int:
        return len(self._groups)


@dataclass
class LocaleGroups:
    default_language_posts: List[Post] = field(default_factory=list)
    other_language_posts: List[Post] = field(default_factory=list)
    translations: TranslationIndex = field(default_factory=TranslationIndex)


def group_by_locale(posts: Iterable[Post], default_locale: str) -> LocaleGroups:
    """
    Split posts by locale in a single pass.

    Default-locale posts and other-locale posts keep their input order. Every
    other-locale post that belongs to a translation group registers its
    language on that group.
    """
    groups = LocaleGroups()
    for post in posts:
        if post.language_tag == default_locale:
            groups.default_language_posts.append(post)
            continue

        groups.other_language_posts.append(post)
        if post.translation_group:
            groups.translations.add(post.translation_group, post.language_tag)

    logger.debug(
        f"Grouped {len(groups.default_language_posts)} {default_locale} posts, "
        f"{len(groups.other_language_posts)} translated posts, "
        f"{len(groups.translations)} translation groups"
    )
    return groups
