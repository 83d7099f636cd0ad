"""
Older/newer post navigation for the default-locale blog.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .content import Post


@dataclass(frozen=True)
class NavigationLink:
    """previous points at the older neighbour, next at the newer one."""

    previous: Optional[Post] = None
    next: Optional[Post] = None


@dataclass(frozen=True)
class SequencedPost:
    post: Post
    navigation: NavigationLink


def sort_by_date(posts: Iterable[Post]) -> List[Post]:
    """Newest first. Posts sharing a date keep their input order."""
    return sorted(posts, key=lambda post: post.date, reverse=True)


def sequence_posts(posts: Iterable[Post]) -> List[SequencedPost]:
    """Sort posts newest first and attach each one's previous/next neighbours."""
    ordered = sort_by_date(posts)
    last = len(ordered) - 1

    sequenced = []
    for index, post in enumerate(ordered):
        navigation = NavigationLink(
            previous=ordered[index + 1] if index < last else None,
            next=ordered[index - 1] if index > 0 else None,
        )
        sequenced.append(SequencedPost(post, navigation))
    return sequenced
