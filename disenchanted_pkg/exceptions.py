"""
Build errors raised by the Disenchanted content pipeline.

Every error here is fatal: the build aborts and nothing is published.
"""


class BuildError(Exception):
    """Base class for errors that abort a site build."""


class ContentError(BuildError):
    """A content file could not be turned into a post."""

    def __init__(self, path, message):
        self.path = path
        super().__init__(f"{path}: {message}")


class FrontMatterError(ContentError):
    """Malformed or incomplete front matter."""


class InvalidDateError(ContentError):
    """The front-matter date is missing or unparseable."""


class UnknownLocaleError(ContentError):
    """The post declares a language outside the configured locales."""


class MissingSlugError(BuildError):
    """A post has no resolvable slug, so it cannot be routed."""

    def __init__(self, path):
        self.path = path
        super().__init__(f"{path}: post has no resolvable slug")


class DuplicateRouteError(BuildError):
    """Two routes resolved to the same output path."""

    def __init__(self, route_path, first_source, second_source):
        self.route_path = route_path
        self.first_source = first_source
        self.second_source = second_source
        super().__init__(
            f"Duplicate route {route_path}: {first_source} and {second_source}"
        )
