from __future__ import annotations


class PageComposerError(Exception):
    """Base class for errors raised by the page composer."""


class PageNotFoundError(PageComposerError):
    """The page does not exist (or no longer exists) in the store."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Page not found: {identifier}")
        self.identifier = identifier


class PersistenceError(PageComposerError):
    """A store call failed; the caller may retry with the latest draft."""


class ProtectedPageError(PageComposerError):
    """The operation is refused for a system page."""

    def __init__(self, slug: str, title: str | None = None) -> None:
        label = title or slug
        super().__init__(
            f'"{label}" is a system page and cannot be deleted. You can only edit system pages.'
        )
        self.slug = slug


class ImportFormatError(PageComposerError):
    """The imported document is not a page export."""


class SessionClosedError(PageComposerError):
    """The edit session was closed or its page is gone."""


__all__ = [
    "ImportFormatError",
    "PageComposerError",
    "PageNotFoundError",
    "PersistenceError",
    "ProtectedPageError",
    "SessionClosedError",
]
