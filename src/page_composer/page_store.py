from __future__ import annotations

import logging
import threading
import uuid
from typing import Protocol, Sequence

from . import mutations
from .exceptions import PageNotFoundError
from .models.page import Page
from .models.section import utcnow

logger = logging.getLogger(__name__)


class PageStore(Protocol):
    def load_page(self, identifier: str) -> Page:
        ...

    def persist_page(self, page_id: str, page: Page) -> Page:
        ...

    def publish(self, page_id: str) -> Page:
        ...

    def unpublish(self, page_id: str) -> Page:
        ...

    def delete_page(self, page_id: str) -> None:
        ...

    def create_page(self, page: Page) -> Page:
        ...

    def list_pages(self) -> Sequence[Page]:
        ...


def canonicalize(page: Page, *, page_id: str) -> Page:
    """Return the copy a store keeps: fixed id, dense positions, fresh timestamp."""
    now = utcnow()
    sections = mutations.renumber(page.sections)
    return page.model_copy(update={"id": page_id, "sections": sections, "updated_at": now})


class InMemoryPageStore:
    """Thread-safe page store for development and tests."""

    def __init__(self, pages: Sequence[Page] = ()) -> None:
        self._pages: dict[str, Page] = {}
        self._lock = threading.Lock()
        for page in pages:
            self.create_page(page)

    def load_page(self, identifier: str) -> Page:
        with self._lock:
            return self._find(identifier)

    def persist_page(self, page_id: str, page: Page) -> Page:
        with self._lock:
            existing = self._find(page_id)
            stored = canonicalize(page, page_id=page_id).model_copy(
                update={
                    "published_at": existing.published_at,
                    "created_at": existing.created_at,
                }
            )
            self._pages[page_id] = stored
            logger.info(
                "Persisted page",
                extra={"page_id": page_id, "sections_count": len(stored.sections)},
            )
            return stored

    def publish(self, page_id: str) -> Page:
        with self._lock:
            page = self._find(page_id)
            now = utcnow()
            page = page.model_copy(update={"published_at": now, "is_active": True, "updated_at": now})
            self._pages[page_id] = page
            return page

    def unpublish(self, page_id: str) -> Page:
        with self._lock:
            page = self._find(page_id)
            page = page.model_copy(update={"published_at": None, "updated_at": utcnow()})
            self._pages[page_id] = page
            return page

    def delete_page(self, page_id: str) -> None:
        with self._lock:
            page = self._find(page_id)
            del self._pages[page.id]  # type: ignore[arg-type]
            logger.info("Deleted page", extra={"page_id": page.id, "slug": page.slug})

    def create_page(self, page: Page) -> Page:
        with self._lock:
            page_id = page.id or self._generate_id()
            stored = canonicalize(page, page_id=page_id)
            self._pages[page_id] = stored
            return stored

    def list_pages(self) -> Sequence[Page]:
        with self._lock:
            return sorted(self._pages.values(), key=lambda page: page.updated_at, reverse=True)

    def _find(self, identifier: str) -> Page:
        page = self._pages.get(identifier)
        if page is not None:
            return page
        for candidate in self._pages.values():
            if candidate.slug == identifier:
                return candidate
        raise PageNotFoundError(identifier)

    def _generate_id(self) -> str:
        return f"page_{uuid.uuid4().hex[:12]}"


__all__ = ["InMemoryPageStore", "PageStore", "canonicalize"]
