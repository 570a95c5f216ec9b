from __future__ import annotations

import logging
import re
import unicodedata
from typing import Sequence

from . import mutations
from .dictionaries import PAGE_TYPES, is_system_page
from .exceptions import ProtectedPageError
from .models.page import Page
from .page_store import PageStore
from .template_repository import TemplateRepository

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG.sub("-", normalized.lower()).strip("-")
    return slug or "page"


class PageDirectory:
    """Page-level operations that run against the store rather than an edit session."""

    def __init__(self, store: PageStore, *, templates: TemplateRepository | None = None) -> None:
        self._store = store
        self._templates = templates

    def list_pages(self) -> Sequence[Page]:
        return self._store.list_pages()

    def create_page(
        self,
        title: str,
        *,
        slug: str | None = None,
        page_type: str = "custom",
        template_id: str | None = None,
    ) -> Page:
        if page_type not in PAGE_TYPES:
            raise ValueError(f"Unknown page type: {page_type}")
        sections: tuple = ()
        if template_id is not None:
            if self._templates is None:
                raise ValueError("No template repository configured")
            sections = mutations.apply_bulk(self._templates.get(template_id).sections)
        page = Page(
            title=title,
            slug=self._unique_slug(slugify(slug or title)),
            page_type=page_type,
            sections=sections,
        )
        created = self._store.create_page(page)
        logger.info(
            "Created page",
            extra={"page_id": created.id, "slug": created.slug, "template_id": template_id},
        )
        return created

    def delete_page(self, page: Page) -> None:
        # System pages are refused before the store is touched.
        if is_system_page(page.slug):
            logger.warning("Refused to delete system page", extra={"slug": page.slug})
            raise ProtectedPageError(page.slug, page.title)
        if page.id is None:
            raise ValueError("Cannot delete a page that was never saved")
        self._store.delete_page(page.id)

    def duplicate_page(self, page: Page) -> Page:
        copy = Page(
            title=f"{page.title} (Copy)",
            slug=self._unique_slug(f"{page.slug}-copy"),
            page_type="custom" if page.page_type == "home" else page.page_type,
            meta_description=page.meta_description,
            meta_keywords=tuple(page.meta_keywords),
            sections=mutations.apply_bulk(page.sections),
            settings=page.settings,
            is_active=page.is_active,
        )
        created = self._store.create_page(copy)
        logger.info("Duplicated page", extra={"source_id": page.id, "page_id": created.id})
        return created

    def _unique_slug(self, base: str) -> str:
        taken = {page.slug for page in self._store.list_pages()}
        if base not in taken:
            return base
        counter = 2
        while f"{base}-{counter}" in taken:
            counter += 1
        return f"{base}-{counter}"


__all__ = ["PageDirectory", "slugify"]
