from __future__ import annotations

import logging
from typing import Any

from google.api_core import exceptions as gcp_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from .exceptions import PageNotFoundError, PersistenceError
from .models.page import Page
from .models.section import utcnow
from .page_store import canonicalize

logger = logging.getLogger(__name__)


class FirestorePageStore:
    """Firestore-backed page store for production use."""

    COLLECTION_NAME = "pages"

    def __init__(self, project_id: str | None = None, *, client: firestore.Client | None = None) -> None:
        self._db = client or firestore.Client(project=project_id)
        self._collection = self._db.collection(self.COLLECTION_NAME)

    def load_page(self, identifier: str) -> Page:
        """Load a page by document id, falling back to its slug."""
        try:
            doc = self._collection.document(identifier).get()
            if doc.exists:
                return self._from_firestore_dict(doc.id, doc.to_dict())

            query = self._collection.where(filter=FieldFilter("slug", "==", identifier)).limit(1)
            matches = list(query.stream())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc
        for match in matches:
            return self._from_firestore_dict(match.id, match.to_dict())
        raise PageNotFoundError(identifier)

    def persist_page(self, page_id: str, page: Page) -> Page:
        doc_ref = self._collection.document(page_id)
        existing = self._get(doc_ref)
        if not existing.exists:
            raise PageNotFoundError(page_id)

        current = existing.to_dict()
        stored = canonicalize(page, page_id=page_id).model_copy(
            update={
                "published_at": current.get("published_at"),
                "created_at": current.get("created_at") or page.created_at,
            }
        )
        try:
            doc_ref.set(self._to_firestore_dict(stored))
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc

        logger.info(
            "Persisted page",
            extra={"page_id": page_id, "slug": stored.slug, "sections_count": len(stored.sections)},
        )
        return stored

    def publish(self, page_id: str) -> Page:
        now = utcnow()
        return self._update(page_id, {"published_at": now, "is_active": True, "updated_at": now})

    def unpublish(self, page_id: str) -> Page:
        return self._update(page_id, {"published_at": None, "updated_at": utcnow()})

    def delete_page(self, page_id: str) -> None:
        doc_ref = self._collection.document(page_id)
        if not self._get(doc_ref).exists:
            raise PageNotFoundError(page_id)
        try:
            doc_ref.delete()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc
        logger.info("Deleted page", extra={"page_id": page_id})

    def create_page(self, page: Page) -> Page:
        doc_ref = self._collection.document(page.id) if page.id else self._collection.document()
        stored = canonicalize(page, page_id=doc_ref.id)
        try:
            doc_ref.set(self._to_firestore_dict(stored))
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc
        logger.info("Created page", extra={"page_id": doc_ref.id, "slug": stored.slug})
        return stored

    def list_pages(self, *, limit: int = 100) -> list[Page]:
        query = self._collection.order_by("updated_at", direction=firestore.Query.DESCENDING).limit(limit)
        try:
            docs = list(query.stream())
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc
        return [self._from_firestore_dict(doc.id, doc.to_dict()) for doc in docs]

    def _update(self, page_id: str, update_data: dict[str, Any]) -> Page:
        doc_ref = self._collection.document(page_id)
        try:
            doc_ref.update(update_data)
        except gcp_exceptions.NotFound as exc:
            raise PageNotFoundError(page_id) from exc
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc

        logger.info("Updated page", extra={"page_id": page_id, "fields": sorted(update_data)})
        updated_doc = self._get(doc_ref)
        return self._from_firestore_dict(updated_doc.id, updated_doc.to_dict())

    def _get(self, doc_ref: Any) -> Any:
        try:
            return doc_ref.get()
        except gcp_exceptions.GoogleAPICallError as exc:
            raise PersistenceError(str(exc)) from exc

    def _to_firestore_dict(self, page: Page) -> dict[str, Any]:
        data = page.model_dump(mode="json", exclude={"id"})
        # Firestore stores native timestamps.
        data["created_at"] = page.created_at
        data["updated_at"] = page.updated_at
        data["published_at"] = page.published_at
        return data

    def _from_firestore_dict(self, page_id: str, data: dict[str, Any]) -> Page:
        return Page.model_validate({**data, "id": page_id})


__all__ = ["FirestorePageStore"]
