from unittest.mock import MagicMock

import pytest
from google.api_core import exceptions as gcp_exceptions

from page_composer.exceptions import PageNotFoundError, PersistenceError
from page_composer.firestore_page_store import FirestorePageStore
from page_composer.models.page import Page
from page_composer.models.section import Section


def make_store(exists: bool = False, data: dict | None = None):
    client = MagicMock()
    collection = client.collection.return_value
    doc_ref = collection.document.return_value
    snapshot = MagicMock(exists=exists, id="page_1")
    snapshot.to_dict.return_value = data or {}
    doc_ref.get.return_value = snapshot
    collection.where.return_value.limit.return_value.stream.return_value = []
    return FirestorePageStore(client=client), client, doc_ref


def test_uses_pages_collection():
    _, client, _ = make_store()

    client.collection.assert_called_once_with("pages")


def test_load_missing_page_raises():
    store, _, _ = make_store(exists=False)

    with pytest.raises(PageNotFoundError):
        store.load_page("missing")


def test_load_by_id():
    store, _, _ = make_store(exists=True, data={"slug": "home", "title": "Home"})

    page = store.load_page("page_1")

    assert page.id == "page_1"
    assert page.slug == "home"


def test_persist_writes_canonical_copy():
    store, _, doc_ref = make_store(exists=True, data={"slug": "home", "published_at": None})
    sections = (
        Section(id="b", type="cta", position=5),
        Section(id="a", type="text", position=9),
    )

    stored = store.persist_page("page_1", Page(slug="home", sections=sections))

    assert stored.id == "page_1"
    assert [section.position for section in stored.sections] == [0, 1]
    written = doc_ref.set.call_args.args[0]
    assert "id" not in written
    assert [section["id"] for section in written["sections"]] == ["b", "a"]


def test_persist_missing_page_raises():
    store, _, doc_ref = make_store(exists=False)

    with pytest.raises(PageNotFoundError):
        store.persist_page("gone", Page(slug="x"))
    doc_ref.set.assert_not_called()


def test_publish_maps_api_errors():
    store, _, doc_ref = make_store(exists=True)
    doc_ref.update.side_effect = gcp_exceptions.NotFound("no doc")
    with pytest.raises(PageNotFoundError):
        store.publish("page_1")

    doc_ref.update.side_effect = gcp_exceptions.ServiceUnavailable("down")
    with pytest.raises(PersistenceError):
        store.publish("page_1")


def test_read_and_write_failures_become_persistence_errors():
    store, client, doc_ref = make_store(exists=True, data={"slug": "home"})
    doc_ref.get.side_effect = gcp_exceptions.ServiceUnavailable("down")

    with pytest.raises(PersistenceError):
        store.load_page("page_1")
    with pytest.raises(PersistenceError):
        store.persist_page("page_1", Page(slug="home"))
    with pytest.raises(PersistenceError):
        store.delete_page("page_1")

    doc_ref.set.side_effect = gcp_exceptions.ServiceUnavailable("down")
    with pytest.raises(PersistenceError):
        store.create_page(Page(id="page_2", slug="about"))

    query = client.collection.return_value.order_by.return_value.limit.return_value
    query.stream.side_effect = gcp_exceptions.DeadlineExceeded("slow")
    with pytest.raises(PersistenceError):
        store.list_pages()
