import json

import pytest

from page_composer.exceptions import PageNotFoundError, ProtectedPageError
from page_composer.models.page import Page
from page_composer.page_directory import PageDirectory, slugify
from page_composer.page_store import InMemoryPageStore
from page_composer.template_repository import LocalTemplateRepository


class CountingStore(InMemoryPageStore):
    def __init__(self, pages=()):
        self.deletes: list[str] = []
        super().__init__(pages)

    def delete_page(self, page_id):
        self.deletes.append(page_id)
        super().delete_page(page_id)


def test_slugify():
    assert slugify("About Us!") == "about-us"
    assert slugify("Café Menu") == "cafe-menu"
    assert slugify("***") == "page"


def test_system_pages_cannot_be_deleted_and_store_is_untouched():
    store = CountingStore([Page(slug="home", title="Home"), Page(slug="in-the-spotlight", title="Spotlight")])
    directory = PageDirectory(store)

    for slug in ("home", "in-the-spotlight"):
        page = store.load_page(slug)
        with pytest.raises(ProtectedPageError, match="is a system page and cannot be deleted"):
            directory.delete_page(page)

    assert store.deletes == []
    assert len(store.list_pages()) == 2


def test_regular_page_is_deleted():
    store = CountingStore([Page(slug="about", title="About")])
    directory = PageDirectory(store)

    page = store.load_page("about")
    directory.delete_page(page)

    assert store.deletes == [page.id]
    with pytest.raises(PageNotFoundError):
        store.load_page("about")


def test_create_page_makes_unique_slug():
    store = InMemoryPageStore([Page(slug="about", title="About")])
    directory = PageDirectory(store)

    created = directory.create_page("About")

    assert created.slug == "about-2"
    assert created.id is not None


def test_create_page_from_template(tmp_path):
    (tmp_path / "landing.json").write_text(
        json.dumps({"name": "Landing", "sections": [{"type": "welcome"}, {"type": "cta"}]}),
        encoding="utf-8",
    )
    directory = PageDirectory(InMemoryPageStore(), templates=LocalTemplateRepository(base_path=tmp_path))

    created = directory.create_page("Launch", template_id="landing")

    assert [(section.type, section.position) for section in created.sections] == [("welcome", 0), ("cta", 1)]


def test_duplicate_page():
    store = InMemoryPageStore()
    source = store.create_page(Page(slug="home", title="Home", page_type="home"))
    directory = PageDirectory(store)

    copy = directory.duplicate_page(source)

    assert copy.slug == "home-copy"
    assert copy.title == "Home (Copy)"
    assert copy.page_type == "custom"
    assert copy.id != source.id
    assert not copy.is_published
