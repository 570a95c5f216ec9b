import json
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from page_composer.api import create_app
from page_composer.exceptions import PersistenceError
from page_composer.models.catalog import FormCatalogEntry
from page_composer.models.page import Page
from page_composer.page_store import InMemoryPageStore
from page_composer.template_repository import LocalTemplateRepository, StaticFormCatalog


@pytest.fixture()
def store():
    return InMemoryPageStore([Page(id="home-id", slug="home", title="Home", page_type="home")])


@pytest.fixture()
def client(store):
    forms = StaticFormCatalog(
        [
            FormCatalogEntry(id="f2", title="Zeta", is_active=True),
            FormCatalogEntry(id="f1", title="Alpha", is_active=False),
        ]
    )
    templates = LocalTemplateRepository(base_path=Path("data/templates"))
    return TestClient(create_app(store, templates=templates, forms=forms))


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_create_update_and_fetch_page(client):
    created = client.post("/v1/pages", json={"title": "About Us"})
    assert created.status_code == 201
    page = created.json()
    assert page["slug"] == "about-us"

    sections = [
        {"id": "b", "type": "cta", "position": 1, "config": {"buttonText": "Go"}},
        {"id": "a", "type": "text", "position": 0, "title": "Intro"},
    ]
    updated = client.put(f"/v1/pages/{page['id']}", json={"sections": sections, "settings": {"textColor": "#111"}})
    assert updated.status_code == 200
    body = updated.json()
    assert [(item["id"], item["position"]) for item in body["sections"]] == [("a", 0), ("b", 1)]
    assert body["settings"]["textColor"] == "#111"

    fetched = client.get("/v1/pages/about-us").json()
    assert fetched["id"] == page["id"]

    listing = client.get("/v1/pages").json()
    assert {item["slug"] for item in listing} == {"home", "about-us"}


def test_duplicate_section_ids_are_rejected(client):
    sections = [{"id": "a", "type": "text", "position": 0}, {"id": "a", "type": "cta", "position": 1}]

    response = client.put("/v1/pages/home-id", json={"sections": sections})

    assert response.status_code == 422


def test_missing_page_is_404(client):
    assert client.get("/v1/pages/nope").status_code == 404


def test_system_page_delete_is_forbidden(client, store):
    response = client.delete("/v1/pages/home-id")

    assert response.status_code == 403
    assert "system page" in response.json()["detail"]
    assert store.load_page("home-id")


def test_delete_regular_page(client):
    page = client.post("/v1/pages", json={"title": "Temp"}).json()

    assert client.delete(f"/v1/pages/{page['id']}").status_code == 204
    assert client.get(f"/v1/pages/{page['id']}").status_code == 404


def test_publish_controls_public_route(client):
    client.put(
        "/v1/pages/home-id",
        json={"sections": [{"id": "w", "type": "welcome", "position": 0, "title": "Hello there"}]},
    )
    assert client.get("/pages/home").status_code == 404

    published = client.post("/v1/pages/home-id/publish").json()
    assert published["publishedAt"] is not None

    response = client.get("/pages/home")
    assert response.status_code == 200
    assert "Hello there" in response.text

    client.post("/v1/pages/home-id/unpublish")
    assert client.get("/pages/home").status_code == 404


def test_export_and_import_round_trip(client):
    client.put("/v1/pages/home-id", json={"sections": [{"id": "t", "type": "text", "position": 0, "title": "T"}]})

    exported = client.get("/v1/pages/home-id/export")
    assert exported.headers["content-disposition"] == 'attachment; filename="home-config.json"'
    document = json.loads(exported.text)

    target = client.post("/v1/pages", json={"title": "Copy Target"}).json()
    imported = client.post(f"/v1/pages/{target['id']}/import", json=document)
    assert imported.status_code == 200
    sections = imported.json()["sections"]
    assert [item["title"] for item in sections] == ["T"]
    assert sections[0]["id"] != "t"


def test_import_without_sections_is_422(client):
    response = client.post("/v1/pages/home-id/import", json={"page": {}})

    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid configuration file format"


def test_duplicate_page_route(client):
    response = client.post("/v1/pages/home-id/duplicate")

    assert response.status_code == 201
    assert response.json()["slug"] == "home-copy"


def test_preview_renders_inactive_sections(client):
    client.put(
        "/v1/pages/home-id",
        json={"sections": [{"id": "h", "type": "text", "position": 0, "title": "Hidden bit", "isActive": False}]},
    )

    response = client.get("/v1/pages/home-id/preview")

    assert response.status_code == 200
    assert "Hidden bit" in response.text


def test_forms_listing_puts_active_first(client):
    assert [form["id"] for form in client.get("/v1/forms").json()] == ["f2", "f1"]


def test_templates_listing_and_create_from_template(client):
    templates = client.get("/v1/templates").json()
    assert {template["id"] for template in templates} >= {"home", "about"}

    created = client.post("/v1/pages", json={"title": "Landing", "templateId": "about"})
    assert created.status_code == 201
    assert [item["type"] for item in created.json()["sections"]] == ["text", "image-gallery", "cta"]

    missing = client.post("/v1/pages", json={"title": "Nope", "templateId": "nope"})
    assert missing.status_code == 404


def test_section_palette_groups_addable_types(client):
    palette = client.get("/v1/sections/palette").json()

    assert [group["category"] for group in palette] == ["content", "media", "dynamic", "forms"]
    media = next(group for group in palette if group["category"] == "media")
    assert "image-gallery" in [item["type"] for item in media["types"]]


def test_unknown_page_type_is_422(client):
    response = client.post("/v1/pages", json={"title": "X", "pageType": "blog"})

    assert response.status_code == 422


def test_storage_outage_is_a_bad_gateway():
    class UnavailableStore(InMemoryPageStore):
        def load_page(self, identifier):
            raise PersistenceError("Firestore unavailable")

    response = TestClient(create_app(UnavailableStore())).get("/v1/pages/home")

    assert response.status_code == 502
