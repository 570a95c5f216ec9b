from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Sequence

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from . import mutations, transfer
from .dictionaries import PALETTE_CATEGORIES, palette_by_category
from .exceptions import ImportFormatError, PageNotFoundError, PersistenceError, ProtectedPageError
from .logging_config import set_trace_id
from .models.page import Page, PageSettings
from .models.render import RenderMode
from .models.section import Section
from .page_directory import PageDirectory
from .page_store import PageStore
from .presentation import HtmlPresenter
from .renderer import SectionRenderer
from .template_repository import FormCatalog, StaticFormCatalog, TemplateRepository, selectable_forms

logger = logging.getLogger(__name__)


class _Request(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreatePageRequest(_Request):
    title: str = Field(min_length=1)
    slug: str | None = None
    page_type: str = "custom"
    template_id: str | None = None


class UpdatePageRequest(_Request):
    title: str | None = None
    meta_description: str | None = None
    meta_keywords: list[str] | None = None
    sections: list[dict[str, Any]] | None = None
    settings: dict[str, Any] | None = None


class PageSummary(_Request):
    id: str
    slug: str
    title: str
    page_type: str
    is_published: bool
    sections_count: int

    @staticmethod
    def from_page(page: Page) -> "PageSummary":
        return PageSummary(
            id=page.id or "",
            slug=page.slug,
            title=page.title,
            page_type=page.page_type,
            is_published=page.is_published,
            sections_count=len(page.sections),
        )


def _page_response(page: Page, status_code: int = 200) -> JSONResponse:
    return JSONResponse(page.to_wire(), status_code=status_code)


def _apply_update(page: Page, request: UpdatePageRequest) -> Page:
    changes: dict[str, Any] = {}
    if request.title is not None:
        changes["title"] = request.title
    if request.meta_description is not None:
        changes["meta_description"] = request.meta_description
    if request.meta_keywords is not None:
        changes["meta_keywords"] = tuple(request.meta_keywords)
    if request.sections is not None:
        sections = [Section.model_validate(item) for item in request.sections]
        if not mutations.has_unique_ids(sections):
            raise HTTPException(status_code=422, detail="Section ids must be unique")
        changes["sections"] = mutations.renumber(sorted(sections, key=lambda section: section.position))
    if request.settings is not None:
        changes["settings"] = PageSettings.model_validate({**page.settings.model_dump(by_alias=True), **request.settings})
    return page.model_copy(update=changes)


def create_app(
    store: PageStore,
    *,
    templates: TemplateRepository | None = None,
    forms: FormCatalog | None = None,
    renderer: SectionRenderer | None = None,
    presenter: HtmlPresenter | None = None,
) -> FastAPI:
    app = FastAPI(title="Page Composer API", version="0.1.0")
    directory = PageDirectory(store, templates=templates)
    form_catalog = forms or StaticFormCatalog()
    section_renderer = renderer or SectionRenderer()
    html = presenter or HtmlPresenter()

    @app.middleware("http")
    async def trace_requests(request: Request, call_next):
        header = request.headers.get("X-Cloud-Trace-Context", "")
        set_trace_id(header.split("/")[0] or str(uuid.uuid4()))
        return await call_next(request)

    @app.exception_handler(PageNotFoundError)
    async def page_not_found(request: Request, exc: PageNotFoundError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=404)

    @app.exception_handler(ProtectedPageError)
    async def protected_page(request: Request, exc: ProtectedPageError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=403)

    @app.exception_handler(ImportFormatError)
    async def bad_import(request: Request, exc: ImportFormatError) -> JSONResponse:
        return JSONResponse({"detail": str(exc)}, status_code=422)

    @app.exception_handler(PersistenceError)
    async def persistence_failed(request: Request, exc: PersistenceError) -> JSONResponse:
        logger.error("Store call failed", extra={"path": request.url.path, "error": str(exc)})
        return JSONResponse({"detail": str(exc)}, status_code=502)

    @app.get("/health")
    async def healthcheck() -> JSONResponse:
        return JSONResponse({"status": "ok"})

    @app.get("/v1/pages", response_model=list[PageSummary])
    async def list_pages() -> Sequence[PageSummary]:
        pages = await asyncio.to_thread(directory.list_pages)
        return [PageSummary.from_page(page) for page in pages]

    @app.post("/v1/pages")
    async def create_page(request: CreatePageRequest) -> JSONResponse:
        try:
            page = await asyncio.to_thread(
                directory.create_page,
                request.title,
                slug=request.slug,
                page_type=request.page_type,
                template_id=request.template_id,
            )
        except FileNotFoundError:
            raise HTTPException(status_code=404, detail="Template not found")
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc))
        return _page_response(page, status_code=201)

    @app.get("/v1/pages/{page_id}")
    async def get_page(page_id: str) -> JSONResponse:
        return _page_response(await asyncio.to_thread(store.load_page, page_id))

    @app.put("/v1/pages/{page_id}")
    async def update_page(page_id: str, request: UpdatePageRequest) -> JSONResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        try:
            updated = _apply_update(page, request)
        except ValidationError as exc:
            raise HTTPException(status_code=422, detail=exc.errors(include_url=False, include_context=False))
        return _page_response(await asyncio.to_thread(store.persist_page, page.id, updated))

    @app.post("/v1/pages/{page_id}/publish")
    async def publish_page(page_id: str) -> JSONResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        return _page_response(await asyncio.to_thread(store.publish, page.id))

    @app.post("/v1/pages/{page_id}/unpublish")
    async def unpublish_page(page_id: str) -> JSONResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        return _page_response(await asyncio.to_thread(store.unpublish, page.id))

    @app.delete("/v1/pages/{page_id}", status_code=204)
    async def delete_page(page_id: str) -> Response:
        page = await asyncio.to_thread(store.load_page, page_id)
        await asyncio.to_thread(directory.delete_page, page)
        return Response(status_code=204)

    @app.post("/v1/pages/{page_id}/duplicate")
    async def duplicate_page(page_id: str) -> JSONResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        return _page_response(await asyncio.to_thread(directory.duplicate_page, page), status_code=201)

    @app.get("/v1/pages/{page_id}/export")
    async def export_page(page_id: str) -> Response:
        page = await asyncio.to_thread(store.load_page, page_id)
        return Response(
            content=transfer.export_json(page),
            media_type="application/json",
            headers={"Content-Disposition": f'attachment; filename="{transfer.export_filename(page)}"'},
        )

    @app.post("/v1/pages/{page_id}/import")
    async def import_page(
        page_id: str,
        document: dict[str, Any] = Body(...),
        include_settings: bool = False,
    ) -> JSONResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        updated = transfer.apply_document(page, document, include_settings=include_settings)
        return _page_response(await asyncio.to_thread(store.persist_page, page.id, updated))

    @app.get("/v1/pages/{page_id}/preview", response_class=HTMLResponse)
    async def preview_page(page_id: str) -> HTMLResponse:
        page = await asyncio.to_thread(store.load_page, page_id)
        return HTMLResponse(html.render(section_renderer.render_page(page, mode=RenderMode.edit)))

    @app.get("/v1/templates")
    async def list_templates() -> JSONResponse:
        records = await asyncio.to_thread(templates.list_templates) if templates else []
        return JSONResponse([record.model_dump(mode="json", by_alias=True) for record in records])

    @app.get("/v1/forms")
    async def list_forms() -> JSONResponse:
        return JSONResponse(
            [form.model_dump(mode="json", by_alias=True) for form in selectable_forms(form_catalog)]
        )

    @app.get("/v1/sections/palette")
    async def section_palette() -> JSONResponse:
        return JSONResponse(
            [
                {
                    "category": category,
                    "label": PALETTE_CATEGORIES[category],
                    "types": [
                        {"type": entry.key.value, "label": entry.label, "description": entry.description}
                        for entry in entries
                    ],
                }
                for category, entries in palette_by_category().items()
            ]
        )

    @app.get("/pages/{slug}", response_class=HTMLResponse)
    async def published_page(slug: str) -> HTMLResponse:
        page = await asyncio.to_thread(store.load_page, slug)
        if not page.is_published or not page.is_active:
            raise HTTPException(status_code=404, detail="Page not found")
        return HTMLResponse(html.render(section_renderer.render_page(page, mode=RenderMode.published)))

    return app


__all__ = ["CreatePageRequest", "PageSummary", "UpdatePageRequest", "create_app"]
