from __future__ import annotations

import asyncio
import itertools
import logging
from datetime import datetime
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from . import mutations, transfer
from .autosave import AutosaveScheduler, DraftCell, SaveOutcome
from .exceptions import ImportFormatError, PageComposerError, PageNotFoundError, SessionClosedError
from .history import HistoryManager
from .models.catalog import ExportDocument, FormCatalogEntry, TemplateRecord
from .models.page import Page
from .models.render import RenderedPage, RenderMode
from .models.section import Section, SectionType, utcnow
from .models.session import FieldIssue, Notice, SaveStatus
from .page_store import PageStore
from .renderer import SectionRenderer
from .settings import AutosaveWindows, ComposerSettings
from .template_repository import FormCatalog
from .validation import validate_sections

logger = logging.getLogger(__name__)


class EditSession:
    """One open editor over one page.

    The session exclusively owns the draft. Every edit goes through a pure
    function in :mod:`page_composer.mutations`, the result replaces the draft
    wholesale, and the autosave timer is re-armed. Must be used from inside a
    running event loop.
    """

    def __init__(
        self,
        store: PageStore,
        page: Page,
        *,
        settings: ComposerSettings | None = None,
        forms: FormCatalog | None = None,
        renderer: SectionRenderer | None = None,
    ) -> None:
        settings = settings or ComposerSettings()
        self._store = store
        self._forms = forms
        self._renderer = renderer or SectionRenderer()
        self._windows: AutosaveWindows = settings.autosave
        self._cell: DraftCell[Page] = DraftCell(page)
        self._saved_revision = self._cell.revision
        self._restored_revision: int | None = None
        self._restore_count = 0
        self._restore_count_at_save = 0
        self._history: HistoryManager[Page] = HistoryManager(limit=settings.history_limit)
        self._history.record(page)
        self._selected_section_id: str | None = None
        self._notices: list[Notice] = []
        self._notice_ids = itertools.count(1)
        self._closed = False
        self.gone = False
        self.save_status = SaveStatus.idle
        self.last_saved: datetime | None = None
        self._scheduler: AutosaveScheduler[Page] = AutosaveScheduler(
            self._cell,
            self._persist,
            on_start=self._on_save_start,
            on_outcome=self._on_save_outcome,
            default_delay=self._windows.edit,
        )

    @classmethod
    async def open(cls, store: PageStore, identifier: str, **kwargs: Any) -> "EditSession":
        """Load a page and start editing it. ``PageNotFoundError`` is fatal and propagates."""
        page = await asyncio.to_thread(store.load_page, identifier)
        logger.info("Opened edit session", extra={"page_id": page.id, "slug": page.slug})
        return cls(store, page, **kwargs)

    # state

    @property
    def draft(self) -> Page:
        return self._cell.read_latest()

    @property
    def sections(self) -> tuple[Section, ...]:
        return self.draft.sections

    @property
    def dirty(self) -> bool:
        return self._cell.revision != self._saved_revision

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def history(self) -> HistoryManager[Page]:
        return self._history

    @property
    def scheduler(self) -> AutosaveScheduler[Page]:
        return self._scheduler

    @property
    def selected_section_id(self) -> str | None:
        return self._selected_section_id

    @property
    def selected_section(self) -> Section | None:
        if self._selected_section_id is None:
            return None
        return self.draft.section_by_id(self._selected_section_id)

    @property
    def notices(self) -> tuple[Notice, ...]:
        return tuple(self._notices)

    def dismiss(self, notice_id: int) -> None:
        self._notices = [notice for notice in self._notices if notice.id != notice_id]

    # selection

    def select(self, section_id: str | None) -> None:
        if section_id is not None and self.draft.section_by_id(section_id) is None:
            return
        self._selected_section_id = section_id

    def clear_selection(self) -> None:
        self._selected_section_id = None

    # edits

    def add_section(self, section_type: SectionType | str) -> Section:
        sections = mutations.add(self.sections, section_type)
        self._commit(self.draft.with_sections(sections), delay=self._windows.edit)
        added = sections[-1]
        self._selected_section_id = added.id
        return added

    def update_section(self, section_id: str, **changes: Any) -> bool:
        try:
            sections = mutations.update(self.sections, section_id, **changes)
        except ValidationError as exc:
            self._notify("error", f"Invalid section values: {_field_names(exc)}")
            return False
        return self._commit(self.draft.with_sections(sections), delay=self._windows.edit)

    def update_config(self, section_id: str, **values: Any) -> bool:
        section = self.draft.section_by_id(section_id)
        if section is None:
            return False
        return self.update_section(section_id, config={**section.config, **values})

    def remove_section(self, section_id: str) -> bool:
        changed = self._commit(
            self.draft.with_sections(mutations.remove(self.sections, section_id)),
            delay=self._windows.edit,
        )
        if changed and self._selected_section_id == section_id:
            self._selected_section_id = None
        return changed

    def duplicate_section(self, section_id: str) -> Section | None:
        sections = mutations.duplicate(self.sections, section_id)
        if not self._commit(self.draft.with_sections(sections), delay=self._windows.edit):
            return None
        return sections[-1]

    def move_section_up(self, index: int) -> bool:
        return self._commit(
            self.draft.with_sections(mutations.move_up(self.sections, index)),
            delay=self._windows.reorder,
        )

    def move_section_down(self, index: int) -> bool:
        return self._commit(
            self.draft.with_sections(mutations.move_down(self.sections, index)),
            delay=self._windows.reorder,
        )

    def reorder_sections(self, source_index: int, dest_index: int) -> bool:
        return self._commit(
            self.draft.with_sections(mutations.reorder(self.sections, source_index, dest_index)),
            delay=self._windows.reorder,
        )

    def toggle_section(self, section_id: str) -> bool:
        return self._commit(
            self.draft.with_sections(mutations.toggle_active(self.sections, section_id)),
            delay=self._windows.edit,
        )

    def update_setting(self, key: str, value: Any) -> bool:
        try:
            page = self.draft.with_setting(key, value)
        except ValidationError as exc:
            self._notify("error", f"Invalid page setting: {_field_names(exc)}")
            return False
        return self._commit(page, delay=self._windows.settings)

    def update_page_details(
        self,
        *,
        title: str | None = None,
        meta_description: str | None = None,
        meta_keywords: Sequence[str] | None = None,
    ) -> bool:
        changes: dict[str, Any] = {}
        if title is not None:
            changes["title"] = title
        if meta_description is not None:
            changes["meta_description"] = meta_description
        if meta_keywords is not None:
            changes["meta_keywords"] = tuple(meta_keywords)
        return self._commit(self.draft.model_copy(update=changes), delay=self._windows.settings)

    def reset_page(self) -> bool:
        self._selected_section_id = None
        return self._commit(self.draft.with_sections(mutations.clear(self.sections)), delay=self._windows.reset)

    def apply_template(self, template: TemplateRecord | Sequence[Section | Mapping[str, Any]]) -> bool:
        incoming = template.sections if isinstance(template, TemplateRecord) else template
        self._selected_section_id = None
        changed = self._commit(
            self.draft.with_sections(mutations.apply_bulk(incoming)),
            delay=self._windows.bulk,
        )
        logger.info(
            "Applied template",
            extra={
                "page_id": self.draft.id,
                "template_id": template.id if isinstance(template, TemplateRecord) else None,
                "sections_count": len(self.sections),
            },
        )
        return changed

    def import_document(self, source: str | bytes | Mapping[str, Any]) -> bool:
        """Replace sections from an exported document; a bad document becomes a notice."""
        try:
            sections = transfer.import_sections(source)
        except ImportFormatError as exc:
            self._notify("error", str(exc))
            return False
        self._selected_section_id = None
        self._commit(self.draft.with_sections(sections), delay=self._windows.bulk)
        self._notify("success", "Page configuration imported successfully!")
        return True

    def export_document(self) -> ExportDocument:
        return transfer.export_document(self.draft)

    # history

    def undo(self) -> bool:
        return self._restore(self._history.undo())

    def redo(self) -> bool:
        return self._restore(self._history.redo())

    def _restore(self, snapshot: Page | None) -> bool:
        if snapshot is None or self._closed:
            return False
        # Selection is session-local and is not part of a snapshot.
        self._selected_section_id = None
        self._cell.replace(snapshot)
        self._restored_revision = self._cell.revision
        self._restore_count += 1
        self._scheduler.arm(self._windows.edit)
        return True

    # persistence

    async def save(self) -> bool:
        """Save now, bypassing the debounce window."""
        if self._closed:
            return False
        return await self._scheduler.save_now()

    async def publish(self) -> bool:
        if self._closed:
            return False
        if not await self.save():
            return False
        return await self._server_call("publish", "Page published successfully!")

    async def unpublish(self) -> bool:
        if self._closed or self.draft.id is None:
            return False
        return await self._server_call("unpublish", "Page unpublished successfully!")

    def close(self) -> None:
        """Stop editing. Pending timers are cancelled; a save in flight finishes unobserved."""
        if self._closed:
            return
        self._closed = True
        self._scheduler.close()
        logger.info("Closed edit session", extra={"page_id": self.draft.id, "dirty": self.dirty})

    # read paths

    def render(self, mode: RenderMode = RenderMode.edit) -> RenderedPage:
        return self._renderer.render_page(self.draft, mode=mode)

    def validate(self) -> dict[str, list[FieldIssue]]:
        forms: Sequence[FormCatalogEntry] | None = self._forms.list_forms() if self._forms else None
        return validate_sections(self.sections, forms)

    # internals

    def _commit(self, page: Page, *, delay: float) -> bool:
        if self._closed:
            raise SessionClosedError("The edit session is closed")
        if page == self.draft:
            return False
        self._cell.replace(page)
        self._restored_revision = None
        self._scheduler.arm(delay)
        return True

    async def _persist(self, page: Page) -> Page:
        if page.id is None:
            return await asyncio.to_thread(self._store.create_page, page)
        return await asyncio.to_thread(self._store.persist_page, page.id, page)

    def _on_save_start(self, page: Page, revision: int) -> None:
        self.save_status = SaveStatus.saving
        self._restore_count_at_save = self._restore_count
        logger.debug("Saving page", extra={"page_id": page.id, "revision": revision})

    def _on_save_outcome(self, outcome: SaveOutcome[Page]) -> None:
        if not outcome.ok:
            self.save_status = SaveStatus.error
            if isinstance(outcome.error, PageNotFoundError):
                self._mark_gone()
            else:
                self._notify("error", f"Error saving page: {outcome.error}")
            return

        result = outcome.result
        if result is None:
            return
        self.save_status = SaveStatus.saved
        self.last_saved = utcnow()
        restored = self._restored_revision is not None and self._restored_revision == outcome.revision
        if self._cell.revision == outcome.revision:
            # Nothing changed while saving: adopt the server's canonical copy.
            self._cell.replace(result)
            self._saved_revision = self._cell.revision
            if restored:
                self._restored_revision = self._cell.revision
        else:
            self._saved_revision = outcome.revision
            if self.draft.id is None and result.id is not None:
                self._cell.replace(self.draft.model_copy(update={"id": result.id}))
        # An undo or redo during the save already moved the history cursor.
        if not restored and self._restore_count == self._restore_count_at_save:
            self._history.record(result)
        logger.info(
            "Saved page",
            extra={"page_id": result.id, "revision": outcome.revision, "dirty": self.dirty},
        )

    async def _server_call(self, action: str, success_message: str) -> bool:
        page_id = self.draft.id
        if page_id is None:
            return False
        try:
            result: Page = await asyncio.to_thread(getattr(self._store, action), page_id)
        except PageNotFoundError:
            self._mark_gone()
            return False
        except PageComposerError as exc:
            self._notify("error", f"Error {action}ing page: {exc}")
            return False
        if self._closed:
            return False
        clean = not self.dirty
        self._cell.replace(
            self.draft.model_copy(update={"published_at": result.published_at, "is_active": result.is_active})
        )
        if clean:
            self._saved_revision = self._cell.revision
        self._notify("success", success_message)
        logger.info(f"Page {action}ed", extra={"page_id": page_id})
        return True

    def _mark_gone(self) -> None:
        self.gone = True
        self._notify("error", "This page no longer exists.")
        self.close()

    def _notify(self, level: str, message: str) -> Notice:
        notice = Notice(id=next(self._notice_ids), level=level, message=message)  # type: ignore[arg-type]
        self._notices.append(notice)
        return notice


def _field_names(exc: ValidationError) -> str:
    return ", ".join(sorted({".".join(str(part) for part in error["loc"]) for error in exc.errors()}))


__all__ = ["EditSession"]
