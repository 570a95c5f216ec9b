"""Export a draft to a portable document and bring documents (or templates) back in."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from . import mutations
from .exceptions import ImportFormatError
from .models.catalog import ExportDocument, ExportedPage, TemplateRecord
from .models.page import Page
from .models.section import Section, utcnow

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
INVALID_FORMAT_MESSAGE = "Invalid configuration file format"
UNREADABLE_MESSAGE = "Error importing page configuration"


def export_document(page: Page) -> ExportDocument:
    return ExportDocument(
        page=ExportedPage(
            page_type=page.page_type,
            page_title=page.title,
            meta_description=page.meta_description,
            meta_keywords=list(page.meta_keywords),
            settings=page.settings,
        ),
        sections=[section.to_wire() for section in page.sections],
        export_date=utcnow(),
        version=EXPORT_VERSION,
    )


def export_json(page: Page) -> str:
    return export_document(page).model_dump_json(by_alias=True, indent=2)


def export_filename(page: Page) -> str:
    return f"{page.slug or 'page'}-config.json"


def parse_document(source: str | bytes | Mapping[str, Any]) -> ExportDocument:
    """Parse an exported document, rejecting anything without a ``sections`` array."""
    if isinstance(source, (str, bytes)):
        try:
            data = json.loads(source)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.info("Import rejected: not JSON", extra={"error": str(exc)})
            raise ImportFormatError(UNREADABLE_MESSAGE) from exc
    else:
        data = source
    if not isinstance(data, Mapping) or not isinstance(data.get("sections"), list):
        logger.info("Import rejected: missing sections array")
        raise ImportFormatError(INVALID_FORMAT_MESSAGE)
    if not all(isinstance(item, Mapping) for item in data["sections"]):
        raise ImportFormatError(INVALID_FORMAT_MESSAGE)
    payload = dict(data)
    payload.setdefault("exportDate", utcnow().isoformat())
    if not isinstance(payload.get("page"), Mapping):
        payload.pop("page", None)
    try:
        return ExportDocument.model_validate(payload)
    except ValidationError as exc:
        logger.info("Import rejected: invalid document", extra={"error": str(exc)})
        raise ImportFormatError(INVALID_FORMAT_MESSAGE) from exc


def import_sections(source: str | bytes | Mapping[str, Any]) -> tuple[Section, ...]:
    document = parse_document(source)
    try:
        return mutations.apply_bulk(document.sections)
    except ValidationError as exc:
        logger.info("Import rejected: invalid section", extra={"error": str(exc)})
        raise ImportFormatError(INVALID_FORMAT_MESSAGE) from exc


def template_sections(template: TemplateRecord) -> tuple[Section, ...]:
    return mutations.apply_bulk(template.sections)


def apply_document(page: Page, source: str | bytes | Mapping[str, Any], *, include_settings: bool = False) -> Page:
    """Replace the page's sections (and optionally its settings) from an export."""
    document = parse_document(source)
    sections = import_sections(document.model_dump(by_alias=True, mode="json"))
    updated = page.with_sections(sections)
    if include_settings and document.page.settings is not None:
        updated = updated.model_copy(update={"settings": document.page.settings})
    return updated


def section_signature(sections: Sequence[Section]) -> list[tuple[str, str, dict[str, Any], dict[str, Any]]]:
    """Identity-free view of a collection, used to compare exports with imports."""
    return [
        (section.type, section.title, dict(section.config), dict(section.styles))
        for section in sections
    ]


__all__ = [
    "EXPORT_VERSION",
    "INVALID_FORMAT_MESSAGE",
    "apply_document",
    "export_document",
    "export_filename",
    "export_json",
    "import_sections",
    "parse_document",
    "section_signature",
    "template_sections",
]
