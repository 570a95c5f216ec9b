from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol, Sequence

from .models.catalog import FormCatalogEntry, TemplateRecord

logger = logging.getLogger(__name__)


class TemplateRepository(Protocol):
    def list_templates(self) -> Sequence[TemplateRecord]:
        ...

    def get(self, template_id: str) -> TemplateRecord:
        ...


class LocalTemplateRepository:
    """Reads starter templates from ``<base_path>/<id>.json``."""

    def __init__(self, *, base_path: Path) -> None:
        self._base_path = base_path

    def list_templates(self) -> list[TemplateRecord]:
        if not self._base_path.exists():
            logger.warning("Template directory missing", extra={"path": str(self._base_path)})
            return []
        return [self._read(path) for path in sorted(self._base_path.glob("*.json"))]

    def get(self, template_id: str) -> TemplateRecord:
        file_path = self._base_path / f"{template_id}.json"
        if not file_path.exists():
            raise FileNotFoundError(f"Template not found: {file_path}")
        return self._read(file_path)

    def _read(self, file_path: Path) -> TemplateRecord:
        with file_path.open("r", encoding="utf-8") as fp:
            data = json.load(fp)
        data.setdefault("id", file_path.stem)
        return TemplateRecord.model_validate(data)


class FormCatalog(Protocol):
    def list_forms(self) -> Sequence[FormCatalogEntry]:
        ...


class StaticFormCatalog:
    def __init__(self, forms: Sequence[FormCatalogEntry] = ()) -> None:
        self._forms = tuple(forms)

    def list_forms(self) -> Sequence[FormCatalogEntry]:
        return self._forms


def selectable_forms(catalog: FormCatalog) -> list[FormCatalogEntry]:
    """Forms offered in the embedded-form editor: active ones first, then by title."""
    return sorted(catalog.list_forms(), key=lambda form: (not form.is_active, form.title.lower()))


__all__ = [
    "FormCatalog",
    "LocalTemplateRepository",
    "StaticFormCatalog",
    "TemplateRepository",
    "selectable_forms",
]
