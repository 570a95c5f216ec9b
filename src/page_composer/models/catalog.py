from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .page import PageSettings


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TemplateRecord(_CamelModel):
    id: str
    name: str
    description: str = ""
    category: str = "Custom"
    thumbnail: str | None = None
    sections: Sequence[Mapping[str, Any]] = Field(default_factory=list)


class FormCatalogEntry(_CamelModel):
    id: str
    title: str
    is_active: bool = True


class ExportedPage(_CamelModel):
    page_type: str | None = None
    page_title: str | None = None
    meta_description: str | None = None
    meta_keywords: Sequence[str] = Field(default_factory=list)
    settings: PageSettings | None = None


class ExportDocument(_CamelModel):
    """Portable page document produced by export and accepted by import."""

    page: ExportedPage = Field(default_factory=ExportedPage)
    sections: Sequence[Mapping[str, Any]]
    export_date: datetime
    version: str = "1.0"


__all__ = ["ExportDocument", "ExportedPage", "FormCatalogEntry", "TemplateRecord"]
