from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Sequence

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .section import Section, utcnow


class PageSettings(BaseModel):
    """Page-wide presentation options, carried through untouched by the editor."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    show_header: bool = True
    show_footer: bool = True
    show_sponsor_banner: bool = True
    sponsor_banner_position: Literal["top", "bottom", "both"] = "bottom"
    container_max_width: str = "1200px"
    default_section_spacing: str = "3rem"
    background_color: str = "#ffffff"
    text_color: str = "#333333"
    accent_color: str = "#594230"
    canonical_url: str = ""
    open_graph_image: str = ""
    header_scripts: str = ""
    footer_scripts: str = ""


class Page(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str | None = None
    page_type: str = "custom"
    slug: str
    title: str = "Untitled Page"
    meta_description: str = ""
    meta_keywords: Sequence[str] = Field(default_factory=tuple)
    version: str = "1.0.0"
    sections: tuple[Section, ...] = ()
    settings: PageSettings = Field(default_factory=PageSettings)
    is_template: bool = False
    is_active: bool = True
    published_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def is_published(self) -> bool:
        return self.published_at is not None

    def section_by_id(self, section_id: str) -> Section | None:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def with_sections(self, sections: Sequence[Section]) -> "Page":
        return self.model_copy(update={"sections": tuple(sections)})

    def with_setting(self, key: str, value: Any) -> "Page":
        fields = PageSettings.model_fields
        name = next((field for field, info in fields.items() if info.alias == key), key)
        data = self.settings.model_dump(by_alias=False)
        data[name] = value
        return self.model_copy(update={"settings": PageSettings.model_validate(data)})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["Page", "PageSettings"]
