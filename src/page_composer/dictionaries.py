from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Mapping

from .models.section import SectionType

PaletteCategory = Literal["content", "media", "dynamic", "forms"]


@dataclass(frozen=True)
class SectionPaletteEntry:
    key: SectionType
    label: str
    category: PaletteCategory
    description: str


SECTION_PALETTE: Mapping[SectionType, SectionPaletteEntry] = {
    SectionType.text: SectionPaletteEntry(
        key=SectionType.text,
        label="Text Content",
        category="content",
        description="Rich text content",
    ),
    SectionType.image: SectionPaletteEntry(
        key=SectionType.image,
        label="Image",
        category="media",
        description="Single image with caption",
    ),
    SectionType.image_gallery: SectionPaletteEntry(
        key=SectionType.image_gallery,
        label="Image Gallery",
        category="media",
        description="Multiple images grid",
    ),
    SectionType.video: SectionPaletteEntry(
        key=SectionType.video,
        label="Video",
        category="media",
        description="Video player",
    ),
    SectionType.spotlight: SectionPaletteEntry(
        key=SectionType.spotlight,
        label="Spotlight",
        category="dynamic",
        description="Dynamic spotlight content",
    ),
    SectionType.registration: SectionPaletteEntry(
        key=SectionType.registration,
        label="Registration",
        category="forms",
        description="Registration forms hub",
    ),
    SectionType.form: SectionPaletteEntry(
        key=SectionType.form,
        label="Embedded Form",
        category="forms",
        description="Embedded form",
    ),
    SectionType.tournament: SectionPaletteEntry(
        key=SectionType.tournament,
        label="Tournament",
        category="dynamic",
        description="Tournament information",
    ),
    SectionType.cta: SectionPaletteEntry(
        key=SectionType.cta,
        label="Call to Action",
        category="content",
        description="Call to action button or banner",
    ),
    SectionType.sponsors: SectionPaletteEntry(
        key=SectionType.sponsors,
        label="Sponsors",
        category="content",
        description="Sponsor logos",
    ),
    SectionType.custom: SectionPaletteEntry(
        key=SectionType.custom,
        label="Custom HTML",
        category="content",
        description="Free-form markup",
    ),
}

PALETTE_CATEGORIES: Mapping[PaletteCategory, str] = {
    "content": "Content",
    "media": "Media",
    "dynamic": "Dynamic Content",
    "forms": "Forms",
}

SYSTEM_PAGE_SLUGS: frozenset[str] = frozenset({"home", "in-the-spotlight"})

PAGE_TYPES: tuple[str, ...] = (
    "home",
    "about",
    "programs",
    "tournaments",
    "contact",
    "spotlight",
    "registration",
    "custom",
)


def palette_by_category() -> dict[PaletteCategory, list[SectionPaletteEntry]]:
    grouped: dict[PaletteCategory, list[SectionPaletteEntry]] = {key: [] for key in PALETTE_CATEGORIES}
    for entry in SECTION_PALETTE.values():
        grouped[entry.category].append(entry)
    return grouped


def is_system_page(slug: str) -> bool:
    return slug in SYSTEM_PAGE_SLUGS


__all__ = [
    "PAGE_TYPES",
    "PALETTE_CATEGORIES",
    "SECTION_PALETTE",
    "SYSTEM_PAGE_SLUGS",
    "SectionPaletteEntry",
    "is_system_page",
    "palette_by_category",
]
