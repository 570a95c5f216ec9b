from __future__ import annotations

from typing import Sequence

from pydantic import ValidationError

from .models.catalog import FormCatalogEntry
from .models.configs import (
    CallToActionConfig,
    EmbeddedFormConfig,
    ImageConfig,
    VideoConfig,
    parse_config,
)
from .models.section import Section
from .models.session import FieldIssue
from .renderer import video_source
from .sanitizer import strip_markup


def validate_section(section: Section, forms: Sequence[FormCatalogEntry] | None = None) -> list[FieldIssue]:
    """Report problems with one section's settings; never raises."""
    section_type = section.section_type
    if section_type is None:
        return [FieldIssue(section_id=section.id, field="type", message=f'Unknown section type "{section.type}"')]

    try:
        config = parse_config(section_type, section.config)
    except ValidationError as exc:
        return [
            FieldIssue(
                section_id=section.id,
                field=".".join(str(part) for part in error["loc"]) or "config",
                message=error["msg"],
            )
            for error in exc.errors()
        ]

    issues: list[FieldIssue] = []

    def issue(field: str, message: str) -> None:
        issues.append(FieldIssue(section_id=section.id, field=field, message=message))

    raw = section.config or {}
    if isinstance(config, CallToActionConfig):
        if "buttonText" in raw and not strip_markup(str(raw.get("buttonText") or "")):
            issue("buttonText", "Button text is required")
        if "buttonLink" in raw and not str(raw.get("buttonLink") or "").strip():
            issue("buttonLink", "Button link is required")
        if config.secondary_button_text and not config.secondary_button_link:
            issue("secondaryButtonLink", "Secondary button needs a link")
    elif isinstance(config, VideoConfig):
        if not section.content and not config.video_url:
            issue("videoUrl", "Video URL is required")
        elif config.video_url:
            try:
                video_source(config.video_url)
            except ValueError as exc:
                issue("videoUrl", str(exc))
    elif isinstance(config, ImageConfig):
        if not section.content and not any(item.url for item in config.media):
            issue("media", "Choose an image")
    elif isinstance(config, EmbeddedFormConfig):
        if not config.form_id:
            issue("formId", "Select a form")
        elif forms is not None:
            match = next((form for form in forms if form.id == config.form_id), None)
            if match is None:
                issue("formId", "The selected form no longer exists")
            elif not match.is_active:
                issue("formId", f'The form "{match.title}" is inactive and will not be shown')
    return issues


def validate_sections(
    sections: Sequence[Section], forms: Sequence[FormCatalogEntry] | None = None
) -> dict[str, list[FieldIssue]]:
    return {section.id: found for section in sections if (found := validate_section(section, forms))}


__all__ = ["validate_section", "validate_sections"]
