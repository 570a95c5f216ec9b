from __future__ import annotations

import secrets
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SectionType(str, Enum):
    welcome = "welcome"
    text = "text"
    image = "image"
    image_gallery = "image-gallery"
    video = "video"
    cta = "cta"
    spotlight = "spotlight"
    registration = "registration"
    form = "form"
    sponsors = "sponsors"
    custom = "custom"
    tournament = "tournament"
    stats = "stats"
    team = "team"
    schedule = "schedule"
    pricing = "pricing"
    faq = "faq"
    contact_form = "contact-form"
    map = "map"
    social_feed = "social-feed"

    @classmethod
    def lookup(cls, value: str) -> "SectionType | None":
        try:
            return cls(value)
        except ValueError:
            return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_section_id(section_type: str) -> str:
    """Build an id from the type tag, a millisecond clock and a random suffix."""
    millis = int(time.time() * 1000)
    return f"{section_type}-{millis}-{secrets.token_hex(5)}"


class Section(BaseModel):
    """One ordered content block of a page.

    Sections are immutable; every change produces a new instance through
    ``model_copy``. ``type`` is kept as the raw tag so that sections written
    by newer editors survive a load/save round trip; use ``section_type`` for
    the closed set.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    type: str
    position: int = Field(ge=0)
    title: str = ""
    subtitle: str = ""
    content: str = ""
    config: Mapping[str, Any] = Field(default_factory=dict)
    styles: Mapping[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @property
    def section_type(self) -> SectionType | None:
        return SectionType.lookup(self.type)

    @classmethod
    def create(cls, section_type: SectionType | str, position: int) -> "Section":
        tag = section_type.value if isinstance(section_type, SectionType) else section_type
        now = utcnow()
        return cls(
            id=new_section_id(tag),
            type=tag,
            position=position,
            created_at=now,
            updated_at=now,
        )

    def duplicate(self, position: int) -> "Section":
        now = utcnow()
        return self.model_copy(
            update={
                "id": new_section_id(self.type),
                "position": position,
                "title": f"{self.title} (Copy)" if self.title else self.title,
                "config": dict(self.config),
                "styles": dict(self.styles),
                "created_at": now,
                "updated_at": now,
            }
        )

    def with_position(self, position: int) -> "Section":
        if position == self.position:
            return self
        return self.model_copy(update={"position": position, "updated_at": utcnow()})

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["Section", "SectionType", "new_section_id", "utcnow"]
