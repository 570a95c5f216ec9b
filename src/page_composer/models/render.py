from __future__ import annotations

from enum import Enum
from typing import Literal, Mapping, Sequence, Union

from pydantic import BaseModel, Field

from .page import PageSettings


class RenderMode(str, Enum):
    published = "published"
    edit = "edit"


class RenderVariant(str, Enum):
    rich_text = "rich-text"
    call_to_action = "call-to-action"
    image = "image"
    gallery = "image-gallery"
    video = "video"
    spotlight = "spotlight"
    registration = "registration"
    embedded_form = "embedded-form"
    sponsors = "sponsors"
    custom_markup = "custom-markup"
    coming_soon = "coming-soon"
    not_implemented = "not-implemented"
    invalid = "invalid"


class SectionHeader(BaseModel):
    title: str
    subtitle: str | None = None
    title_alignment: str = "center"
    subtitle_alignment: str = "center"


class Placeholder(BaseModel):
    level: Literal["info", "warning"] = "info"
    message: str


class ButtonView(BaseModel):
    text: str
    href: str
    css_class: str
    target: Literal["_blank", "_self"] = "_self"
    rel: str | None = None


class CallToActionView(BaseModel):
    kind: Literal["call-to-action"] = "call-to-action"
    alignment: str
    background_image: str | None = None
    overlay_opacity: float = 0.5
    buttons: Sequence[ButtonView] = Field(default_factory=list)


class ImageView(BaseModel):
    kind: Literal["image"] = "image"
    url: str
    alt: str
    caption: str | None = None
    width: str = "100%"
    height: str = "auto"


class GalleryView(BaseModel):
    kind: Literal["image-gallery"] = "image-gallery"
    columns: int
    layout: str = "grid"
    show_captions: bool = True
    gap: str | None = None
    images: Sequence[ImageView] = Field(default_factory=list)


class VideoView(BaseModel):
    kind: Literal["video"] = "video"
    source: Literal["youtube", "vimeo", "file"]
    src: str
    title: str = "Video"
    poster: str | None = None
    autoplay: bool = False
    muted: bool = False
    loop: bool = False
    controls: bool = True
    caption: str | None = None


class SpotlightView(BaseModel):
    kind: Literal["spotlight"] = "spotlight"
    title: str
    show_title: bool = True
    limit: int = 1
    featured_only: bool = True
    show_view_all: bool = False
    view_all_link: str = "/in-the-spotlight"


class RegistrationView(BaseModel):
    kind: Literal["registration"] = "registration"
    default_tab: str = "player"


class EmbeddedFormView(BaseModel):
    kind: Literal["embedded-form"] = "embedded-form"
    form_id: str
    form_title: str | None = None
    show_form_description: bool = True


class SponsorView(BaseModel):
    name: str | None = None
    logo_url: str | None = None
    link: str = "#"
    alt: str
    level: str | None = None
    level_color: str = "primary"
    description: str | None = None
    grayscale: bool = False
    opacity: float = 1.0


class SponsorsView(BaseModel):
    kind: Literal["sponsors"] = "sponsors"
    columns: int = 4
    logo_height: str = "80px"
    class_name: str = ""
    sponsors: Sequence[SponsorView] = Field(default_factory=list)


SectionView = Union[
    CallToActionView,
    ImageView,
    GalleryView,
    VideoView,
    SpotlightView,
    RegistrationView,
    EmbeddedFormView,
    SponsorsView,
]


class RenderedSection(BaseModel):
    section_id: str
    type: str
    position: int
    is_active: bool = True
    variant: RenderVariant
    header: SectionHeader | None = None
    body_html: str = ""
    view: SectionView | None = Field(default=None, discriminator="kind")
    placeholder: Placeholder | None = None
    view_all_link: str | None = None
    content_alignment: str = "left"
    css_class: str = ""
    container_class: str = "container"
    style: Mapping[str, str] = Field(default_factory=dict)


class RenderedPage(BaseModel):
    page_id: str | None
    slug: str
    title: str
    mode: RenderMode
    settings: PageSettings
    sections: Sequence[RenderedSection] = Field(default_factory=list)


__all__ = [
    "ButtonView",
    "CallToActionView",
    "EmbeddedFormView",
    "GalleryView",
    "ImageView",
    "Placeholder",
    "RegistrationView",
    "RenderMode",
    "RenderVariant",
    "RenderedPage",
    "RenderedSection",
    "SectionHeader",
    "SectionView",
    "SponsorView",
    "SponsorsView",
    "SpotlightView",
    "VideoView",
]
