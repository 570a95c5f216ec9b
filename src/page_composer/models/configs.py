from __future__ import annotations

from typing import Any, Literal, Mapping, Sequence, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .section import SectionType

ButtonStyle = Literal[
    "primary", "secondary", "success", "danger", "warning", "info", "light", "dark"
]
ButtonSize = Literal["sm", "md", "lg", "xl"]
TextAlignment = Literal["left", "center", "right", "justify"]


class SectionConfigBase(BaseModel):
    """Options shared by every section variant.

    Keys the variant does not know about are kept in ``extra`` so that a
    config written by another editor survives a load/save round trip.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    show_title: bool = True
    show_subtitle: bool = True
    title_alignment: TextAlignment = "center"
    subtitle_alignment: TextAlignment = "center"
    content_alignment: TextAlignment = "left"
    show_view_all: bool = False
    view_all_link: str | None = None

    @property
    def extra(self) -> Mapping[str, Any]:
        return dict(self.model_extra or {})


class MediaItem(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    url: str | None = None
    alt: str | None = None
    caption: str | None = None
    alignment: Literal["left", "right", "center", "full"] | None = None
    width: str | None = None
    height: str | None = None
    name: str | None = None
    link: str | None = None
    level: str | None = None
    level_color: str | None = None
    description: str | None = None
    grayscale: bool = False
    opacity: float | None = Field(default=None, ge=0, le=1)


class RichTextConfig(SectionConfigBase):
    variant: Literal["rich-text"] = "rich-text"


class CallToActionConfig(SectionConfigBase):
    variant: Literal["call-to-action"] = "call-to-action"
    button_text: str = "Get Started"
    button_link: str = "#"
    button_style: ButtonStyle = "primary"
    button_size: ButtonSize = "lg"
    button_class: str = ""
    open_in_new_tab: bool = False
    alignment: Literal["left", "center", "right"] = "center"
    background_image: str | None = None
    overlay_opacity: float = Field(default=0.5, ge=0, le=1)
    secondary_button_text: str | None = None
    secondary_button_link: str | None = None
    secondary_button_style: ButtonStyle = "secondary"


class ImageConfig(SectionConfigBase):
    variant: Literal["image"] = "image"
    media: Sequence[MediaItem] = Field(default_factory=tuple)


class GalleryConfig(SectionConfigBase):
    variant: Literal["image-gallery"] = "image-gallery"
    media: Sequence[MediaItem] = Field(default_factory=tuple)
    columns: int = Field(default=3, ge=1, le=12)
    show_captions: bool = True
    layout: Literal["grid", "masonry", "carousel"] = "grid"
    gap: str | None = None


class VideoConfig(SectionConfigBase):
    variant: Literal["video"] = "video"
    video_url: str | None = None
    autoplay: bool = False
    muted: bool = False
    loop: bool = False
    show_controls: bool = True
    thumbnail_url: str | None = None
    media: Sequence[MediaItem] = Field(default_factory=tuple)


class SpotlightConfig(SectionConfigBase):
    variant: Literal["spotlight"] = "spotlight"
    limit: int = Field(default=1, ge=1)
    show_featured: bool = True
    view_all_link: str | None = "/in-the-spotlight"


class RegistrationConfig(SectionConfigBase):
    variant: Literal["registration"] = "registration"
    default_tab: Literal["player", "training", "tournament", "tryout"] = "player"


class EmbeddedFormConfig(SectionConfigBase):
    variant: Literal["embedded-form"] = "embedded-form"
    form_id: str | None = None
    form_title: str | None = None
    show_form_title: bool = True
    show_form_description: bool = True


class SponsorsConfig(SectionConfigBase):
    variant: Literal["sponsors"] = "sponsors"
    media: Sequence[MediaItem] = Field(default_factory=tuple)
    columns: int = Field(default=4, ge=1, le=12)
    logo_height: str = "80px"
    class_name: str = ""
    grayscale: bool = False


class CustomMarkupConfig(SectionConfigBase):
    variant: Literal["custom-markup"] = "custom-markup"
    html_content: str | None = None


class GenericConfig(SectionConfigBase):
    variant: Literal["generic"] = "generic"


SectionConfig = Union[
    RichTextConfig,
    CallToActionConfig,
    ImageConfig,
    GalleryConfig,
    VideoConfig,
    SpotlightConfig,
    RegistrationConfig,
    EmbeddedFormConfig,
    SponsorsConfig,
    CustomMarkupConfig,
    GenericConfig,
]


CONFIG_MODELS: Mapping[SectionType, type[SectionConfigBase]] = {
    SectionType.welcome: RichTextConfig,
    SectionType.text: RichTextConfig,
    SectionType.cta: CallToActionConfig,
    SectionType.image: ImageConfig,
    SectionType.image_gallery: GalleryConfig,
    SectionType.video: VideoConfig,
    SectionType.spotlight: SpotlightConfig,
    SectionType.registration: RegistrationConfig,
    SectionType.form: EmbeddedFormConfig,
    SectionType.sponsors: SponsorsConfig,
    SectionType.custom: CustomMarkupConfig,
    SectionType.tournament: GenericConfig,
    SectionType.stats: GenericConfig,
    SectionType.team: GenericConfig,
    SectionType.schedule: GenericConfig,
    SectionType.pricing: GenericConfig,
    SectionType.faq: GenericConfig,
    SectionType.contact_form: GenericConfig,
    SectionType.map: GenericConfig,
    SectionType.social_feed: GenericConfig,
}

_unmapped = set(SectionType) - set(CONFIG_MODELS)
if _unmapped:
    raise RuntimeError(f"Section types without a config model: {sorted(t.value for t in _unmapped)}")


def parse_config(section_type: SectionType, raw: Mapping[str, Any] | None) -> SectionConfig:
    """Validate a raw config mapping into the variant payload for ``section_type``.

    Blank values (``None`` or an empty string) fall back to the variant's
    default. Raises ``pydantic.ValidationError`` when the payload does not fit
    the variant.
    """
    model = CONFIG_MODELS[section_type]
    payload = {
        key: value
        for key, value in (raw or {}).items()
        if key != "variant" and value is not None and value != ""
    }
    return model.model_validate(payload)  # type: ignore[return-value]


__all__ = [
    "CONFIG_MODELS",
    "CallToActionConfig",
    "CustomMarkupConfig",
    "EmbeddedFormConfig",
    "GalleryConfig",
    "GenericConfig",
    "ImageConfig",
    "MediaItem",
    "RegistrationConfig",
    "RichTextConfig",
    "SectionConfig",
    "SectionConfigBase",
    "SponsorsConfig",
    "SpotlightConfig",
    "VideoConfig",
    "parse_config",
]
