"""Rendering dispatcher: section type tag + config -> presentation variant.

The dispatcher is a pure read path. It never raises for a badly configured
section; such sections degrade to a placeholder so the rest of the page still
renders. Rich text is always passed through the sanitizer before it reaches
a rendered section.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping
from urllib.parse import parse_qs, urlparse

from pydantic import ValidationError

from .models.configs import (
    CallToActionConfig,
    CustomMarkupConfig,
    EmbeddedFormConfig,
    GalleryConfig,
    GenericConfig,
    ImageConfig,
    MediaItem,
    RegistrationConfig,
    RichTextConfig,
    SectionConfig,
    SponsorsConfig,
    SpotlightConfig,
    VideoConfig,
    parse_config,
)
from .models.page import Page
from .models.render import (
    ButtonView,
    CallToActionView,
    EmbeddedFormView,
    GalleryView,
    ImageView,
    Placeholder,
    RegistrationView,
    RenderedPage,
    RenderedSection,
    RenderMode,
    RenderVariant,
    SectionHeader,
    SectionView,
    SponsorsView,
    SponsorView,
    SpotlightView,
    VideoView,
)
from .models.section import Section, SectionType
from .sanitizer import BleachSanitizer, RichTextSanitizer, css_url, safe_url

logger = logging.getLogger(__name__)

INVALID_CONFIG_MESSAGE = "This section could not be displayed: its settings are invalid."


@dataclass
class _Body:
    variant: RenderVariant
    view: SectionView | None = None
    body_html: str = ""
    placeholder: Placeholder | None = None
    show_header: bool = True
    extra_style: dict[str, str] = field(default_factory=dict)


Handler = Callable[[Section, Any, RichTextSanitizer], _Body]


def _rich_text(section: Section, config: RichTextConfig, sanitize: RichTextSanitizer) -> _Body:
    return _Body(RenderVariant.rich_text, body_html=sanitize(section.content))


def _call_to_action(section: Section, config: CallToActionConfig, sanitize: RichTextSanitizer) -> _Body:
    target = "_blank" if config.open_in_new_tab else "_self"
    rel = "noopener noreferrer" if config.open_in_new_tab else None
    buttons = [
        ButtonView(
            text=config.button_text,
            href=safe_url(config.button_link, "#"),
            css_class=" ".join(
                part
                for part in ("btn", f"btn-{config.button_style}", f"btn-{config.button_size}", config.button_class)
                if part
            ),
            target=target,
            rel=rel,
        )
    ]
    if config.secondary_button_text and safe_url(config.secondary_button_link):
        buttons.append(
            ButtonView(
                text=config.secondary_button_text,
                href=safe_url(config.secondary_button_link, "#"),
                css_class=f"btn btn-{config.secondary_button_style} btn-{config.button_size}",
                target=target,
                rel=rel,
            )
        )
    view = CallToActionView(
        alignment=config.alignment,
        background_image=css_url(config.background_image),
        overlay_opacity=config.overlay_opacity,
        buttons=buttons,
    )
    text_color = section.styles.get("textColor") or ("#ffffff" if config.background_image else "#333333")
    return _Body(
        RenderVariant.call_to_action,
        view=view,
        body_html=sanitize(section.content),
        extra_style={"text-align": config.alignment, "color": str(text_color)},
    )


def _image_view(item: MediaItem, fallback_alt: str) -> ImageView | None:
    url = safe_url(item.url)
    if url is None:
        return None
    return ImageView(
        url=url,
        alt=item.alt or fallback_alt,
        caption=item.caption,
        width=item.width or "100%",
        height=item.height or "auto",
    )


def _image(section: Section, config: ImageConfig, sanitize: RichTextSanitizer) -> _Body:
    if section.content:
        return _Body(RenderVariant.image, body_html=sanitize(section.content))
    view = _image_view(config.media[0], section.title or "Image") if config.media else None
    if view is None:
        return _Body(
            RenderVariant.image,
            placeholder=Placeholder(level="warning", message="No image configured for this section."),
        )
    return _Body(RenderVariant.image, view=view)


def _gallery(section: Section, config: GalleryConfig, sanitize: RichTextSanitizer) -> _Body:
    images = []
    for index, item in enumerate(config.media, start=1):
        view = _image_view(item, item.caption or f"Gallery image {index}")
        if view is not None:
            images.append(view.model_copy(update={"height": item.height or "200px"}))
    if images:
        return _Body(
            RenderVariant.gallery,
            view=GalleryView(
                columns=config.columns,
                layout=config.layout,
                show_captions=config.show_captions,
                gap=config.gap,
                images=images,
            ),
        )
    if section.content:
        return _Body(RenderVariant.gallery, body_html=sanitize(section.content))
    return _Body(
        RenderVariant.gallery,
        placeholder=Placeholder(message="Configure images in the gallery section settings."),
    )


def video_source(url: str) -> tuple[str, str]:
    """Classify a video URL and return ``(source, embeddable_src)``."""
    parsed = urlparse(url)
    host = (parsed.hostname or "").lower()
    if host.endswith("youtu.be"):
        video_id = parsed.path.strip("/").split("/")[-1]
        return "youtube", f"https://www.youtube.com/embed/{video_id}"
    if host.endswith("youtube.com"):
        if parsed.path.startswith("/embed/"):
            video_id = parsed.path.split("/")[2]
        else:
            video_id = parse_qs(parsed.query).get("v", [""])[0]
        if not video_id:
            raise ValueError(f"Unrecognised YouTube URL: {url}")
        return "youtube", f"https://www.youtube.com/embed/{video_id}"
    if host.endswith("vimeo.com"):
        video_id = parsed.path.strip("/").split("/")[-1]
        if not video_id:
            raise ValueError(f"Unrecognised Vimeo URL: {url}")
        return "vimeo", f"https://player.vimeo.com/video/{video_id}"
    return "file", url


def _video(section: Section, config: VideoConfig, sanitize: RichTextSanitizer) -> _Body:
    if section.content:
        return _Body(RenderVariant.video, body_html=sanitize(section.content))
    if not config.video_url:
        return _Body(
            RenderVariant.video,
            placeholder=Placeholder(level="warning", message="No video URL configured for this section."),
        )
    source, src = video_source(config.video_url)
    if source == "file" and safe_url(src) is None:
        return _Body(
            RenderVariant.video,
            placeholder=Placeholder(level="warning", message="The video URL is not allowed."),
        )
    if source == "youtube":
        flags = {
            "autoplay": int(config.autoplay),
            "controls": int(config.show_controls),
            "loop": int(config.loop),
            "mute": int(config.muted),
        }
        src = f"{src}?" + "&".join(f"{key}={value}" for key, value in flags.items())
    elif source == "vimeo":
        flags = {"autoplay": int(config.autoplay), "loop": int(config.loop), "muted": int(config.muted)}
        src = f"{src}?" + "&".join(f"{key}={value}" for key, value in flags.items())
    caption = config.media[0].caption if config.media else None
    return _Body(
        RenderVariant.video,
        view=VideoView(
            source=source,  # type: ignore[arg-type]
            src=src,
            title=section.title or "Video",
            poster=safe_url(config.thumbnail_url),
            autoplay=config.autoplay,
            muted=config.muted,
            loop=config.loop,
            controls=config.show_controls,
            caption=caption,
        ),
    )


def _spotlight(section: Section, config: SpotlightConfig, sanitize: RichTextSanitizer) -> _Body:
    # The spotlight feed draws its own heading.
    return _Body(
        RenderVariant.spotlight,
        view=SpotlightView(
            title=section.title or "In The Spotlight",
            show_title=config.show_title,
            limit=config.limit,
            featured_only=config.show_featured,
            show_view_all=config.show_view_all,
            view_all_link=safe_url(config.view_all_link, "/in-the-spotlight"),
        ),
        show_header=False,
    )


def _registration(section: Section, config: RegistrationConfig, sanitize: RichTextSanitizer) -> _Body:
    return _Body(
        RenderVariant.registration,
        view=RegistrationView(default_tab=config.default_tab),
        body_html=sanitize(section.content),
    )


def _embedded_form(section: Section, config: EmbeddedFormConfig, sanitize: RichTextSanitizer) -> _Body:
    if not config.form_id:
        return _Body(
            RenderVariant.embedded_form,
            placeholder=Placeholder(level="warning", message="No form selected"),
        )
    return _Body(
        RenderVariant.embedded_form,
        view=EmbeddedFormView(
            form_id=config.form_id,
            form_title=config.form_title if config.show_form_title else None,
            show_form_description=config.show_form_description,
        ),
    )


def _sponsors(section: Section, config: SponsorsConfig, sanitize: RichTextSanitizer) -> _Body:
    if section.content:
        return _Body(RenderVariant.sponsors, body_html=sanitize(section.content))
    if not config.media:
        return _Body(
            RenderVariant.sponsors,
            placeholder=Placeholder(
                message="No sponsors configured yet. Add sponsor logos and information in the section editor."
            ),
        )
    sponsors = [
        SponsorView(
            name=item.name,
            logo_url=safe_url(item.url),
            link=safe_url(item.link, "#"),
            alt=item.alt or f"Sponsor {index}",
            level=item.level,
            level_color=item.level_color or "primary",
            description=item.description,
            grayscale=item.grayscale or config.grayscale,
            opacity=item.opacity if item.opacity else 1.0,
        )
        for index, item in enumerate(config.media, start=1)
    ]
    return _Body(
        RenderVariant.sponsors,
        view=SponsorsView(
            columns=config.columns,
            logo_height=config.logo_height,
            class_name=config.class_name,
            sponsors=sponsors,
        ),
    )


def _custom_markup(section: Section, config: CustomMarkupConfig, sanitize: RichTextSanitizer) -> _Body:
    markup = section.content or config.html_content or ""
    if not markup:
        return _Body(
            RenderVariant.custom_markup,
            placeholder=Placeholder(message="Custom HTML content goes here."),
        )
    return _Body(RenderVariant.custom_markup, body_html=sanitize(markup))


def _coming_soon(section: Section, config: GenericConfig, sanitize: RichTextSanitizer) -> _Body:
    if section.content:
        return _Body(RenderVariant.coming_soon, body_html=sanitize(section.content))
    return _Body(
        RenderVariant.coming_soon,
        placeholder=Placeholder(
            message=(
                f'Section type "{section.type}" is coming soon. '
                "For now, you can use custom HTML content in this section."
            )
        ),
    )


HANDLERS: Mapping[SectionType, Handler] = {
    SectionType.welcome: _rich_text,
    SectionType.text: _rich_text,
    SectionType.cta: _call_to_action,
    SectionType.image: _image,
    SectionType.image_gallery: _gallery,
    SectionType.video: _video,
    SectionType.spotlight: _spotlight,
    SectionType.registration: _registration,
    SectionType.form: _embedded_form,
    SectionType.sponsors: _sponsors,
    SectionType.custom: _custom_markup,
    SectionType.tournament: _coming_soon,
    SectionType.stats: _coming_soon,
    SectionType.team: _coming_soon,
    SectionType.schedule: _coming_soon,
    SectionType.pricing: _coming_soon,
    SectionType.faq: _coming_soon,
    SectionType.contact_form: _coming_soon,
    SectionType.map: _coming_soon,
    SectionType.social_feed: _coming_soon,
}

_unhandled = set(SectionType) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"Section types without a render handler: {sorted(t.value for t in _unhandled)}")


class SectionRenderer:
    def __init__(self, *, sanitizer: RichTextSanitizer | None = None) -> None:
        self._sanitize = sanitizer or BleachSanitizer()

    def render_section(self, section: Section) -> RenderedSection:
        section_type = section.section_type
        if section_type is None:
            return self._assemble(
                section,
                None,
                _Body(
                    RenderVariant.not_implemented,
                    placeholder=Placeholder(
                        message=(
                            f'Section type "{section.type}" is not yet implemented. '
                            "You can add custom HTML content in the editor."
                        )
                    ),
                ),
            )
        try:
            config = parse_config(section_type, section.config)
            body = HANDLERS[section_type](section, config, self._sanitize)
        except (ValidationError, ValueError, TypeError, KeyError, IndexError) as exc:
            logger.warning(
                "Section config could not be rendered",
                extra={"section_id": section.id, "type": section.type, "error": str(exc)},
            )
            config = None
            body = _Body(RenderVariant.invalid, placeholder=Placeholder(level="warning", message=INVALID_CONFIG_MESSAGE))
        return self._assemble(section, config, body)

    def render_page(self, page: Page, *, mode: RenderMode = RenderMode.published) -> RenderedPage:
        """Render a page: published mode keeps active sections only, edit mode keeps all."""
        sections = sorted(page.sections, key=lambda section: section.position)
        if mode is RenderMode.published:
            sections = [section for section in sections if section.is_active]
        return RenderedPage(
            page_id=page.id,
            slug=page.slug,
            title=page.title,
            mode=mode,
            settings=page.settings,
            sections=[self.render_section(section) for section in sections],
        )

    def _assemble(self, section: Section, config: SectionConfig | None, body: _Body) -> RenderedSection:
        raw = section.config or {}
        show_title = config.show_title if config is not None else raw.get("showTitle") is not False
        show_subtitle = config.show_subtitle if config is not None else raw.get("showSubtitle") is not False
        header = None
        if body.show_header and section.title and show_title:
            header = SectionHeader(
                title=section.title,
                subtitle=section.subtitle if show_subtitle and section.subtitle else None,
                title_alignment=config.title_alignment if config is not None else "center",
                subtitle_alignment=config.subtitle_alignment if config is not None else "center",
            )
        view_all_link = None
        if config is not None and config.show_view_all and config.view_all_link and body.variant is not RenderVariant.spotlight:
            view_all_link = safe_url(config.view_all_link)
        styles = section.styles or {}
        style = _section_style(styles)
        style.update(body.extra_style)
        return RenderedSection(
            section_id=section.id,
            type=section.type,
            position=section.position,
            is_active=section.is_active,
            variant=body.variant,
            header=header,
            body_html=body.body_html,
            view=body.view,
            placeholder=body.placeholder,
            view_all_link=view_all_link,
            content_alignment=config.content_alignment if config is not None else "left",
            css_class=str(styles.get("className") or ""),
            container_class=_container_class(styles),
            style=style,
        )


def _section_style(styles: Mapping[str, Any]) -> dict[str, str]:
    style = {
        "padding-top": str(styles.get("paddingTop") or "2rem"),
        "padding-bottom": str(styles.get("paddingBottom") or "2rem"),
    }
    optional = {
        "background-color": styles.get("backgroundColor"),
        "color": styles.get("textColor"),
        "margin-top": styles.get("marginTop"),
        "margin-bottom": styles.get("marginBottom"),
    }
    style.update({key: str(value) for key, value in optional.items() if value})
    return style


def _container_class(styles: Mapping[str, Any]) -> str:
    if styles.get("layout") == "full-width":
        return "container-fluid"
    return str(styles.get("containerClass") or "container")


def render_page(page: Page, *, mode: RenderMode = RenderMode.published, sanitizer: RichTextSanitizer | None = None) -> RenderedPage:
    return SectionRenderer(sanitizer=sanitizer).render_page(page, mode=mode)


__all__ = ["HANDLERS", "INVALID_CONFIG_MESSAGE", "SectionRenderer", "render_page", "video_source"]
