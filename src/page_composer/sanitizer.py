from __future__ import annotations

import re
from typing import Protocol
from urllib.parse import quote, urlsplit

import bleach
from bleach.css_sanitizer import CSSSanitizer

ALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "p", "br", "h1", "h2", "h3", "h4", "h5", "h6",
        "strong", "em", "b", "i", "u", "span", "mark", "a",
        "ul", "ol", "li", "div", "section", "article", "header", "footer",
        "table", "thead", "tbody", "tr", "th", "td",
        "img", "figure", "figcaption", "blockquote", "code", "pre", "hr",
    }
)

ALLOWED_ATTRIBUTES: frozenset[str] = frozenset(
    {"href", "target", "rel", "title", "class", "style", "id", "src", "alt", "width", "height", "loading"}
)

ALLOWED_PROTOCOLS: frozenset[str] = frozenset({"http", "https", "mailto", "tel"})

_ANCHOR_WITHOUT_TARGET = re.compile(r"<a(?![^>]*\btarget=)(?=[\s>])")
_PROTOCOL_RELATIVE_HREF = re.compile(r'href="//([^"]+)"')
# Browsers drop leading C0 controls and spaces before reading a URL scheme.
_URL_PADDING = "".join(chr(code) for code in range(33))
_CSS_URL_SAFE = "/:?#[]@!$&*+,;=%~"


class RichTextSanitizer(Protocol):
    def __call__(self, html: str) -> str:
        ...


class BleachSanitizer:
    """Allow-list sanitizer for editor-supplied rich text.

    Script-capable elements and event-handler attributes are removed, links
    without an explicit target open in a new tab with ``noopener``, and
    protocol-relative links are forced to https.
    """

    def __init__(
        self,
        *,
        tags: frozenset[str] = ALLOWED_TAGS,
        attributes: frozenset[str] = ALLOWED_ATTRIBUTES,
        protocols: frozenset[str] = ALLOWED_PROTOCOLS,
    ) -> None:
        self._cleaner = bleach.Cleaner(
            tags=tags,
            attributes=list(attributes),
            protocols=protocols,
            strip=True,
            strip_comments=True,
            css_sanitizer=CSSSanitizer(),
        )

    def __call__(self, html: str) -> str:
        if not html:
            return ""
        cleaned = self._cleaner.clean(html)
        cleaned = _PROTOCOL_RELATIVE_HREF.sub(r'href="https://\1"', cleaned)
        return _ANCHOR_WITHOUT_TARGET.sub('<a target="_blank" rel="noopener noreferrer"', cleaned)


def safe_url(url: str | None, fallback: str | None = None) -> str | None:
    """Return ``url`` if it is relative or uses an allowed protocol, else ``fallback``."""
    candidate = (url or "").strip(_URL_PADDING)
    if not candidate:
        return fallback
    if candidate.startswith("//"):
        return f"https:{candidate}"
    try:
        scheme = urlsplit(candidate).scheme.lower()
    except ValueError:
        return fallback
    if scheme and scheme not in ALLOWED_PROTOCOLS:
        return fallback
    return candidate


def css_url(url: str | None) -> str | None:
    """Like :func:`safe_url`, percent-encoding anything that could end a CSS ``url('...')``."""
    checked = safe_url(url)
    if checked is None:
        return None
    return quote(checked, safe=_CSS_URL_SAFE)


def strip_markup(text: str) -> str:
    """Remove every tag, keeping the text."""
    return bleach.clean(text or "", tags=set(), strip=True).strip()


__all__ = [
    "ALLOWED_ATTRIBUTES",
    "ALLOWED_PROTOCOLS",
    "ALLOWED_TAGS",
    "BleachSanitizer",
    "RichTextSanitizer",
    "css_url",
    "safe_url",
    "strip_markup",
]
