"""HTML presentation of rendered pages."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .models.render import RenderedPage

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"


def _style_attr(style: Mapping[str, str]) -> str:
    return "; ".join(f"{key}: {value}" for key, value in style.items() if value)


def _env(templates_dir: Path = TEMPLATES_DIR) -> Environment:
    env = Environment(
        loader=FileSystemLoader(str(templates_dir)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["style_attr"] = _style_attr
    # Only sanitizer output is passed through ``trusted``.
    env.globals["trusted"] = Markup
    return env


class HtmlPresenter:
    def __init__(self, templates_dir: Path = TEMPLATES_DIR) -> None:
        self._env = _env(templates_dir)

    def render(self, page: RenderedPage, *, standalone: bool = True) -> str:
        template = self._env.get_template("page.html.j2")
        return template.render(
            page=page,
            sections=page.sections,
            settings=page.settings,
            standalone=standalone,
        )


__all__ = ["HtmlPresenter", "TEMPLATES_DIR"]
