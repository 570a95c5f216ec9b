from page_composer import mutations
from page_composer.models.page import Page
from page_composer.models.render import RenderMode
from page_composer.presentation import HtmlPresenter
from page_composer.renderer import render_page


def build_page() -> Page:
    sections = mutations.apply_bulk(
        [
            {"type": "welcome", "title": "Welcome <friends>", "content": "<p>Hi<script>x()</script></p>"},
            {"type": "cta", "config": {"buttonText": "Join", "buttonLink": "/join"}},
            {"type": "text", "title": "Draft only", "isActive": False},
            {"type": "faq"},
        ]
    )
    return Page(slug="home", title="Home", sections=sections)


def test_published_html_contains_active_sections_only():
    html = HtmlPresenter().render(render_page(build_page()))

    assert "<!DOCTYPE html>" in html
    assert "Draft only" not in html
    assert 'href="/join"' in html
    assert "Join</a>" in html
    assert 'Section type &#34;faq&#34; is coming soon.' in html


def test_titles_are_escaped_and_rich_text_is_sanitized():
    html = HtmlPresenter().render(render_page(build_page()))

    assert "Welcome &lt;friends&gt;" in html
    assert "<p>Hi" in html
    assert "<script>" not in html


def test_fragment_render_and_edit_mode():
    html = HtmlPresenter().render(render_page(build_page(), mode=RenderMode.edit), standalone=False)

    assert "<!DOCTYPE html>" not in html
    assert "Draft only" in html
    assert "section-inactive" in html


def test_page_settings_drive_container_style():
    page = build_page().with_setting("backgroundColor", "#101010")

    html = HtmlPresenter().render(render_page(page))

    assert "background-color: #101010" in html
    assert "max-width: 1200px" in html


def test_script_urls_never_reach_published_html():
    sections = mutations.apply_bulk(
        [{"type": "cta", "config": {"buttonLink": "javascript:alert(1)", "backgroundImage": "/bg.png'); x: url('"}}]
    )

    html = HtmlPresenter().render(render_page(Page(slug="home", sections=sections)))

    assert "javascript:" not in html
    assert 'href="#"' in html
    assert "url('/bg.png%27%29;%20x:%20url%28%27')" in html
