"""Tests for template resolution and helper registration."""

from datetime import UTC, datetime

import pytest
from jinja2.exceptions import SecurityError

from sitepress.render.templates import TemplateResolver, add, build_environment, safe_html, subtract
from sitepress.site.models import Layout, Section

FIXED = datetime(2024, 5, 1, tzinfo=UTC)


def _clock() -> datetime:
    return FIXED


class TestHelpers:
    def test_arithmetic(self):
        assert add(2, "3") == 5
        assert subtract(5, 2) == 3

    def test_safe_html_not_escaped(self):
        env = build_environment(_clock)
        out = env.from_string("{{ body }}|{{ safeHTML(body) }}").render(body="<b>x</b>")
        assert out == "&lt;b&gt;x&lt;/b&gt;|<b>x</b>"
        assert safe_html(None) == ""

    def test_now_uses_clock(self):
        env = build_environment(_clock)
        assert env.from_string("{{ now().year }}").render() == "2024"


class TestTemplateResolver:
    def test_no_layouts_uses_builtin(self):
        resolver = TemplateResolver([], [], clock=_clock)
        assert resolver.resolve(None) is resolver.builtin

    def test_section_layout_wins(self):
        layout = Layout(name="custom", code="<p>{{ site.slug }}</p>")
        section = Section(name="Blog", path="blog", layout_id=layout.id)
        resolver = TemplateResolver([section], [layout], clock=_clock)
        template = resolver.resolve(section.id)
        assert template.render(site={"slug": "demo"}) == "<p>demo</p>"

    def test_site_default_for_unassigned_section(self):
        layout = Layout(name="default", code="default:{{ site.slug }}")
        resolver = TemplateResolver([Section(name="Blog")], [layout], layout.id, clock=_clock)
        assert resolver.resolve(None).render(site={"slug": "s"}) == "default:s"

    def test_broken_section_layout_falls_back_to_default(self, caplog):
        broken = Layout(name="broken", code="{% if %}")
        default = Layout(name="default", code="fallback")
        section = Section(name="Blog", layout_id=broken.id)
        resolver = TemplateResolver([section], [broken, default], default.id, clock=_clock)
        assert resolver.resolve(section.id).render() == "fallback"
        assert "failed to compile" in caplog.text

    def test_broken_default_falls_back_to_builtin(self):
        broken = Layout(name="broken", code="{{ unclosed")
        resolver = TemplateResolver([], [broken], broken.id, clock=_clock)
        assert resolver.resolve(None) is resolver.builtin

    def test_empty_layout_code_ignored(self):
        empty = Layout(name="empty", code="   ")
        resolver = TemplateResolver([], [empty], empty.id, clock=_clock)
        assert resolver.resolve_default() is resolver.builtin

    def test_unknown_layout_id_ignored(self):
        section = Section(name="Blog", layout_id=Layout(name="gone").id)
        resolver = TemplateResolver([section], [], clock=_clock)
        assert resolver.resolve(section.id) is resolver.builtin

    def test_compiled_once_per_layout(self):
        layout = Layout(name="custom", code="x")
        first = Section(name="A", layout_id=layout.id)
        second = Section(name="B", layout_id=layout.id)
        resolver = TemplateResolver([first, second], [layout], clock=_clock)
        assert resolver.resolve(first.id) is resolver.resolve(second.id)

    def test_custom_layout_sees_helpers(self):
        layout = Layout(name="custom", code="{{ add(1, 2) }} {{ now().year }} {{ safeHTML(b) }}")
        resolver = TemplateResolver([], [layout], layout.id, clock=_clock)
        assert resolver.resolve_default().render(b="<i>") == "3 2024 <i>"

    def test_custom_layout_is_sandboxed(self):
        layout = Layout(name="evil", code="{{ ''.__class__.__mro__ }}")
        resolver = TemplateResolver([], [layout], layout.id, clock=_clock)
        with pytest.raises(SecurityError):
            resolver.resolve_default().render()
