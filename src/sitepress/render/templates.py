"""Template resolution: section layout → site default layout → built-in set.

Built-in templates ship as package data under ``sitepress/render/templates``.
Site-authored layouts are compiled in a Jinja2 sandbox that only sees the
helper functions registered here, and may include the built-in partials.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from jinja2 import Environment, PackageLoader, Template, TemplateError, select_autoescape
from jinja2.sandbox import SandboxedEnvironment
from markupsafe import Markup

from sitepress.errors import GenerationError
from sitepress.site.models import Layout, Section

logger = logging.getLogger(__name__)

LAYOUT_TEMPLATE = "layout.html"


def safe_html(raw: object) -> Markup:
    """Mark already-rendered HTML as trusted."""
    return Markup("" if raw is None else str(raw))


def add(a: int, b: int) -> int:
    return int(a) + int(b)


def subtract(a: int, b: int) -> int:
    return int(a) - int(b)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


def _register_helpers(env: Environment, clock: Callable[[], datetime]) -> None:
    helpers: dict[str, Callable[..., object]] = {
        "safeHTML": safe_html,
        "add": add,
        "subtract": subtract,
        "now": clock,
    }
    env.globals.update(helpers)
    env.filters["safeHTML"] = safe_html


def build_environment(
    clock: Callable[[], datetime] = _utc_now,
    sandboxed: bool = False,
) -> Environment:
    """Create a Jinja2 environment over the built-in template set."""
    env_class = SandboxedEnvironment if sandboxed else Environment
    env = env_class(
        loader=PackageLoader("sitepress.render", "templates"),
        autoescape=select_autoescape(["html"], default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    _register_helpers(env, clock)
    return env


class TemplateResolver:
    """Resolves the template for a section for the duration of one run.

    Compiled custom layouts are cached by layout id; a layout that fails
    to compile is cached as unavailable and the next tier is used.
    """

    def __init__(
        self,
        sections: list[Section],
        layouts: list[Layout],
        default_layout_id: UUID | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._env = build_environment(clock)
        self._sandbox = build_environment(clock, sandboxed=True)

        try:
            self._builtin = self._env.get_template(LAYOUT_TEMPLATE)
        except TemplateError as exc:
            raise GenerationError(f"Failed to parse built-in templates: {exc}") from exc

        layouts_by_id = {layout.id: layout for layout in layouts}
        self._section_layouts: dict[UUID, Layout] = {
            section.id: layouts_by_id[section.layout_id]
            for section in sections
            if section.layout_id is not None and section.layout_id in layouts_by_id
        }
        self._default_layout = (
            layouts_by_id.get(default_layout_id) if default_layout_id is not None else None
        )
        self._compiled: dict[UUID, Template | None] = {}

    @property
    def builtin(self) -> Template:
        return self._builtin

    def resolve(self, section_id: UUID | None) -> Template:
        """Template for pages of ``section_id``."""
        if section_id is not None:
            layout = self._section_layouts.get(section_id)
            if layout is not None:
                template = self._compile(layout)
                if template is not None:
                    return template
        return self.resolve_default()

    def resolve_default(self) -> Template:
        """Site default layout when it compiles, otherwise the built-in set."""
        if self._default_layout is not None:
            template = self._compile(self._default_layout)
            if template is not None:
                return template
        return self._builtin

    def _compile(self, layout: Layout) -> Template | None:
        if layout.id in self._compiled:
            return self._compiled[layout.id]

        template: Template | None = None
        if layout.code.strip():
            try:
                template = self._sandbox.from_string(layout.code)
            except TemplateError as exc:
                logger.warning(
                    "Layout %r (%s) failed to compile, falling back: %s",
                    layout.name,
                    layout.id,
                    exc,
                )
        self._compiled[layout.id] = template
        return template
