"""Static site assembly: content pages, paginated indexes and author pages.

One ``generate`` call fully replaces a site's ``html/`` directory. Setup
steps (cleaning, asset copies) are best-effort: failures are recorded in
the result and the run continues. A failing page is recorded and skipped.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from datetime import UTC, datetime
from importlib.resources import files
from pathlib import Path
from typing import Any, Literal

from jinja2 import Template
from pydantic import BaseModel, Field

from sitepress.errors import GenerationError
from sitepress.render.blocks import GeneratedBlocks, build_blocks
from sitepress.render.processor import ContentProcessor, MarkdownProcessor
from sitepress.render.templates import TemplateResolver
from sitepress.render.urls import asset_path, content_url, paginate
from sitepress.site.models import (
    Content,
    ContentKind,
    Contributor,
    Layout,
    RenderedContent,
    Section,
    Setting,
    Site,
    SocialLink,
)
from sitepress.site.settings import SiteSettings
from sitepress.site.workspace import Workspace, clean_dir, contained_path, copy_tree

logger = logging.getLogger(__name__)

MAIN_SECTION_NAME = "main"


class GenerateResult(BaseModel):
    """Outcome of one generation run."""

    total_content: int = 0
    pages_generated: int = 0
    index_pages: int = 0
    author_pages: int = 0
    errors: list[str] = Field(default_factory=list)

    def summary(self) -> str:
        return (
            f"{self.pages_generated} pages generated, {self.index_pages} index pages, "
            f"{self.author_pages} author pages, {len(self.errors)} errors"
        )


# ---------------------------------------------------------------------------
# Authors
# ---------------------------------------------------------------------------


class ContributorAuthor(BaseModel):
    """An author backed by a site Contributor record."""

    kind: Literal["contributor"] = "contributor"
    contributor: Contributor


class UsernameAuthor(BaseModel):
    """An author known only by the raw username on content."""

    kind: Literal["username"] = "username"
    username: str
    profile: Contributor | None = None


Author = ContributorAuthor | UsernameAuthor


class AuthorPage(BaseModel):
    """Uniform subject of an author page, whatever the author's origin."""

    handle: str
    display_name: str
    bio: str = ""
    photo_path: str = ""
    social_links: list[SocialLink] = Field(default_factory=list)


def collect_authors(
    contents: list[Content],
    contributors: list[Contributor],
    user_authors: dict[str, Contributor],
) -> list[Author]:
    """Every contributor, then each raw username not covered by a handle."""
    authors: list[Author] = [ContributorAuthor(contributor=c) for c in contributors]
    seen = {c.handle for c in contributors}
    for content in contents:
        username = content.author_username
        if not username or username in seen:
            continue
        seen.add(username)
        authors.append(UsernameAuthor(username=username, profile=user_authors.get(username)))
    return authors


def resolve_author(author: Author) -> AuthorPage:
    if isinstance(author, ContributorAuthor):
        c = author.contributor
        return AuthorPage(
            handle=c.handle,
            display_name=c.full_name or c.handle,
            bio=c.bio,
            photo_path=c.photo_path,
            social_links=c.social_links,
        )
    profile = author.profile
    if profile is None:
        return AuthorPage(handle=author.username, display_name=author.username)
    return AuthorPage(
        handle=author.username,
        display_name=profile.full_name or author.username,
        bio=profile.bio,
        photo_path=profile.photo_path,
        social_links=profile.social_links,
    )


def build_menu(sections: list[Section]) -> list[Section]:
    """Navigation menu: every section except the root/main one."""
    return [s for s in sections if s.name != MAIN_SECTION_NAME and not s.is_root]


# ---------------------------------------------------------------------------
# Assembler
# ---------------------------------------------------------------------------


class PageAssembler:
    """Renders a site's content into ``<workspace>/<slug>/html``."""

    def __init__(
        self,
        workspace: Workspace,
        processor: ContentProcessor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.workspace = workspace
        self.processor = processor or MarkdownProcessor()
        self.clock = clock or (lambda: datetime.now(tz=UTC))

    def generate(
        self,
        site: Site,
        contents: list[Content],
        sections: list[Section],
        layouts: list[Layout],
        settings: list[Setting],
        contributors: list[Contributor],
        user_authors: dict[str, Contributor] | None = None,
    ) -> GenerateResult:
        """Generate the full static site for ``site``.

        Raises:
            GenerationError: If the output directory cannot be created or
                the built-in templates cannot be parsed.
        """
        result = GenerateResult(total_content=len(contents))
        user_authors = user_authors or {}
        html_dir = self.workspace.html_dir(site.slug)

        try:
            html_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise GenerationError(f"Cannot create output directory {html_dir}: {exc}") from exc

        self._setup(site, html_dir, contributors, user_authors, result)

        resolver = TemplateResolver(sections, layouts, site.default_layout_id, clock=self.clock)
        site_settings = SiteSettings.from_settings(settings)
        base_path = site_settings.base_path
        sections_by_id = {s.id: s for s in sections}

        common: dict[str, Any] = {
            "site": site,
            "sections": sections,
            "menu": build_menu(sections),
            "params": site_settings.values,
            "base_path": base_path,
        }

        all_rendered = self._pre_render(contents, base_path)

        for rendered in all_rendered:
            content = rendered.content
            try:
                blocks = build_blocks(rendered, all_rendered, site_settings.blocks)
                self._render_content_page(
                    resolver.resolve(content.section_id),
                    site,
                    rendered,
                    sections_by_id.get(content.section_id),
                    blocks,
                    common,
                )
            except Exception as exc:
                logger.warning("Failed to render content %r", content.heading, exc_info=True)
                result.errors.append(f"content {content.heading}: {exc}")
                continue
            result.pages_generated += 1

        self._render_indexes(resolver, site, sections, all_rendered, site_settings, common, result)
        self._render_authors(
            resolver, site, contents, all_rendered, contributors, user_authors, common, result
        )

        logger.info("Generated site %s: %s", site.slug, result.summary())
        return result

    # ── Setup ───────────────────────────────────────────────────

    def _setup(
        self,
        site: Site,
        html_dir: Path,
        contributors: list[Contributor],
        user_authors: dict[str, Contributor],
        result: GenerateResult,
    ) -> None:
        steps: list[tuple[str, Callable[[], None]]] = [
            ("clean output", lambda: clean_dir(html_dir)),
            ("static assets", lambda: copy_static_assets(html_dir / "static")),
            ("images", lambda: self._copy_images(site, html_dir)),
            (
                "profile photos",
                lambda: self._copy_profile_photos(html_dir, contributors, user_authors, result),
            ),
        ]
        for label, step in steps:
            try:
                step()
            except OSError as exc:
                logger.warning("Setup step %r failed for %s: %s", label, site.slug, exc)
                result.errors.append(f"{label}: {exc}")

    def _copy_images(self, site: Site, html_dir: Path) -> None:
        images = self.workspace.images_dir(site.slug)
        if images.is_dir():
            copy_tree(images, html_dir / "images")

    def _copy_profile_photos(
        self,
        html_dir: Path,
        contributors: list[Contributor],
        user_authors: dict[str, Contributor],
        result: GenerateResult,
    ) -> None:
        """Copy each referenced photo once; a failing photo is recorded and skipped."""
        profiles_dir = html_dir / "profiles"
        profiles_dir.mkdir(parents=True, exist_ok=True)
        seen: set[str] = set()
        for person in [*contributors, *user_authors.values()]:
            photo = person.photo_path
            if not photo or photo in seen:
                continue
            seen.add(photo)
            try:
                src = contained_path(self.workspace.profiles_dir, photo)
                if not src.is_file():
                    logger.debug("Profile photo %s not found, skipping", src)
                    continue
                dst = contained_path(profiles_dir, photo)
                dst.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(src, dst)
            except (OSError, ValueError) as exc:
                logger.warning("Failed to copy profile photo %s: %s", photo, exc)
                result.errors.append(f"profile photo {photo}: {exc}")

    # ── Content ─────────────────────────────────────────────────

    def _pre_render(self, contents: list[Content], base_path: str) -> list[RenderedContent]:
        """Render every non-draft body once for the whole run."""
        rendered: list[RenderedContent] = []
        for content in contents:
            if content.draft:
                continue
            try:
                body = self.processor.process(content)
            except Exception:
                logger.warning("Failed to process body of %r", content.heading, exc_info=True)
                body = ""
            rendered.append(
                RenderedContent(content=content, html_body=body, url=content_url(base_path, content))
            )
        return rendered

    def _render_content_page(
        self,
        template: Template,
        site: Site,
        rendered: RenderedContent,
        section: Section | None,
        blocks: GeneratedBlocks,
        common: dict[str, Any],
    ) -> None:
        content = rendered.content
        output = self.workspace.content_html_path(site.slug, content.section_path, content.slug)
        relative = "/".join(p for p in (content.section_path, content.slug) if p)
        _write_page(
            template,
            output,
            common,
            content=rendered,
            section=section,
            blocks=blocks,
            asset_path=asset_path(relative),
        )

    # ── Indexes ─────────────────────────────────────────────────

    def _render_indexes(
        self,
        resolver: TemplateResolver,
        site: Site,
        sections: list[Section],
        all_rendered: list[RenderedContent],
        site_settings: SiteSettings,
        common: dict[str, Any],
        result: GenerateResult,
    ) -> None:
        listed = [r for r in all_rendered if r.content.kind != ContentKind.PAGE]
        main = next((s for s in sections if s.is_root), None)

        targets: list[tuple[Section | None, list[RenderedContent]]] = [(main, listed)]
        for section in sections:
            if section.is_root:
                continue
            items = [r for r in listed if r.content.section_id == section.id]
            if items:
                targets.append((section, items))

        for section, items in targets:
            section_path = section.path if section is not None else ""
            try:
                template = resolver.resolve(section.id if section is not None else None)
                for page in paginate(
                    items, site_settings.index_page_size, site_settings.base_path, section_path
                ):
                    _write_page(
                        template,
                        self.workspace.pagination_html_path(site.slug, section_path, page.number),
                        common,
                        contents=page.items,
                        section=section,
                        is_index=True,
                        is_paginated=page.total_pages > 1,
                        current_page=page.number,
                        total_pages=page.total_pages,
                        has_prev=page.has_prev,
                        has_next=page.has_next,
                        prev_url=page.prev_url,
                        next_url=page.next_url,
                        asset_path=site_settings.base_path,
                    )
            except Exception as exc:
                label = section_path or "/"
                logger.warning("Failed to render index %s", label, exc_info=True)
                result.errors.append(f"index {label}: {exc}")
                continue
            result.index_pages += 1

    # ── Authors ─────────────────────────────────────────────────

    def _render_authors(
        self,
        resolver: TemplateResolver,
        site: Site,
        contents: list[Content],
        all_rendered: list[RenderedContent],
        contributors: list[Contributor],
        user_authors: dict[str, Contributor],
        common: dict[str, Any],
        result: GenerateResult,
    ) -> None:
        template = resolver.resolve_default()
        published = [c for c in contents if not c.draft]
        for author in collect_authors(published, contributors, user_authors):
            subject = resolve_author(author)
            items = [
                r
                for r in all_rendered
                if subject.handle in (r.content.contributor_handle, r.content.author_username)
            ]
            try:
                _write_page(
                    template,
                    self.workspace.author_html_path(site.slug, subject.handle),
                    common,
                    author=subject,
                    contents=items,
                    is_author=True,
                    asset_path=common["base_path"],
                )
            except Exception as exc:
                logger.warning("Failed to render author %s", subject.handle, exc_info=True)
                result.errors.append(f"author {subject.handle}: {exc}")
                continue
            result.author_pages += 1


def copy_static_assets(dst: Path) -> None:
    """Copy the packaged stylesheet and friends to ``html/static``."""
    dst.mkdir(parents=True, exist_ok=True)
    for entry in files("sitepress.render").joinpath("static").iterdir():
        if entry.is_file():
            (dst / entry.name).write_bytes(entry.read_bytes())


def _write_page(template: Template, output: Path, common: dict[str, Any], **data: Any) -> None:
    context: dict[str, Any] = {
        **common,
        "content": None,
        "contents": [],
        "section": None,
        "author": None,
        "blocks": None,
        "is_index": False,
        "is_author": False,
        "is_paginated": False,
        "current_page": 1,
        "total_pages": 1,
        "has_prev": False,
        "has_next": False,
        "prev_url": "",
        "next_url": "",
    }
    context.update(data)
    html = template.render(context)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
