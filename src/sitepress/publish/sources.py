"""Backup source tree: one markdown file per content item plus meta YAML.

Layout under the site workspace::

    markdown/<section-path or "posts">/<slug>.md
    meta/layouts.yml, meta/layouts/<name>.html
    meta/contributors.yml, meta/tags.yml, meta/sections.yml, meta/images.yml
"""

from __future__ import annotations

import logging
from datetime import datetime
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from sitepress.site.models import Content, Contributor, Image, Layout, Section, Tag, slugify
from sitepress.site.workspace import Workspace, clean_dir

logger = logging.getLogger(__name__)

DEFAULT_SECTION_DIR = "posts"


class SourceResult(BaseModel):
    """Outcome of writing a backup source tree."""

    total: int = 0
    files_generated: int = 0
    errors: list[str] = Field(default_factory=list)


def _dump_yaml(data: Any) -> str:
    return yaml.safe_dump(data, sort_keys=False, allow_unicode=True, default_flow_style=False)


def _timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def build_frontmatter(content: Content) -> dict[str, Any]:
    """Frontmatter fields for ``content``; empty optional values are omitted."""
    meta = content.meta
    fields: dict[str, Any] = {
        "title": content.heading,
        "slug": content.slug,
        "short-id": content.short_id,
        "section": content.section_path,
        "author": content.author_username,
        "contributor": content.contributor_handle,
        "tags": [t.name for t in content.tags],
        "layout": content.section_name,
        "draft": content.draft,
        "featured": content.featured,
        "summary": content.summary,
        "description": meta.description if meta else "",
        "image": content.header_image_url,
        "social-image": content.header_image_url,
        "published-at": _timestamp(content.published_at),
        "created-at": _timestamp(content.created_at),
        "updated-at": _timestamp(content.updated_at),
        "robots": meta.robots if meta else "",
        "keywords": meta.keywords if meta else "",
        "canonical-url": meta.canonical_url if meta else "",
        "sitemap": meta.sitemap if meta else "",
        "table-of-contents": meta.table_of_contents if meta else False,
        "comments": meta.comments if meta else False,
        "share": meta.share if meta else False,
        "kind": str(content.kind),
        "series": content.series,
        "series-order": content.series_order,
    }
    always = {"title", "slug", "draft", "featured", "created-at", "updated-at"}
    return {k: v for k, v in fields.items() if k in always or v}


def render_markdown_source(content: Content) -> str:
    frontmatter = _dump_yaml(build_frontmatter(content))
    return f"---\n{frontmatter}---\n\n{content.body}"


class MarkdownSourceGenerator:
    """Writes every content item, drafts included, as markdown with frontmatter."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def generate(self, site_slug: str, contents: list[Content]) -> SourceResult:
        result = SourceResult(total=len(contents))
        base = self.workspace.markdown_dir(site_slug)
        base.mkdir(parents=True, exist_ok=True)
        clean_dir(base)

        for content in contents:
            section_dir = content.section_path.strip("/") or DEFAULT_SECTION_DIR
            path = base / section_dir / f"{content.slug}.md"
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(render_markdown_source(content), encoding="utf-8")
            except (OSError, yaml.YAMLError) as exc:
                logger.warning("Failed to write markdown for %r: %s", content.heading, exc)
                result.errors.append(f"content {content.heading}: {exc}")
                continue
            result.files_generated += 1

        logger.info(
            "Wrote %d/%d markdown sources for %s", result.files_generated, result.total, site_slug
        )
        return result


# ---------------------------------------------------------------------------
# Meta
# ---------------------------------------------------------------------------


def _layout_meta(layout: Layout) -> dict[str, Any]:
    return {
        "short-id": layout.short_id,
        "name": layout.name,
        "description": layout.description,
        "header-image-id": str(layout.header_image_id) if layout.header_image_id else "",
    }


def _contributor_meta(contributor: Contributor) -> dict[str, Any]:
    return {
        "short-id": contributor.short_id,
        "handle": contributor.handle,
        "name": contributor.name,
        "surname": contributor.surname,
        "bio": contributor.bio,
        "role": contributor.role,
        "photo-path": contributor.photo_path,
        "social-links": [link.model_dump() for link in contributor.social_links],
    }


def _tag_meta(tag: Tag) -> dict[str, Any]:
    return {"name": tag.name, "slug": tag.slug}


def _section_meta(section: Section) -> dict[str, Any]:
    return {
        "short-id": section.short_id,
        "name": section.name,
        "description": section.description,
        "path": section.path,
        "layout": section.layout_name,
    }


def _image_meta(image: Image) -> dict[str, Any] | None:
    if not (image.alt_text or image.title or image.attribution or image.attribution_url):
        return None
    return {
        "alt-text": image.alt_text,
        "title": image.title,
        "attribution": image.attribution,
        "attribution-url": image.attribution_url,
    }


class MetaGenerator:
    """Writes site structure records (layouts, contributors, ...) as YAML."""

    def __init__(self, workspace: Workspace) -> None:
        self.workspace = workspace

    def generate(
        self,
        site_slug: str,
        layouts: list[Layout],
        contributors: list[Contributor],
        tags: list[Tag],
        sections: list[Section],
        images: list[Image],
    ) -> SourceResult:
        result = SourceResult()
        base = self.workspace.meta_dir(site_slug)
        base.mkdir(parents=True, exist_ok=True)
        clean_dir(base)

        image_entries = {
            image.file_path: entry
            for image in images
            if (entry := _image_meta(image)) is not None
        }
        files: list[tuple[str, Any]] = [
            ("layouts.yml", [_layout_meta(layout) for layout in layouts]),
            ("contributors.yml", [_contributor_meta(c) for c in contributors]),
            ("tags.yml", [_tag_meta(t) for t in tags]),
            ("sections.yml", [_section_meta(s) for s in sections]),
            ("images.yml", image_entries),
        ]
        for name, data in files:
            if not data:
                continue
            result.total += 1
            self._write(base / name, _dump_yaml(data), name, result)

        layouts_dir = base / "layouts"
        for layout in layouts:
            if not layout.code:
                continue
            result.total += 1
            layouts_dir.mkdir(exist_ok=True)
            filename = f"{slugify(layout.name) or layout.short_id}.html"
            self._write(layouts_dir / filename, layout.code, f"layout {layout.name}", result)

        return result

    @staticmethod
    def _write(path: Path, text: str, label: str, result: SourceResult) -> None:
        try:
            path.write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.warning("Failed to write %s: %s", path, exc)
            result.errors.append(f"{label}: {exc}")
            return
        result.files_generated += 1
