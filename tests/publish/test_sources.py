"""Tests for markdown and meta backup source generation."""

from datetime import UTC, datetime
from pathlib import Path

import yaml

from sitepress.publish.sources import (
    MarkdownSourceGenerator,
    MetaGenerator,
    build_frontmatter,
    render_markdown_source,
)
from sitepress.site.models import Content, Contributor, Image, Layout, Meta, Section, SocialLink, Tag
from sitepress.site.workspace import Workspace


def _make_content(**kwargs) -> Content:
    defaults = {
        "heading": "Hello World",
        "short_id": "abcd1234",
        "body": "Some **body**.",
        "created_at": datetime(2024, 1, 1, tzinfo=UTC),
        "updated_at": datetime(2024, 1, 2, tzinfo=UTC),
    }
    defaults.update(kwargs)
    return Content(**defaults)


def _split(source: str) -> tuple[dict, str]:
    _, front, body = source.split("---\n", 2)
    return yaml.safe_load(front), body


class TestFrontmatter:
    def test_required_fields_always_present(self):
        front = build_frontmatter(_make_content())
        assert front["title"] == "Hello World"
        assert front["slug"] == "hello-world-abcd1234"
        assert front["draft"] is False
        assert front["featured"] is False
        assert front["created-at"] == "2024-01-01T00:00:00+00:00"
        assert "summary" not in front
        assert "published-at" not in front

    def test_optional_fields_when_set(self):
        content = _make_content(
            section_path="blog",
            tags=[Tag(name="Python"), Tag(name="Web")],
            meta=Meta(description="desc", sitemap="exclude", table_of_contents=True),
            series="intro",
            series_order=2,
            published_at=datetime(2024, 2, 1, tzinfo=UTC),
        )
        front = build_frontmatter(content)
        assert front["section"] == "blog"
        assert front["tags"] == ["Python", "Web"]
        assert front["description"] == "desc"
        assert front["sitemap"] == "exclude"
        assert front["table-of-contents"] is True
        assert front["series-order"] == 2
        assert front["published-at"] == "2024-02-01T00:00:00+00:00"

    def test_source_layout(self):
        source = render_markdown_source(_make_content())
        assert source.startswith("---\n")
        front, body = _split(source)
        assert front["title"] == "Hello World"
        assert body == "\nSome **body**."

    def test_field_order_preserved(self):
        source = render_markdown_source(_make_content())
        assert source.index("title:") < source.index("slug:") < source.index("draft:")


class TestMarkdownSourceGenerator:
    def test_writes_by_section(self, tmp_path):
        workspace = Workspace(tmp_path)
        contents = [
            _make_content(),
            _make_content(heading="Docs Page", short_id="dddd0000", section_path="/docs"),
            _make_content(heading="Draft", short_id="eeee0000", draft=True),
        ]
        result = MarkdownSourceGenerator(workspace).generate("demo", contents)

        base = workspace.markdown_dir("demo")
        assert (base / "posts" / "hello-world-abcd1234.md").exists()
        assert (base / "docs" / "docs-page-dddd0000.md").exists()
        assert (base / "posts" / "draft-eeee0000.md").exists()
        assert result.files_generated == 3
        assert result.errors == []

    def test_previous_sources_removed(self, tmp_path):
        workspace = Workspace(tmp_path)
        stale = workspace.markdown_dir("demo") / "posts" / "gone.md"
        stale.parent.mkdir(parents=True)
        stale.write_text("old")
        MarkdownSourceGenerator(workspace).generate("demo", [])
        assert not stale.exists()


class TestMetaGenerator:
    def _generate(self, tmp_path: Path, **kwargs):
        args = {"layouts": [], "contributors": [], "tags": [], "sections": [], "images": []}
        args.update(kwargs)
        workspace = Workspace(tmp_path)
        result = MetaGenerator(workspace).generate("demo", **args)
        return workspace.meta_dir("demo"), result

    def test_yaml_files(self, tmp_path):
        meta, result = self._generate(
            tmp_path,
            contributors=[
                Contributor(
                    handle="jdoe",
                    name="Jane",
                    social_links=[SocialLink(platform="mastodon", url="https://m.example/@j")],
                )
            ],
            tags=[Tag(name="Python")],
            sections=[Section(name="Blog", path="/blog", layout_name="wide")],
        )
        contributors = yaml.safe_load((meta / "contributors.yml").read_text())
        assert contributors[0]["handle"] == "jdoe"
        assert contributors[0]["social-links"][0]["platform"] == "mastodon"
        assert yaml.safe_load((meta / "tags.yml").read_text()) == [{"name": "Python", "slug": "python"}]
        sections = yaml.safe_load((meta / "sections.yml").read_text())
        assert sections[0]["path"] == "blog"
        assert sections[0]["layout"] == "wide"
        assert not (meta / "layouts.yml").exists()
        assert result.files_generated == 3

    def test_layout_code_written(self, tmp_path):
        meta, _ = self._generate(
            tmp_path,
            layouts=[Layout(name="Wide Layout", code="<html>{{ site.name }}</html>"), Layout(name="Empty")],
        )
        assert (meta / "layouts" / "wide-layout.html").read_text() == "<html>{{ site.name }}</html>"
        assert not (meta / "layouts" / "empty.html").exists()
        assert len(yaml.safe_load((meta / "layouts.yml").read_text())) == 2

    def test_only_described_images(self, tmp_path):
        meta, _ = self._generate(
            tmp_path,
            images=[
                Image(file_path="a.png", alt_text="A cat"),
                Image(file_path="b.png"),
            ],
        )
        images = yaml.safe_load((meta / "images.yml").read_text())
        assert list(images) == ["a.png"]
        assert images["a.png"]["alt-text"] == "A cat"
