"""Tests for related content and series navigation blocks."""

from uuid import uuid4

from sitepress.render.blocks import build_blocks
from sitepress.site.models import Content, ContentKind, RenderedContent, Tag
from sitepress.site.settings import BlocksConfig

S1 = uuid4()
S2 = uuid4()
T1 = Tag(name="t1")
T2 = Tag(name="t2")


def _make_rendered(heading: str, **kwargs) -> RenderedContent:
    defaults = {
        "heading": heading,
        "kind": ContentKind.ARTICLE,
        "section_id": S1,
        "tags": [T1],
    }
    defaults.update(kwargs)
    content = Content(**defaults)
    return RenderedContent(content=content, url=f"/{content.slug}/")


def _headings(items: list[RenderedContent]) -> list[str]:
    return [r.content.heading for r in items]


class TestRelatedTiers:
    def test_tier_ordering_and_limit(self):
        a = _make_rendered("A")
        b = _make_rendered("B")
        c = _make_rendered("C", kind=ContentKind.BLOG)
        d = _make_rendered("D", section_id=S2)
        blocks = build_blocks(a, [a, d, c, b], BlocksConfig(multi_section=True, max_items=2))
        assert _headings(blocks.related) == ["B", "C"]

    def test_other_sections_reached_when_room(self):
        a = _make_rendered("A")
        b = _make_rendered("B")
        c = _make_rendered("C", kind=ContentKind.BLOG)
        d = _make_rendered("D", section_id=S2)
        blocks = build_blocks(a, [a, d, c, b], BlocksConfig(max_items=5))
        assert _headings(blocks.related) == ["B", "C", "D"]

    def test_multi_section_disabled(self):
        a = _make_rendered("A")
        d = _make_rendered("D", section_id=S2)
        blocks = build_blocks(a, [a, d], BlocksConfig(multi_section=False))
        assert blocks.related == []

    def test_blog_prefers_blog(self):
        a = _make_rendered("A", kind=ContentKind.BLOG)
        b = _make_rendered("B", kind=ContentKind.POST)
        c = _make_rendered("C", kind=ContentKind.BLOG)
        blocks = build_blocks(a, [a, b, c], BlocksConfig())
        assert _headings(blocks.related) == ["C", "B"]

    def test_requires_shared_tag(self):
        a = _make_rendered("A")
        b = _make_rendered("B", tags=[T2])
        same_name = _make_rendered("C", tags=[Tag(name="t1")])
        blocks = build_blocks(a, [a, b, same_name], BlocksConfig())
        assert blocks.related == []

    def test_never_includes_self(self):
        a = _make_rendered("A")
        blocks = build_blocks(a, [a], BlocksConfig())
        assert blocks.related == []
        assert blocks.has_content is False

    def test_page_kind_gets_nothing(self):
        a = _make_rendered("A", kind=ContentKind.PAGE)
        b = _make_rendered("B")
        assert build_blocks(a, [a, b], BlocksConfig()).related == []

    def test_disabled(self):
        a = _make_rendered("A")
        b = _make_rendered("B")
        assert build_blocks(a, [a, b], BlocksConfig(enabled=False)).has_content is False


class TestSeries:
    def _series(self) -> list[RenderedContent]:
        return [
            _make_rendered("Three", series="s", series_order=3),
            _make_rendered("One", series="s", series_order=1),
            _make_rendered("Two", series="s", series_order=2),
            _make_rendered("Other", series="x", series_order=1),
        ]

    def test_middle_item_navigation(self):
        items = self._series()
        two = items[2]
        blocks = build_blocks(two, items, BlocksConfig())
        assert blocks.series_prev.content.heading == "One"
        assert blocks.series_next.content.heading == "Three"
        assert _headings(blocks.series_forward) == ["Three"]
        assert _headings(blocks.series_backward) == ["One"]
        assert blocks.related == []

    def test_first_item(self):
        items = self._series()
        blocks = build_blocks(items[1], items, BlocksConfig())
        assert blocks.series_prev is None
        assert _headings(blocks.series_forward) == ["Two", "Three"]
        assert blocks.series_backward == []

    def test_indexes_truncated_nearest_first(self):
        items = [_make_rendered(f"P{i}", series="s", series_order=i) for i in range(1, 8)]
        blocks = build_blocks(items[4], items, BlocksConfig(max_items=2))
        assert _headings(blocks.series_backward) == ["P4", "P3"]
        assert _headings(blocks.series_forward) == ["P6", "P7"]

    def test_missing_from_own_series_is_empty(self, caplog):
        current = _make_rendered("Lost", series="s", series_order=1)
        others = [_make_rendered("One", series="s", series_order=1)]
        blocks = build_blocks(current, others, BlocksConfig())
        assert blocks.has_content is False
        assert "not found in its own series" in caplog.text
