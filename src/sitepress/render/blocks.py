"""Related content and series navigation for a single content page.

Related items are picked in priority tiers. Every candidate must share at
least one tag (by id) with the current item and is picked at most once:

1. same kind family, same section
2. the other kind family, same section
3. any kind, other sections (only with ``multi_section``)

Kind families are ``blog`` and ``article``/``post``. Items of other kinds
get no related list. Series members get prev/next navigation and series
indexes instead.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, Field

from sitepress.site.models import ContentKind, RenderedContent
from sitepress.site.settings import BlocksConfig

logger = logging.getLogger(__name__)

BLOG_FAMILY = frozenset({ContentKind.BLOG})
ARTICLE_FAMILY = frozenset({ContentKind.ARTICLE, ContentKind.POST})


class GeneratedBlocks(BaseModel):
    """Blocks output for one content item."""

    related: list[RenderedContent] = Field(default_factory=list)
    series_prev: RenderedContent | None = None
    series_next: RenderedContent | None = None
    series_forward: list[RenderedContent] = Field(default_factory=list)
    series_backward: list[RenderedContent] = Field(default_factory=list)

    @property
    def has_content(self) -> bool:
        return bool(
            self.related
            or self.series_prev
            or self.series_next
            or self.series_forward
            or self.series_backward
        )


def build_blocks(
    current: RenderedContent,
    all_rendered: list[RenderedContent],
    config: BlocksConfig,
) -> GeneratedBlocks:
    """Compute the blocks for ``current`` from the run's rendered content."""
    if not config.enabled:
        return GeneratedBlocks()

    if current.content.series:
        return _series_blocks(current, all_rendered, config.max_items)

    kind = current.content.kind
    if kind in BLOG_FAMILY:
        own, other = BLOG_FAMILY, ARTICLE_FAMILY
    elif kind in ARTICLE_FAMILY:
        own, other = ARTICLE_FAMILY, BLOG_FAMILY
    else:
        return GeneratedBlocks()

    section_id = current.content.section_id
    tiers: list[Callable[[RenderedContent], bool]] = [
        lambda c: c.content.kind in own and c.content.section_id == section_id,
        lambda c: c.content.kind in other and c.content.section_id == section_id,
    ]
    if config.multi_section:
        tiers.append(lambda c: c.content.section_id != section_id)

    return GeneratedBlocks(related=_related(current, all_rendered, tiers, config.max_items))


def _related(
    current: RenderedContent,
    all_rendered: list[RenderedContent],
    tiers: list[Callable[[RenderedContent], bool]],
    max_items: int,
) -> list[RenderedContent]:
    selected: list[RenderedContent] = []
    seen = {current.id}
    for matches in tiers:
        for candidate in all_rendered:
            if len(selected) >= max_items:
                return selected
            if candidate.id in seen or not matches(candidate):
                continue
            if not current.content.has_common_tag(candidate.content):
                continue
            selected.append(candidate)
            seen.add(candidate.id)
    return selected


def _series_blocks(
    current: RenderedContent,
    all_rendered: list[RenderedContent],
    max_items: int,
) -> GeneratedBlocks:
    series = current.content.series
    members = sorted(
        (c for c in all_rendered if c.content.series == series),
        key=lambda c: c.content.series_order,
    )

    index = next((i for i, c in enumerate(members) if c.id == current.id), -1)
    if index == -1:
        logger.warning(
            "Content %s not found in its own series %r; skipping series blocks",
            current.id,
            series,
        )
        return GeneratedBlocks()

    return GeneratedBlocks(
        series_prev=members[index - 1] if index > 0 else None,
        series_next=members[index + 1] if index + 1 < len(members) else None,
        series_forward=members[index + 1 :][:max_items],
        series_backward=list(reversed(members[:index]))[:max_items],
    )
