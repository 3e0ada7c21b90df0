"""URL topology: content URLs, pagination URLs and relative asset prefixes.

All functions are pure. ``base_path`` is expected to be normalized
(see ``sitepress.site.settings.normalize_base_path``).
"""

from __future__ import annotations

import math
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from sitepress.site.models import Content

T = TypeVar("T")


def section_url(base_path: str, section_path: str) -> str:
    """URL of a section index; the root section maps to ``base_path``."""
    section_path = section_path.strip("/")
    if not section_path:
        return base_path
    return f"{base_path}{section_path}/"


def content_url(base_path: str, content: Content) -> str:
    """e.g. ``/blog/my-post-ab12cd34/`` or ``/docs/blog/my-post-ab12cd34/``."""
    return f"{section_url(base_path, content.section_path)}{content.slug}/"


def pagination_url(base_path: str, section_path: str, page: int) -> str:
    """Page 1 is the section index; page n > 1 is ``.../page/n/``."""
    index = section_url(base_path, section_path)
    if page <= 1:
        return index
    return f"{index}page/{page}/"


def author_url(base_path: str, handle: str) -> str:
    return f"{base_path}authors/{handle}/"


def asset_path(path: str) -> str:
    """``"../"`` once per path segment, at least once.

    ``path`` is the output location relative to the html root, e.g.
    ``"blog/my-post-ab12cd34"`` yields ``"../../"``.
    """
    depth = len([segment for segment in path.split("/") if segment])
    return "../" * max(depth, 1)


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


class Page(BaseModel, Generic[T]):
    """One page of a paginated index."""

    number: int
    total_pages: int
    items: list[T] = Field(default_factory=list)
    prev_url: str = ""
    next_url: str = ""

    @property
    def has_prev(self) -> bool:
        return self.number > 1

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages


def total_pages(count: int, page_size: int) -> int:
    """``ceil(count / page_size)``, never less than one."""
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")
    return max(1, math.ceil(count / page_size))


def paginate(items: list[T], page_size: int, base_path: str, section_path: str) -> list[Page[T]]:
    """Split ``items`` into pages; an empty list still yields one empty page."""
    pages_count = total_pages(len(items), page_size)
    pages: list[Page[T]] = []
    for number in range(1, pages_count + 1):
        start = (number - 1) * page_size
        page: Page[T] = Page(
            number=number,
            total_pages=pages_count,
            items=items[start : start + page_size],
        )
        if page.has_prev:
            page.prev_url = pagination_url(base_path, section_path, number - 1)
        if page.has_next:
            page.next_url = pagination_url(base_path, section_path, number + 1)
        pages.append(page)
    return pages
