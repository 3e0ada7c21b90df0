"""Pure data models for site content.

All Pydantic models and enums live here. No I/O, no business logic.
Records are supplied by the persistence layer; the pipeline never
writes them back.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from enum import StrEnum
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, field_validator, model_validator

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Convert a string to a URL-friendly slug."""
    return _NON_ALNUM_RE.sub("-", text.lower()).strip("-")


def _short_id() -> str:
    return uuid4().hex[:8]


def _now() -> datetime:
    return datetime.now(tz=UTC)


def normalize_section_path(path: str) -> str:
    """Strip leading slashes; ``"/"`` becomes the root path ``""``."""
    return path.lstrip("/")


# ---------------------------------------------------------------------------
# Site structure
# ---------------------------------------------------------------------------


class SiteMode(StrEnum):
    """How a site organizes its content."""

    BLOG = "blog"
    STRUCTURED = "structured"


class Site(BaseModel):
    """A site in the multi-site system."""

    id: UUID = Field(default_factory=uuid4)
    short_id: str = Field(default_factory=_short_id)
    name: str = ""
    slug: str
    mode: SiteMode = SiteMode.BLOG
    active: bool = True
    default_layout_id: UUID | None = None
    last_published_at: datetime | None = None


class Section(BaseModel):
    """A URL-path-scoped grouping of content (e.g. /blog, /docs)."""

    id: UUID = Field(default_factory=uuid4)
    site_id: UUID | None = None
    short_id: str = Field(default_factory=_short_id)
    name: str
    description: str = ""
    path: str = ""
    layout_id: UUID | None = None
    layout_name: str = ""

    @field_validator("path")
    @classmethod
    def _normalize_path(cls, value: str) -> str:
        return normalize_section_path(value)

    @property
    def is_root(self) -> bool:
        return self.path in ("", "/")


class Layout(BaseModel):
    """A site-authored template, compiled at generation time."""

    id: UUID = Field(default_factory=uuid4)
    site_id: UUID | None = None
    short_id: str = Field(default_factory=_short_id)
    name: str
    description: str = ""
    code: str = ""
    header_image_id: UUID | None = None


class Tag(BaseModel):
    """A content tag. Tags are compared by id, never by name."""

    id: UUID = Field(default_factory=uuid4)
    site_id: UUID | None = None
    name: str
    slug: str = ""

    @model_validator(mode="after")
    def _default_slug(self) -> Tag:
        if not self.slug:
            self.slug = slugify(self.name)
        return self


class Setting(BaseModel):
    """A site configuration key/value pair."""

    site_id: UUID | None = None
    name: str = ""
    ref_key: str
    value: str = ""
    category: str = ""


class SocialLink(BaseModel):
    platform: str
    handle: str = ""
    url: str = ""


class Contributor(BaseModel):
    """A named author record owned by a site."""

    id: UUID = Field(default_factory=uuid4)
    site_id: UUID | None = None
    short_id: str = Field(default_factory=_short_id)
    handle: str
    name: str = ""
    surname: str = ""
    bio: str = ""
    social_links: list[SocialLink] = Field(default_factory=list)
    role: str = "editor"
    photo_path: str = ""

    @property
    def full_name(self) -> str:
        if not self.surname:
            return self.name
        return f"{self.name} {self.surname}"


class Image(BaseModel):
    """An uploaded image; only path bookkeeping and descriptive metadata."""

    id: UUID = Field(default_factory=uuid4)
    file_name: str = ""
    file_path: str
    alt_text: str = ""
    title: str = ""
    attribution: str = ""
    attribution_url: str = ""


# ---------------------------------------------------------------------------
# Content
# ---------------------------------------------------------------------------


class ContentKind(StrEnum):
    """Available content kinds."""

    POST = "post"
    PAGE = "page"
    ARTICLE = "article"
    BLOG = "blog"
    SERIES = "series"


class Meta(BaseModel):
    """SEO metadata attached to a content item."""

    description: str = ""
    keywords: str = ""
    robots: str = ""
    canonical_url: str = ""
    sitemap: str = ""
    table_of_contents: bool = False
    share: bool = False
    comments: bool = False


class Content(BaseModel):
    """A content item (post, page, article, ...)."""

    id: UUID = Field(default_factory=uuid4)
    site_id: UUID | None = None
    short_id: str = Field(default_factory=_short_id)
    section_id: UUID | None = None
    kind: ContentKind = ContentKind.POST
    heading: str
    summary: str = ""
    body: str = ""
    draft: bool = False
    featured: bool = False
    series: str = ""
    series_order: int = 0
    published_at: datetime | None = None
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    tags: list[Tag] = Field(default_factory=list)
    meta: Meta | None = None

    contributor_id: UUID | None = None
    contributor_handle: str = ""
    author_username: str = ""

    # Joined fields
    section_path: str = ""
    section_name: str = ""
    header_image_url: str = ""
    header_image_alt: str = ""

    @field_validator("section_path")
    @classmethod
    def _normalize_section_path(cls, value: str) -> str:
        return normalize_section_path(value)

    @property
    def slug(self) -> str:
        """Heading slug plus short id, unique without a collision check."""
        return f"{slugify(self.heading)}-{self.short_id}"

    @property
    def display_handle(self) -> str:
        """Contributor handle when present, otherwise the author username."""
        return self.contributor_handle or self.author_username

    def has_common_tag(self, other: Content) -> bool:
        ids = {t.id for t in self.tags}
        return any(t.id in ids for t in other.tags)


class RenderedContent(BaseModel):
    """A content item paired with its rendered body and final URL.

    Rebuilt every generation run; never persisted.
    """

    content: Content
    html_body: str = ""
    url: str

    @property
    def id(self) -> UUID:
        return self.content.id


# ---------------------------------------------------------------------------
# Generation input
# ---------------------------------------------------------------------------


class SiteBundle(BaseModel):
    """Everything one generation run needs, as supplied by the caller."""

    site: Site
    contents: list[Content] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    layouts: list[Layout] = Field(default_factory=list)
    settings: list[Setting] = Field(default_factory=list)
    contributors: list[Contributor] = Field(default_factory=list)
    user_authors: dict[str, Contributor] = Field(default_factory=dict)
    tags: list[Tag] = Field(default_factory=list)
    images: list[Image] = Field(default_factory=list)
