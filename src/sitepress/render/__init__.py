"""Static HTML rendering: templates, blocks, URL topology, page assembly, sitemap."""

from sitepress.render.assembler import (
    AuthorPage,
    ContributorAuthor,
    GenerateResult,
    PageAssembler,
    UsernameAuthor,
    collect_authors,
    resolve_author,
)
from sitepress.render.blocks import GeneratedBlocks, build_blocks
from sitepress.render.processor import ContentProcessor, MarkdownProcessor
from sitepress.render.sitemap import build_sitemap, generate_cname
from sitepress.render.templates import TemplateResolver
from sitepress.render.urls import Page, asset_path, content_url, paginate, pagination_url

__all__ = [
    "AuthorPage",
    "ContentProcessor",
    "ContributorAuthor",
    "GenerateResult",
    "GeneratedBlocks",
    "MarkdownProcessor",
    "Page",
    "PageAssembler",
    "TemplateResolver",
    "UsernameAuthor",
    "asset_path",
    "build_blocks",
    "build_sitemap",
    "collect_authors",
    "content_url",
    "generate_cname",
    "paginate",
    "pagination_url",
    "resolve_author",
]
