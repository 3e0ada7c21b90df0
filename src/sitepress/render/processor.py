"""Content body conversion: markdown plus image and embed post-processing."""

from __future__ import annotations

import html
import re
from abc import ABC, abstractmethod

import markdown

from sitepress.render.embeds import process_embeds
from sitepress.site.models import Content

MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "sane_lists", "toc", "nl2br"]

CAPTION_SEPARATOR = "|||"

_WORKSPACE_IMAGE_RE = re.compile(r"/ssg/workspace/[^/]+/images/")
_IMG_RE = re.compile(r"<img\b([^>]*?)\s*/?>")
_ATTR_RE = re.compile(r'([a-zA-Z-]+)="([^"]*)"')


class ContentProcessor(ABC):
    """Converts a content body to HTML."""

    @abstractmethod
    def process(self, content: Content) -> str:
        """Return the HTML for ``content.body``."""


class MarkdownProcessor(ContentProcessor):
    """Python-Markdown with workspace image rewriting, captions and embeds."""

    def __init__(self, extensions: list[str] | None = None) -> None:
        self.extensions = extensions if extensions is not None else list(MARKDOWN_EXTENSIONS)

    def process(self, content: Content) -> str:
        return self.to_html(content.body)

    def to_html(self, text: str) -> str:
        text = rewrite_image_paths(text)
        rendered = markdown.markdown(text, extensions=self.extensions)
        rendered = enhance_images(rendered)
        return process_embeds(rendered)


def rewrite_image_paths(text: str) -> str:
    """Point workspace image URLs at the published ``/images/`` directory."""
    return _WORKSPACE_IMAGE_RE.sub("/images/", text)


def enhance_images(rendered_html: str) -> str:
    """Add lazy loading to images and expand ``alt|||caption`` into a figure."""

    def _replace(match: re.Match[str]) -> str:
        attrs = dict(_ATTR_RE.findall(match.group(1)))
        src = attrs.get("src", "")
        alt = attrs.get("alt", "")
        caption = ""
        raw_alt = html.unescape(alt)
        if CAPTION_SEPARATOR in raw_alt:
            alt_part, caption_part = raw_alt.split(CAPTION_SEPARATOR, 1)
            alt = html.escape(alt_part.strip())
            caption = html.escape(caption_part.strip())

        title = f' title="{attrs["title"]}"' if "title" in attrs else ""
        img = f'<img src="{src}" alt="{alt}"{title} class="content-img" loading="lazy">'
        if not caption:
            return img
        return (
            f'<figure class="content-figure">{img}'
            f'<figcaption class="content-caption">{caption}</figcaption></figure>'
        )

    return _IMG_RE.sub(_replace, rendered_html)
