"""sitemap.xml and CNAME generation for a generated site."""

from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from datetime import UTC, datetime
from pathlib import Path
from urllib.parse import urlparse

from sitepress.render.urls import content_url, section_url
from sitepress.site.models import Content, Section, Site

logger = logging.getLogger(__name__)

SITEMAP_NS = "http://www.sitemaps.org/schemas/sitemap/0.9"
SITEMAP_FILENAME = "sitemap.xml"
CNAME_FILENAME = "CNAME"

EXCLUDED_SITEMAP_VALUES = frozenset({"exclude", "noindex"})


def is_sitemap_eligible(content: Content, now: datetime) -> bool:
    """Published, not in the future, not a draft and not opted out."""
    if content.draft or content.published_at is None:
        return False
    if _aware(content.published_at) > _aware(now):
        return False
    if content.meta and content.meta.sitemap.strip().lower() in EXCLUDED_SITEMAP_VALUES:
        return False
    return True


def last_modified(content: Content) -> datetime:
    """``updated_at``, or ``published_at`` when that is more recent."""
    updated = _aware(content.updated_at)
    if content.published_at is not None and _aware(content.published_at) > updated:
        return _aware(content.published_at)
    return updated


def build_sitemap(
    output_dir: Path,
    base_url: str,
    base_path: str,
    site: Site,
    contents: list[Content],
    sections: list[Section],
    now: datetime | None = None,
) -> Path:
    """Write ``sitemap.xml`` into ``output_dir`` and return its path.

    Entries: the homepage, each non-root section with eligible content,
    then each eligible content item.
    """
    now = _aware(now) if now is not None else datetime.now(tz=UTC)
    root_url = base_url.rstrip("/")
    eligible = [c for c in contents if is_sitemap_eligible(c, now)]

    urlset = ET.Element("urlset", {"xmlns": SITEMAP_NS})
    _add_url(urlset, root_url + base_path, _latest(eligible, now))

    for section in sections:
        if section.is_root:
            continue
        items = [c for c in eligible if c.section_id == section.id]
        if not items:
            continue
        _add_url(urlset, root_url + section_url(base_path, section.path), _latest(items, now))

    for content in eligible:
        _add_url(urlset, root_url + content_url(base_path, content), last_modified(content))

    tree = ET.ElementTree(urlset)
    ET.indent(tree)
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / SITEMAP_FILENAME
    tree.write(path, encoding="UTF-8", xml_declaration=True)
    logger.info("Wrote sitemap for %s with %d URLs", site.slug, len(urlset))
    return path


def generate_cname(output_dir: Path, base_url: str) -> Path | None:
    """Write a CNAME file holding the host of ``base_url``.

    Nothing is written for ``localhost`` or a URL without a host.
    """
    host = urlparse(base_url).hostname
    if not host or host == "localhost":
        return None
    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / CNAME_FILENAME
    path.write_text(host, encoding="utf-8")
    return path


def _add_url(urlset: ET.Element, loc: str, lastmod: datetime) -> None:
    url = ET.SubElement(urlset, "url")
    ET.SubElement(url, "loc").text = loc
    ET.SubElement(url, "lastmod").text = lastmod.date().isoformat()


def _latest(contents: list[Content], default: datetime) -> datetime:
    if not contents:
        return default
    return max(last_modified(c) for c in contents)


def _aware(value: datetime) -> datetime:
    # Naive timestamps from the persistence layer are UTC.
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
