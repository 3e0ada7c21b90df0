"""Per-site workspace directory layout.

Structure::

    <root>/<site-slug>/
    ├── markdown/   # content source records (backup)
    ├── html/       # generated static site (publish)
    ├── images/     # uploaded images
    └── meta/       # layouts, contributors, tags, sections (backup)

Profile photos live outside the per-site tree, shared across sites.
"""

from __future__ import annotations

import shutil
from pathlib import Path

DEFAULT_SITES_DIR = Path("_workspace/sites")
DEFAULT_PROFILES_DIR = Path("_workspace/profiles")


class Workspace:
    """Path helpers for one workspace root."""

    def __init__(
        self,
        root: Path | str = DEFAULT_SITES_DIR,
        profiles_dir: Path | str = DEFAULT_PROFILES_DIR,
    ) -> None:
        self.root = Path(root)
        self.profiles_dir = Path(profiles_dir)

    def site_dir(self, site_slug: str) -> Path:
        return self.root / site_slug

    def markdown_dir(self, site_slug: str) -> Path:
        return self.site_dir(site_slug) / "markdown"

    def html_dir(self, site_slug: str) -> Path:
        return self.site_dir(site_slug) / "html"

    def images_dir(self, site_slug: str) -> Path:
        return self.site_dir(site_slug) / "images"

    def meta_dir(self, site_slug: str) -> Path:
        return self.site_dir(site_slug) / "meta"

    def create_site_dirs(self, site_slug: str) -> None:
        for path in (
            self.markdown_dir(site_slug),
            self.html_dir(site_slug),
            self.images_dir(site_slug),
        ):
            path.mkdir(parents=True, exist_ok=True)

    def delete_site_dirs(self, site_slug: str) -> None:
        shutil.rmtree(self.site_dir(site_slug), ignore_errors=True)

    # ── Output paths ────────────────────────────────────────────

    def content_html_path(self, site_slug: str, section_path: str, content_slug: str) -> Path:
        """e.g. html/blog/my-post-ab12cd34/index.html"""
        return _join(self.html_dir(site_slug), section_path) / content_slug / "index.html"

    def index_html_path(self, site_slug: str, section_path: str) -> Path:
        return _join(self.html_dir(site_slug), section_path) / "index.html"

    def pagination_html_path(self, site_slug: str, section_path: str, page: int) -> Path:
        """Page 1 is the section index itself; page n is .../page/n/index.html."""
        if page == 1:
            return self.index_html_path(site_slug, section_path)
        return _join(self.html_dir(site_slug), section_path) / "page" / str(page) / "index.html"

    def author_html_path(self, site_slug: str, handle: str) -> Path:
        return contained_path(self.html_dir(site_slug) / "authors", handle) / "index.html"


def contained_path(base: Path, relative: str) -> Path:
    """Join ``relative`` under ``base``.

    Raises:
        ValueError: If ``relative`` is empty or absolute, or if it climbs
            out of ``base`` with ``..``.
    """
    parts = Path(relative).parts
    if not parts or Path(relative).is_absolute() or ".." in parts:
        raise ValueError(f"Unsafe path component: {relative!r}")
    return base.joinpath(*parts)


def _join(base: Path, section_path: str) -> Path:
    section_path = section_path.strip("/")
    return contained_path(base, section_path) if section_path else base


def clean_dir(path: Path) -> None:
    """Remove all contents of a directory but keep the directory itself."""
    if not path.exists():
        return
    for entry in path.iterdir():
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def copy_tree(src: Path, dst: Path) -> None:
    """Copy the contents of ``src`` into ``dst``, merging with what is there."""
    shutil.copytree(src, dst, dirs_exist_ok=True)
