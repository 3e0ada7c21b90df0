"""Per-site orchestration of generation and publishing.

Operations on the same site never overlap: each call holds that site's
lock for its whole duration. Different sites run independently.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from uuid import UUID

from pydantic import BaseModel, Field

from sitepress.config import SitepressConfig
from sitepress.publish.git import GitClient
from sitepress.publish.publisher import PlanResult, Publisher, PublishResult
from sitepress.publish.sources import MarkdownSourceGenerator, MetaGenerator
from sitepress.render.assembler import GenerateResult, PageAssembler
from sitepress.render.processor import ContentProcessor
from sitepress.render.sitemap import build_sitemap, generate_cname
from sitepress.site.models import Content, SiteBundle
from sitepress.site.settings import SiteSettings, build_publish_config
from sitepress.site.workspace import Workspace

logger = logging.getLogger(__name__)


class BackupResult(BaseModel):
    """Outcome of a backup: source generation errors plus the push result."""

    files_generated: int = 0
    errors: list[str] = Field(default_factory=list)
    publish: PublishResult = Field(default_factory=PublishResult)


def has_pending_content(
    contents: list[Content],
    since: datetime | None,
    now: datetime | None = None,
) -> bool:
    """True when a published, non-draft item appeared after ``since``."""
    now = _aware(now) if now is not None else datetime.now(tz=UTC)
    for content in contents:
        if content.draft or content.published_at is None:
            continue
        published = _aware(content.published_at)
        if published > now:
            continue
        if since is None or published > _aware(since):
            return True
    return False


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


class SitePipeline:
    """Generate, publish, back up and plan sites in one workspace."""

    def __init__(
        self,
        workspace: Workspace,
        publisher: Publisher | None = None,
        processor: ContentProcessor | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.workspace = workspace
        self.publisher = publisher or Publisher(workspace)
        self.assembler = PageAssembler(workspace, processor, clock=clock)
        self.markdown = MarkdownSourceGenerator(workspace)
        self.meta = MetaGenerator(workspace)
        self._locks: dict[UUID, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: SitepressConfig,
        cancel: threading.Event | None = None,
    ) -> SitePipeline:
        workspace = Workspace(config.workspace_dir, config.profiles_dir)
        git = GitClient(config.git.executable, config.git.timeout, cancel=cancel)
        return cls(workspace, Publisher(workspace, git))

    def lock_for(self, site_id: UUID) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(site_id, threading.Lock())

    # ── Operations ──────────────────────────────────────────────

    def generate(self, bundle: SiteBundle) -> GenerateResult:
        with self.lock_for(bundle.site.id):
            return self._generate(bundle)

    def publish(self, bundle: SiteBundle) -> PublishResult:
        """Regenerate, then push ``html/`` to the publish branch.

        Raises:
            PublishConfigError: If no publish target is configured.
        """
        config = build_publish_config(SiteSettings.from_settings(bundle.settings), "publish")
        with self.lock_for(bundle.site.id):
            self._generate(bundle)
            return self.publisher.publish(config, bundle.site.slug)

    def plan(self, bundle: SiteBundle) -> PlanResult:
        config = build_publish_config(SiteSettings.from_settings(bundle.settings), "publish")
        with self.lock_for(bundle.site.id):
            self._generate(bundle)
            return self.publisher.plan(config, bundle.site.slug)

    def backup(self, bundle: SiteBundle) -> BackupResult:
        """Write markdown and meta sources, then push them to the backup branch."""
        config = build_publish_config(SiteSettings.from_settings(bundle.settings), "backup")
        slug = bundle.site.slug
        with self.lock_for(bundle.site.id):
            sources = self.markdown.generate(slug, bundle.contents)
            meta = self.meta.generate(
                slug,
                bundle.layouts,
                bundle.contributors,
                bundle.tags,
                bundle.sections,
                bundle.images,
            )
            pushed = self.publisher.backup(config, slug)
        return BackupResult(
            files_generated=sources.files_generated + meta.files_generated,
            errors=[*sources.errors, *meta.errors],
            publish=pushed,
        )

    # ── Internals ───────────────────────────────────────────────

    def _generate(self, bundle: SiteBundle) -> GenerateResult:
        result = self.assembler.generate(
            bundle.site,
            bundle.contents,
            bundle.sections,
            bundle.layouts,
            bundle.settings,
            bundle.contributors,
            bundle.user_authors,
        )

        settings = SiteSettings.from_settings(bundle.settings)
        if settings.site_url:
            html_dir = self.workspace.html_dir(bundle.site.slug)
            try:
                build_sitemap(
                    html_dir,
                    settings.site_url,
                    settings.base_path,
                    bundle.site,
                    bundle.contents,
                    bundle.sections,
                )
                generate_cname(html_dir, settings.site_url)
            except OSError as exc:
                logger.warning("Sitemap generation failed for %s: %s", bundle.site.slug, exc)
                result.errors.append(f"sitemap: {exc}")
        return result
