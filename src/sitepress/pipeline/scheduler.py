"""Interval-driven publishing of sites with pending content."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sitepress.errors import SitepressError
from sitepress.pipeline.site import SitePipeline, has_pending_content
from sitepress.site.models import SiteBundle
from sitepress.site.settings import SiteSettings

logger = logging.getLogger(__name__)

BundleLoader = Callable[[], list[SiteBundle]]


class Scheduler:
    """Background thread that publishes sites on a fixed interval.

    The interval is taken from the first site with scheduling enabled.
    A failing site is logged and skipped; it is retried on the next tick.
    """

    def __init__(
        self,
        pipeline: SitePipeline,
        load_bundles: BundleLoader,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.load_bundles = load_bundles
        self.clock = clock or (lambda: datetime.now(tz=UTC))
        self.last_published: dict[str, datetime] = {}
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> timedelta | None:
        """Start ticking; returns the interval, or None when no site opted in."""
        interval = self._interval(self.load_bundles())
        if interval is None:
            logger.info("Scheduler: no sites with scheduling enabled")
            return None

        with self._lock:
            if self.running:
                return interval
            self._stop.clear()
            self._thread = threading.Thread(
                target=self._run, args=(interval,), name="sitepress-scheduler", daemon=True
            )
            self._thread.start()
        logger.info("Scheduler: started with interval %s", interval)
        return interval

    def stop(self) -> None:
        with self._lock:
            thread = self._thread
            self._thread = None
        self._stop.set()
        if thread is not None:
            thread.join()
            logger.info("Scheduler: stopped")

    def tick(self) -> list[str]:
        """Publish every opted-in site with pending content; returns published slugs."""
        published: list[str] = []
        for bundle in self.load_bundles():
            if self._publish_if_pending(bundle):
                published.append(bundle.site.slug)
        return published

    # ── Internals ───────────────────────────────────────────────

    def _run(self, interval: timedelta) -> None:
        while not self._stop.wait(interval.total_seconds()):
            try:
                self.tick()
            except Exception:
                logger.exception("Scheduler: tick failed")

    @staticmethod
    def _interval(bundles: list[SiteBundle]) -> timedelta | None:
        for bundle in bundles:
            settings = SiteSettings.from_settings(bundle.settings)
            if settings.schedule_enabled:
                return settings.schedule_interval
        return None

    def _publish_if_pending(self, bundle: SiteBundle) -> bool:
        site = bundle.site
        if not SiteSettings.from_settings(bundle.settings).schedule_enabled:
            return False

        since = self.last_published.get(site.slug, site.last_published_at)
        now = self.clock()
        if not has_pending_content(bundle.contents, since, now):
            return False

        logger.info("Scheduler: pending content found for site %s, publishing", site.slug)
        try:
            result = self.pipeline.publish(bundle)
        except SitepressError as exc:
            logger.error("Scheduler: publish failed for site %s: %s", site.slug, exc)
            return False

        if result.no_changes:
            logger.info("Scheduler: no changes for site %s", site.slug)
        else:
            logger.info("Scheduler: published site %s: %s", site.slug, result.commit_url)

        self.last_published[site.slug] = now
        site.last_published_at = now
        return True
