"""Tests for scheduled publishing."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from sitepress.errors import PublishError
from sitepress.pipeline.scheduler import Scheduler
from sitepress.pipeline.site import SitePipeline
from sitepress.publish.publisher import PublishResult
from sitepress.site.models import Content, Setting, Site, SiteBundle

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)


def _make_bundle(slug: str, enabled: bool = True, interval: str = "30m", **site_kwargs) -> SiteBundle:
    return SiteBundle(
        site=Site(slug=slug, **site_kwargs),
        contents=[Content(heading="New", published_at=NOW - timedelta(minutes=5))],
        settings=[
            Setting(ref_key="ssg.scheduled.publish.enabled", value="true" if enabled else "false"),
            Setting(ref_key="ssg.scheduled.publish.interval", value=interval),
        ],
    )


def _make_pipeline() -> MagicMock:
    pipeline = MagicMock(spec=SitePipeline)
    pipeline.publish.return_value = PublishResult(commit_hash="abc", commit_url="u")
    return pipeline


class TestTick:
    def test_publishes_pending_sites(self):
        pipeline = _make_pipeline()
        bundles = [_make_bundle("a"), _make_bundle("b", enabled=False)]
        scheduler = Scheduler(pipeline, lambda: bundles, clock=lambda: NOW)

        assert scheduler.tick() == ["a"]
        pipeline.publish.assert_called_once_with(bundles[0])
        assert scheduler.last_published["a"] == NOW
        assert bundles[0].site.last_published_at == NOW

    def test_nothing_pending_after_publish(self):
        pipeline = _make_pipeline()
        bundles = [_make_bundle("a")]
        scheduler = Scheduler(pipeline, lambda: bundles, clock=lambda: NOW)
        scheduler.tick()
        assert scheduler.tick() == []
        assert pipeline.publish.call_count == 1

    def test_respects_stored_last_published(self):
        pipeline = _make_pipeline()
        bundles = [_make_bundle("a", last_published_at=NOW - timedelta(minutes=1))]
        scheduler = Scheduler(pipeline, lambda: bundles, clock=lambda: NOW)
        assert scheduler.tick() == []
        pipeline.publish.assert_not_called()

    def test_failure_logged_and_retried(self, caplog):
        pipeline = _make_pipeline()
        pipeline.publish.side_effect = [PublishError("push rejected"), PublishResult(no_changes=True)]
        bundles = [_make_bundle("a")]
        scheduler = Scheduler(pipeline, lambda: bundles, clock=lambda: NOW)

        assert scheduler.tick() == []
        assert "push rejected" in caplog.text
        assert "a" not in scheduler.last_published
        assert scheduler.tick() == ["a"]

    def test_one_failing_site_does_not_block_others(self):
        pipeline = _make_pipeline()
        good = _make_bundle("good")
        bad = _make_bundle("bad")

        def publish(bundle):
            if bundle is bad:
                raise PublishError("boom")
            return PublishResult()

        pipeline.publish.side_effect = publish
        scheduler = Scheduler(pipeline, lambda: [bad, good], clock=lambda: NOW)
        assert scheduler.tick() == ["good"]


class TestStartStop:
    def test_no_enabled_sites(self):
        scheduler = Scheduler(_make_pipeline(), lambda: [_make_bundle("a", enabled=False)])
        assert scheduler.start() is None
        assert not scheduler.running

    def test_interval_from_first_enabled_site(self):
        bundles = [
            _make_bundle("off", enabled=False, interval="5m"),
            _make_bundle("on", interval="2h"),
        ]
        scheduler = Scheduler(_make_pipeline(), lambda: bundles)
        try:
            assert scheduler.start() == timedelta(hours=2)
            assert scheduler.running
        finally:
            scheduler.stop()
        assert not scheduler.running
