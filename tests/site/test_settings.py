"""Tests for typed site settings and publish config building."""

from datetime import timedelta

import pytest

from sitepress.errors import PublishConfigError
from sitepress.site.models import Setting
from sitepress.site.settings import (
    PublishConfig,
    SiteSettings,
    build_publish_config,
    normalize_base_path,
    parse_interval,
)


def _settings(pairs: dict[str, str]) -> SiteSettings:
    return SiteSettings.from_settings([Setting(ref_key=k, value=v) for k, v in pairs.items()])


class TestNormalizeBasePath:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            (None, "/"),
            ("", "/"),
            ("/", "/"),
            ("blog", "/blog/"),
            ("/blog", "/blog/"),
            ("blog/", "/blog/"),
            ("/a/b/", "/a/b/"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_base_path(raw) == expected


class TestSiteSettingsDefaults:
    def test_defaults_without_settings(self):
        s = SiteSettings.from_settings([])
        assert s.base_path == "/"
        assert s.site_url == ""
        assert s.index_page_size == 9
        assert s.blocks.enabled is True
        assert s.blocks.multi_section is True
        assert s.blocks.max_items == 5
        assert s.schedule_enabled is False
        assert s.schedule_interval == timedelta(hours=1)

    def test_values_read(self):
        s = _settings({
            "ssg.site.base_path": "docs",
            "ssg.index.maxitems": "12",
            "ssg.blocks.enabled": "false",
            "ssg.blocks.multisection": "false",
            "ssg.blocks.maxitems": "3",
        })
        assert s.base_path == "/docs/"
        assert s.index_page_size == 12
        assert s.blocks.enabled is False
        assert s.blocks.multi_section is False
        assert s.blocks.max_items == 3

    def test_only_literal_false_disables_blocks(self):
        s = _settings({"ssg.blocks.enabled": "no"})
        assert s.blocks.enabled is True

    @pytest.mark.parametrize("raw", ["0", "-3", "abc", ""])
    def test_invalid_page_size_falls_back(self, raw):
        assert _settings({"ssg.index.maxitems": raw}).index_page_size == 9

    def test_get_returns_default(self):
        assert SiteSettings.from_settings([]).get("missing", "x") == "x"


class TestParseInterval:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("30m", timedelta(minutes=30)),
            ("2h", timedelta(hours=2)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("90s", timedelta(seconds=90)),
        ],
    )
    def test_valid(self, raw, expected):
        assert parse_interval(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "soon", "30", "59s"])
    def test_invalid_or_too_short_falls_back(self, raw):
        assert parse_interval(raw) == timedelta(hours=1)


class TestBuildPublishConfig:
    def test_missing_repo_raises(self):
        with pytest.raises(PublishConfigError):
            build_publish_config(_settings({}), "publish")

    def test_unknown_operation(self):
        with pytest.raises(ValueError):
            build_publish_config(_settings({}), "deploy")

    def test_publish_defaults(self):
        cfg = build_publish_config(
            _settings({"ssg.publish.repo.url": "git@github.com:me/site.git"}), "publish"
        )
        assert cfg.branch == "gh-pages"
        assert cfg.use_ssh is True
        assert cfg.auth_token == ""
        assert cfg.commit_name == "Sitepress Bot"
        assert cfg.commit_email == "sitepress@localhost"

    def test_backup_default_branch(self):
        cfg = build_publish_config(
            _settings({"ssg.backup.repo.url": "git@github.com:me/site-src.git"}), "backup"
        )
        assert cfg.branch == "main"

    def test_token_used_for_https(self):
        cfg = build_publish_config(
            _settings({
                "ssg.publish.repo.url": "https://github.com/me/site.git",
                "ssg.publish.auth.token": "tok",
            }),
            "publish",
        )
        assert cfg.use_ssh is False
        assert cfg.auth_token == "tok"

    def test_token_dropped_for_ssh_url(self):
        cfg = build_publish_config(
            _settings({
                "ssg.publish.repo.url": "git@github.com:me/site.git",
                "ssg.publish.auth.token": "tok",
            }),
            "publish",
        )
        assert cfg.use_ssh is True
        assert cfg.auth_token == ""

    def test_commit_identity_fallback_chain(self):
        cfg = build_publish_config(
            _settings({
                "ssg.publish.repo.url": "git@host:r.git",
                "ssg.git.commit.user.name": "Shared",
                "ssg.publish.commit.user.email": "pub@example.com",
            }),
            "publish",
        )
        assert cfg.commit_name == "Shared"
        assert cfg.commit_email == "pub@example.com"


class TestPublishConfigValidation:
    def test_valid(self):
        PublishConfig(repo_url="git@host:r.git", branch="main").validate_target()

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"repo_url": "", "branch": "main"},
            {"repo_url": "git@host:r.git", "branch": ""},
            {"repo_url": "https://host/r.git", "branch": "main", "use_ssh": False},
            {"repo_url": "git@host:r.git", "branch": "main", "commit_email": ""},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(PublishConfigError):
            PublishConfig(**kwargs).validate_target()
