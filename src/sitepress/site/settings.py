"""Typed view over a site's Setting key/value records."""

from __future__ import annotations

import re
from datetime import timedelta

from pydantic import BaseModel, Field

from sitepress.errors import PublishConfigError
from sitepress.site.models import Setting

BASE_PATH_KEY = "ssg.site.base_path"
SITE_URL_KEY = "ssg.site.url"
INDEX_MAX_ITEMS_KEY = "ssg.index.maxitems"
BLOCKS_ENABLED_KEY = "ssg.blocks.enabled"
BLOCKS_MULTISECTION_KEY = "ssg.blocks.multisection"
BLOCKS_MAX_ITEMS_KEY = "ssg.blocks.maxitems"
SCHEDULE_ENABLED_KEY = "ssg.scheduled.publish.enabled"
SCHEDULE_INTERVAL_KEY = "ssg.scheduled.publish.interval"

DEFAULT_INDEX_PAGE_SIZE = 9
DEFAULT_BLOCKS_MAX_ITEMS = 5
DEFAULT_SCHEDULE_INTERVAL = timedelta(hours=1)
MIN_SCHEDULE_INTERVAL = timedelta(minutes=1)

DEFAULT_COMMIT_NAME = "Sitepress Bot"
DEFAULT_COMMIT_EMAIL = "sitepress@localhost"

DEFAULT_BRANCHES = {
    "publish": "gh-pages",
    "backup": "main",
}

_DURATION_RE = re.compile(r"(\d+)(h|m|s)")
_INTERVAL_RE = re.compile(r"(?:\d+[hms])+")
_DURATION_UNITS = {"h": "hours", "m": "minutes", "s": "seconds"}


def normalize_base_path(value: str | None) -> str:
    """Ensure a base path starts and ends with ``/``; empty means ``/``."""
    if not value:
        return "/"
    if not value.startswith("/"):
        value = "/" + value
    if not value.endswith("/"):
        value = value + "/"
    return value


def _positive_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        n = int(value)
    except ValueError:
        return default
    return n if n > 0 else default


def parse_interval(value: str | None) -> timedelta:
    """Parse durations like ``1h``, ``30m``, ``1h30m`` or ``90s``.

    Unparseable values and values under one minute fall back to one hour.
    """
    if not value:
        return DEFAULT_SCHEDULE_INTERVAL
    value = value.strip()
    if not _INTERVAL_RE.fullmatch(value):
        return DEFAULT_SCHEDULE_INTERVAL
    parts: dict[str, int] = {}
    for amount, unit in _DURATION_RE.findall(value):
        key = _DURATION_UNITS[unit]
        parts[key] = parts.get(key, 0) + int(amount)
    interval = timedelta(**parts)
    if interval < MIN_SCHEDULE_INTERVAL:
        return DEFAULT_SCHEDULE_INTERVAL
    return interval


class BlocksConfig(BaseModel):
    """Related-content and series navigation settings."""

    enabled: bool = True
    multi_section: bool = True
    max_items: int = DEFAULT_BLOCKS_MAX_ITEMS


class SiteSettings(BaseModel):
    """Settings consumed by the generation pipeline, with defaults applied."""

    values: dict[str, str] = Field(default_factory=dict)
    base_path: str = "/"
    site_url: str = ""
    index_page_size: int = DEFAULT_INDEX_PAGE_SIZE
    blocks: BlocksConfig = Field(default_factory=BlocksConfig)
    schedule_enabled: bool = False
    schedule_interval: timedelta = DEFAULT_SCHEDULE_INTERVAL

    @classmethod
    def from_settings(cls, settings: list[Setting]) -> SiteSettings:
        values = {s.ref_key: s.value for s in settings}
        return cls(
            values=values,
            base_path=normalize_base_path(values.get(BASE_PATH_KEY)),
            site_url=values.get(SITE_URL_KEY, "").strip(),
            index_page_size=_positive_int(
                values.get(INDEX_MAX_ITEMS_KEY), DEFAULT_INDEX_PAGE_SIZE
            ),
            blocks=BlocksConfig(
                enabled=values.get(BLOCKS_ENABLED_KEY) != "false",
                multi_section=values.get(BLOCKS_MULTISECTION_KEY) != "false",
                max_items=_positive_int(
                    values.get(BLOCKS_MAX_ITEMS_KEY), DEFAULT_BLOCKS_MAX_ITEMS
                ),
            ),
            schedule_enabled=values.get(SCHEDULE_ENABLED_KEY) == "true",
            schedule_interval=parse_interval(values.get(SCHEDULE_INTERVAL_KEY)),
        )

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)


# ---------------------------------------------------------------------------
# Publish / backup targets
# ---------------------------------------------------------------------------


class PublishConfig(BaseModel):
    """Target repository and identity for one publish or backup operation."""

    repo_url: str
    branch: str
    auth_token: str = ""
    commit_name: str = DEFAULT_COMMIT_NAME
    commit_email: str = DEFAULT_COMMIT_EMAIL
    use_ssh: bool = True

    def validate_target(self) -> None:
        """Raise PublishConfigError when the target cannot be used."""
        if not self.repo_url:
            raise PublishConfigError("repository URL is required")
        if not self.branch:
            raise PublishConfigError("branch name is required")
        if not self.use_ssh and not self.auth_token:
            raise PublishConfigError("auth token is required when not using SSH")
        if not self.commit_email:
            raise PublishConfigError("commit email is required")


def build_publish_config(settings: SiteSettings, operation: str = "publish") -> PublishConfig:
    """Build a PublishConfig for ``operation`` ("publish" or "backup").

    Token authentication is used only for ``https://`` URLs with a token
    configured; anything else assumes SSH and drops the token.

    Raises:
        PublishConfigError: If the operation has no repository URL.
    """
    if operation not in DEFAULT_BRANCHES:
        raise ValueError(f"Unknown operation: {operation!r}")

    prefix = f"ssg.{operation}"
    repo_url = settings.get(f"{prefix}.repo.url").strip()
    if not repo_url:
        raise PublishConfigError(f"{operation} repository not configured")

    branch = settings.get(f"{prefix}.branch") or DEFAULT_BRANCHES[operation]
    commit_name = (
        settings.get(f"{prefix}.commit.user.name")
        or settings.get("ssg.git.commit.user.name")
        or DEFAULT_COMMIT_NAME
    )
    commit_email = (
        settings.get(f"{prefix}.commit.user.email")
        or settings.get("ssg.git.commit.user.email")
        or DEFAULT_COMMIT_EMAIL
    )

    token = settings.get(f"{prefix}.auth.token")
    use_ssh = not (token and repo_url.startswith("https://"))

    return PublishConfig(
        repo_url=repo_url,
        branch=branch,
        auth_token="" if use_ssh else token,
        commit_name=commit_name,
        commit_email=commit_email,
        use_ssh=use_ssh,
    )
