"""Process-level configuration loaded from .sitepress.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.

Per-site behavior (base path, blocks, publish targets) is not configured
here; it comes from the site's Setting records, see
``sitepress.site.settings``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".sitepress.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
]
GLOBAL_CONFIG_PATH = Path.home() / ".config" / "sitepress" / "config.toml"


class WorkspaceSectionConfig(BaseModel):
    """[workspace] section."""

    directory: str = "_workspace/sites"
    profiles_directory: str = "_workspace/profiles"


class GitSectionConfig(BaseModel):
    """[git] section."""

    executable: str = "git"
    timeout: int = 300


class LoggingSectionConfig(BaseModel):
    """[logging] section."""

    level: str = "INFO"


class SitepressConfig(BaseModel):
    """Top-level configuration model for the pipeline process."""

    workspace: WorkspaceSectionConfig = Field(default_factory=WorkspaceSectionConfig)
    git: GitSectionConfig = Field(default_factory=GitSectionConfig)
    logging: LoggingSectionConfig = Field(default_factory=LoggingSectionConfig)

    @property
    def workspace_dir(self) -> Path:
        return Path(self.workspace.directory)

    @property
    def profiles_dir(self) -> Path:
        return Path(self.workspace.profiles_directory)


# Environment variable → (section, field). Values are validated by the models.
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "SITEPRESS_WORKSPACE_DIR": ("workspace", "directory"),
    "SITEPRESS_PROFILES_DIR": ("workspace", "profiles_directory"),
    "SITEPRESS_GIT_EXECUTABLE": ("git", "executable"),
    "SITEPRESS_GIT_TIMEOUT": ("git", "timeout"),
    "SITEPRESS_LOG_LEVEL": ("logging", "level"),
}

# CLI keyword → (section, field).
CLI_OVERRIDES: dict[str, tuple[str, str]] = {
    "workspace_directory": ("workspace", "directory"),
    "profiles_directory": ("workspace", "profiles_directory"),
    "git_timeout": ("git", "timeout"),
    "log_level": ("logging", "level"),
}


def load_config(path: str | Path | None = None) -> SitepressConfig:
    """Build the process configuration.

    The first TOML file found wins: ``path`` when given, otherwise
    ``.sitepress.toml`` in one of ``CONFIG_SEARCH_PATHS``, otherwise
    the global file. ``SITEPRESS_*`` environment variables are applied
    on top. A missing or unreadable file leaves the defaults in place.
    """
    source = _find_config_file(path)
    data = _read_toml(source) if source is not None else {}

    env = {
        target: os.environ[name]
        for name, target in ENV_OVERRIDES.items()
        if name in os.environ
    }
    timeout = env.get(("git", "timeout"))
    if timeout is not None and not timeout.strip().isdigit():
        logger.warning("Ignoring non-integer SITEPRESS_GIT_TIMEOUT=%r", timeout)
        del env[("git", "timeout")]

    return _overlay(SitepressConfig.model_validate(data), env)


def merge_cli_overrides(config: SitepressConfig, **cli_kwargs: object) -> SitepressConfig:
    """Apply CLI flags that were actually given (``None`` means unset)."""
    overrides = {
        CLI_OVERRIDES[key]: value
        for key, value in cli_kwargs.items()
        if value is not None and key in CLI_OVERRIDES
    }
    return _overlay(config, overrides)


def _find_config_file(path: str | Path | None) -> Path | None:
    if path is not None:
        explicit = Path(path)
        if explicit.is_file():
            return explicit
        logger.warning("Config file not found: %s", explicit)
        return None

    candidates = [d / CONFIG_FILENAME for d in CONFIG_SEARCH_PATHS]
    candidates.append(GLOBAL_CONFIG_PATH)
    for candidate in candidates:
        if candidate.is_file():
            logger.info("Loaded config from %s", candidate)
            return candidate
    return None


def _read_toml(path: Path) -> dict[str, object]:
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def _overlay(
    config: SitepressConfig,
    overrides: dict[tuple[str, str], object],
) -> SitepressConfig:
    if not overrides:
        return config
    data = config.model_dump()
    for (section, field), value in overrides.items():
        data[section][field] = value
    return SitepressConfig.model_validate(data)
