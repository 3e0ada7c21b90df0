"""Git publishing of a site workspace.

Publish, backup and plan share one flow::

    temp dir → clone → checkout (or create) branch → wipe working tree
    → copy source tree(s) → stage → commit + push | status only

The temp directory is removed on every exit path.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, Field

from sitepress.errors import GitCancelledError, GitError, PublishError
from sitepress.publish.git import Auth, AuthMethod, Commit, GitClient
from sitepress.site.settings import PublishConfig
from sitepress.site.workspace import Workspace, copy_tree

logger = logging.getLogger(__name__)

T = TypeVar("T")

REMOTE = "origin"
COMMIT_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_ADDED_CODES = frozenset({"A", "?"})
_MODIFIED_CODES = frozenset({"M", "T"})
_DELETED_CODES = frozenset({"D"})


class PublishResult(BaseModel):
    """Outcome of a publish or backup."""

    commit_hash: str = ""
    commit_url: str = ""
    no_changes: bool = False


class PlanResult(BaseModel):
    """Dry-run classification of the changes a publish would commit."""

    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    deleted: list[str] = Field(default_factory=list)
    summary: str = ""

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified or self.deleted)


def parse_status(porcelain: str) -> PlanResult:
    """Classify NUL-separated porcelain entries into added/modified/deleted.

    Expects ``--no-renames`` output, so a move shows up as a delete plus
    an add. The index column decides; the worktree column is used when
    the index column is blank.
    """
    result = PlanResult()
    for entry in porcelain.split("\0"):
        if len(entry) < 4:
            continue
        code, path = entry[:2], entry[3:]
        status = code[0] if code[0] != " " else code[1]
        if status in _ADDED_CODES:
            result.added.append(path)
        elif status in _MODIFIED_CODES:
            result.modified.append(path)
        elif status in _DELETED_CODES:
            result.deleted.append(path)
    result.summary = (
        f"Added: {len(result.added)}, Modified: {len(result.modified)}, "
        f"Deleted: {len(result.deleted)}"
    )
    return result


def commit_url(repo_url: str, commit_hash: str) -> str:
    return f"{repo_url.removesuffix('.git')}/commit/{commit_hash}"


def auth_for(config: PublishConfig) -> Auth:
    if config.use_ssh:
        return Auth(method=AuthMethod.SSH)
    return Auth(method=AuthMethod.TOKEN, token=config.auth_token)


class Publisher:
    """Synchronizes workspace trees with remote git branches."""

    def __init__(
        self,
        workspace: Workspace,
        git: GitClient | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.workspace = workspace
        self.git = git or GitClient()
        self.clock = clock

    @staticmethod
    def validate(config: PublishConfig) -> None:
        """Raise PublishConfigError when ``config`` cannot be used."""
        config.validate_target()

    # ── Operations ──────────────────────────────────────────────

    def publish(self, config: PublishConfig, site_slug: str) -> PublishResult:
        """Commit and push the generated ``html/`` tree."""
        self.validate(config)
        source = self._require_dir(self.workspace.html_dir(site_slug), "source")

        with self._checkout(config, "publish") as repo_dir:
            self._copy(source, repo_dir, "source")
            self._stage(repo_dir)
            return self._commit_and_push(config, repo_dir, "Deploy site")

    def backup(self, config: PublishConfig, site_slug: str) -> PublishResult:
        """Commit and push markdown sources, images, profiles and meta."""
        self.validate(config)
        markdown = self._require_dir(self.workspace.markdown_dir(site_slug), "markdown")
        optional = [
            (self.workspace.images_dir(site_slug), "images"),
            (self.workspace.profiles_dir, "profiles"),
            (self.workspace.meta_dir(site_slug), "meta"),
        ]

        with self._checkout(config, "backup") as repo_dir:
            self._copy(markdown, repo_dir / "content", "markdown")
            for src, name in optional:
                if src.is_dir():
                    self._copy(src, repo_dir / name, name)
            self._stage(repo_dir)
            return self._commit_and_push(config, repo_dir, "Backup site")

    def plan(self, config: PublishConfig, site_slug: str) -> PlanResult:
        """Stage the generated tree against the branch and report; never commits."""
        self.validate(config)
        source = self._require_dir(self.workspace.html_dir(site_slug), "source")

        with self._checkout(config, "plan", create_branch=False) as repo_dir:
            self._copy(source, repo_dir, "source")
            self._stage(repo_dir)
            porcelain = self._git("get status", self.git.status, repo_dir)

        result = parse_status(porcelain)
        logger.info("Plan for %s: %s", site_slug, result.summary)
        return result

    # ── Shared flow ─────────────────────────────────────────────

    @contextmanager
    def _checkout(
        self,
        config: PublishConfig,
        operation: str,
        create_branch: bool = True,
    ) -> Iterator[Path]:
        """Clone into a temp dir, switch branch and empty the working tree."""
        try:
            parent = Path(tempfile.mkdtemp(prefix=f"sitepress-{operation}-"))
        except OSError as exc:
            raise PublishError(f"cannot create temp dir: {exc}") from exc

        try:
            repo_dir = parent / "repo"
            self._git("clone repo", self.git.clone, config.repo_url, repo_dir, auth_for(config))
            self._switch_branch(repo_dir, config.branch, create_branch)
            _wipe_worktree(repo_dir)
            yield repo_dir
        finally:
            shutil.rmtree(parent, ignore_errors=True)

    def _switch_branch(self, repo_dir: Path, branch: str, create_branch: bool) -> None:
        try:
            self.git.checkout(repo_dir, branch)
            return
        except GitCancelledError:
            raise
        except GitError as exc:
            if not create_branch:
                logger.debug("Checkout of %s failed, planning against default branch: %s", branch, exc)
                return
            logger.debug("Branch %s not checked out, creating it: %s", branch, exc)
        self._git(f"checkout branch {branch}", self.git.checkout, repo_dir, branch, create=True)

    def _stage(self, repo_dir: Path) -> None:
        self._git("stage files", self.git.add, repo_dir, ".")

    def _commit_and_push(self, config: PublishConfig, repo_dir: Path, label: str) -> PublishResult:
        commit = Commit(
            user_name=config.commit_name,
            user_email=config.commit_email,
            message=f"{label} - {self.clock().strftime(COMMIT_TIME_FORMAT)}",
        )
        commit_hash = self._git("commit", self.git.commit, repo_dir, commit)
        if not commit_hash:
            logger.info("Nothing to publish to %s (%s)", config.repo_url, config.branch)
            return PublishResult(no_changes=True)

        self._git("push", self.git.push, repo_dir, auth_for(config), REMOTE, config.branch)

        url = commit_url(config.repo_url, commit_hash)
        logger.info("Pushed %s to %s (%s)", commit_hash[:12], config.branch, url)
        return PublishResult(commit_hash=commit_hash, commit_url=url)

    @staticmethod
    def _git(step: str, call: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run one git step; failures become PublishError, cancellation propagates."""
        try:
            return call(*args, **kwargs)
        except GitCancelledError:
            raise
        except GitError as exc:
            raise PublishError(f"cannot {step}: {exc}") from exc

    @staticmethod
    def _copy(src: Path, dst: Path, label: str) -> None:
        try:
            copy_tree(src, dst)
        except OSError as exc:
            raise PublishError(f"cannot copy {label}: {exc}") from exc

    @staticmethod
    def _require_dir(path: Path, label: str) -> Path:
        if not path.is_dir():
            raise PublishError(f"{label} directory not found: {path}")
        return path


def _wipe_worktree(repo_dir: Path) -> None:
    try:
        for entry in repo_dir.iterdir():
            if entry.name == ".git":
                continue
            if entry.is_dir() and not entry.is_symlink():
                shutil.rmtree(entry)
            else:
                entry.unlink()
    except OSError as exc:
        raise PublishError(f"cannot clean working tree: {exc}") from exc
