"""Thin git client over the ``git`` executable.

Every call runs synchronously in a working directory and may be aborted
through a ``threading.Event``: when the event is set the child process is
killed and ``GitCancelledError`` is raised. Tokens never appear in logs or
error messages.
"""

from __future__ import annotations

import logging
import os
import subprocess
import threading
from enum import StrEnum
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from pydantic import BaseModel

from sitepress.errors import GitCancelledError, GitError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300
_POLL_INTERVAL = 0.2
_MASK = "***"


class AuthMethod(StrEnum):
    TOKEN = "token"
    SSH = "ssh"


class Auth(BaseModel):
    """Credentials for remote operations."""

    method: AuthMethod = AuthMethod.SSH
    token: str = ""


class Commit(BaseModel):
    """Identity and message for one commit."""

    user_name: str
    user_email: str
    message: str


def inject_token(url: str, token: str) -> str:
    """Embed ``oauth2:<token>`` userinfo into an https URL."""
    if not token or not url.startswith("https://"):
        return url
    parts = urlsplit(url)
    host = parts.hostname or ""
    if parts.port:
        host = f"{host}:{parts.port}"
    return urlunsplit((parts.scheme, f"oauth2:{token}@{host}", parts.path, parts.query, parts.fragment))


class GitClient:
    """Runs git subcommands with a timeout and optional cancellation."""

    def __init__(
        self,
        executable: str = "git",
        timeout: int = DEFAULT_TIMEOUT,
        cancel: threading.Event | None = None,
    ) -> None:
        self.executable = executable
        self.timeout = timeout
        self.cancel = cancel

    # ── Operations ──────────────────────────────────────────────

    def clone(self, repo_url: str, dest: Path, auth: Auth) -> None:
        url = inject_token(repo_url, auth.token) if auth.method == AuthMethod.TOKEN else repo_url
        dest.parent.mkdir(parents=True, exist_ok=True)
        self._run(["clone", url, str(dest)], cwd=dest.parent, secret=auth.token)

    def checkout(self, repo_dir: Path, branch: str, create: bool = False) -> None:
        args = ["checkout", "-b", branch] if create else ["checkout", branch]
        self._run(args, cwd=repo_dir)

    def add(self, repo_dir: Path, pathspec: str = ".") -> None:
        self._run(["add", "--all", pathspec], cwd=repo_dir)

    def status(self, repo_dir: Path) -> str:
        """NUL-separated ``git status --porcelain`` output, renames split.

        Each entry is ``XY <path>`` with the path unquoted.
        """
        return self._run(["status", "--porcelain", "-z", "--no-renames"], cwd=repo_dir)

    def commit(self, repo_dir: Path, commit: Commit) -> str:
        """Commit staged changes and return the new hash.

        Returns an empty string, without committing, when nothing changed.
        """
        self._run(["config", "user.name", commit.user_name], cwd=repo_dir)
        self._run(["config", "user.email", commit.user_email], cwd=repo_dir)

        if not self.status(repo_dir).strip():
            logger.debug("Nothing to commit in %s", repo_dir)
            return ""

        self._run(["commit", "-m", commit.message], cwd=repo_dir)
        return self._run(["rev-parse", "HEAD"], cwd=repo_dir).strip()

    def push(self, repo_dir: Path, auth: Auth, remote: str, branch: str) -> None:
        target = remote
        if auth.method == AuthMethod.TOKEN and auth.token:
            remote_url = self._run(["remote", "get-url", remote], cwd=repo_dir, secret=auth.token)
            target = inject_token(remote_url.strip(), auth.token)
        self._run(["push", "--force", target, branch], cwd=repo_dir, secret=auth.token)

    # ── Process handling ────────────────────────────────────────

    def _run(self, args: list[str], cwd: Path, secret: str = "") -> str:
        cmd = [self.executable, *args]
        shown = _mask(" ".join(cmd), secret)
        logger.debug("Running %s (cwd=%s)", shown, cwd)

        if self.cancel is not None and self.cancel.is_set():
            raise GitCancelledError(f"git cancelled before start: {shown}")

        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        try:
            proc = subprocess.Popen(
                cmd,
                cwd=cwd,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError as exc:
            raise GitError(f"git executable not found: {self.executable!r}") from exc

        stdout, stderr = self._communicate(proc, shown)

        if proc.returncode != 0:
            raise GitError(
                f"{shown} failed (exit {proc.returncode}): {_mask(stderr.strip(), secret)[:500]}"
            )
        return stdout

    def _communicate(self, proc: subprocess.Popen[str], shown: str) -> tuple[str, str]:
        waited = 0.0
        while True:
            try:
                return proc.communicate(timeout=_POLL_INTERVAL)
            except subprocess.TimeoutExpired:
                waited += _POLL_INTERVAL
                if self.cancel is not None and self.cancel.is_set():
                    _kill(proc)
                    raise GitCancelledError(f"git cancelled: {shown}") from None
                if waited >= self.timeout:
                    _kill(proc)
                    raise GitError(f"{shown} timed out after {self.timeout}s") from None


def _kill(proc: subprocess.Popen[str]) -> None:
    proc.kill()
    proc.communicate()


def _mask(text: str, secret: str) -> str:
    return text.replace(secret, _MASK) if secret else text
