"""Exception hierarchy for the generation and publish pipeline.

Fatal-to-run failures are exceptions. Per-item failures are collected as
strings in result ``errors`` lists and no-op outcomes are result flags.
"""

from __future__ import annotations


class SitepressError(Exception):
    """Base error for all sitepress failures."""


class GenerationError(SitepressError):
    """A generation run could not start or could not continue at all."""


class GitError(SitepressError):
    """A git invocation failed (not found, timeout, non-zero exit)."""


class GitCancelledError(GitError):
    """A git invocation was aborted because its cancel event was set."""


class PublishConfigError(SitepressError):
    """Publish or backup configuration is missing or invalid."""


class PublishError(SitepressError):
    """A publish, backup or plan operation failed."""
