"""Git publishing of generated HTML and backup sources, plus dry-run plans."""

from sitepress.publish.git import Auth, AuthMethod, Commit, GitClient
from sitepress.publish.publisher import (
    PlanResult,
    Publisher,
    PublishResult,
    commit_url,
    parse_status,
)
from sitepress.publish.sources import MarkdownSourceGenerator, MetaGenerator, SourceResult

__all__ = [
    "Auth",
    "AuthMethod",
    "Commit",
    "GitClient",
    "MarkdownSourceGenerator",
    "MetaGenerator",
    "PlanResult",
    "PublishResult",
    "Publisher",
    "SourceResult",
    "commit_url",
    "parse_status",
]
