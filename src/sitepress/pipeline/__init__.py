"""Pipeline orchestration: per-site serialization and scheduled publishing."""

from sitepress.pipeline.scheduler import Scheduler
from sitepress.pipeline.site import BackupResult, SitePipeline, has_pending_content

__all__ = [
    "BackupResult",
    "Scheduler",
    "SitePipeline",
    "has_pending_content",
]
