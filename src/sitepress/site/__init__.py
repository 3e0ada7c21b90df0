"""Site domain: content records, settings and workspace layout."""

from sitepress.site.models import (
    Content,
    ContentKind,
    Contributor,
    Image,
    Layout,
    Meta,
    RenderedContent,
    Section,
    Setting,
    Site,
    SiteBundle,
    SiteMode,
    SocialLink,
    Tag,
    slugify,
)
from sitepress.site.settings import (
    BlocksConfig,
    PublishConfig,
    SiteSettings,
    build_publish_config,
    normalize_base_path,
)
from sitepress.site.workspace import Workspace, clean_dir, contained_path, copy_tree

__all__ = [
    "BlocksConfig",
    "Content",
    "ContentKind",
    "Contributor",
    "Image",
    "Layout",
    "Meta",
    "PublishConfig",
    "RenderedContent",
    "Section",
    "Setting",
    "Site",
    "SiteBundle",
    "SiteMode",
    "SiteSettings",
    "SocialLink",
    "Tag",
    "Workspace",
    "build_publish_config",
    "clean_dir",
    "contained_path",
    "copy_tree",
    "normalize_base_path",
    "slugify",
]
