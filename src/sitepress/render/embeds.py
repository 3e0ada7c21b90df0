"""Embed shortcodes: fenced ``embed`` code blocks holding a small YAML document.

Example::

    ```embed
    provider: youtube
    id: dQw4w9WgXcQ
    ratio: "16:9"
    title: Launch talk
    ```

Unknown providers and malformed YAML leave the block as rendered by
markdown (a plain code block).
"""

from __future__ import annotations

import html
import re
from urllib.parse import quote_plus

import yaml
from pydantic import BaseModel, ValidationError

DEFAULT_RATIO = "16:9"


class EmbedProvider(BaseModel):
    name: str
    url_pattern: str
    allow: str = ""


EMBED_PROVIDERS: dict[str, EmbedProvider] = {
    "youtube": EmbedProvider(
        name="YouTube",
        url_pattern="https://www.youtube.com/embed/{id}",
        allow=(
            "accelerometer; autoplay; clipboard-write; encrypted-media; "
            "gyroscope; picture-in-picture"
        ),
    ),
    "vimeo": EmbedProvider(
        name="Vimeo",
        url_pattern="https://player.vimeo.com/video/{id}",
        allow="autoplay; fullscreen; picture-in-picture",
    ),
    "tiktok": EmbedProvider(
        name="TikTok",
        url_pattern="https://www.tiktok.com/embed/v2/{id}",
    ),
    "soundcloud": EmbedProvider(
        name="SoundCloud",
        url_pattern="https://w.soundcloud.com/player/?url={id}",
    ),
}

RATIO_CLASSES = {
    "16:9": "ratio-16-9",
    "4:3": "ratio-4-3",
    "1:1": "ratio-1-1",
    "9:16": "ratio-9-16",
}

_EMBED_BLOCK_RE = re.compile(
    r'<pre><code class="language-embed">([\s\S]*?)</code></pre>'
)


class EmbedError(ValueError):
    """An embed block cannot be rendered."""


class EmbedConfig(BaseModel):
    provider: str = ""
    id: str = ""
    ratio: str = ""
    title: str = ""

    def to_html(self) -> str:
        if not self.provider:
            raise EmbedError("provider is required")
        if not self.id:
            raise EmbedError("id is required")

        key = self.provider.lower()
        provider = EMBED_PROVIDERS.get(key)
        if provider is None:
            raise EmbedError(f"unsupported provider: {self.provider}")

        ratio_class = RATIO_CLASSES.get(self.ratio or DEFAULT_RATIO, RATIO_CLASSES[DEFAULT_RATIO])

        embed_id = self.id
        if key == "soundcloud":
            if not embed_id.startswith("http"):
                embed_id = "https://soundcloud.com/" + embed_id
            embed_id = quote_plus(embed_id)

        src = provider.url_pattern.format(id=embed_id)
        title = self.title or f"{provider.name} video"
        allow = f' allow="{provider.allow}"' if provider.allow else ""

        return (
            f'<div class="embed-container {ratio_class}">'
            f'<iframe src="{html.escape(src)}" title="{html.escape(title)}"{allow}'
            f' allowfullscreen loading="lazy"></iframe></div>'
        )


def parse_embed(source: str) -> EmbedConfig:
    """Parse the YAML inside an embed block.

    Raises:
        EmbedError: If the YAML is malformed or not a mapping.
    """
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise EmbedError(f"invalid embed YAML: {exc}") from exc
    if not isinstance(data, dict):
        raise EmbedError("embed block must be a mapping")
    try:
        return EmbedConfig.model_validate({k: str(v) for k, v in data.items() if v is not None})
    except ValidationError as exc:
        raise EmbedError(str(exc)) from exc


def process_embeds(rendered_html: str) -> str:
    """Replace rendered ``embed`` code blocks with provider iframes."""

    def _replace(match: re.Match[str]) -> str:
        source = html.unescape(match.group(1).strip())
        try:
            return parse_embed(source).to_html()
        except EmbedError:
            return match.group(0)

    return _EMBED_BLOCK_RE.sub(_replace, rendered_html)
