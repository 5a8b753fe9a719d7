"""Platform registry — one :class:`PlatformProfile` per supported site.

A profile bundles everything the orchestrator needs to know about a
platform: how to build its extractor, how to rank formats for the
``highest`` quality token, and which containers / quality tokens it
advertises.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from mdu.core.format_filter import Ranking, rank_by_resolution, rank_by_watermark
from mdu.core.models import PlatformTag
from mdu.platforms import tiktok, youtube
from mdu.platforms.base import MetadataDraft, PlatformExtractor
from mdu.platforms.tiktok import TikTokExtractor
from mdu.platforms.youtube import YouTubeExtractor


@dataclass(frozen=True, slots=True)
class PlatformProfile:
    tag: PlatformTag
    extractor_class: Callable[..., PlatformExtractor]
    ranking: Ranking
    containers: tuple[str, ...]
    qualities: tuple[str, ...]


PROFILES: dict[PlatformTag, PlatformProfile] = {
    PlatformTag.YOUTUBE: PlatformProfile(
        tag=PlatformTag.YOUTUBE,
        extractor_class=YouTubeExtractor,
        ranking=rank_by_resolution,
        containers=tuple(youtube.SUPPORTED_CONTAINERS),
        qualities=tuple(youtube.SUPPORTED_QUALITIES),
    ),
    PlatformTag.TIKTOK: PlatformProfile(
        tag=PlatformTag.TIKTOK,
        extractor_class=TikTokExtractor,
        ranking=rank_by_watermark,
        containers=tuple(tiktok.SUPPORTED_CONTAINERS),
        qualities=tuple(tiktok.SUPPORTED_QUALITIES),
    ),
}


__all__: list[str] = [
    "MetadataDraft",
    "PROFILES",
    "PlatformExtractor",
    "PlatformProfile",
    "TikTokExtractor",
    "YouTubeExtractor",
]
