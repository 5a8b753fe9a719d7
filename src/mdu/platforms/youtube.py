"""YouTube extractor.

Fallback chain
--------------
1. ``watch-page`` — fetch the watch page and read, in order, the JSON-LD
   rich snippet, the inline ``ytInitialPlayerResponse`` state object and
   the meta tags.  Formats come from the player response's
   ``streamingData``.
2. ``yt-dlp`` — optional last resort, enabled by
   :attr:`Settings.ytdlp_fallback` when a :class:`MetadataProvider` is
   available.
"""

from __future__ import annotations

import logging
import re
from typing import ClassVar

from bs4 import BeautifulSoup

from mdu.config import Settings
from mdu.core.document import Document, first_text
from mdu.core.fallback import Strategy, first_success
from mdu.core.format_normalizer import build_record, normalize_streaming_data, parse_size
from mdu.core.markup import (
    assigned_json,
    meta_content,
    parse_html,
    parse_iso_duration,
    parse_json_blob,
    script_by_type,
)
from mdu.core.models import FormatRecord, PlatformTag, VideoMetadata
from mdu.core.protocols import MetadataProvider, PageFetcher
from mdu.exceptions import ParseError, ValidationError
from mdu.platforms.base import MetadataDraft, PlatformExtractor

WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"

SUPPORTED_CONTAINERS: list[str] = ["mp4", "webm"]
SUPPORTED_QUALITIES: list[str] = [
    "144p", "240p", "360p", "480p", "720p", "1080p", "1440p", "2160p", "highest",
]

_VIDEO_ID_RE = re.compile(
    r"(?:youtube(?:-nocookie)?\.com/"
    r"(?:[^/]+/.+/|(?:v|e(?:mbed)?|shorts|live)/|.*[?&]v=)"
    r"|youtu\.be/)"
    r"([^\"&?/\s]{11})",
)


def extract_video_id(url: str) -> str:
    """Return the 11-character video id embedded in *url*.

    Raises
    ------
    ValidationError
        If no id can be found.
    """
    match = _VIDEO_ID_RE.search(url)
    if match is None:
        raise ValidationError(
            "Invalid YouTube URL",
            hint="Expected a watch, embed, shorts or youtu.be link.",
        )
    return match.group(1)


class YouTubeExtractor(PlatformExtractor):
    """Scrapes the public watch page of a single video."""

    platform: ClassVar[PlatformTag] = PlatformTag.YOUTUBE

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        metadata_provider: MetadataProvider | None = None,
    ) -> None:
        super().__init__(fetcher, settings=settings, logger=logger)
        self._provider: MetadataProvider | None = metadata_provider

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, url: str) -> VideoMetadata:
        video_id = extract_video_id(url)
        draft = MetadataDraft()

        strategies: list[Strategy[list[FormatRecord]]] = [
            Strategy("watch-page", lambda: self._from_watch_page(video_id, draft)),
        ]
        if self._settings.ytdlp_fallback and self._provider is not None:
            strategies.append(
                Strategy("yt-dlp", lambda: self._from_provider(video_id, draft)),
            )

        formats = first_success(
            strategies, default=[], logger=self._log, chain="youtube",
        )
        usable = self._require_formats(formats)
        return draft.build(
            usable,
            default_title="Untitled",
            default_thumbnail=THUMBNAIL_URL.format(video_id=video_id),
        )

    # ------------------------------------------------------------------
    # Strategy: watch page
    # ------------------------------------------------------------------

    def _from_watch_page(
        self,
        video_id: str,
        draft: MetadataDraft,
    ) -> list[FormatRecord]:
        response = self._fetcher.fetch(
            WATCH_URL.format(video_id=video_id),
            headers={"User-Agent": self._settings.user_agent},
        )
        html = response.body
        soup = parse_html(html)

        self._fill_from_json_ld(soup, draft)
        player = self._player_response(html)
        self._fill_from_player(player, draft)
        self._fill_from_meta(soup, draft)

        return normalize_streaming_data(player["streamingData"], logger=self._log)

    def _fill_from_json_ld(self, soup: BeautifulSoup, draft: MetadataDraft) -> None:
        try:
            doc = parse_json_blob(
                script_by_type(soup, "application/ld+json"), source="JSON-LD",
            )
        except ParseError as exc:
            self._log.debug("youtube: %s", exc)
            return
        if doc.is_list():
            doc = doc.first()
        draft.fill(
            title=doc["name"].text(),
            description=doc["description"].text(),
            duration=parse_iso_duration(doc["duration"].text()),
            thumbnail=_json_ld_thumbnail(doc["thumbnailUrl"]),
        )

    def _player_response(self, html: str) -> Document:
        try:
            return parse_json_blob(
                assigned_json(html, "ytInitialPlayerResponse"),
                source="ytInitialPlayerResponse",
            )
        except ParseError as exc:
            self._log.debug("youtube: %s", exc)
            return Document()

    @staticmethod
    def _fill_from_player(player: Document, draft: MetadataDraft) -> None:
        details = player["videoDetails"]
        thumbnails = list(details.get("thumbnail", "thumbnails").items())
        draft.fill(
            title=details["title"].text(),
            description=details["shortDescription"].text(),
            duration=details["lengthSeconds"].integer(),
            thumbnail=thumbnails[-1]["url"].text() if thumbnails else None,
        )

    @staticmethod
    def _fill_from_meta(soup: BeautifulSoup, draft: MetadataDraft) -> None:
        draft.fill(
            title=(
                meta_content(soup, name="title")
                or meta_content(soup, prop="og:title")
            ),
            description=(
                meta_content(soup, name="description")
                or meta_content(soup, prop="og:description")
            ),
            thumbnail=meta_content(soup, prop="og:image"),
        )

    # ------------------------------------------------------------------
    # Strategy: yt-dlp
    # ------------------------------------------------------------------

    def _from_provider(
        self,
        video_id: str,
        draft: MetadataDraft,
    ) -> list[FormatRecord]:
        provider = self._provider
        if provider is None:
            return []
        info = Document(provider.fetch_info(WATCH_URL.format(video_id=video_id)))
        draft.fill(
            title=info["title"].text(),
            description=info["description"].text(),
            duration=info["duration"].integer(),
            thumbnail=info["thumbnail"].text(),
        )
        records: list[FormatRecord] = []
        for raw in info["formats"].items():
            record = _record_from_ytdlp(raw)
            if record is not None:
                records.append(record)
        return records


def _json_ld_thumbnail(value: Document) -> str | None:
    if value.is_list():
        return value[0].text()
    return value.text()


def _record_from_ytdlp(raw: Document) -> FormatRecord | None:
    """Map one yt-dlp format dict onto a record."""
    ext = raw["ext"].text() or "unknown"
    vcodec = raw["vcodec"].text() or "none"
    acodec = raw["acodec"].text() or "none"
    major = "audio" if vcodec == "none" and acodec != "none" else "video"

    height = raw["height"].integer()
    if height:
        quality = f"{height}p"
    else:
        quality = first_text(raw["format_note"], raw["format_id"]) or ""

    size = parse_size(raw["filesize"]) or parse_size(raw["filesize_approx"])
    return build_record(
        url=raw["url"].text() or "",
        quality=quality,
        mime_type=f"{major}/{ext}",
        size=size,
    )
