"""TikTok extractor.

Fallback chain
--------------
1. ``page`` — fetch the (sanitised) video page.  The embedded data blob
   is chosen by a nested chain: JSON-LD → ``__NEXT_DATA__`` →
   ``SIGI_STATE`` → ``__UNIVERSAL_DATA_FOR_REHYDRATION__``.  Formats come
   from ``<video src>``, ``og:video`` meta tags and the blob's play /
   download addresses.
2. ``embed`` — the ``/embed/v2/<id>`` player page.
3. ``api`` — the public mobile feed API.  As the final strategy its
   fetch failures propagate.
"""

from __future__ import annotations

import re
from typing import ClassVar
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

from bs4 import BeautifulSoup

from mdu.core.document import Document, first_text
from mdu.core.fallback import Strategy, first_success
from mdu.core.format_normalizer import build_record, parse_size
from mdu.core.markup import (
    meta_content,
    page_title,
    parse_html,
    parse_iso_duration,
    parse_json_blob,
    script_by_id,
    script_by_type,
    video_sources,
)
from mdu.core.models import FormatRecord, PlatformTag, VideoMetadata
from mdu.exceptions import ValidationError
from mdu.platforms.base import MetadataDraft, PlatformExtractor

EMBED_URL = "https://www.tiktok.com/embed/v2/{video_id}"
API_URL = "https://api16-normal-c-useast1a.tiktokv.com/aweme/v1/feed/?aweme_id={video_id}"

QUALITY_ORIGINAL = "original"
QUALITY_NO_WATERMARK = "original (no watermark)"
QUALITY_WATERMARK = "original (watermark)"
QUALITY_EMBED = "original (embed)"

SUPPORTED_CONTAINERS: list[str] = ["mp4"]
SUPPORTED_QUALITIES: list[str] = [
    QUALITY_ORIGINAL, QUALITY_NO_WATERMARK, QUALITY_WATERMARK, QUALITY_EMBED,
]

_SHORT_LINK_HOSTS: frozenset[str] = frozenset({"vm.tiktok.com", "vt.tiktok.com"})
_KEPT_QUERY_PARAMS: frozenset[str] = frozenset({"id"})
_VIDEO_ID_RE = re.compile(r"/video/(\d+)")
_TITLE_SUFFIX = " | TikTok"


def _browser_headers(user_agent: str) -> dict[str, str]:
    return {
        "User-Agent": user_agent,
        "Accept": (
            "text/html,application/xhtml+xml,application/xml;q=0.9,"
            "image/avif,image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "Sec-Ch-Ua": '"Not_A Brand";v="8", "Chromium";v="120", "Google Chrome";v="120"',
        "Sec-Ch-Ua-Mobile": "?0",
        "Sec-Ch-Ua-Platform": '"Windows"',
        "Upgrade-Insecure-Requests": "1",
    }


def video_id_from_url(url: str) -> str | None:
    """Numeric id from a ``/video/<id>`` path, or ``None``."""
    match = _VIDEO_ID_RE.search(url)
    return match.group(1) if match else None


def clean_url(final_url: str) -> str:
    """Strip tracking parameters from a resolved TikTok URL.

    Short-link hosts are returned unchanged; for every other host only
    the ``id`` query parameter survives.

    Raises
    ------
    ValidationError
        If *final_url* is not an absolute URL.
    """
    parsed = urlparse(final_url)
    if not parsed.scheme or not parsed.netloc:
        raise ValidationError("Invalid TikTok URL")
    if parsed.hostname in _SHORT_LINK_HOSTS:
        return final_url
    kept = [
        (key, value)
        for key, value in parse_qsl(parsed.query, keep_blank_values=True)
        if key in _KEPT_QUERY_PARAMS
    ]
    return urlunparse(parsed._replace(query=urlencode(kept)))


class TikTokExtractor(PlatformExtractor):
    """Scrapes TikTok video pages, falling back to embed and API sources."""

    platform: ClassVar[PlatformTag] = PlatformTag.TIKTOK

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, url: str) -> VideoMetadata:
        page_url = self.sanitize_url(url)
        video_id = video_id_from_url(page_url)
        draft = MetadataDraft()

        formats = first_success(
            [
                Strategy("page", lambda: self._from_page(page_url, draft)),
                Strategy("embed", lambda: self._from_embed(video_id)),
                Strategy("api", lambda: self._from_api(video_id, draft)),
            ],
            default=[],
            logger=self._log,
            chain="tiktok",
        )
        usable = self._require_formats(formats)
        return draft.build(usable, default_title="Untitled TikTok Video")

    def sanitize_url(self, url: str) -> str:
        """Resolve redirects with a HEAD request, then drop tracking params."""
        final_url = self._fetcher.fetch_head(
            url, headers={"User-Agent": self._settings.user_agent},
        )
        return clean_url(final_url or url)

    # ------------------------------------------------------------------
    # Strategy: page
    # ------------------------------------------------------------------

    def _from_page(self, page_url: str, draft: MetadataDraft) -> list[FormatRecord]:
        response = self._fetcher.fetch(
            page_url, headers=_browser_headers(self._settings.user_agent),
        )
        soup = parse_html(response.body)
        data = self.video_data(soup)

        self._fill_from_data(data, draft)
        title = page_title(soup)
        if title is not None:
            title = title.replace(_TITLE_SUFFIX, "").strip()
        draft.fill(
            title=meta_content(soup, prop="og:title") or title,
            description=(
                meta_content(soup, prop="og:description")
                or meta_content(soup, name="description")
            ),
            duration=_as_int(meta_content(soup, prop="video:duration")),
            thumbnail=meta_content(soup, prop="og:image"),
        )
        return self._page_formats(soup, data)

    def video_data(self, soup: BeautifulSoup) -> Document:
        """Pick the first non-empty embedded data blob on the page."""
        return first_success(
            [
                Strategy("json-ld", lambda: _json_ld(soup)),
                Strategy("next-data", lambda: _next_data(soup)),
                Strategy("sigi-state", lambda: _sigi_state(soup)),
                Strategy("universal-data", lambda: _universal_data(soup)),
            ],
            default=Document(),
            logger=self._log,
            chain="tiktok-data",
        )

    @staticmethod
    def _fill_from_data(data: Document, draft: MetadataDraft) -> None:
        duration = data["duration"].integer()
        if duration is None:
            duration = parse_iso_duration(data["duration"].text())
        if duration is None:
            duration = data.get("video", "duration").integer()
        draft.fill(
            title=first_text(data["name"], data["desc"]),
            description=first_text(data["description"], data["desc"]),
            duration=duration,
            thumbnail=first_text(
                data["thumbnailUrl"], data.get("video", "cover"),
            ) or _first_of(data["thumbnailUrl"]),
        )

    @staticmethod
    def _page_formats(soup: BeautifulSoup, data: Document) -> list[FormatRecord]:
        candidates: list[str] = [
            src for src in video_sources(soup) if src.startswith("http")
        ]
        og_video = (
            meta_content(soup, prop="og:video")
            or meta_content(soup, prop="og:video:url")
        )
        if og_video and og_video.startswith("http"):
            candidates.append(og_video)
        for blob_url in (
            data["videoUrl"],
            data.get("video", "playAddr"),
            data.get("video", "downloadAddr"),
            data.get("video", "playUrl"),
        ):
            text = blob_url.text()
            if text and text.startswith("http"):
                candidates.append(text)
        return _mp4_records(candidates, QUALITY_ORIGINAL)

    # ------------------------------------------------------------------
    # Strategy: embed
    # ------------------------------------------------------------------

    def _from_embed(self, video_id: str | None) -> list[FormatRecord]:
        if video_id is None:
            return []
        response = self._fetcher.fetch(
            EMBED_URL.format(video_id=video_id),
            headers={
                "User-Agent": self._settings.user_agent,
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
            },
        )
        return _mp4_records(video_sources(parse_html(response.body)), QUALITY_EMBED)

    # ------------------------------------------------------------------
    # Strategy: api
    # ------------------------------------------------------------------

    def _from_api(self, video_id: str | None, draft: MetadataDraft) -> list[FormatRecord]:
        if video_id is None:
            return []
        response = self._fetcher.fetch(
            API_URL.format(video_id=video_id),
            headers={"User-Agent": self._settings.tiktok_api_user_agent},
        )
        aweme = parse_json_blob(response.body, source="aweme feed")["aweme_list"][0]
        if not aweme:
            return []

        video = aweme["video"]
        draft.fill(
            title=aweme["desc"].text(),
            description=aweme["desc"].text(),
            thumbnail=video.get("cover", "url_list", 0).text(),
        )

        records: list[FormatRecord] = []
        for key, quality in (
            ("play_addr", QUALITY_NO_WATERMARK),
            ("download_addr", QUALITY_WATERMARK),
        ):
            address = video[key]
            record = build_record(
                url=address.get("url_list", 0).text() or "",
                quality=quality,
                mime_type="video/mp4",
                size=parse_size(address["data_size"]),
            )
            if record is not None:
                records.append(record)
        return records


# ---------------------------------------------------------------------------
# Data blob readers
# ---------------------------------------------------------------------------

def _json_ld(soup: BeautifulSoup) -> Document:
    doc = parse_json_blob(script_by_type(soup, "application/ld+json"), source="JSON-LD")
    return doc.first() if doc.is_list() else doc


def _next_data(soup: BeautifulSoup) -> Document:
    doc = parse_json_blob(script_by_id(soup, "__NEXT_DATA__"), source="__NEXT_DATA__")
    return doc.get("props", "pageProps", "videoData")


def _sigi_state(soup: BeautifulSoup) -> Document:
    doc = parse_json_blob(script_by_id(soup, "SIGI_STATE"), source="SIGI_STATE")
    return doc["ItemModule"].first()


def _universal_data(soup: BeautifulSoup) -> Document:
    doc = parse_json_blob(
        script_by_id(soup, "__UNIVERSAL_DATA_FOR_REHYDRATION__"),
        source="__UNIVERSAL_DATA_FOR_REHYDRATION__",
    )
    return doc.get("__DEFAULT_SCOPE__", "webapp.video-detail", "itemInfo", "itemStruct")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _mp4_records(urls: list[str], quality: str) -> list[FormatRecord]:
    records: list[FormatRecord] = []
    for url in urls:
        record = build_record(url=url, quality=quality, mime_type="video/mp4")
        if record is not None:
            records.append(record)
    return records


def _first_of(value: Document) -> str | None:
    return value[0].text() if value.is_list() else None


def _as_int(value: str | None) -> int | None:
    if value is None:
        return None
    return Document(value).integer()
