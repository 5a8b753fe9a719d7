"""Extraction orchestrator — the central service consumed by the CLI.

It depends on a :class:`~mdu.core.protocols.PageFetcher` injected at
construction time (dependency inversion), detects the platform, runs
that platform's extractor, then narrows the result through the
filter-sort pipeline of :mod:`mdu.core.format_filter`.

Guarantees
----------
* No ``print()``, no filesystem access, no shared mutable state: one
  instance may serve any number of requests, from any thread.
* Only :class:`~mdu.exceptions.MduError` subclasses escape.
* ``info_only`` trimming happens strictly after filtering, ranking and
  download-link selection, so it never bypasses their validation.
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from mdu.config import Settings
from mdu.core.format_filter import build_stages, filter_by_media_type, filter_with_url, run_stages
from mdu.core.models import ExtractionRequest, FormatRecord, MediaType, PlatformTag, VideoMetadata
from mdu.core.platform_detector import detect, supported_platform_names, supported_platforms
from mdu.core.protocols import MetadataProvider, PageFetcher
from mdu.exceptions import (
    ExtractionError,
    MduError,
    NoFormatsError,
    UnsupportedPlatformError,
    ValidationError,
)
from mdu.platforms import PROFILES, PlatformExtractor, PlatformProfile, YouTubeExtractor

T = TypeVar("T")


class ExtractionService:
    """Stateless service that extracts, filters and ranks media formats.

    Parameters
    ----------
    fetcher:
        Any object satisfying the :class:`PageFetcher` protocol.
    settings:
        Runtime configuration; defaults to :class:`Settings()`.
    logger:
        Injected logging sink shared with every extractor.
    metadata_provider:
        Optional backend for the YouTube last-resort strategy; only used
        when :attr:`Settings.ytdlp_fallback` is enabled.
    extractors:
        Override the extractor per platform (mainly for tests).
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
        metadata_provider: MetadataProvider | None = None,
        extractors: Mapping[PlatformTag, PlatformExtractor] | None = None,
    ) -> None:
        self._settings: Settings = settings or Settings()
        self._log: logging.Logger = logger or logging.getLogger(__name__)
        if extractors is None:
            extractors = self._default_extractors(fetcher, metadata_provider)
        self._extractors: dict[PlatformTag, PlatformExtractor] = dict(extractors)

    def _default_extractors(
        self,
        fetcher: PageFetcher,
        metadata_provider: MetadataProvider | None,
    ) -> dict[PlatformTag, PlatformExtractor]:
        built: dict[PlatformTag, PlatformExtractor] = {}
        for tag, profile in PROFILES.items():
            kwargs: dict[str, Any] = {"settings": self._settings, "logger": self._log}
            if profile.extractor_class is YouTubeExtractor:
                kwargs["metadata_provider"] = metadata_provider
            built[tag] = profile.extractor_class(fetcher, **kwargs)
        return built

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, request: ExtractionRequest) -> VideoMetadata:
        """Extract, filter and rank formats for ``request.url``.

        Raises
        ------
        ValidationError
            If the URL is missing or malformed for its platform.
        UnsupportedPlatformError
            If the URL matches no known platform.
        HttpError
            If the terminal fetch of the fallback chain fails.
        NoFormatsError
            If extraction found no usable formats.
        NoMatchError
            If a filter stage left no formats; ``stage`` names it.
        ExtractionError
            For any unexpected failure.
        """
        return self._guard(lambda: self._extract(request))

    def list_formats(
        self,
        url: str | None,
        media_type: MediaType | str | None = None,
    ) -> tuple[PlatformTag, tuple[FormatRecord, ...]]:
        """Every usable format for *url*, optionally of one media type.

        Raises
        ------
        NoFormatsError
            If nothing with a valid URL survives the type filter.
        """
        return self._guard(lambda: self._list_formats(url, media_type))

    def support(self, url: str | None = None) -> dict[str, Any]:
        """Static capability listing, narrowed to one platform for *url*."""
        if url:
            tag = detect(url)
            profile = PROFILES.get(tag)
            return {
                "platform": tag.value,
                "formats": list(profile.containers) if profile else [],
                "qualities": list(profile.qualities) if profile else [],
            }
        return {
            "platforms": [tag.value for tag in supported_platforms()],
            "formats": {
                tag.value: list(profile.containers) for tag, profile in PROFILES.items()
            },
            "qualities": {
                tag.value: list(profile.qualities) for tag, profile in PROFILES.items()
            },
        }

    # ------------------------------------------------------------------
    # Implementation
    # ------------------------------------------------------------------

    def _extract(self, request: ExtractionRequest) -> VideoMetadata:
        url = self._validate_url(request.url)
        tag, profile = self._resolve_platform(url)
        self._log.info("Extracting %s video: %s", tag.value, url)

        metadata = self._extractors[tag].extract(url)
        if not metadata.formats:
            raise NoFormatsError("No video formats found")

        formats = run_stages(metadata.formats, build_stages(request, profile.ranking))
        metadata = dataclasses.replace(metadata, formats=tuple(formats))

        if request.download:
            metadata = dataclasses.replace(metadata, download_url=formats[0].url)

        if request.info_only:
            metadata = dataclasses.replace(metadata, formats=(), download_url=None)

        return metadata

    def _list_formats(
        self,
        url: str | None,
        media_type: MediaType | str | None,
    ) -> tuple[PlatformTag, tuple[FormatRecord, ...]]:
        checked = self._validate_url(url)
        tag, profile = self._resolve_platform(checked)
        formats = profile.ranking(self._extractors[tag].list_formats(checked))
        if media_type is not None:
            formats = filter_by_media_type(formats, _coerce_media_type(media_type))
        formats = filter_with_url(formats)
        if not formats:
            raise NoFormatsError("No valid formats found with URLs")
        return tag, tuple(formats)

    @staticmethod
    def _validate_url(url: str | None) -> str:
        """Raise :class:`ValidationError` for a missing URL."""
        stripped = (url or "").strip()
        if not stripped:
            raise ValidationError("URL is required")
        return stripped

    @staticmethod
    def _resolve_platform(url: str) -> tuple[PlatformTag, PlatformProfile]:
        tag = detect(url)
        profile = PROFILES.get(tag)
        if profile is None:
            raise UnsupportedPlatformError(
                f"Unsupported platform. Currently supports: {supported_platform_names()}",
            )
        return tag, profile

    # ------------------------------------------------------------------
    # Error boundary
    # ------------------------------------------------------------------

    def _guard(self, operation: Callable[[], T]) -> T:
        """Run *operation*, ensuring only our exceptions escape."""
        try:
            return operation()
        except MduError:
            # Already one of ours: propagate unchanged.
            raise
        except Exception as exc:
            self._log.exception("Unexpected extraction failure")
            raise ExtractionError(f"Error extracting video: {exc}") from exc


def _coerce_media_type(value: MediaType | str) -> MediaType:
    if isinstance(value, MediaType):
        return value
    try:
        return MediaType(value.lower())
    except ValueError as exc:
        raise ValidationError(
            f"Invalid media type: {value}", hint="Use 'audio' or 'video'.",
        ) from exc
