"""Shared building blocks for platform extractors."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import ClassVar

from mdu.config import Settings
from mdu.core.format_normalizer import finalize_records
from mdu.core.models import FormatRecord, PlatformTag, VideoMetadata
from mdu.core.protocols import PageFetcher
from mdu.exceptions import NoFormatsError


@dataclass(slots=True)
class MetadataDraft:
    """Mutable accumulator for metadata found across strategies.

    :meth:`fill` only sets fields that are still unset, so the first
    strategy to find a value wins.  A draft lives inside one
    ``extract`` call and is never shared.
    """

    title: str | None = None
    description: str | None = None
    duration: int | None = None
    thumbnail: str | None = None

    def fill(
        self,
        *,
        title: str | None = None,
        description: str | None = None,
        duration: int | None = None,
        thumbnail: str | None = None,
    ) -> None:
        if self.title is None and title:
            self.title = title.strip() or None
        if self.description is None and description:
            self.description = description
        if self.duration is None and duration is not None and duration > 0:
            self.duration = duration
        if self.thumbnail is None and thumbnail:
            self.thumbnail = thumbnail

    def build(
        self,
        formats: Sequence[FormatRecord],
        *,
        default_title: str,
        default_thumbnail: str = "",
    ) -> VideoMetadata:
        return VideoMetadata(
            title=self.title or default_title,
            description=self.description or "",
            duration=self.duration or 0,
            thumbnail=self.thumbnail or default_thumbnail,
            formats=tuple(formats),
        )


class PlatformExtractor(ABC):
    """Abstract base class for per-platform scrapers.

    Extractors ONLY locate and normalise media metadata.  They do not
    download content, and they do not apply request-level filtering or
    ranking — that is the orchestrator's job.

    Parameters
    ----------
    fetcher:
        Any object satisfying the :class:`PageFetcher` protocol.
    settings:
        Runtime configuration; defaults to :class:`Settings()`.
    logger:
        Sink for recovered failures; defaults to the module logger.
    """

    platform: ClassVar[PlatformTag]

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        settings: Settings | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._fetcher: PageFetcher = fetcher
        self._settings: Settings = settings or Settings()
        self._log: logging.Logger = logger or logging.getLogger(type(self).__module__)

    @abstractmethod
    def extract(self, url: str) -> VideoMetadata:
        """Extract metadata and every usable format for *url*.

        Raises
        ------
        ValidationError
            If *url* cannot be interpreted for this platform.
        HttpError
            If the final fallback strategy fails to fetch.
        NoFormatsError
            If no strategy produced a usable format.
        """

    def list_formats(self, url: str) -> list[FormatRecord]:
        """Unfiltered, unranked formats for *url*."""
        return list(self.extract(url).formats)

    @staticmethod
    def _require_formats(
        formats: Sequence[FormatRecord],
        message: str = "No video formats found",
    ) -> list[FormatRecord]:
        """Validate and deduplicate; raise when nothing usable remains."""
        usable = finalize_records(formats)
        if not usable:
            raise NoFormatsError(
                message,
                hint="The page layout may have changed or the video is unavailable.",
            )
        return usable
