"""Domain models for mdu.

All models are **frozen** dataclasses — immutable value objects with no
behaviour beyond data access and wire serialisation.  They carry zero
I/O and zero dependencies on external packages.  Pipeline stages that
"narrow" a result produce new instances via :func:`dataclasses.replace`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from mdu.exceptions import ValidationError


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class PlatformTag(str, Enum):
    """Result of classifying a URL.  Derived, never persisted."""

    UNKNOWN = "unknown"
    YOUTUBE = "youtube"
    TIKTOK = "tiktok"


class MediaType(str, Enum):
    """Kind of stream a format carries."""

    AUDIO = "audio"
    VIDEO = "video"


def is_valid_locator(url: str | None) -> bool:
    """Return ``True`` when *url* is a non-empty absolute http(s) URL."""
    if not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


# ---------------------------------------------------------------------------
# Format record
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FormatRecord:
    """One downloadable media stream in canonical form."""

    quality: str
    """Resolution token (``1080p``) or descriptive tag (``original``)."""

    container: str
    """Container extension derived from the MIME subtype (``mp4``)."""

    mime_type: str
    """``type/subtype`` without codec parameters."""

    media_type: MediaType

    size: int
    """Size in bytes; ``0`` when unknown."""

    url: str
    """Absolute locator URL.  Never empty on a returned record."""

    def to_dict(self) -> dict[str, Any]:
        """Serialise using the public wire field names."""
        return {
            "quality": self.quality,
            "format": self.container,
            "mimeType": self.mime_type,
            "type": self.media_type.value,
            "size": self.size,
            "url": self.url,
        }


# ---------------------------------------------------------------------------
# Video metadata
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class VideoMetadata:
    """Assembled extraction result for a single video."""

    title: str
    description: str = ""
    duration: int = 0
    """Duration in seconds; ``0`` when unknown."""

    thumbnail: str = ""
    formats: tuple[FormatRecord, ...] = ()
    download_url: str | None = None
    """Locator of the top-ranked format, set only on request."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "title": self.title,
            "description": self.description,
            "duration": self.duration,
            "thumbnail": self.thumbnail,
            "formats": [fmt.to_dict() for fmt in self.formats],
        }
        if self.download_url is not None:
            data["downloadUrl"] = self.download_url
        return data


# ---------------------------------------------------------------------------
# Extraction request
# ---------------------------------------------------------------------------

REQUEST_DEFAULTS: dict[str, Any] = {
    "container": "mp4",
    "quality": "highest",
    "media_type": MediaType.VIDEO,
    "download": False,
    "info_only": False,
}


@dataclass(frozen=True, slots=True)
class ExtractionRequest:
    """Parameters of one extraction.

    Build instances with :meth:`create` so that defaults are applied
    before the caller's explicitly supplied fields.
    """

    url: str
    container: str | None = None
    quality: str | None = None
    media_type: MediaType | None = None
    download: bool = False
    info_only: bool = False

    @classmethod
    def create(cls, url: str, **supplied: Any) -> ExtractionRequest:
        """Apply defaults, then let every supplied key override them.

        A key supplied with value ``None`` still overrides its default,
        which disables the corresponding filter stage.

        Raises
        ------
        ValidationError
            For unknown keys or an unknown media type.
        """
        unknown = set(supplied) - set(REQUEST_DEFAULTS)
        if unknown:
            raise ValidationError(
                f"Unknown request field(s): {', '.join(sorted(unknown))}",
            )
        params = {**REQUEST_DEFAULTS, **supplied}
        media_type = params["media_type"]
        if media_type is not None and not isinstance(media_type, MediaType):
            try:
                media_type = MediaType(str(media_type).lower())
            except ValueError as exc:
                raise ValidationError(
                    f"Invalid media type: {media_type}",
                    hint="Use 'audio' or 'video'.",
                ) from exc
        return cls(
            url=url,
            container=params["container"],
            quality=params["quality"],
            media_type=media_type,
            download=bool(params["download"]),
            info_only=bool(params["info_only"]),
        )


# ---------------------------------------------------------------------------
# Fetch result
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FetchResponse:
    """Outcome of a successful (2xx) page fetch."""

    status: int
    body: str
    final_url: str
    headers: dict[str, str] = field(default_factory=dict)
