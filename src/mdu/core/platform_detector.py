"""URL → platform classification.

Pure pattern matching with no I/O.  :func:`detect` is total: anything
it does not recognise, including non-string input, maps to
:attr:`PlatformTag.UNKNOWN`.
"""

from __future__ import annotations

import re

from mdu.core.models import PlatformTag

_PLATFORM_PATTERNS: tuple[tuple[PlatformTag, tuple[re.Pattern[str], ...]], ...] = (
    (
        PlatformTag.YOUTUBE,
        (
            # Long-form hosting domain and its mobile / music variants.
            re.compile(
                r"^(?:https?://)?(?:www\.|m\.|music\.)?youtube\.com/"
                r"(?:watch\?|embed/|v/|e/|shorts/|live/)",
                re.IGNORECASE,
            ),
            re.compile(
                r"^(?:https?://)?(?:www\.)?youtube-nocookie\.com/embed/",
                re.IGNORECASE,
            ),
            # Short-link redirector.
            re.compile(r"^(?:https?://)?youtu\.be/[^/?#\s]+", re.IGNORECASE),
        ),
    ),
    (
        PlatformTag.TIKTOK,
        (
            re.compile(
                r"^(?:https?://)?(?:www\.|m\.)?tiktok\.com/", re.IGNORECASE,
            ),
            re.compile(
                r"^(?:https?://)?(?:vm|vt)\.tiktok\.com/[^/?#\s]+", re.IGNORECASE,
            ),
        ),
    ),
)

_DISPLAY_NAMES: dict[PlatformTag, str] = {
    PlatformTag.YOUTUBE: "YouTube",
    PlatformTag.TIKTOK: "TikTok",
}


def detect(url: object) -> PlatformTag:
    """Classify *url* into a :class:`PlatformTag`.  Never raises."""
    if not isinstance(url, str):
        return PlatformTag.UNKNOWN
    candidate = url.strip()
    for tag, patterns in _PLATFORM_PATTERNS:
        if any(pattern.search(candidate) for pattern in patterns):
            return tag
    return PlatformTag.UNKNOWN


def supported_platforms() -> list[PlatformTag]:
    """Return every platform tag that has detection patterns."""
    return [tag for tag, _ in _PLATFORM_PATTERNS]


def supported_platform_names() -> str:
    """Human-readable, comma-separated list used in error messages."""
    return ", ".join(_DISPLAY_NAMES[tag] for tag in supported_platforms())
