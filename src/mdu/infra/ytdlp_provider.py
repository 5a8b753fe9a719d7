"""yt-dlp backed implementation of :class:`~mdu.core.protocols.MetadataProvider`.

Used only as the last-resort YouTube strategy, when
:attr:`~mdu.config.Settings.ytdlp_fallback` is enabled.  ``yt_dlp`` is
an optional dependency (``pip install mdu[ytdlp]``) and is imported
lazily; its absence surfaces as a typed
:class:`~mdu.exceptions.EnvironmentError`.

All yt-dlp exceptions are caught here.  Extraction failures become
:class:`~mdu.exceptions.HttpError` so the fallback chain treats this
strategy like any other fetch.
"""

from __future__ import annotations

from typing import Any

from mdu.config import Settings
from mdu.exceptions import EnvironmentError, HttpError, NoFormatsError


class YtDlpMetadataProvider:
    """Concrete :class:`MetadataProvider` backed by the yt-dlp Python API."""

    # Substrings in yt-dlp error messages meaning the video is gone,
    # as opposed to a transient network failure.
    _UNAVAILABLE_SIGNALS: tuple[str, ...] = (
        "unavailable",
        "private video",
        "removed",
        "not available",
        "account terminated",
        "sign in to confirm your age",
    )

    def __init__(self, *, settings: Settings | None = None) -> None:
        self._settings: Settings = settings or Settings()

    def _build_opts(self) -> dict[str, Any]:
        """yt-dlp options for metadata-only extraction."""
        return {
            "quiet": True,
            "no_warnings": True,
            "no_color": True,
            "skip_download": True,
            "socket_timeout": self._settings.timeout,
            "http_headers": {"User-Agent": self._settings.user_agent},
        }

    def fetch_info(self, url: str) -> dict[str, Any]:
        """Return the raw yt-dlp info dict for *url* without downloading.

        Raises
        ------
        EnvironmentError
            When yt-dlp is not installed.
        NoFormatsError
            When yt-dlp reports the video as unavailable.
        HttpError
            For every other extraction failure.
        """
        try:
            import yt_dlp
            import yt_dlp.utils
        except ModuleNotFoundError as exc:
            raise EnvironmentError(
                "yt-dlp is not installed. Install with: pip install yt-dlp",
            ) from exc

        try:
            with yt_dlp.YoutubeDL(self._build_opts()) as ydl:
                info: Any = ydl.extract_info(url, download=False)
        except yt_dlp.utils.DownloadError as exc:
            self._raise_mapped(exc, url)
        except Exception as exc:
            raise HttpError(f"Unexpected yt-dlp error: {exc}", url=url) from exc

        if not isinstance(info, dict):
            raise HttpError("yt-dlp returned no metadata for the given URL.", url=url)

        return dict(info)  # shallow copy, detached from yt-dlp internals

    @classmethod
    def _raise_mapped(cls, exc: Exception, url: str) -> None:
        """Translate a yt-dlp ``DownloadError`` into a domain exception."""
        msg_lower = str(exc).lower()
        if any(signal in msg_lower for signal in cls._UNAVAILABLE_SIGNALS):
            raise NoFormatsError(
                str(exc),
                hint="The video may be private, removed, or geo-restricted.",
            ) from exc
        raise HttpError(str(exc), url=url) from exc
