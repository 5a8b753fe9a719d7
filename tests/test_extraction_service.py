"""Tests for the extraction orchestrator (core/extraction_service.py).

Most tests inject stub extractors through the ``extractors`` override so
that the orchestrator's own behaviour (validation, platform routing,
filter pipeline, download/info trimming, error boundary) is isolated.
A few run the real extractors end-to-end over a mocked fetcher.
"""

from __future__ import annotations

from collections.abc import Callable
from unittest.mock import MagicMock

import pytest

from mdu.config import Settings
from mdu.core.extraction_service import ExtractionService
from mdu.core.models import (
    ExtractionRequest,
    FormatRecord,
    MediaType,
    PlatformTag,
    VideoMetadata,
)
from mdu.exceptions import (
    ExtractionError,
    HttpError,
    NoFormatsError,
    NoMatchError,
    UnsupportedPlatformError,
    ValidationError,
)

from sample_pages import (
    TIKTOK_URL,
    VIDEO_ID,
    WATCH_URL,
    gv,
    player_response,
    youtube_html,
    yt_format,
)

_YT_URL = f"https://youtu.be/{VIDEO_ID}"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fmt(
    quality: str,
    *,
    container: str = "mp4",
    media_type: MediaType = MediaType.VIDEO,
    size: int = 0,
    url: str | None = None,
) -> FormatRecord:
    return FormatRecord(
        quality=quality,
        container=container,
        mime_type=f"{media_type.value}/{container}",
        media_type=media_type,
        size=size,
        url=url or f"https://cdn.example/{quality.replace(' ', '_')}-{size}.{container}",
    )


def _stub_extractor(*formats: FormatRecord, title: str = "Stub") -> MagicMock:
    extractor = MagicMock()
    metadata = VideoMetadata(title=title, duration=10, formats=tuple(formats))
    extractor.extract.return_value = metadata
    extractor.list_formats.return_value = list(formats)
    return extractor


def _service(
    youtube: MagicMock | None = None,
    tiktok: MagicMock | None = None,
) -> ExtractionService:
    return ExtractionService(
        MagicMock(),
        extractors={
            PlatformTag.YOUTUBE: youtube or _stub_extractor(),
            PlatformTag.TIKTOK: tiktok or _stub_extractor(),
        },
    )


_YT_FORMATS = (
    _fmt("360p"),
    _fmt("1080p"),
    _fmt("720p", container="webm"),
    _fmt("tiny", media_type=MediaType.AUDIO),
    _fmt("720p60"),
)


# ---------------------------------------------------------------------------
# extract
# ---------------------------------------------------------------------------

class TestExtract:
    def test_highest_ranks_by_resolution(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(ExtractionRequest.create(_YT_URL, quality="highest"))

        qualities = [f.quality for f in meta.formats]
        assert qualities == ["1080p", "720p60", "360p"]
        assert meta.download_url is None

    def test_tiktok_prefers_no_watermark(self) -> None:
        tiktok = _stub_extractor(
            _fmt("original (watermark)", size=900_000),
            _fmt("original (no watermark)", size=500_000),
        )
        meta = _service(tiktok=tiktok).extract(
            ExtractionRequest.create(TIKTOK_URL, container="mp4"),
        )
        assert meta.formats[0].quality == "original (no watermark)"
        assert meta.formats[0].size == 500_000

    def test_info_only_trims_formats(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(
            ExtractionRequest.create(_YT_URL, info_only=True, download=True),
        )
        assert meta.formats == ()
        assert meta.download_url is None
        assert meta.title == "Stub"
        assert "downloadUrl" not in meta.to_dict()

    def test_info_only_still_requires_formats(self) -> None:
        service = _service(youtube=_stub_extractor())
        with pytest.raises(NoFormatsError, match="No video formats found"):
            service.extract(ExtractionRequest.create(_YT_URL, info_only=True))

    def test_info_only_still_applies_filters(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        with pytest.raises(NoMatchError):
            service.extract(
                ExtractionRequest.create(_YT_URL, container="mkv", info_only=True),
            )

    def test_download_selects_first_ranked(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(ExtractionRequest.create(_YT_URL, download=True))
        assert meta.download_url == meta.formats[0].url
        assert meta.formats[0].quality == "1080p"
        assert meta.to_dict()["downloadUrl"] == meta.download_url

    def test_specific_quality(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(
            ExtractionRequest.create(_YT_URL, quality="720p", container=None),
        )
        assert [f.quality for f in meta.formats] == ["720p", "720p60"]

    def test_audio_request(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(ExtractionRequest.create(_YT_URL, media_type="audio"))
        assert [f.quality for f in meta.formats] == ["tiny"]

    def test_explicit_none_disables_filters(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(
            ExtractionRequest.create(_YT_URL, container=None, quality=None, media_type=None),
        )
        assert meta.formats == _YT_FORMATS

    def test_result_formats_are_subset_of_extracted(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        meta = service.extract(ExtractionRequest.create(_YT_URL))
        assert set(meta.formats) <= set(_YT_FORMATS)

    @pytest.mark.parametrize(
        ("overrides", "stage", "message"),
        [
            ({"container": "mkv"}, "container", "No formats matching 'mkv' found"),
            ({"quality": "4320p"}, "quality", "No quality matching '4320p' found"),
            (
                {"container": "webm", "media_type": "audio"},
                "type",
                "No audio formats found",
            ),
        ],
    )
    def test_stage_failures(
        self, overrides: dict[str, object], stage: str, message: str,
    ) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        with pytest.raises(NoMatchError) as exc_info:
            service.extract(ExtractionRequest.create(_YT_URL, **overrides))
        assert exc_info.value.stage == stage
        assert str(exc_info.value) == message


class TestExtractValidation:
    def test_unsupported_platform(self) -> None:
        with pytest.raises(UnsupportedPlatformError) as exc_info:
            _service().extract(ExtractionRequest.create("https://example.com/x"))
        assert str(exc_info.value) == (
            "Unsupported platform. Currently supports: YouTube, TikTok"
        )

    @pytest.mark.parametrize("url", ["", "   "])
    def test_missing_url(self, url: str) -> None:
        with pytest.raises(ValidationError, match="URL is required"):
            _service().extract(ExtractionRequest.create(url))

    def test_extractor_not_called_for_unsupported(self) -> None:
        youtube = _stub_extractor(*_YT_FORMATS)
        with pytest.raises(UnsupportedPlatformError):
            _service(youtube=youtube).extract(ExtractionRequest.create("https://vimeo.com/1"))
        youtube.extract.assert_not_called()

    def test_routes_to_platform_extractor(self) -> None:
        youtube = _stub_extractor(*_YT_FORMATS)
        tiktok = _stub_extractor(_fmt("original"))
        _service(youtube=youtube, tiktok=tiktok).extract(ExtractionRequest.create(TIKTOK_URL))
        tiktok.extract.assert_called_once_with(TIKTOK_URL)
        youtube.extract.assert_not_called()


class TestErrorBoundary:
    def test_typed_errors_propagate_unchanged(self) -> None:
        youtube = MagicMock()
        youtube.extract.side_effect = HttpError("HTTP error! status: 503", status=503)
        with pytest.raises(HttpError) as exc_info:
            _service(youtube=youtube).extract(ExtractionRequest.create(_YT_URL))
        assert exc_info.value.status == 503

    def test_unexpected_errors_are_wrapped(self) -> None:
        youtube = MagicMock()
        youtube.extract.side_effect = KeyError("boom")
        with pytest.raises(ExtractionError, match="Error extracting video") as exc_info:
            _service(youtube=youtube).extract(ExtractionRequest.create(_YT_URL))
        assert isinstance(exc_info.value.__cause__, KeyError)


# ---------------------------------------------------------------------------
# list_formats
# ---------------------------------------------------------------------------

class TestListFormats:
    def test_youtube_listing_ranked_by_resolution(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        tag, formats = service.list_formats(_YT_URL)
        assert tag is PlatformTag.YOUTUBE
        assert [f.quality for f in formats] == ["1080p", "720p", "720p60", "360p", "tiny"]
        assert set(formats) == set(_YT_FORMATS)

    def test_tiktok_listing_puts_no_watermark_first(self) -> None:
        tiktok = _stub_extractor(
            _fmt("original (watermark)", size=900_000),
            _fmt("embed", size=0),
            _fmt("original (no watermark)", size=500_000),
        )
        _, formats = _service(tiktok=tiktok).list_formats(TIKTOK_URL)
        assert [f.quality for f in formats] == [
            "original (no watermark)", "original (watermark)", "embed",
        ]

    def test_type_filter(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        _, formats = service.list_formats(_YT_URL, "AUDIO")
        assert [f.quality for f in formats] == ["tiny"]

    def test_no_match_for_type(self) -> None:
        tiktok = _stub_extractor(_fmt("original"))
        with pytest.raises(NoFormatsError, match="No valid formats found with URLs"):
            _service(tiktok=tiktok).list_formats(TIKTOK_URL, MediaType.AUDIO)

    def test_invalid_type(self) -> None:
        service = _service(youtube=_stub_extractor(*_YT_FORMATS))
        with pytest.raises(ValidationError, match="Invalid media type"):
            service.list_formats(_YT_URL, "image")

    def test_missing_url(self) -> None:
        with pytest.raises(ValidationError):
            _service().list_formats(None)

    def test_unsupported(self) -> None:
        with pytest.raises(UnsupportedPlatformError):
            _service().list_formats("https://example.com/x")


# ---------------------------------------------------------------------------
# support
# ---------------------------------------------------------------------------

class TestSupport:
    def test_global_listing(self) -> None:
        info = _service().support()
        assert info["platforms"] == ["youtube", "tiktok"]
        assert info["formats"]["youtube"] == ["mp4", "webm"]
        assert info["formats"]["tiktok"] == ["mp4"]
        assert "highest" in info["qualities"]["youtube"]
        assert "original (no watermark)" in info["qualities"]["tiktok"]

    def test_single_platform(self) -> None:
        info = _service().support(TIKTOK_URL)
        assert info == {
            "platform": "tiktok",
            "formats": ["mp4"],
            "qualities": [
                "original",
                "original (no watermark)",
                "original (watermark)",
                "original (embed)",
            ],
        }

    def test_unknown_platform(self) -> None:
        info = _service().support("https://example.com/x")
        assert info == {"platform": "unknown", "formats": [], "qualities": []}


# ---------------------------------------------------------------------------
# End-to-end over a mocked fetcher
# ---------------------------------------------------------------------------

class TestEndToEnd:
    def test_youtube_highest(self, fake_fetcher: Callable[..., MagicMock]) -> None:
        player = player_response(
            adaptive=[
                yt_format(itag=134, quality_label="360p", url=gv(134)),
                yt_format(itag=137, quality_label="1080p", url=gv(137)),
                yt_format(itag=140, mime="audio/mp4", quality="tiny", url=gv(140)),
                yt_format(itag=136, quality_label="720p", url=gv(136)),
            ],
        )
        service = ExtractionService(fake_fetcher({WATCH_URL: youtube_html(player=player)}))
        meta = service.extract(ExtractionRequest.create(_YT_URL, download=True))

        assert [f.quality for f in meta.formats] == ["1080p", "720p", "360p"]
        assert meta.download_url == gv(137)
        assert meta.title == "Player Title"

    def test_default_extractors_receive_provider(
        self, fake_fetcher: Callable[..., MagicMock],
    ) -> None:
        provider = MagicMock()
        provider.fetch_info.return_value = {
            "title": "From provider",
            "formats": [
                {"ext": "mp4", "vcodec": "avc1", "acodec": "mp4a", "height": 480, "url": gv(18)},
            ],
        }
        service = ExtractionService(
            fake_fetcher({WATCH_URL: youtube_html()}),
            settings=Settings(ytdlp_fallback=True),
            metadata_provider=provider,
        )
        meta = service.extract(ExtractionRequest.create(_YT_URL))
        assert meta.title == "From provider"
        assert [f.quality for f in meta.formats] == ["480p"]
