"""Tests for URL → platform classification (core/platform_detector.py)."""

from __future__ import annotations

import pytest

from mdu.core.models import PlatformTag
from mdu.core.platform_detector import detect, supported_platform_names, supported_platforms


class TestDetectYouTube:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
            "http://youtube.com/watch?v=dQw4w9WgXcQ&t=10s",
            "https://m.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://music.youtube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/embed/dQw4w9WgXcQ",
            "https://www.youtube.com/shorts/dQw4w9WgXcQ",
            "https://www.youtube-nocookie.com/embed/dQw4w9WgXcQ",
            "https://youtu.be/dQw4w9WgXcQ",
            "youtu.be/dQw4w9WgXcQ",
            "  https://YOUTU.BE/dQw4w9WgXcQ  ",
        ],
    )
    def test_youtube_urls(self, url: str) -> None:
        assert detect(url) is PlatformTag.YOUTUBE


class TestDetectTikTok:
    @pytest.mark.parametrize(
        "url",
        [
            "https://www.tiktok.com/@user/video/7234567890123456789",
            "https://tiktok.com/@user/video/7234567890123456789?lang=en",
            "https://m.tiktok.com/v/7234567890123456789.html",
            "https://vm.tiktok.com/ZMabcdef/",
            "https://vt.tiktok.com/ZSabcdef/",
        ],
    )
    def test_tiktok_urls(self, url: str) -> None:
        assert detect(url) is PlatformTag.TIKTOK


class TestDetectUnknown:
    @pytest.mark.parametrize(
        "url",
        [
            "https://example.com/x",
            "https://notyoutube.com/watch?v=dQw4w9WgXcQ",
            "https://www.youtube.com/",
            "https://vimeo.com/123",
            "",
            "not a url",
        ],
    )
    def test_unknown_urls(self, url: str) -> None:
        assert detect(url) is PlatformTag.UNKNOWN

    @pytest.mark.parametrize("value", [None, 42, b"https://youtu.be/x"])
    def test_non_string_input_never_raises(self, value: object) -> None:
        assert detect(value) is PlatformTag.UNKNOWN


class TestSupportedPlatforms:
    def test_listing(self) -> None:
        assert supported_platforms() == [PlatformTag.YOUTUBE, PlatformTag.TIKTOK]

    def test_display_names(self) -> None:
        assert supported_platform_names() == "YouTube, TikTok"
