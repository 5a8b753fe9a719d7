"""Tests for the requests-backed fetcher (infra/http_fetcher.py).

The ``requests.Session`` is a MagicMock; no socket is ever opened.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from mdu.config import Settings
from mdu.core.models import FetchResponse
from mdu.exceptions import HttpError
from mdu.infra.http_fetcher import RequestsPageFetcher

_URL = "https://www.tiktok.com/@a/video/1"


def _response(
    status: int = 200,
    text: str = "<html></html>",
    url: str = _URL,
    headers: dict[str, str] | None = None,
) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    response.text = text
    response.url = url
    response.headers = headers or {"Content-Type": "text/html"}
    return response


def _fetcher(
    response: MagicMock | None = None,
    *,
    error: Exception | None = None,
    settings: Settings | None = None,
) -> tuple[RequestsPageFetcher, MagicMock]:
    session = MagicMock(spec=requests.Session)
    if error is not None:
        session.request.side_effect = error
    else:
        session.request.return_value = response or _response()
    return RequestsPageFetcher(settings=settings, session=session), session


class TestFetch:
    def test_success(self) -> None:
        fetcher, _ = _fetcher(_response(text="body", url="https://final.example/x"))
        assert fetcher.fetch(_URL) == FetchResponse(
            status=200,
            body="body",
            final_url="https://final.example/x",
            headers={"Content-Type": "text/html"},
        )

    def test_request_arguments(self) -> None:
        settings = Settings(timeout=7.0, user_agent="UA/default")
        fetcher, session = _fetcher(settings=settings)
        fetcher.fetch(_URL, headers={"Accept": "text/html"})
        session.request.assert_called_once_with(
            "GET",
            _URL,
            headers={"User-Agent": "UA/default", "Accept": "text/html"},
            timeout=7.0,
            allow_redirects=True,
        )

    def test_caller_user_agent_wins(self) -> None:
        fetcher, session = _fetcher()
        fetcher.fetch(_URL, headers={"User-Agent": "TikTok/1"})
        assert session.request.call_args.kwargs["headers"]["User-Agent"] == "TikTok/1"

    @pytest.mark.parametrize("status", [301, 403, 404, 500])
    def test_non_2xx_raises(self, status: int) -> None:
        fetcher, _ = _fetcher(_response(status=status))
        with pytest.raises(HttpError) as exc_info:
            fetcher.fetch(_URL)
        assert str(exc_info.value) == f"HTTP error! status: {status}"
        assert exc_info.value.status == status
        assert exc_info.value.url == _URL

    def test_timeout(self) -> None:
        fetcher, _ = _fetcher(error=requests.Timeout("slow"), settings=Settings(timeout=2.5))
        with pytest.raises(HttpError, match="timed out after 2.5s") as exc_info:
            fetcher.fetch(_URL)
        assert exc_info.value.status is None
        assert exc_info.value.hint is not None

    def test_connection_error(self) -> None:
        fetcher, _ = _fetcher(error=requests.ConnectionError("refused"))
        with pytest.raises(HttpError, match="Request failed: refused") as exc_info:
            fetcher.fetch(_URL)
        assert isinstance(exc_info.value.__cause__, requests.ConnectionError)


class TestFetchHead:
    def test_returns_final_url(self) -> None:
        fetcher, session = _fetcher(_response(url="https://www.tiktok.com/@a/video/2?x=1"))
        assert fetcher.fetch_head("https://vm.tiktok.com/abc/") == (
            "https://www.tiktok.com/@a/video/2?x=1"
        )
        assert session.request.call_args.args[0] == "HEAD"

    def test_falls_back_to_request_url(self) -> None:
        fetcher, _ = _fetcher(_response(url=""))
        assert fetcher.fetch_head(_URL) == _URL

    @pytest.mark.parametrize("status", [403, 405, 500])
    def test_error_status_still_resolves(self, status: int) -> None:
        final = "https://www.tiktok.com/@u/video/7300000000000000001"
        fetcher, _ = _fetcher(_response(status=status, url=final))
        assert fetcher.fetch_head("https://vm.tiktok.com/abc/") == final

    def test_transport_error_raises(self) -> None:
        fetcher, _ = _fetcher(error=requests.ConnectionError("reset"))
        with pytest.raises(HttpError, match="Request failed: reset"):
            fetcher.fetch_head(_URL)


class TestLifecycle:
    def test_context_manager_closes_session(self) -> None:
        fetcher, session = _fetcher()
        with fetcher as active:
            assert active is fetcher
        session.close.assert_called_once_with()
