"""Shared pytest fixtures and configuration for the mdu test suite.

Guidelines
----------
* No internet access in any test.
* The :class:`PageFetcher` protocol is faked at the core boundary;
  ``requests`` is mocked at the infra boundary.
* Core tests must be pure — no side effects.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from unittest.mock import MagicMock

import pytest

from mdu.core.models import FetchResponse
from mdu.exceptions import HttpError

PageMap = Mapping[str, "str | Exception"]


def build_fetcher(
    pages: PageMap,
    *,
    redirects: Mapping[str, str] | None = None,
) -> MagicMock:
    """Return a mock :class:`PageFetcher` serving *pages* by exact URL.

    Unknown URLs answer with ``HttpError(status=404)``.  A page value
    that is an exception is raised instead of returned.  ``fetch_head``
    resolves through *redirects*, defaulting to the URL itself.
    """
    redirect_map = dict(redirects or {})

    def _fetch(url: str, headers: Mapping[str, str] | None = None) -> FetchResponse:
        if url not in pages:
            raise HttpError("HTTP error! status: 404", status=404, url=url)
        value = pages[url]
        if isinstance(value, Exception):
            raise value
        return FetchResponse(status=200, body=value, final_url=url)

    def _fetch_head(url: str, headers: Mapping[str, str] | None = None) -> str:
        return redirect_map.get(url, url)

    fetcher = MagicMock()
    fetcher.fetch.side_effect = _fetch
    fetcher.fetch_head.side_effect = _fetch_head
    return fetcher


@pytest.fixture()
def fake_fetcher() -> Callable[..., MagicMock]:
    """Factory fixture wrapping :func:`build_fetcher`."""
    return build_fetcher
