"""``requests``-backed implementation of :class:`~mdu.core.protocols.PageFetcher`.

This module is the **only** place in the codebase that imports
``requests``.  Every ``requests`` exception is caught here and re-raised
as :class:`~mdu.exceptions.HttpError` — nothing raw escapes the
infrastructure boundary.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

import requests

from mdu.config import Settings
from mdu.core.models import FetchResponse
from mdu.exceptions import HttpError

_log = logging.getLogger(__name__)


class RequestsPageFetcher:
    """Concrete :class:`PageFetcher` built on a :class:`requests.Session`.

    Usage::

        fetcher = RequestsPageFetcher(settings=Settings.from_env())
        page = fetcher.fetch("https://www.youtube.com/watch?v=...")

    Redirects are always followed.  Every call is bounded by
    :attr:`Settings.timeout`.  A ``User-Agent`` from the settings is sent
    unless the caller supplies one.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        session: requests.Session | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._settings: Settings = settings or Settings()
        self._session: requests.Session = session or requests.Session()
        self._log: logging.Logger = logger or _log

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> RequestsPageFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Protocol methods
    # ------------------------------------------------------------------

    def fetch(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResponse:
        response = self._request("GET", url, headers)
        if not 200 <= response.status_code < 300:
            raise HttpError(
                f"HTTP error! status: {response.status_code}",
                status=response.status_code,
                url=url,
            )
        return FetchResponse(
            status=response.status_code,
            body=response.text,
            final_url=response.url or url,
            headers=dict(response.headers),
        )

    def fetch_head(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """Final URL after redirects, whatever the response status."""
        response = self._request("HEAD", url, headers)
        return response.url or url

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        url: str,
        headers: Mapping[str, str] | None,
    ) -> requests.Response:
        merged = {"User-Agent": self._settings.user_agent}
        if headers:
            merged.update(headers)

        self._log.debug("%s %s", method, url)
        try:
            response = self._session.request(
                method,
                url,
                headers=merged,
                timeout=self._settings.timeout,
                allow_redirects=True,
            )
        except requests.Timeout as exc:
            raise HttpError(
                f"Request timed out after {self._settings.timeout:g}s: {url}",
                url=url,
                hint="Increase MDU_TIMEOUT or retry later.",
            ) from exc
        except requests.RequestException as exc:
            raise HttpError(f"Request failed: {exc}", url=url) from exc

        return response
