"""Protocols (interfaces) consumed by the core layer.

These define the contracts that infrastructure adapters must satisfy.
Core code depends ONLY on these protocols — never on concrete
implementations — preserving the dependency inversion principle.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

from mdu.core.models import FetchResponse


class PageFetcher(Protocol):
    """Contract for the HTTP transport used by platform extractors.

    Implementations follow redirects, bound every call by a timeout, and
    map all transport-specific exceptions to
    :class:`~mdu.exceptions.HttpError`.
    """

    def fetch(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> FetchResponse:
        """GET *url* and return the decoded body.

        Raises
        ------
        HttpError
            On a non-2xx status (``status`` set) or a transport failure
            such as a timeout (``status`` is ``None``).
        """
        ...  # pragma: no cover

    def fetch_head(
        self,
        url: str,
        headers: Mapping[str, str] | None = None,
    ) -> str:
        """HEAD *url*, following redirects, and return the final URL.

        Raises
        ------
        HttpError
            On a transport failure.  A non-2xx status still yields the
            final URL.
        """
        ...  # pragma: no cover


class MetadataProvider(Protocol):
    """Contract for a full-featured extraction backend (e.g. yt-dlp).

    Any object that implements :meth:`fetch_info` with the correct
    signature satisfies this protocol structurally (no explicit
    inheritance required).
    """

    def fetch_info(self, url: str) -> dict[str, Any]:
        """Fetch raw metadata for *url* and return a provider-specific dict.

        The returned dict should contain ``"title"`` and a ``"formats"``
        list of format dicts, each carrying at least ``"url"``.

        Raises
        ------
        MduError
            Implementations must map backend exceptions to subclasses.
        """
        ...  # pragma: no cover
