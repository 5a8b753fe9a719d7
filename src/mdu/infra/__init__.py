"""Infrastructure layer — external system integration.

This layer wraps all interaction with the network (``requests``) and
with yt-dlp.  Every raw third-party exception must be caught here and
re-raised as a :class:`~mdu.exceptions.MduError` subclass.

Rules
-----
* No imports from ``cli``.
* No user-facing output (no ``print()``, no Rich rendering).
* Must expose clean, typed interfaces consumed by the core layer.
"""

from mdu.infra.http_fetcher import RequestsPageFetcher
from mdu.infra.ytdlp_provider import YtDlpMetadataProvider

__all__: list[str] = [
    "RequestsPageFetcher",
    "YtDlpMetadataProvider",
]
