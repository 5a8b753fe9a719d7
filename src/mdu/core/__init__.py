"""Core / service layer — pure business logic and data transformations.

Rules
-----
* No ``print()`` calls.
* No network or filesystem I/O except through injected protocols.
* No imports from ``cli`` or ``infra``.
* Must not import :mod:`mdu.platforms` at package import time; the
  orchestrator lives in :mod:`mdu.core.extraction_service`.
"""

from mdu.core.models import (
    ExtractionRequest,
    FetchResponse,
    FormatRecord,
    MediaType,
    PlatformTag,
    VideoMetadata,
)
from mdu.core.protocols import MetadataProvider, PageFetcher

__all__: list[str] = [
    "ExtractionRequest",
    "FetchResponse",
    "FormatRecord",
    "MediaType",
    "MetadataProvider",
    "PageFetcher",
    "PlatformTag",
    "VideoMetadata",
]
