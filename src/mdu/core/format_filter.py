"""Pure format filtering and ranking logic.

Every function in this module is a **pure** transformation — no I/O,
no side effects, fully deterministic, and trivially unit-testable.
Each stage takes a sequence of records and returns a new list; none of
them raise on an empty result.  The "never empty on success" rule is
enforced centrally by :func:`run_stages`.

Pipeline order (built by :func:`build_stages`):

1. **Container** — case-insensitive exact match.
2. **Quality** — case-insensitive substring match, unless ``highest``.
3. **Rank** — platform comparator, only for ``highest``.
4. **Media type** — ``audio`` / ``video``.
5. **URL presence** — drop records without a valid locator.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from mdu.core.models import ExtractionRequest, FormatRecord, MediaType, is_valid_locator
from mdu.exceptions import NoMatchError

HIGHEST: str = "highest"
"""Sentinel quality token requesting ranking instead of filtering."""

NO_WATERMARK_MARKER: str = "no watermark"

Ranking = Callable[[Sequence[FormatRecord]], list[FormatRecord]]

_LEADING_INT_RE = re.compile(r"\s*(\d+)")


# ---------------------------------------------------------------------------
# 1. Container
# ---------------------------------------------------------------------------

def filter_by_container(
    formats: Sequence[FormatRecord],
    container: str,
) -> list[FormatRecord]:
    """Keep records whose container equals *container*, ignoring case."""
    wanted = container.lower()
    return [fmt for fmt in formats if fmt.container.lower() == wanted]


# ---------------------------------------------------------------------------
# 2. Quality
# ---------------------------------------------------------------------------

def filter_by_quality(
    formats: Sequence[FormatRecord],
    quality: str,
) -> list[FormatRecord]:
    """Keep records whose quality label contains *quality*, ignoring case.

    Idempotent: applying the same token twice changes nothing.
    """
    wanted = quality.lower()
    return [fmt for fmt in formats if wanted in fmt.quality.lower()]


# ---------------------------------------------------------------------------
# 3. Ranking
# ---------------------------------------------------------------------------

def resolution_of(quality: str) -> int:
    """Leading integer of a quality label; ``0`` for non-numeric labels.

    ``"1080p60"`` → 1080, ``"720p HDR"`` → 720, ``"tiny"`` → 0.  Audio
    bitrate labels therefore rank as 0.
    """
    match = _LEADING_INT_RE.match(quality)
    return int(match.group(1)) if match else 0


def rank_by_resolution(formats: Sequence[FormatRecord]) -> list[FormatRecord]:
    """Sort by numeric resolution, descending.  Stable for ties."""
    return sorted(formats, key=lambda fmt: -resolution_of(fmt.quality))


def has_no_watermark(fmt: FormatRecord) -> bool:
    return NO_WATERMARK_MARKER in fmt.quality.lower()


def rank_by_watermark(formats: Sequence[FormatRecord]) -> list[FormatRecord]:
    """No-watermark variants strictly first, then larger size first.

    Unknown size (``0``) sorts last within its group.  Stable for ties.
    """
    return sorted(
        formats,
        key=lambda fmt: (0 if has_no_watermark(fmt) else 1, -fmt.size),
    )


# ---------------------------------------------------------------------------
# 4. Media type
# ---------------------------------------------------------------------------

def filter_by_media_type(
    formats: Sequence[FormatRecord],
    media_type: MediaType,
) -> list[FormatRecord]:
    """Keep records of *media_type*."""
    return [fmt for fmt in formats if fmt.media_type == media_type]


# ---------------------------------------------------------------------------
# 5. URL presence
# ---------------------------------------------------------------------------

def filter_with_url(formats: Sequence[FormatRecord]) -> list[FormatRecord]:
    """Keep records carrying a valid locator URL."""
    return [fmt for fmt in formats if is_valid_locator(fmt.url)]


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class FilterStage:
    """One named pipeline step and the message used when it empties."""

    name: str
    apply: Callable[[Sequence[FormatRecord]], list[FormatRecord]]
    failure_message: str


def build_stages(
    request: ExtractionRequest,
    ranking: Ranking,
) -> list[FilterStage]:
    """Translate *request* into the ordered list of stages to run."""
    stages: list[FilterStage] = []

    container = request.container
    if container:
        stages.append(FilterStage(
            name="container",
            apply=lambda fmts: filter_by_container(fmts, container),
            failure_message=f"No formats matching '{container}' found",
        ))

    quality = request.quality
    if quality and quality != HIGHEST:
        stages.append(FilterStage(
            name="quality",
            apply=lambda fmts: filter_by_quality(fmts, quality),
            failure_message=f"No quality matching '{quality}' found",
        ))

    if quality == HIGHEST:
        stages.append(FilterStage(
            name="rank",
            apply=ranking,
            failure_message="No formats left to rank",
        ))

    media_type = request.media_type
    if media_type is not None:
        stages.append(FilterStage(
            name="type",
            apply=lambda fmts: filter_by_media_type(fmts, media_type),
            failure_message=f"No {media_type.value} formats found",
        ))

    stages.append(FilterStage(
        name="url",
        apply=filter_with_url,
        failure_message="No valid formats found with URLs",
    ))
    return stages


def run_stages(
    formats: Sequence[FormatRecord],
    stages: Sequence[FilterStage],
) -> list[FormatRecord]:
    """Apply *stages* left to right.

    Raises
    ------
    NoMatchError
        As soon as a stage leaves no records; ``stage`` names it.
    """
    current = list(formats)
    for stage in stages:
        current = stage.apply(current)
        if not current:
            raise NoMatchError(stage.failure_message, stage=stage.name)
    return current
