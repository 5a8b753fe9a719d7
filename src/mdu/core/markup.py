"""Locating structured data inside fetched page markup.

Helpers in this module find candidate data blobs — typed ``<script>``
tags, script tags addressed by id, JavaScript globals assigned inline —
and plain markup signals (meta tags, ``<title>``, ``<video src>``).
They never raise for absent data: lookups return ``None`` or an empty
list.  :func:`parse_json_blob` is the single place that turns blob text
into a :class:`~mdu.core.document.Document`, raising
:class:`~mdu.exceptions.ParseError` on malformed input so that the
fallback chain can move on.
"""

from __future__ import annotations

import json
import re

from bs4 import BeautifulSoup, Tag

from mdu.core.document import Document
from mdu.exceptions import ParseError

# Upper bound on how far the balanced-brace scan may walk.
_MAX_BLOB_CHARS = 5_000_000

_ISO_DURATION_RE = re.compile(
    r"^P(?:(?P<days>\d+)D)?"
    r"(?:T(?:(?P<hours>\d+)H)?(?:(?P<minutes>\d+)M)?(?:(?P<seconds>\d+(?:\.\d+)?)S)?)?$",
    re.IGNORECASE,
)


def parse_html(html: str) -> BeautifulSoup:
    """Parse *html* with the stdlib-backed parser (no lxml required)."""
    return BeautifulSoup(html, "html.parser")


# ---------------------------------------------------------------------------
# Script blobs
# ---------------------------------------------------------------------------

def script_by_type(soup: BeautifulSoup, script_type: str) -> str | None:
    """Text of the first ``<script type=...>`` tag, e.g. JSON-LD."""
    tag = soup.find("script", attrs={"type": script_type})
    return _tag_text(tag)


def script_by_id(soup: BeautifulSoup, script_id: str) -> str | None:
    """Text of the ``<script id=...>`` tag, e.g. ``__NEXT_DATA__``."""
    tag = soup.find("script", attrs={"id": script_id})
    return _tag_text(tag)


def assigned_json(html: str, variable: str) -> str | None:
    """Find ``<variable> = {...}`` in raw markup and return the object text.

    Handles ``var x = {...};``, ``x = {...};`` and
    ``window["x"] = {...};``.  The object is cut out by balanced-brace
    scanning so nested objects and braces inside strings are safe.
    """
    pattern = re.compile(
        r'(?:var\s+|window\[")?' + re.escape(variable) + r'(?:"\])?\s*=\s*',
    )
    for match in pattern.finditer(html):
        blob = balanced_object(html, match.end())
        if blob is not None:
            return blob
    return None


def balanced_object(text: str, start: int) -> str | None:
    """Return the ``{...}`` object that opens at *start*, or ``None``."""
    if start >= len(text) or text[start] != "{":
        return None

    depth = 0
    in_string = False
    escape = False
    limit = min(len(text), start + _MAX_BLOB_CHARS)

    for i in range(start, limit):
        ch = text[i]

        if escape:
            escape = False
            continue

        if ch == "\\":
            if in_string:
                escape = True
            continue

        if ch == '"':
            in_string = not in_string
            continue

        if in_string:
            continue

        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start : i + 1]

    return None


def parse_json_blob(text: str | None, *, source: str) -> Document:
    """Parse *text* as JSON.

    Returns an absent :class:`Document` when *text* is ``None`` or blank.

    Raises
    ------
    ParseError
        When *text* is present but is not valid JSON.
    """
    if text is None or not text.strip():
        return Document()
    try:
        return Document(json.loads(text))
    except (json.JSONDecodeError, ValueError) as exc:
        raise ParseError(
            f"Malformed JSON in {source}: {exc}", source=source,
        ) from exc


# ---------------------------------------------------------------------------
# Markup signals
# ---------------------------------------------------------------------------

def meta_content(
    soup: BeautifulSoup,
    *,
    prop: str | None = None,
    name: str | None = None,
) -> str | None:
    """``content`` of a ``<meta property=...>`` or ``<meta name=...>`` tag."""
    attrs = {"property": prop} if prop is not None else {"name": name}
    tag = soup.find("meta", attrs=attrs)
    if not isinstance(tag, Tag):
        return None
    content = tag.get("content")
    if isinstance(content, str) and content.strip():
        return content.strip()
    return None


def page_title(soup: BeautifulSoup) -> str | None:
    """Stripped ``<title>`` text, or ``None`` when absent/blank."""
    tag = soup.find("title")
    if not isinstance(tag, Tag):
        return None
    text = tag.get_text(strip=True)
    return text or None


def video_sources(soup: BeautifulSoup) -> list[str]:
    """Literal ``src`` attributes of every ``<video src=...>`` tag."""
    sources: list[str] = []
    for tag in soup.find_all("video", src=True):
        src = tag.get("src")
        if isinstance(src, str) and src.strip():
            sources.append(src.strip())
    return sources


def parse_iso_duration(value: str | None) -> int | None:
    """Convert an ISO-8601 duration (``PT3M20S``) to whole seconds."""
    if not value:
        return None
    match = _ISO_DURATION_RE.match(value.strip())
    if match is None or not any(match.groupdict().values()):
        return None
    parts = match.groupdict()
    seconds = float(parts["seconds"] or 0)
    seconds += int(parts["minutes"] or 0) * 60
    seconds += int(parts["hours"] or 0) * 3600
    seconds += int(parts["days"] or 0) * 86400
    return int(seconds)


def _tag_text(tag: object) -> str | None:
    if not isinstance(tag, Tag):
        return None
    text = tag.get_text()
    return text if text.strip() else None
