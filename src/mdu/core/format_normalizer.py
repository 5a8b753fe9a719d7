"""Platform-native format descriptors → canonical :class:`FormatRecord`.

Every public producer in this module returns only records whose
``url`` passes :func:`~mdu.core.models.is_valid_locator`; anything else
is dropped on the spot.  Cipher decoding failures degrade to an empty
URL (and therefore a dropped record), never to an exception.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from urllib.parse import parse_qs, quote, unquote

from mdu.core.document import Document, first_text
from mdu.core.models import FormatRecord, MediaType, is_valid_locator

_log = logging.getLogger(__name__)

# Characters ``encodeURIComponent`` leaves untouched.
_URI_COMPONENT_SAFE = "-_.!~*'()"


# ---------------------------------------------------------------------------
# MIME handling
# ---------------------------------------------------------------------------

def split_mime_type(raw: str | None) -> tuple[str, str, MediaType]:
    """Split ``video/mp4; codecs="avc1"`` into its canonical parts.

    Returns
    -------
    tuple[str, str, MediaType]
        ``(mime_type, container, media_type)``.  The container is the
        subtype, or ``"unknown"`` when there is none.  Only a literal
        ``audio`` type maps to :attr:`MediaType.AUDIO`; everything else,
        including a missing MIME string, is video.
    """
    essence = (raw or "").split(";", 1)[0].strip()
    major, _, subtype = essence.partition("/")
    media_type = MediaType.AUDIO if major == "audio" else MediaType.VIDEO
    return essence, subtype or "unknown", media_type


# ---------------------------------------------------------------------------
# Cipher decoding
# ---------------------------------------------------------------------------

def decode_cipher(
    cipher: str | None,
    *,
    logger: logging.Logger | None = None,
) -> str:
    """Rebuild a playable URL from a ``signatureCipher`` string.

    The cipher is itself a query string carrying ``url``, ``sp``
    (signature parameter name) and ``s`` (signature value).  The
    signature is re-attached as ``&<sp>=<s>`` only when both are present.

    Returns ``""`` when the cipher has no ``url`` or cannot be decoded.
    """
    if not cipher:
        return ""
    try:
        fields = parse_qs(cipher, keep_blank_values=True, errors="strict")
        base = (fields.get("url") or [""])[0]
        sp = (fields.get("sp") or [""])[0]
        s = (fields.get("s") or [""])[0]
        if not base:
            return ""
        url = unquote(base, errors="strict")
    except (UnicodeDecodeError, ValueError, TypeError) as exc:
        (logger or _log).warning("Could not decode signature cipher: %s", exc)
        return ""
    if s and sp:
        return f"{url}&{sp}={quote(s, safe=_URI_COMPONENT_SAFE)}"
    return url


# ---------------------------------------------------------------------------
# Record construction
# ---------------------------------------------------------------------------

def parse_size(raw: Document) -> int:
    """Non-negative byte count from a content-length field, else ``0``."""
    size = raw.integer()
    return size if size is not None and size > 0 else 0


def build_record(
    *,
    url: str,
    quality: str,
    mime_type: str | None,
    size: int = 0,
) -> FormatRecord | None:
    """Construct a record, or ``None`` when *url* is not a valid locator."""
    if not is_valid_locator(url):
        return None
    essence, container, media_type = split_mime_type(mime_type)
    return FormatRecord(
        quality=quality,
        container=container,
        mime_type=essence,
        media_type=media_type,
        size=max(size, 0),
        url=url,
    )


def normalize_descriptor(
    descriptor: Document,
    *,
    logger: logging.Logger | None = None,
) -> FormatRecord | None:
    """Normalise one streaming-data format object.

    A direct ``url`` wins; otherwise ``signatureCipher`` (or the legacy
    ``cipher`` key) is decoded.
    """
    url = descriptor["url"].text()
    if url is None:
        cipher = first_text(descriptor["signatureCipher"], descriptor["cipher"])
        url = decode_cipher(cipher, logger=logger)
    quality = first_text(descriptor["qualityLabel"], descriptor["quality"]) or ""
    return build_record(
        url=url,
        quality=quality,
        mime_type=descriptor["mimeType"].text(),
        size=parse_size(descriptor["contentLength"]),
    )


def normalize_streaming_data(
    streaming_data: Document,
    *,
    logger: logging.Logger | None = None,
) -> list[FormatRecord]:
    """Normalise ``adaptiveFormats`` then ``formats`` of a player response."""
    records: list[FormatRecord] = []
    for key in ("adaptiveFormats", "formats"):
        for descriptor in streaming_data[key].items():
            record = normalize_descriptor(descriptor, logger=logger)
            if record is not None:
                records.append(record)
    return finalize_records(records)


# ---------------------------------------------------------------------------
# Post-construction filters
# ---------------------------------------------------------------------------

def deduplicate_by_url(records: Iterable[FormatRecord]) -> list[FormatRecord]:
    """Keep the first record for each distinct ``url``."""
    seen: set[str] = set()
    result: list[FormatRecord] = []
    for record in records:
        if record.url not in seen:
            seen.add(record.url)
            result.append(record)
    return result


def drop_missing_urls(records: Iterable[FormatRecord]) -> list[FormatRecord]:
    """Drop every record whose ``url`` is empty or not absolute."""
    return [record for record in records if is_valid_locator(record.url)]


def finalize_records(records: Sequence[FormatRecord]) -> list[FormatRecord]:
    """Validate then deduplicate, preserving original order."""
    return deduplicate_by_url(drop_missing_urls(records))
