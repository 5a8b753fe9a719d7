"""Schema-optional access to parsed JSON blobs.

Embedded page state is site-controlled and changes shape without
notice.  :class:`Document` wraps any parsed JSON value and makes every
lookup total: indexing a missing key, indexing into a scalar, or
stepping past the end of a list yields an *absent* document instead of
raising.  Typed readers (:meth:`Document.text`, :meth:`Document.integer`)
perform the presence and type check at the point of use.

Usage::

    doc = Document(json.loads(blob))
    title = doc["videoDetails"]["title"].text()
    seconds = doc.get("videoDetails", "lengthSeconds").integer()
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

_MISSING: Any = object()


class Document:
    """Immutable "maybe" view over a JSON value."""

    __slots__ = ("_value",)

    def __init__(self, value: Any = _MISSING) -> None:
        self._value = value

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def __getitem__(self, key: str | int) -> Document:
        value = self._value
        if isinstance(key, str) and isinstance(value, dict):
            return Document(value.get(key, _MISSING))
        if isinstance(key, int) and isinstance(value, list):
            if -len(value) <= key < len(value):
                return Document(value[key])
        return Document()

    def get(self, *path: str | int) -> Document:
        """Follow *path* one step at a time; absent at the first miss."""
        doc = self
        for key in path:
            doc = doc[key]
        return doc

    def first(self) -> Document:
        """First list element, or the first value of an object."""
        if isinstance(self._value, list):
            return self[0]
        if isinstance(self._value, dict):
            for value in self._value.values():
                return Document(value)
        return Document()

    def items(self) -> Iterator[Document]:
        """Iterate list elements; yields nothing for non-lists."""
        if isinstance(self._value, list):
            for value in self._value:
                yield Document(value)

    # ------------------------------------------------------------------
    # Presence
    # ------------------------------------------------------------------

    @property
    def present(self) -> bool:
        return self._value is not _MISSING and self._value is not None

    def __bool__(self) -> bool:
        """Present and non-empty (``{}``, ``[]`` and ``""`` are falsy)."""
        if not self.present:
            return False
        if isinstance(self._value, (dict, list, str)):
            return len(self._value) > 0
        return True

    def is_list(self) -> bool:
        return isinstance(self._value, list)

    # ------------------------------------------------------------------
    # Typed readers
    # ------------------------------------------------------------------

    def text(self) -> str | None:
        """Non-empty string value, numbers rendered as text, else ``None``."""
        value = self._value
        if isinstance(value, str):
            return value if value else None
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return None

    def integer(self) -> int | None:
        """Integer value, accepting numeric strings (``"212"``)."""
        value = self._value
        if isinstance(value, bool):
            return None
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            stripped = value.strip()
            if stripped.isdigit():
                return int(stripped)
        return None

    def __repr__(self) -> str:
        if self._value is _MISSING:
            return "Document(<absent>)"
        return f"Document({self._value!r})"


def first_text(*candidates: Document) -> str | None:
    """Return the first candidate that reads as non-empty text."""
    for candidate in candidates:
        text = candidate.text()
        if text is not None:
            return text
    return None
