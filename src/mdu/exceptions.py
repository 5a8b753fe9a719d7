"""Custom exception hierarchy for mdu.

All exceptions that cross layer boundaries must inherit from
:class:`MduError`.  Raw third-party exceptions (e.g. from ``requests``
or yt-dlp) must NEVER propagate beyond the infrastructure layer — they
must be caught and re-raised as a typed subclass defined here.

Hierarchy
---------
MduError
├── ValidationError
├── UnsupportedPlatformError
├── HttpError
├── ParseError
├── NoFormatsError
├── NoMatchError
├── ExtractionError
├── ConfigurationError
└── EnvironmentError
"""

from __future__ import annotations


class MduError(Exception):
    """Base exception for all mdu errors.

    Every user-visible error condition must map to a subclass of this
    exception so that the CLI error boundary can render a clean JSON
    error envelope without leaking internal stack traces.
    """

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint: str | None = hint
        """Optional actionable guidance shown below the error message."""


# --- Request validation ----------------------------------------------------

class ValidationError(MduError):
    """Raised when request input is missing or malformed."""


class UnsupportedPlatformError(MduError):
    """Raised when a URL does not match any known platform pattern."""


# --- Network ---------------------------------------------------------------

class HttpError(MduError):
    """Raised for a non-2xx response or a transport failure on a fetch.

    ``status`` is ``None`` when no response was received at all
    (timeout, DNS failure, connection reset).
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        url: str | None = None,
        hint: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status: int | None = status
        self.url: str | None = url


# --- Extraction ------------------------------------------------------------

class ParseError(MduError):
    """Raised when an embedded data blob is not valid JSON.

    Always recovered inside a fallback chain; never surfaced to callers.
    """

    def __init__(self, message: str, *, source: str) -> None:
        super().__init__(message)
        self.source: str = source


class NoFormatsError(MduError):
    """Raised when extraction produced zero usable format records."""


class NoMatchError(MduError):
    """Raised when a filter/sort stage empties the format set."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage: str = stage


class ExtractionError(MduError):
    """Raised when extraction fails for an unexpected reason."""


# --- Environment / configuration -------------------------------------------

class ConfigurationError(MduError):
    """Raised when a configuration value cannot be interpreted."""


class EnvironmentError(MduError):
    """Raised when an optional runtime dependency is not available."""
