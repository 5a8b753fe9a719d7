"""CLI application entry point and command routing for mdu.

This module is the **sole error boundary** for the entire application.
It catches :class:`~mdu.exceptions.MduError`, ``KeyboardInterrupt``,
and any unexpected ``Exception``, rendering JSON error envelopes and
returning well-defined exit codes.

Commands mirror the HTTP façade contract:

* ``mdu extract URL [--format F] [--quality Q] [--type T] [--download] [--info]``
* ``mdu formats URL [--type T]``
* ``mdu support [URL]``

Architecture notes
------------------
* No business logic lives here — all work is delegated to
  :class:`~mdu.core.extraction_service.ExtractionService`.
* Envelopes are ``{"success": true, ...}`` or
  ``{"success": false, "error": <message>, "code": <code>}``.
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from typing import Any

from mdu.cli import exit_codes
from mdu.cli.console import console, print_envelope
from mdu.config import Settings
from mdu.core.extraction_service import ExtractionService
from mdu.core.models import ExtractionRequest
from mdu.exceptions import MduError, ValidationError
from mdu.version import __version__

_MEDIA_TYPES = ("audio", "video")

# argparse attribute → ExtractionRequest field
_REQUEST_FIELDS: dict[str, str] = {
    "format": "container",
    "quality": "quality",
    "type": "media_type",
    "download": "download",
    "info": "info_only",
}


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the top-level argument parser with its sub-commands."""
    parser = argparse.ArgumentParser(
        prog="mdu",
        description="Extract media metadata and download links from video pages.",
    )
    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log progress to stderr (-vv for debug output).",
    )
    commands = parser.add_subparsers(dest="command")

    # Optional request fields default to SUPPRESS so that only the
    # options the user actually typed reach ExtractionRequest.create.
    extract = commands.add_parser(
        "extract", help="Extract video information and download options.",
    )
    extract.add_argument("url", help="YouTube or TikTok video URL.")
    extract.add_argument(
        "--format", default=argparse.SUPPRESS, help="Container, e.g. mp4 or webm.",
    )
    extract.add_argument(
        "--quality",
        default=argparse.SUPPRESS,
        help="Quality token such as 720p, or 'highest' to rank.",
    )
    extract.add_argument(
        "--type", default=argparse.SUPPRESS, choices=_MEDIA_TYPES,
        help="Keep only audio or video formats.",
    )
    extract.add_argument(
        "--download", action="store_true", default=argparse.SUPPRESS,
        help="Include the top-ranked format URL as downloadUrl.",
    )
    extract.add_argument(
        "--info", action="store_true", default=argparse.SUPPRESS,
        help="Return video information only, without formats.",
    )

    formats = commands.add_parser(
        "formats", help="List all available formats for a media URL.",
    )
    formats.add_argument("url", help="YouTube or TikTok video URL.")
    formats.add_argument("--type", default=None, choices=_MEDIA_TYPES)

    support = commands.add_parser(
        "support", help="Show supported platforms, formats and qualities.",
    )
    support.add_argument("url", nargs="?", default=None)

    return parser


# ---------------------------------------------------------------------------
# Service wiring
# ---------------------------------------------------------------------------

def _build_service(settings: Settings) -> ExtractionService:
    """Instantiate infra adapters and the core orchestrator."""
    from mdu.infra.http_fetcher import RequestsPageFetcher
    from mdu.infra.ytdlp_provider import YtDlpMetadataProvider

    provider = YtDlpMetadataProvider(settings=settings) if settings.ytdlp_fallback else None
    return ExtractionService(
        RequestsPageFetcher(settings=settings),
        settings=settings,
        metadata_provider=provider,
    )


# ---------------------------------------------------------------------------
# Command handlers (no business logic)
# ---------------------------------------------------------------------------

def _handle_extract(service: ExtractionService, args: argparse.Namespace) -> dict[str, Any]:
    supplied = {
        field: getattr(args, attr)
        for attr, field in _REQUEST_FIELDS.items()
        if hasattr(args, attr)
    }
    request = ExtractionRequest.create(args.url, **supplied)
    metadata = service.extract(request)
    return {"success": True, "data": metadata.to_dict()}


def _handle_formats(service: ExtractionService, args: argparse.Namespace) -> dict[str, Any]:
    platform, formats = service.list_formats(args.url, args.type)
    return {
        "success": True,
        "platform": platform.value,
        "formats": [fmt.to_dict() for fmt in formats],
    }


def _handle_support(service: ExtractionService, args: argparse.Namespace) -> dict[str, Any]:
    return {"success": True, "data": service.support(args.url)}


_HANDLERS: dict[str, tuple[Callable[[ExtractionService, argparse.Namespace], dict[str, Any]], str]] = {
    "extract": (_handle_extract, "Extraction failed"),
    "formats": (_handle_formats, "Failed to list formats"),
    "support": (_handle_support, "Failed to get support info"),
}


def error_envelope(exc: Exception, prefix: str) -> dict[str, Any]:
    """Collapse *exc* into the public error envelope."""
    code = "VALIDATION" if isinstance(exc, ValidationError) else "UNKNOWN"
    return {"success": False, "error": f"{prefix}: {exc}", "code": code}


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------

def main(argv: list[str] | None = None) -> int:
    """Run the mdu CLI.

    Parameters
    ----------
    argv:
        Explicit argument list.  When ``None`` (default), ``sys.argv[1:]``
        is used.  Accepting *argv* enables deterministic testing without
        monkeypatching.

    Returns
    -------
    int
        OS process exit code.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return exit_codes.SUCCESS

    handler, prefix = _HANDLERS[args.command]
    try:
        settings = Settings.from_env()
        _setup_logging(settings, args.verbose)
        envelope = handler(_build_service(settings), args)
    except MduError as exc:
        print_envelope(error_envelope(exc, prefix))
        if exc.hint:
            console.print(f"[yellow]Hint:[/yellow] {exc.hint}")
        return exit_codes.GENERAL_ERROR

    print_envelope(envelope)
    return exit_codes.SUCCESS


def _setup_logging(settings: Settings, verbosity: int) -> None:
    from mdu.cli.log_setup import configure_logging

    if verbosity >= 2:
        level = "DEBUG"
    elif verbosity == 1:
        level = "INFO"
    else:
        level = settings.log_level
    configure_logging(level)


# ---------------------------------------------------------------------------
# Script-level error boundary
# ---------------------------------------------------------------------------

def cli() -> None:
    """Top-level error boundary invoked by the console-script entry point.

    This function wraps :func:`main` and guarantees the process never
    exits with a raw stack trace during normal usage.
    """
    try:
        code = main()
        sys.exit(code)
    except KeyboardInterrupt:
        console.print("\n[yellow]Aborted by user.[/yellow]")
        sys.exit(exit_codes.KEYBOARD_INTERRUPT)
    except Exception as exc:  # noqa: BLE001
        print_envelope(error_envelope(exc, "Internal error"))
        console.print(
            "[bold red]Unexpected error.[/bold red] "
            "Please report this issue.\n"
            f"  {type(exc).__name__}: {exc}"
        )
        sys.exit(exit_codes.UNEXPECTED_ERROR)
