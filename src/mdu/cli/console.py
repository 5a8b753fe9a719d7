"""Rich consoles used by the CLI layer.

Diagnostics and errors go to stderr; JSON envelopes go to stdout so
that ``mdu extract ... | jq`` keeps working.
"""

from __future__ import annotations

from typing import Any

from rich.console import Console

console = Console(stderr=True)
"""Human-facing messages (errors, hints, log records)."""

output = Console(soft_wrap=True)
"""Machine-readable JSON envelopes."""


def print_envelope(envelope: dict[str, Any]) -> None:
    """Render *envelope* as pretty JSON on stdout."""
    output.print_json(data=envelope)
