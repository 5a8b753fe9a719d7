"""Allow ``python -m mdu`` invocation.

This module simply delegates to the CLI error-boundary entry point so
that ``python -m mdu`` behaves identically to the ``mdu`` console
script.
"""

from __future__ import annotations

from mdu.cli.app import cli

if __name__ == "__main__":
    cli()
