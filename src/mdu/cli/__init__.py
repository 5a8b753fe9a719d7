"""CLI layer — argument parsing, JSON envelopes, and the error boundary.

This package is the outermost layer of the application.  It may import
from ``core``, ``platforms``, ``infra`` and ``config``, but no other
layer may import from ``cli``.
"""
