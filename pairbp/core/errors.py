"""
pairbp/core/errors.py

Exceptions raised on contract violations.

Degenerate normalizations and non-convergence are not errors and never
raise; only malformed inputs do.
"""

from __future__ import annotations


class PairBPError(Exception):
    """Base class for all pairbp errors."""


class DimensionMismatchError(PairBPError, ValueError):
    """A potential's shape disagrees with the cardinalities it touches."""


class InvalidTerminalError(PairBPError, ValueError):
    """Max-flow source/sink indices are out of range or equal."""
