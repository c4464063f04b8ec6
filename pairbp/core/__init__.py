"""
Core module: options and error taxonomy.
"""

from pairbp.core.errors import PairBPError, DimensionMismatchError, InvalidTerminalError
from pairbp.core.options import InferenceOptions, ProcessingOrder, SCORE_COMBINATIONS

__all__ = [
    "PairBPError",
    "DimensionMismatchError",
    "InvalidTerminalError",
    "InferenceOptions",
    "ProcessingOrder",
    "SCORE_COMBINATIONS",
]
