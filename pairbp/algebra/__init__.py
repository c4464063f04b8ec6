"""
Algebra module: score combinations for message updates.
"""

from pairbp.algebra.semiring import (
    ScoreCombination,
    normalize_or_keep,
    sum_product,
    max_product,
    score_combination,
)

__all__ = [
    "ScoreCombination",
    "normalize_or_keep",
    "sum_product",
    "max_product",
    "score_combination",
]
