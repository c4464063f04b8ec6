"""
pairbp/algebra/semiring.py

Score combinations for pairwise message updates.

A pairwise message update eliminates the sender's states from the product
of an oriented edge potential and the sender's accumulated scores:

- sum-product: ⊕ = +, so the update is a matrix-vector product
- max-product: ⊕ = max, followed by normalization of the new message

Only the max-product runtime renormalizes each update; sum-product relies on
the global convergence check instead.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np


def normalize_or_keep(x: np.ndarray) -> np.ndarray:
    """Divide by the total mass, leaving zero-mass arrays untouched."""
    s = np.sum(x)
    if s == 0:
        return x
    return x / s


@dataclass(frozen=True)
class ScoreCombination:
    """
    Numpy-backed runtime for one message update rule.

    Attributes:
        name: Identifier ("sum" or "max")
        eliminate: (oriented_potential, accumulated) -> message over the
            receiver's states; rows of the potential index the sender
        normalize: Optional per-update normalization
    """
    name: str
    eliminate: Callable[[np.ndarray, np.ndarray], np.ndarray]
    normalize: Optional[Callable[[np.ndarray], np.ndarray]] = None

    def message(self, oriented_potential: np.ndarray, accumulated: np.ndarray) -> np.ndarray:
        """Compute a new message, normalizing if this rule does."""
        out = self.eliminate(oriented_potential, accumulated)
        if self.normalize is None:
            return out
        return self.normalize(out)


def sum_product() -> ScoreCombination:
    """Create the sum-product runtime."""
    return ScoreCombination(
        name="sum",
        eliminate=lambda psi, acc: psi.T @ acc,
        normalize=None,
    )


def max_product() -> ScoreCombination:
    """Create the max-product runtime."""
    return ScoreCombination(
        name="max",
        eliminate=lambda psi, acc: np.max(psi * acc[:, None], axis=0),
        normalize=normalize_or_keep,
    )


_RUNTIMES: Dict[str, Callable[[], ScoreCombination]] = {
    "sum": sum_product,
    "max": max_product,
}


def score_combination(name: str) -> ScoreCombination:
    """Look up a score combination runtime by name."""
    try:
        return _RUNTIMES[name]()
    except KeyError:
        raise ValueError(f"Unknown score combination: {name!r}") from None
