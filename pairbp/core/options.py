"""
pairbp/core/options.py

Inference options shared by the engine and every orchestrator.
"""

from __future__ import annotations

import enum
import numbers
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, Mapping, Optional


class ProcessingOrder(str, enum.Enum):
    """Order in which the engine visits sending nodes within one sweep."""
    FIXED = "fixed"
    RANDOM = "random"
    RESIDUAL = "residual"


SCORE_COMBINATIONS = ("sum", "max")


@dataclass(frozen=True)
class InferenceOptions:
    """
    Options record for message passing.

    Attributes:
        max_iterations: Maximum number of sweeps (rounds for TRW)
        convergence_threshold: Stop when the total message mass changes by less
        use_fixed_node_values: Clamp observed nodes to their fixed state
        processing_order: Node visiting order inside a sweep
        score_combination: "sum" (sum-product) or "max" (max-product)
        seed: Seed for tree sampling and randomized orders
    """
    max_iterations: int = 100
    convergence_threshold: float = 1e-4
    use_fixed_node_values: bool = True
    processing_order: ProcessingOrder = ProcessingOrder.FIXED
    score_combination: str = "sum"
    seed: Optional[int] = None

    def __post_init__(self):
        iterations = self.max_iterations
        if isinstance(iterations, bool) or not isinstance(iterations, numbers.Integral) or iterations < 1:
            raise ValueError(f"max_iterations must be a positive integer, got {iterations!r}")
        threshold = self.convergence_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, numbers.Real) or not threshold > 0:
            raise ValueError(
                f"convergence_threshold must be positive, got {self.convergence_threshold}"
            )
        if self.score_combination not in SCORE_COMBINATIONS:
            raise ValueError(
                f"Unknown score combination {self.score_combination!r}, "
                f"expected one of {SCORE_COMBINATIONS}"
            )
        # Accept plain strings for the order
        object.__setattr__(self, "processing_order", ProcessingOrder(self.processing_order))

    @property
    def maximize(self) -> bool:
        return self.score_combination == "max"

    def with_changes(self, **changes: Any) -> "InferenceOptions":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "InferenceOptions":
        """
        Build options from a JSON-style mapping.

        Unknown keys raise ValueError so that typos are not silently ignored.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown inference options: {sorted(unknown)}")
        return cls(**dict(data))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_iterations": self.max_iterations,
            "convergence_threshold": self.convergence_threshold,
            "use_fixed_node_values": self.use_fixed_node_values,
            "processing_order": self.processing_order.value,
            "score_combination": self.score_combination,
            "seed": self.seed,
        }
