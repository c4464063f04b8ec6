"""
pairbp/runtime/schedule.py

Message-passing schedules.

A Schedule tells the engine which nodes send messages (all, or one tree)
and in which order they are visited during a sweep.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

import numpy as np

from pairbp.core.options import ProcessingOrder
from pairbp.topology.structure import NodeID


class FixedOrder:
    """Visit nodes in the order they are given."""

    def order(self, nodes: Sequence[NodeID]) -> List[NodeID]:
        return list(nodes)

    def observe(self, node_id: NodeID, residual: float) -> None:
        pass


class RandomOrder:
    """Visit nodes in a fresh random permutation every sweep."""

    def __init__(self, rng: np.random.Generator):
        self.rng = rng

    def order(self, nodes: Sequence[NodeID]) -> List[NodeID]:
        nodes = list(nodes)
        return [nodes[k] for k in self.rng.permutation(len(nodes))]

    def observe(self, node_id: NodeID, residual: float) -> None:
        pass


class ResidualOrder:
    """
    Visit nodes by decreasing residual.

    The residual of a node is the largest absolute change among the messages
    it sent during its last update. Nodes not updated yet come first, in the
    given order.
    """

    def __init__(self):
        self.residuals: Dict[NodeID, float] = {}

    def order(self, nodes: Sequence[NodeID]) -> List[NodeID]:
        return sorted(nodes, key=lambda n: -self.residuals.get(n, math.inf))

    def observe(self, node_id: NodeID, residual: float) -> None:
        self.residuals[node_id] = residual


@dataclass
class Schedule:
    """
    Strategy parameters for one engine call.

    Attributes:
        active_nodes: Nodes taking part in the pass (None: all nodes). Only
            edges with both endpoints active are updated or read.
        order: Visiting order inside a sweep
        rng: Random generator for RANDOM order
    """
    active_nodes: Optional[Sequence[NodeID]] = None
    order: ProcessingOrder = ProcessingOrder.FIXED
    rng: Optional[np.random.Generator] = None

    def strategy(self):
        """Build a fresh order strategy for this schedule."""
        order = ProcessingOrder(self.order)
        if order is ProcessingOrder.FIXED:
            return FixedOrder()
        if order is ProcessingOrder.RANDOM:
            rng = self.rng if self.rng is not None else np.random.default_rng()
            return RandomOrder(rng)
        return ResidualOrder()
