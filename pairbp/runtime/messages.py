"""
pairbp/runtime/messages.py

Message table for one inference call.

Each edge holds two vectors: slot 0 is the message from the edge's first
node to its second (sized to the second node's cardinality), slot 1 the
message from the second node to the first.
"""

from __future__ import annotations

from typing import List

import numpy as np

from pairbp.topology.structure import GraphView


class MessageTable:
    """
    Per-call message storage, indexed by edge index.

    Vectors are replaced in place by the engine, so every reader sees the
    newest message as soon as it is sent.
    """

    def __init__(self, data: List[List[np.ndarray]]):
        self.data = data

    @staticmethod
    def initialize(graph: GraphView, use_fixed_values: bool = True) -> "MessageTable":
        """Allocate all-ones messages sized to each receiving node."""
        data: List[List[np.ndarray]] = []
        for edge in graph.edges():
            first, second = edge.nodes
            n_first = graph.node_potentials(first, use_fixed_values).shape[0]
            n_second = graph.node_potentials(second, use_fixed_values).shape[0]
            data.append([np.ones(n_second), np.ones(n_first)])
        return MessageTable(data)

    def sent(self, edge_index: int, sender_position: int) -> np.ndarray:
        """Get the message sent by the node at sender_position of the edge."""
        return self.data[edge_index][sender_position]

    def received(self, edge_index: int, receiver_position: int) -> np.ndarray:
        """Get the message received by the node at receiver_position of the edge."""
        return self.data[edge_index][1 - receiver_position]

    def send(self, edge_index: int, sender_position: int, message: np.ndarray) -> None:
        self.data[edge_index][sender_position] = message

    def total(self) -> float:
        """Sum of all entries of all messages."""
        return float(sum(m[0].sum() + m[1].sum() for m in self.data))

    def copy(self) -> "MessageTable":
        return MessageTable([[m[0].copy(), m[1].copy()] for m in self.data])

    def __len__(self) -> int:
        return len(self.data)
