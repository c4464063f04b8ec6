"""
pairbp/inference/beliefs.py

Beliefs and the Bethe estimate of log Z from converged messages.

Shared by every marginal inference strategy: the strategies only differ in
how they fill the message table.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Tuple

import numpy as np

from pairbp.algebra.semiring import normalize_or_keep
from pairbp.runtime.messages import MessageTable
from pairbp.topology.structure import EdgeID, GraphView, NodeID

logger = logging.getLogger(__name__)

# Edge beliefs with any entry at or below this are left out of the edge
# entropy sum.
EDGE_BELIEF_TOLERANCE = 1e-10


def safe_log(x: np.ndarray) -> np.ndarray:
    """Elementwise log with log(0) taken as 0, so that 0 * log 0 = 0."""
    x = np.asarray(x, dtype=np.float64)
    out = np.zeros_like(x)
    np.log(x, out=out, where=x > 0)
    return out


def _divide_or_zero(numerator: np.ndarray, denominator: np.ndarray) -> np.ndarray:
    out = np.zeros_like(numerator, dtype=np.float64)
    np.divide(numerator, denominator, out=out, where=denominator != 0)
    return out


def compute_node_beliefs(
    graph: GraphView,
    messages: MessageTable,
    use_fixed_values: bool = True,
) -> Dict[NodeID, np.ndarray]:
    """
    Node belief = unary potential times every incoming message, normalized.

    A belief with zero total mass is returned unnormalized.
    """
    beliefs: Dict[NodeID, np.ndarray] = {}
    for node in graph.nodes():
        b = np.array(graph.node_potentials(node.id, use_fixed_values), dtype=np.float64)
        for edge in graph.incident_edges(node.id):
            b = b * messages.received(graph.edge_index(edge.id), edge.position(node.id))
        beliefs[node.id] = normalize_or_keep(b)
    return beliefs


def compute_edge_beliefs(
    graph: GraphView,
    messages: MessageTable,
    node_beliefs: Dict[NodeID, np.ndarray],
) -> Dict[EdgeID, np.ndarray]:
    """
    Edge belief from the node beliefs with the edge's own messages removed.

    Each endpoint's belief is divided by the message it received over the
    edge (entries where that message is zero become zero), broadcast across
    the potential, multiplied in and normalized.
    """
    beliefs: Dict[EdgeID, np.ndarray] = {}
    for edge in graph.edges():
        first, second = edge.nodes
        idx = graph.edge_index(edge.id)
        psi = graph.edge_potentials(edge.id)

        b_first = _divide_or_zero(node_beliefs[first], messages.sent(idx, 1))
        b_second = _divide_or_zero(node_beliefs[second], messages.sent(idx, 0))

        belief = psi * b_first[:, None] * b_second[None, :]
        beliefs[edge.id] = normalize_or_keep(belief)
    return beliefs


def compute_beliefs(
    graph: GraphView,
    messages: MessageTable,
    use_fixed_values: bool = True,
) -> Tuple[Dict[NodeID, np.ndarray], Dict[EdgeID, np.ndarray]]:
    """Compute node and edge beliefs from a message table."""
    node_b = compute_node_beliefs(graph, messages, use_fixed_values)
    edge_b = compute_edge_beliefs(graph, messages, node_b)
    return node_b, edge_b


@dataclass(frozen=True)
class BetheFreeEnergy:
    """
    Terms of the Bethe free energy.

    Node terms are weighted by the node's degree. The edge entropy term is
    skipped for edges with a near-zero belief entry, while the edge
    potential term is always accumulated; a zero edge potential therefore
    makes the estimate non-finite.
    """
    energy_nodes: float
    energy_edges: float
    entropy_nodes: float
    entropy_edges: float

    @property
    def free_energy(self) -> float:
        return (self.energy_nodes - self.energy_edges) - (self.entropy_nodes - self.entropy_edges)

    @property
    def log_z(self) -> float:
        return -self.free_energy


def bethe_free_energy(
    graph: GraphView,
    node_beliefs: Dict[NodeID, np.ndarray],
    edge_beliefs: Dict[EdgeID, np.ndarray],
    use_fixed_values: bool = True,
) -> BetheFreeEnergy:
    """
    Accumulate the Bethe free energy terms.

    Args:
        graph: Graph view the beliefs belong to
        node_beliefs: Map from node id to belief vector
        edge_beliefs: Map from edge id to belief matrix
        use_fixed_values: Use clamped node potentials for fixed nodes

    Returns:
        BetheFreeEnergy; log_z is its negated free energy
    """
    energy_nodes = 0.0
    energy_edges = 0.0
    entropy_nodes = 0.0
    entropy_edges = 0.0

    for node in graph.nodes():
        degree = len(graph.incident_edges(node.id))
        b = node_beliefs[node.id]
        log_phi = np.log(graph.node_potentials(node.id, use_fixed_values))

        energy_nodes += degree * float(np.sum(b * safe_log(b)))
        entropy_nodes += degree * float(np.sum(b * log_phi))

    for edge in graph.edges():
        b = edge_beliefs[edge.id]
        if np.all(b > EDGE_BELIEF_TOLERANCE):
            energy_edges += float(np.sum(b * safe_log(b)))

        log_psi = np.log(graph.edge_potentials(edge.id))
        entropy_edges += float(np.sum(b * log_psi))

    terms = BetheFreeEnergy(energy_nodes, energy_edges, entropy_nodes, entropy_edges)
    if not np.isfinite(terms.log_z):
        logger.warning("Bethe log Z is not finite (%s); some potentials contain zeros", terms.log_z)
    return terms


def bethe_log_partition(
    graph: GraphView,
    node_beliefs: Dict[NodeID, np.ndarray],
    edge_beliefs: Dict[EdgeID, np.ndarray],
    use_fixed_values: bool = True,
) -> float:
    """Bethe estimate of log Z."""
    return bethe_free_energy(graph, node_beliefs, edge_beliefs, use_fixed_values).log_z
