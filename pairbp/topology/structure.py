"""
pairbp/topology/structure.py

Pairwise graphical model structure.

A pairwise model consists of:
- Nodes with unary potentials (one entry per discrete state)
- Edges with pairwise potentials of shape (card(first), card(second))

The inference code only talks to the GraphView protocol; PairwiseGraph is
the in-memory implementation used by the CLI, the example scripts and the tests.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Hashable, List, Optional, Protocol, Sequence, Tuple

import networkx as nx
import numpy as np

from pairbp.core.errors import DimensionMismatchError

NodeID = Hashable
EdgeID = Hashable


@dataclass
class Node:
    """A discrete variable with its unary potential."""
    id: NodeID
    potentials: np.ndarray
    fixed_value: Optional[int] = None

    @property
    def cardinality(self) -> int:
        return int(self.potentials.shape[0])

    def get_potentials(self, use_fixed_values: bool = True) -> np.ndarray:
        """
        Get the unary potential.

        When the node is fixed and fixed values are requested, every state
        but the fixed one is zeroed and the fixed state scores 1.
        """
        if use_fixed_values and self.fixed_value is not None:
            clamped = np.zeros_like(self.potentials)
            clamped[self.fixed_value] = 1.0
            return clamped
        return self.potentials


@dataclass
class Edge:
    """A pairwise potential between two nodes."""
    id: EdgeID
    nodes: Tuple[NodeID, NodeID]
    potentials: np.ndarray

    def other(self, node_id: NodeID) -> NodeID:
        """Get the node at the opposite end of the edge."""
        first, second = self.nodes
        return second if node_id == first else first

    def position(self, node_id: NodeID) -> int:
        """0 if node_id is the first node of the edge, 1 if it is the second."""
        return 0 if self.nodes[0] == node_id else 1


class GraphView(Protocol):
    """Read-only graph interface consumed by the inference engine."""

    def nodes(self) -> Sequence[Node]: ...
    def edges(self) -> Sequence[Edge]: ...
    def incident_edges(self, node_id: NodeID) -> Sequence[Edge]: ...
    def node_potentials(self, node_id: NodeID, use_fixed_values: bool = True) -> np.ndarray: ...
    def edge_potentials(self, edge_id: EdgeID) -> np.ndarray: ...
    def nodes_of(self, edge_id: EdgeID) -> Tuple[NodeID, NodeID]: ...
    def node_index(self, node_id: NodeID) -> int: ...
    def edge_index(self, edge_id: EdgeID) -> int: ...
    def recompute_potentials(self) -> None: ...


def _as_potential(values, ndim: int, what: str) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.ndim != ndim or arr.size == 0:
        raise DimensionMismatchError(
            f"{what}: expected a non-empty {ndim}-D potential, got shape {arr.shape}"
        )
    if np.any(arr < 0) or np.any(np.isnan(arr)):
        raise ValueError(f"{what}: potentials must be non-negative")
    return arr


def _check_fixed_value(node_id: NodeID, fixed_value: Optional[int], cardinality: int) -> None:
    if fixed_value is not None and not 0 <= fixed_value < cardinality:
        raise DimensionMismatchError(
            f"node {node_id!r}: fixed value {fixed_value} out of range for {cardinality} states"
        )


class PairwiseGraph:
    """
    In-memory pairwise graphical model.

    Maintains:
    - Ordered nodes and edges (insertion order defines indices)
    - ID -> index maps for nodes and edges
    - Node -> incident edges, in edge insertion order
    """

    def __init__(self):
        self._nodes: List[Node] = []
        self._edges: List[Edge] = []
        self._node_index: Dict[NodeID, int] = {}
        self._edge_index: Dict[EdgeID, int] = {}
        self._incident: Dict[NodeID, List[Edge]] = {}
        self.potential_version: int = 0

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_node(self, node_id: NodeID, potentials, fixed_value: Optional[int] = None) -> Node:
        """Add a node with its unary potential."""
        if node_id in self._node_index:
            raise ValueError(f"Duplicate node id: {node_id!r}")
        node = Node(node_id, _as_potential(potentials, 1, f"node {node_id!r}"))
        self._node_index[node_id] = len(self._nodes)
        self._nodes.append(node)
        self._incident[node_id] = []
        if fixed_value is not None:
            self.set_fixed_value(node_id, fixed_value)
        return node

    def add_edge(self, first: NodeID, second: NodeID, potentials, edge_id: Optional[EdgeID] = None) -> Edge:
        """
        Add an edge between two existing nodes.

        The potential's rows index the states of `first`, its columns the
        states of `second`. Cardinality agreement is checked by the engine
        before inference, not here.
        """
        for nid in (first, second):
            if nid not in self._node_index:
                raise KeyError(f"Unknown node id: {nid!r}")
        if first == second:
            raise ValueError(f"Self-loop on node {first!r} is not a pairwise edge")
        if edge_id is None:
            edge_id = len(self._edges)
        if edge_id in self._edge_index:
            raise ValueError(f"Duplicate edge id: {edge_id!r}")
        edge = Edge(edge_id, (first, second), _as_potential(potentials, 2, f"edge {edge_id!r}"))
        self._edge_index[edge_id] = len(self._edges)
        self._edges.append(edge)
        self._incident[first].append(edge)
        self._incident[second].append(edge)
        return edge

    def set_node_potentials(self, node_id: NodeID, potentials) -> None:
        """Replace a node's unary potential; a fixed value must still be a valid state."""
        node = self.node(node_id)
        arr = _as_potential(potentials, 1, f"node {node_id!r}")
        _check_fixed_value(node_id, node.fixed_value, arr.shape[0])
        node.potentials = arr

    def set_edge_potentials(self, edge_id: EdgeID, potentials) -> None:
        self.edge(edge_id).potentials = _as_potential(potentials, 2, f"edge {edge_id!r}")

    def set_fixed_value(self, node_id: NodeID, value: int) -> None:
        """Clamp a node to an observed state."""
        node = self.node(node_id)
        if not 0 <= value < node.cardinality:
            raise ValueError(
                f"Fixed value {value} out of range for node {node_id!r} "
                f"with {node.cardinality} states"
            )
        node.fixed_value = int(value)

    def clear_fixed_value(self, node_id: NodeID) -> None:
        self.node(node_id).fixed_value = None

    # ------------------------------------------------------------------
    # GraphView
    # ------------------------------------------------------------------

    def nodes(self) -> List[Node]:
        return list(self._nodes)

    def edges(self) -> List[Edge]:
        return list(self._edges)

    def node(self, node_id: NodeID) -> Node:
        return self._nodes[self.node_index(node_id)]

    def edge(self, edge_id: EdgeID) -> Edge:
        return self._edges[self.edge_index(edge_id)]

    def incident_edges(self, node_id: NodeID) -> List[Edge]:
        if node_id not in self._incident:
            raise KeyError(f"Unknown node id: {node_id!r}")
        return self._incident[node_id]

    def neighbor_count(self, node_id: NodeID) -> int:
        return len(self.incident_edges(node_id))

    def node_potentials(self, node_id: NodeID, use_fixed_values: bool = True) -> np.ndarray:
        return self.node(node_id).get_potentials(use_fixed_values)

    def edge_potentials(self, edge_id: EdgeID) -> np.ndarray:
        return self.edge(edge_id).potentials

    def nodes_of(self, edge_id: EdgeID) -> Tuple[NodeID, NodeID]:
        return self.edge(edge_id).nodes

    def node_index(self, node_id: NodeID) -> int:
        try:
            return self._node_index[node_id]
        except KeyError:
            raise KeyError(f"Unknown node id: {node_id!r}") from None

    def edge_index(self, edge_id: EdgeID) -> int:
        try:
            return self._edge_index[edge_id]
        except KeyError:
            raise KeyError(f"Unknown edge id: {edge_id!r}") from None

    def recompute_potentials(self) -> None:
        """
        Refresh potentials before a message-passing run.

        Tables are stored directly, so this only re-checks them and bumps
        potential_version; subclasses computing potentials from parameters
        override it.
        """
        for node in self._nodes:
            node.potentials = _as_potential(node.potentials, 1, f"node {node.id!r}")
            _check_fixed_value(node.id, node.fixed_value, node.cardinality)
        for edge in self._edges:
            edge.potentials = _as_potential(edge.potentials, 2, f"edge {edge.id!r}")
        self.potential_version += 1

    # ------------------------------------------------------------------

    def to_networkx(self) -> nx.Graph:
        """Export the adjacency structure (node order preserved)."""
        return build_adjacency_graph(self)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"PairwiseGraph(nodes={len(self._nodes)}, edges={len(self._edges)})"


def build_adjacency_graph(graph: GraphView) -> nx.Graph:
    """
    Build the undirected adjacency graph of a graph view.

    Returns:
        NetworkX graph with:
        - Nodes: node ids, in graph view order
        - Edges: one per pair of adjacent nodes
        - Edge attrs: edge_id (id of the first graph edge joining the pair)
    """
    g = nx.Graph()
    for node in graph.nodes():
        g.add_node(node.id)
    for edge in graph.edges():
        a, b = edge.nodes
        if not g.has_edge(a, b):
            g.add_edge(a, b, edge_id=edge.id)
    return g
