"""
Topology module: pairwise graph structure and random trees.
"""

from pairbp.topology.structure import (
    Node,
    Edge,
    GraphView,
    PairwiseGraph,
    build_adjacency_graph,
)
from pairbp.topology.spanning import sample_spanning_tree, cover_with_trees, tree_edges

__all__ = [
    "Node",
    "Edge",
    "GraphView",
    "PairwiseGraph",
    "build_adjacency_graph",
    "sample_spanning_tree",
    "cover_with_trees",
    "tree_edges",
]
