"""
pairbp/topology/spanning.py

Random trees over a pairwise graph, used by tree-reweighted BP.

A tree is an ordered list of node ids (root first, in discovery order).
Its edges are not stored: they are the graph edges whose two endpoints are
both in the list. The sampler only admits a node when its sole neighbor
already in the tree is the node it is reached from, so that induced
subgraph is always a tree.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Set

import networkx as nx
import numpy as np

from pairbp.topology.structure import Edge, GraphView, NodeID, build_adjacency_graph

logger = logging.getLogger(__name__)


def sample_spanning_tree(
    graph: GraphView,
    rng: np.random.Generator,
    root: Optional[NodeID] = None,
    adjacency: Optional[nx.Graph] = None,
) -> List[NodeID]:
    """
    Grow a random tree by randomized depth-first search.

    Args:
        graph: Graph view to sample from
        rng: Random generator driving root choice and neighbor order
        root: Optional root node (default: uniformly random)
        adjacency: Optional precomputed adjacency graph

    Returns:
        Node ids of the tree, root first
    """
    g = adjacency if adjacency is not None else build_adjacency_graph(graph)
    order = list(g.nodes())
    if not order:
        return []
    if root is None:
        root = order[int(rng.integers(len(order)))]

    tree = [root]
    in_tree: Set[NodeID] = {root}
    stack = [root]
    while stack:
        u = stack.pop()
        neighbors = list(g.neighbors(u))
        for k in rng.permutation(len(neighbors)):
            v = neighbors[k]
            if v in in_tree:
                continue
            # Joining v must not close a cycle with any other tree node
            if any(w in in_tree for w in g.neighbors(v) if w != u):
                continue
            tree.append(v)
            in_tree.add(v)
            stack.append(v)
    return tree


def cover_with_trees(graph: GraphView, rng: np.random.Generator) -> List[List[NodeID]]:
    """
    Sample trees until every node appears in at least one of them.

    Each tree is rooted at a node not covered yet, so at most one tree per
    node is ever sampled. Trees may overlap.
    """
    adjacency = build_adjacency_graph(graph)
    order = list(adjacency.nodes())
    covered: Set[NodeID] = set()
    trees: List[List[NodeID]] = []

    while len(covered) < len(order):
        uncovered = [n for n in order if n not in covered]
        root = uncovered[int(rng.integers(len(uncovered)))]
        tree = sample_spanning_tree(graph, rng, root=root, adjacency=adjacency)
        trees.append(tree)
        covered.update(tree)

    logger.debug("Covered %d nodes with %d trees of sizes %s",
                 len(order), len(trees), [len(t) for t in trees])
    return trees


def tree_edges(graph: GraphView, tree: List[NodeID]) -> List[Edge]:
    """Get the graph edges with both endpoints in the tree, in edge order."""
    members = set(tree)
    return [e for e in graph.edges() if e.nodes[0] in members and e.nodes[1] in members]
