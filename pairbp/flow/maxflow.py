"""
pairbp/flow/maxflow.py

Maximum flow / minimum cut on a dense capacity matrix (Edmonds-Karp).

The solver is purely numeric: vertices are matrix indices and capacity[u, v]
is the capacity of the arc u -> v. Shortest augmenting paths are found by
breadth-first search over arcs with strictly positive residual capacity.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import scipy.sparse as sp
from scipy.sparse.csgraph import breadth_first_order

from pairbp.core.errors import InvalidTerminalError

logger = logging.getLogger(__name__)


@dataclass
class MaxFlowResult:
    """
    Result of a max-flow computation.

    Attributes:
        max_flow: Value of the maximum flow
        cut: Boolean vector, True for vertices on the source side of the cut
        residual: Final residual capacities
    """
    max_flow: float
    cut: np.ndarray
    residual: np.ndarray


def _bfs(residual: np.ndarray, source: int):
    """BFS over positive residual arcs; returns (visit order, predecessors)."""
    arcs = sp.csr_matrix((residual > 0).astype(np.int8))
    return breadth_first_order(arcs, source, directed=True, return_predecessors=True)


def cut_capacity(capacity: np.ndarray, cut: np.ndarray) -> float:
    """Total capacity of the arcs leaving the source side of a cut."""
    capacity = np.asarray(capacity, dtype=np.float64)
    cut = np.asarray(cut, dtype=bool)
    return float(capacity[np.ix_(cut, ~cut)].sum())


def max_flow_min_cut(capacity, source: int, sink: int) -> MaxFlowResult:
    """
    Compute the maximum flow from source to sink and a minimum cut.

    Args:
        capacity: Square non-negative matrix of arc capacities
        source: Source vertex index
        sink: Sink vertex index

    Returns:
        MaxFlowResult; the cut holds the vertices still reachable from the
        source in the final residual graph, so cut_capacity equals max_flow.

    Raises:
        InvalidTerminalError: if source/sink are out of range or equal
        ValueError: if the matrix is not square or has negative entries
    """
    residual = np.array(capacity, dtype=np.float64)
    if residual.ndim != 2 or residual.shape[0] != residual.shape[1]:
        raise ValueError(f"capacity matrix must be square, got shape {residual.shape}")
    if np.any(residual < 0) or np.any(np.isnan(residual)):
        raise ValueError("capacity matrix must be non-negative")

    n = residual.shape[0]
    for name, idx in (("source", source), ("sink", sink)):
        if not 0 <= idx < n:
            raise InvalidTerminalError(f"{name} index {idx} out of range for {n} vertices")
    if source == sink:
        raise InvalidTerminalError(f"source and sink must differ, both are {source}")

    max_flow = 0.0
    augmentations = 0

    while True:
        _, parent = _bfs(residual, source)
        if parent[sink] < 0:
            break

        # Bottleneck along the path found by BFS
        path_flow = np.inf
        v = sink
        while v != source:
            u = parent[v]
            path_flow = min(path_flow, residual[u, v])
            v = u

        v = sink
        while v != source:
            u = parent[v]
            residual[u, v] -= path_flow
            residual[v, u] += path_flow
            v = u

        max_flow += path_flow
        augmentations += 1

    reachable, _ = _bfs(residual, source)
    cut = np.zeros(n, dtype=bool)
    cut[reachable] = True

    logger.debug(
        "Max flow %g after %d augmenting paths; source side of the cut: %s",
        max_flow, augmentations, np.flatnonzero(cut).tolist(),
    )
    return MaxFlowResult(max_flow=float(max_flow), cut=cut, residual=residual)
