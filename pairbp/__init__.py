"""
pairbp: Pairwise Belief Propagation

Approximate marginal inference on pairwise undirected graphical models
with discrete variables.

Key components:
- topology: Pairwise graph structure and random spanning trees
- algebra: Sum-product and max-product message updates
- runtime: Message table, schedules and the message-passing engine
- inference: Beliefs, Bethe log Z and the LBP / TRW / RBP strategies
- flow: Edmonds-Karp maximum flow / minimum cut
- core: Options and errors
"""

__version__ = "1.0.0"
__author__ = "pairbp Team"

from pairbp.core.errors import PairBPError, DimensionMismatchError, InvalidTerminalError
from pairbp.core.options import InferenceOptions, ProcessingOrder
from pairbp.topology.structure import Node, Edge, GraphView, PairwiseGraph
from pairbp.topology.spanning import sample_spanning_tree, cover_with_trees
from pairbp.runtime.engine import pass_messages
from pairbp.inference.marginal import (
    MarginalResult,
    infer_marginals,
    lbp_marginals,
    trw_marginals,
    rbp_marginals,
)
from pairbp.flow.maxflow import MaxFlowResult, max_flow_min_cut

__all__ = [
    # Errors
    "PairBPError",
    "DimensionMismatchError",
    "InvalidTerminalError",
    # Options
    "InferenceOptions",
    "ProcessingOrder",
    # Graph
    "Node",
    "Edge",
    "GraphView",
    "PairwiseGraph",
    "sample_spanning_tree",
    "cover_with_trees",
    # Inference
    "pass_messages",
    "MarginalResult",
    "infer_marginals",
    "lbp_marginals",
    "trw_marginals",
    "rbp_marginals",
    # Flow
    "MaxFlowResult",
    "max_flow_min_cut",
]
