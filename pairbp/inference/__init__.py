"""
Inference module: beliefs, Bethe log Z and marginal inference strategies.
"""

from pairbp.inference.beliefs import (
    BetheFreeEnergy,
    bethe_free_energy,
    bethe_log_partition,
    compute_beliefs,
    compute_edge_beliefs,
    compute_node_beliefs,
)
from pairbp.inference.marginal import (
    INFERENCE_METHODS,
    MarginalResult,
    infer_marginals,
    lbp_marginals,
    rbp_marginals,
    trw_marginals,
)

__all__ = [
    "BetheFreeEnergy",
    "bethe_free_energy",
    "bethe_log_partition",
    "compute_beliefs",
    "compute_edge_beliefs",
    "compute_node_beliefs",
    "INFERENCE_METHODS",
    "MarginalResult",
    "infer_marginals",
    "lbp_marginals",
    "rbp_marginals",
    "trw_marginals",
]
