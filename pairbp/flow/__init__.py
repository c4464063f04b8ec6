"""
Flow module: maximum flow / minimum cut.
"""

from pairbp.flow.maxflow import MaxFlowResult, cut_capacity, max_flow_min_cut

__all__ = ["MaxFlowResult", "cut_capacity", "max_flow_min_cut"]
