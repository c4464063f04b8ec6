"""
pairbp/inference/marginal.py

Marginal inference strategies.

All strategies drive the same message-passing engine and finish with the
same belief and Bethe routines:

- lbp_marginals: one engine run over the whole graph
- trw_marginals: engine runs restricted to a covering set of random trees,
  composed on one shared message table
- rbp_marginals: lbp_marginals with a randomized or residual visiting order
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import numpy as np

from pairbp.core.options import InferenceOptions, ProcessingOrder
from pairbp.inference.beliefs import bethe_log_partition, compute_beliefs
from pairbp.runtime.engine import check_dimensions, pass_messages
from pairbp.runtime.messages import MessageTable
from pairbp.runtime.schedule import Schedule
from pairbp.topology.spanning import cover_with_trees
from pairbp.topology.structure import EdgeID, GraphView, NodeID

logger = logging.getLogger(__name__)


@dataclass
class MarginalResult:
    """Result of a marginal inference run, with the final message table."""
    node_beliefs: Dict[NodeID, np.ndarray]
    edge_beliefs: Dict[EdgeID, np.ndarray]
    log_z: float
    iterations: int
    converged: bool
    messages: Optional[MessageTable] = None


def _rng_for(options: InferenceOptions, rng: Optional[np.random.Generator]) -> np.random.Generator:
    if rng is not None:
        return rng
    return np.random.default_rng(options.seed)


def _finish(
    name: str,
    graph: GraphView,
    options: InferenceOptions,
    messages: MessageTable,
    iterations: int,
    converged: bool,
    started: float,
) -> MarginalResult:
    passed = time.perf_counter()
    node_b, edge_b = compute_beliefs(graph, messages, options.use_fixed_node_values)
    log_z = bethe_log_partition(graph, node_b, edge_b, options.use_fixed_node_values)

    if not converged:
        logger.info("%s did not converge within %d iterations", name, options.max_iterations)
    logger.debug(
        "%s: messages %.4fs, beliefs and log Z %.4fs",
        name, passed - started, time.perf_counter() - passed,
    )
    return MarginalResult(
        node_beliefs=node_b,
        edge_beliefs=edge_b,
        log_z=log_z,
        iterations=iterations,
        converged=converged,
        messages=messages,
    )


def lbp_marginals(
    graph: GraphView,
    options: Optional[InferenceOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> MarginalResult:
    """
    Loopy belief propagation marginals.

    Args:
        graph: Graph view to run on
        options: Inference options (default: InferenceOptions())
        rng: Random generator for randomized orders (default: seeded from
            options.seed)

    Returns:
        MarginalResult with node beliefs, edge beliefs and the Bethe log Z
    """
    if options is None:
        options = InferenceOptions()
    started = time.perf_counter()

    graph.recompute_potentials()
    schedule = Schedule(order=options.processing_order, rng=_rng_for(options, rng))
    report = pass_messages(graph, options, schedule=schedule)

    return _finish("LBP", graph, options, report.messages, report.iterations, report.converged, started)


def trw_marginals(
    graph: GraphView,
    options: Optional[InferenceOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> MarginalResult:
    """
    Tree-reweighted belief propagation marginals.

    Samples random trees until every node is covered, then repeatedly runs
    the engine on each tree in turn. All trees write into one message
    table, so a later tree overwrites what an earlier one sent on a shared
    edge. Rounds stop when the total message mass settles.
    """
    if options is None:
        options = InferenceOptions()
    started = time.perf_counter()
    rng = _rng_for(options, rng)
    use_fixed = options.use_fixed_node_values

    graph.recompute_potentials()
    check_dimensions(graph, use_fixed)

    trees = cover_with_trees(graph, rng)
    messages = MessageTable.initialize(graph, use_fixed)

    previous = math.inf
    converged = False
    rounds = 0
    for rounds in range(1, options.max_iterations + 1):
        for tree in trees:
            schedule = Schedule(active_nodes=tree, order=options.processing_order, rng=rng)
            pass_messages(graph, options, table=messages, schedule=schedule)

        total = messages.total()
        if abs(total - previous) < options.convergence_threshold:
            converged = True
            break
        previous = total

    logger.debug("TRW: %d trees, %d rounds, converged=%s", len(trees), rounds, converged)
    return _finish("TRW", graph, options, messages, rounds, converged, started)


def rbp_marginals(
    graph: GraphView,
    options: Optional[InferenceOptions] = None,
    rng: Optional[np.random.Generator] = None,
    order: Optional[ProcessingOrder] = None,
) -> MarginalResult:
    """
    Loopy BP with a residual or random node visiting order.

    The order is taken from `order`, else from the options when they ask
    for a non-fixed order, else residual.
    """
    if options is None:
        options = InferenceOptions()
    if order is None:
        order = options.processing_order
        if order is ProcessingOrder.FIXED:
            order = ProcessingOrder.RESIDUAL
    order = ProcessingOrder(order)
    if order is ProcessingOrder.FIXED:
        raise ValueError("rbp_marginals needs a random or residual processing order")
    return lbp_marginals(graph, options.with_changes(processing_order=order), rng)


INFERENCE_METHODS: Dict[str, Callable[..., MarginalResult]] = {
    "lbp": lbp_marginals,
    "trw": trw_marginals,
    "rbp": rbp_marginals,
}


def infer_marginals(
    graph: GraphView,
    method: str = "lbp",
    options: Optional[InferenceOptions] = None,
    rng: Optional[np.random.Generator] = None,
) -> MarginalResult:
    """Run a marginal inference method by name ("lbp", "trw" or "rbp")."""
    try:
        infer = INFERENCE_METHODS[method]
    except KeyError:
        raise ValueError(
            f"Unknown inference method {method!r}, expected one of {sorted(INFERENCE_METHODS)}"
        ) from None
    return infer(graph, options, rng)
