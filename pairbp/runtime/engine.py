"""
pairbp/runtime/engine.py

Loopy belief propagation message passing.

Updates are sequential: every new message is written to the shared table
immediately, so nodes visited later in the same sweep already read it.
This is a Gauss-Seidel schedule; a synchronous (flooding) schedule would
give different numbers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from pairbp.algebra.semiring import score_combination
from pairbp.core.errors import DimensionMismatchError
from pairbp.core.options import InferenceOptions
from pairbp.runtime.messages import MessageTable
from pairbp.runtime.schedule import Schedule
from pairbp.topology.structure import GraphView

logger = logging.getLogger(__name__)


@dataclass
class PassReport:
    """Result of one engine call."""
    messages: MessageTable
    iterations: int
    converged: bool
    delta: float


def check_dimensions(graph: GraphView, use_fixed_values: bool = True) -> None:
    """
    Check every edge potential against its nodes' cardinalities.

    Raises:
        DimensionMismatchError: on the first disagreeing edge
    """
    for edge in graph.edges():
        first, second = edge.nodes
        expected = (
            graph.node_potentials(first, use_fixed_values).shape[0],
            graph.node_potentials(second, use_fixed_values).shape[0],
        )
        shape = graph.edge_potentials(edge.id).shape
        if shape != expected:
            raise DimensionMismatchError(
                f"edge {edge.id!r} ({first!r}, {second!r}): potential shape {shape} "
                f"!= node cardinalities {expected}"
            )


def pass_messages(
    graph: GraphView,
    options: InferenceOptions,
    table: Optional[MessageTable] = None,
    schedule: Optional[Schedule] = None,
) -> PassReport:
    """
    Iterate message updates to a fixed point.

    Args:
        graph: Graph view to run on
        options: Iteration limit, threshold, fixed values and score combination
        table: Messages to continue from (default: fresh all-ones table)
        schedule: Active nodes and visiting order (default: all nodes in the
            order requested by the options)

    Returns:
        PassReport with the final table. Reaching max_iterations without
        converging is reported through `converged`, never raised.
    """
    use_fixed = options.use_fixed_node_values
    check_dimensions(graph, use_fixed)

    if table is None:
        table = MessageTable.initialize(graph, use_fixed)
    if schedule is None:
        schedule = Schedule(
            order=options.processing_order,
            rng=np.random.default_rng(options.seed),
        )

    rule = score_combination(options.score_combination)
    strategy = schedule.strategy()

    if schedule.active_nodes is None:
        active = [node.id for node in graph.nodes()]
        active_set = None
    else:
        active = list(schedule.active_nodes)
        active_set = set(active)

    unary = {nid: np.asarray(graph.node_potentials(nid, use_fixed), dtype=np.float64) for nid in active}

    previous = table.total()
    delta = np.inf
    converged = False
    iteration = 0

    for iteration in range(1, options.max_iterations + 1):
        for node_id in strategy.order(active):
            incident = graph.incident_edges(node_id)
            if active_set is not None:
                incident = [e for e in incident if e.other(node_id) in active_set]
            residual = 0.0

            for edge in incident:
                neighbor = edge.other(node_id)

                # Product of the unary with every incoming message except the neighbor's
                acc = unary[node_id].copy()
                for other in incident:
                    if other.other(node_id) == neighbor:
                        continue
                    acc = acc * table.received(graph.edge_index(other.id), other.position(node_id))

                position = edge.position(node_id)
                psi = graph.edge_potentials(edge.id)
                oriented = psi if position == 0 else psi.T

                edge_index = graph.edge_index(edge.id)
                new_message = rule.message(oriented, acc)
                residual = max(residual, float(np.max(np.abs(new_message - table.sent(edge_index, position)))))
                table.send(edge_index, position, new_message)

            strategy.observe(node_id, residual)

        total = table.total()
        delta = abs(total - previous)
        if delta < options.convergence_threshold:
            converged = True
            break
        previous = total

    logger.debug(
        "Message passing over %d nodes: %d iterations, converged=%s, delta=%.3g",
        len(active), iteration, converged, delta,
    )
    return PassReport(messages=table, iterations=iteration, converged=converged, delta=float(delta))
