#!/usr/bin/env python3
"""
pairbp: Pairwise Belief Propagation

Approximate marginal inference on pairwise graphical models, plus a
max-flow / min-cut solver.

Usage:
    # Infer marginals from a JSON model
    python main.py infer --input model.json --method trw --output result.json

    # Max-flow on a capacity matrix
    python main.py maxflow --capacities "[[0,3],[0,0]]" --source 0 --sink 1

    # Run demos
    python main.py demo --example chain

    # Run tests
    python main.py test
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from pairbp import (
    InferenceOptions,
    PairwiseGraph,
    ProcessingOrder,
    __version__,
    infer_marginals,
    max_flow_min_cut,
)
from pairbp.flow.maxflow import cut_capacity
from pairbp.inference.marginal import INFERENCE_METHODS, MarginalResult


def load_model_from_json(filepath: str) -> PairwiseGraph:
    """
    Load a pairwise model from a JSON file.

    Expected format:
    {
        "nodes": [{"id": "A", "potentials": [0.6, 0.4], "fixed": 1}, ...],
        "edges": [{"id": "AB", "nodes": ["A", "B"], "potentials": [[0.9, 0.1], [0.2, 0.8]]}, ...]
    }
    "fixed" and the edge "id" are optional.
    """
    with open(filepath, 'r') as f:
        data = json.load(f)
    return graph_from_dict(data)


def graph_from_dict(data: Dict[str, Any]) -> PairwiseGraph:
    """Build a PairwiseGraph from the JSON model layout."""
    graph = PairwiseGraph()
    for ndata in data["nodes"]:
        graph.add_node(ndata["id"], ndata["potentials"], fixed_value=ndata.get("fixed"))
    for edata in data["edges"]:
        first, second = edata["nodes"]
        graph.add_edge(first, second, edata["potentials"], edge_id=edata.get("id"))
    return graph


def save_result_to_json(
    filepath: str,
    result: MarginalResult,
    method: str,
    options: Optional[InferenceOptions] = None,
) -> None:
    """Save inference results (and the options used) to a JSON file."""
    output = {
        "method": method,
        "options": (options or InferenceOptions()).to_dict(),
        "log_z": float(result.log_z),
        "iterations": result.iterations,
        "converged": result.converged,
        "node_beliefs": {str(n): b.tolist() for n, b in result.node_beliefs.items()},
        "edge_beliefs": {str(e): b.tolist() for e, b in result.edge_beliefs.items()},
    }

    with open(filepath, 'w') as f:
        json.dump(output, f, indent=2)


def options_from_args(args) -> InferenceOptions:
    """
    Build inference options from parsed command-line arguments.

    Starts from the --options JSON file (if any); flags given on the command
    line override its entries.
    """
    data: Dict[str, Any] = {}
    if args.options:
        with open(args.options, 'r') as f:
            data.update(json.load(f))

    flags = {
        "max_iterations": args.max_iterations,
        "convergence_threshold": args.threshold,
        "processing_order": args.order,
        "seed": args.seed,
    }
    data.update({k: v for k, v in flags.items() if v is not None})
    if args.max_product:
        data["score_combination"] = "max"
    if args.ignore_fixed:
        data["use_fixed_node_values"] = False

    return InferenceOptions.from_dict(data)


def print_result(result: MarginalResult) -> None:
    print(f"\nResults:")
    print(f"  log(Z) = {result.log_z:.10f}")
    print(f"  Iterations: {result.iterations} (converged: {result.converged})")
    print("\nNode beliefs:")
    for node_id, b in result.node_beliefs.items():
        b_str = ', '.join(f'{p:.6f}' for p in b)
        print(f"  P({node_id}) = [{b_str}]")


def cmd_infer(args):
    """Execute the infer command."""
    print(f"Loading model from: {args.input}")
    try:
        graph = load_model_from_json(args.input)
        options = options_from_args(args)
    except (OSError, KeyError, ValueError) as e:
        print(f"Error loading model: {e}")
        return 1

    print(f"\nModel: {len(graph.nodes())} nodes, {len(graph.edges())} edges")
    print(f"Method: {args.method} ({'max' if options.maximize else 'sum'}-product)")

    try:
        result = infer_marginals(graph, method=args.method, options=options)
    except ValueError as e:
        print(f"Error during inference: {e}")
        return 1

    print_result(result)

    if args.output:
        save_result_to_json(args.output, result, args.method, options)
        print(f"\nResults saved to: {args.output}")

    return 0


def cmd_maxflow(args):
    """Execute the maxflow command."""
    try:
        if args.input:
            with open(args.input, 'r') as f:
                capacity = np.array(json.load(f), dtype=np.float64)
        elif args.capacities:
            capacity = np.array(json.loads(args.capacities), dtype=np.float64)
        else:
            print("Error: Must specify either --input FILE or --capacities MATRIX")
            return 1
        result = max_flow_min_cut(capacity, args.source, args.sink)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(f"Max flow: {result.max_flow:g}")
    source_side = np.flatnonzero(result.cut).tolist()
    sink_side = np.flatnonzero(~result.cut).tolist()
    print(f"Cut: {source_side} | {sink_side}")
    print(f"Cut capacity: {cut_capacity(capacity, result.cut):g}")
    return 0


def chain_graph() -> PairwiseGraph:
    graph = PairwiseGraph()
    graph.add_node("A", [0.6, 0.4])
    graph.add_node("B", [0.5, 0.5])
    graph.add_node("C", [0.7, 0.3])
    graph.add_edge("A", "B", [[0.9, 0.1], [0.2, 0.8]], edge_id="AB")
    graph.add_edge("B", "C", [[0.3, 0.7], [0.5, 0.5]], edge_id="BC")
    return graph


def brute_force_marginals(graph: PairwiseGraph):
    """Exact node marginals and Z by enumerating every joint state."""
    nodes = graph.nodes()
    cards = [n.cardinality for n in nodes]
    index = {n.id: i for i, n in enumerate(nodes)}
    marginals = [np.zeros(c) for c in cards]
    Z = 0.0
    for states in np.ndindex(*cards):
        w = 1.0
        for n, s in zip(nodes, states):
            w *= n.potentials[s]
        for e in graph.edges():
            a, b = e.nodes
            w *= e.potentials[states[index[a]], states[index[b]]]
        Z += w
        for i, s in enumerate(states):
            marginals[i][s] += w
    return {n.id: m / Z for n, m in zip(nodes, marginals)}, Z


def demo_simple_chain():
    """Demo: Simple chain A -- B -- C"""
    print("=" * 60)
    print("Demo: Simple Chain A -- B -- C")
    print("=" * 60)

    graph = chain_graph()
    print("\nPairwise model: A -- B -- C (each binary)")

    result = infer_marginals(graph, method="lbp")
    print_result(result)

    exact, Z = brute_force_marginals(graph)
    print(f"\nVerification (brute force): log(Z) = {np.log(Z):.6f}")
    match = all(np.allclose(result.node_beliefs[n], exact[n], atol=1e-6) for n in exact)
    print(f"Marginals match: {match}")

    return match


def demo_grid_2x2():
    """Demo: 2x2 Grid Ising Model with LBP, TRW and RBP"""
    print("=" * 60)
    print("Demo: 2x2 Grid Ising Model")
    print("=" * 60)

    J = 0.5
    psi = np.array([[np.exp(J), np.exp(-J)], [np.exp(-J), np.exp(J)]])
    # Sum-product messages are not normalized; scaled tables keep them bounded
    psi = psi / psi.sum()

    graph = PairwiseGraph()
    for name, h in (("X00", 0.2), ("X01", -0.1), ("X10", 0.0), ("X11", 0.3)):
        phi = np.array([np.exp(h), np.exp(-h)])
        graph.add_node(name, phi / phi.sum())
    graph.add_edge("X00", "X01", psi)
    graph.add_edge("X00", "X10", psi)
    graph.add_edge("X01", "X11", psi)
    graph.add_edge("X10", "X11", psi)

    print("\nPairwise model:")
    print("  X00 -- X01")
    print("   |      |")
    print("  X10 -- X11")
    print(f"  Coupling J = {J}")

    exact, Z = brute_force_marginals(graph)
    ok = True
    for method in ("lbp", "trw", "rbp"):
        result = infer_marginals(graph, method=method, options=InferenceOptions(seed=0))
        err = max(np.max(np.abs(result.node_beliefs[n] - exact[n])) for n in exact)
        print(f"\n{method.upper()}: log(Z) = {result.log_z:.6f}, max marginal error = {err:.4f}")
        ok = ok and all(np.isclose(b.sum(), 1.0) for b in result.node_beliefs.values())

    print(f"\nExact log(Z) = {np.log(Z):.6f}")
    print(f"Beliefs normalized: {ok}")
    return ok


def demo_maxflow():
    """Demo: textbook max-flow network"""
    print("=" * 60)
    print("Demo: Max-Flow / Min-Cut")
    print("=" * 60)

    capacity = np.zeros((6, 6))
    for u, v, c in [(0, 1, 16), (0, 2, 13), (1, 2, 10), (1, 3, 12), (2, 1, 4),
                    (2, 4, 14), (3, 2, 9), (3, 5, 20), (4, 3, 7), (4, 5, 4)]:
        capacity[u, v] = c

    result = max_flow_min_cut(capacity, 0, 5)
    print(f"\nMax flow: {result.max_flow:g}")
    print(f"Source side: {np.flatnonzero(result.cut).tolist()}")
    print(f"Cut capacity: {cut_capacity(capacity, result.cut):g}")

    match = np.isclose(result.max_flow, 23.0)
    print(f"Match: {match}")
    return match


def cmd_demo(args):
    """Execute the demo command."""
    demos = {
        "chain": demo_simple_chain,
        "grid": demo_grid_2x2,
        "maxflow": demo_maxflow,
    }

    if args.example == "all":
        results = []
        for name, func in demos.items():
            passed = func()
            results.append((name, passed))
            print()

        print("=" * 60)
        print("Summary")
        print("=" * 60)
        all_passed = True
        for name, passed in results:
            status = "PASS" if passed else "FAIL"
            print(f"  {name}: {status}")
            if not passed:
                all_passed = False

        return 0 if all_passed else 1

    elif args.example in demos:
        passed = demos[args.example]()
        return 0 if passed else 1
    else:
        print(f"Unknown example: {args.example}")
        print(f"Available: {', '.join(demos.keys())}, all")
        return 1


def cmd_test(args):
    """Execute the test command."""
    import subprocess

    test_dir = Path(__file__).parent / "tests"
    if not test_dir.exists():
        print(f"Test directory not found: {test_dir}")
        return 1

    cmd = [sys.executable, "-m", "pytest", str(test_dir)]
    if args.verbose:
        cmd.append("-v")
    if args.coverage:
        cmd.extend(["--cov=pairbp", "--cov-report=term-missing"])

    print(f"Running: {' '.join(cmd)}")
    result = subprocess.run(cmd, cwd=Path(__file__).parent)
    return result.returncode


def cmd_info(args):
    """Display system information."""
    import networkx
    import scipy

    print(f"pairbp v{__version__}")
    print("Pairwise Belief Propagation")
    print()
    print("Inference methods:")
    print("  lbp - Loopy belief propagation")
    print("  trw - Tree-reweighted BP over random spanning trees")
    print("  rbp - Residual / randomized-order BP")
    print()
    print("Score combinations:")
    print("  sum - Sum-product (marginals)")
    print("  max - Max-product (--max-product)")
    print()
    print("Python:", sys.version.split()[0])
    print("NumPy:", np.__version__)
    print("SciPy:", scipy.__version__)
    print("NetworkX:", networkx.__version__)

    return 0


def main():
    parser = argparse.ArgumentParser(
        prog="pairbp",
        description="pairbp: Pairwise Belief Propagation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Infer marginals
  pairbp infer --input model.json --method lbp
  pairbp infer --input model.json --method trw --seed 0 --output result.json
  pairbp infer --input model.json --options options.json --max-iterations 50

  # Max-flow / min-cut
  pairbp maxflow --input capacities.json --source 0 --sink 5

  # Run demos
  pairbp demo --example all

  # Run tests
  pairbp test -v
"""
    )

    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"pairbp {__version__}"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Infer command
    defaults = InferenceOptions()
    infer_parser = subparsers.add_parser("infer", help="Infer marginals of a pairwise model")
    infer_parser.add_argument("--input", "-i", type=str, required=True, help="Input JSON model")
    infer_parser.add_argument("--output", "-o", type=str, help="Output JSON file")
    infer_parser.add_argument("--options", type=str,
                              help="JSON file with inference options (flags override it)")
    infer_parser.add_argument(
        "--method", "-m",
        choices=sorted(INFERENCE_METHODS),
        default="lbp",
        help="Inference method (default: lbp)"
    )
    infer_parser.add_argument("--max-iterations", type=int,
                              help=f"Maximum sweeps (default: {defaults.max_iterations})")
    infer_parser.add_argument("--threshold", type=float,
                              help="Convergence threshold on the total message mass "
                                   f"(default: {defaults.convergence_threshold})")
    infer_parser.add_argument("--order", choices=[o.value for o in ProcessingOrder],
                              help="Node visiting order (rbp always uses random or residual)")
    infer_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    infer_parser.add_argument("--max-product", action="store_true", help="Use max-product messages")
    infer_parser.add_argument("--ignore-fixed", action="store_true", help="Ignore fixed node values")

    # Maxflow command
    flow_parser = subparsers.add_parser("maxflow", help="Solve max-flow / min-cut")
    flow_parser.add_argument("--input", "-i", type=str, help="JSON file with the capacity matrix")
    flow_parser.add_argument("--capacities", type=str, help="Capacity matrix as JSON")
    flow_parser.add_argument("--source", "-s", type=int, required=True)
    flow_parser.add_argument("--sink", "-t", type=int, required=True)

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demonstration examples")
    demo_parser.add_argument(
        "--example", "-e",
        choices=["chain", "grid", "maxflow", "all"],
        default="all",
        help="Which example to run (default: all)"
    )

    # Test command
    test_parser = subparsers.add_parser("test", help="Run test suite")
    test_parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    test_parser.add_argument("--coverage", "-c", action="store_true", help="With coverage")

    # Info command
    subparsers.add_parser("info", help="Show system information")

    args = parser.parse_args()
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(levelname)s %(name)s: %(message)s")

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "infer":
        return cmd_infer(args)
    elif args.command == "maxflow":
        return cmd_maxflow(args)
    elif args.command == "demo":
        return cmd_demo(args)
    elif args.command == "test":
        return cmd_test(args)
    elif args.command == "info":
        return cmd_info(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
