"""
Example: Simple chain pairwise model.

A--B--C with unary and pairwise potentials. On a tree loopy BP is exact.
"""

import numpy as np
from pairbp import PairwiseGraph, lbp_marginals


def main():
    graph = PairwiseGraph()

    # Unary potentials
    phi_A = np.array([0.6, 0.4])
    phi_B = np.array([1.0, 1.0])
    phi_C = np.array([1.0, 1.0])

    # Pairwise potentials, rows index the first node
    psi_AB = np.array([
        [0.9, 0.1],
        [0.2, 0.8]
    ])
    psi_BC = np.array([
        [0.3, 0.7],
        [0.5, 0.5]
    ])

    graph.add_node("A", phi_A)
    graph.add_node("B", phi_B)
    graph.add_node("C", phi_C)
    graph.add_edge("A", "B", psi_AB, edge_id="AB")
    graph.add_edge("B", "C", psi_BC, edge_id="BC")

    print("Running loopy BP on simple chain A--B--C...")
    result = lbp_marginals(graph)

    print(f"\nConverged after {result.iterations} iterations: {result.converged}")
    print("\nMarginal distributions:")
    for var, marg in result.node_beliefs.items():
        print(f"  P({var}) = {marg}")

    # Verify by brute force
    print("\n--- Verification by brute force ---")
    joint = np.zeros((2, 2, 2))
    for a in range(2):
        for b in range(2):
            for c in range(2):
                joint[a, b, c] = phi_A[a] * phi_B[b] * phi_C[c] * psi_AB[a, b] * psi_BC[b, c]
    joint /= joint.sum()

    print(f"P(A) (brute force) = {joint.sum(axis=(1, 2))}")
    print(f"P(A) (LBP)         = {result.node_beliefs['A']}")
    print(f"Match: {np.allclose(joint.sum(axis=(1, 2)), result.node_beliefs['A'])}")
    print(f"\nP(A, B) (LBP) =\n{result.edge_beliefs['AB']}")


if __name__ == "__main__":
    main()
