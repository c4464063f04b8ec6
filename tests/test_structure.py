"""
Tests for the pairwise graph structure.
"""

import numpy as np
import pytest

from pairbp.core.errors import DimensionMismatchError
from pairbp.inference.marginal import lbp_marginals
from pairbp.topology.structure import PairwiseGraph, build_adjacency_graph


@pytest.fixture
def chain():
    graph = PairwiseGraph()
    graph.add_node("A", [0.6, 0.4])
    graph.add_node("B", [1.0, 2.0, 3.0])
    graph.add_node("C", [0.5, 0.5])
    graph.add_edge("A", "B", np.ones((2, 3)), edge_id="AB")
    graph.add_edge("B", "C", np.ones((3, 2)), edge_id="BC")
    return graph


class TestPairwiseGraph:
    def test_nodes_and_edges_in_insertion_order(self, chain):
        assert [n.id for n in chain.nodes()] == ["A", "B", "C"]
        assert [e.id for e in chain.edges()] == ["AB", "BC"]
        assert chain.node_index("C") == 2
        assert chain.edge_index("BC") == 1

    def test_cardinality(self, chain):
        assert chain.node("A").cardinality == 2
        assert chain.node("B").cardinality == 3

    def test_potentials_are_float_arrays(self, chain):
        pot = chain.node_potentials("A")
        assert pot.dtype == np.float64
        assert np.allclose(pot, [0.6, 0.4])
        assert chain.edge_potentials("AB").shape == (2, 3)

    def test_incident_edges(self, chain):
        assert [e.id for e in chain.incident_edges("B")] == ["AB", "BC"]
        assert [e.id for e in chain.incident_edges("A")] == ["AB"]
        assert chain.neighbor_count("B") == 2

    def test_nodes_of_edge(self, chain):
        assert chain.nodes_of("AB") == ("A", "B")

    def test_edge_other_and_position(self, chain):
        edge = chain.edge("AB")
        assert edge.other("A") == "B"
        assert edge.other("B") == "A"
        assert edge.position("A") == 0
        assert edge.position("B") == 1

    def test_default_edge_ids(self):
        graph = PairwiseGraph()
        graph.add_node(0, [1.0, 1.0])
        graph.add_node(1, [1.0, 1.0])
        graph.add_node(2, [1.0, 1.0])
        e0 = graph.add_edge(0, 1, np.ones((2, 2)))
        e1 = graph.add_edge(1, 2, np.ones((2, 2)))
        assert (e0.id, e1.id) == (0, 1)

    def test_duplicate_node_raises(self, chain):
        with pytest.raises(ValueError):
            chain.add_node("A", [1.0, 1.0])

    def test_duplicate_edge_raises(self, chain):
        with pytest.raises(ValueError):
            chain.add_edge("A", "C", np.ones((2, 2)), edge_id="AB")

    def test_unknown_ids_raise_key_error(self, chain):
        with pytest.raises(KeyError):
            chain.add_edge("A", "Z", np.ones((2, 2)))
        with pytest.raises(KeyError):
            chain.node_index("Z")
        with pytest.raises(KeyError):
            chain.edge_index("ZZ")
        with pytest.raises(KeyError):
            chain.incident_edges("Z")

    def test_self_loop_raises(self, chain):
        with pytest.raises(ValueError):
            chain.add_edge("A", "A", np.ones((2, 2)))

    def test_negative_potentials_raise(self):
        graph = PairwiseGraph()
        with pytest.raises(ValueError):
            graph.add_node("A", [0.5, -0.1])

    def test_wrong_rank_raises_dimension_mismatch(self):
        graph = PairwiseGraph()
        with pytest.raises(DimensionMismatchError):
            graph.add_node("A", [[0.5, 0.5]])
        graph.add_node("A", [0.5, 0.5])
        graph.add_node("B", [0.5, 0.5])
        with pytest.raises(DimensionMismatchError):
            graph.add_edge("A", "B", [0.5, 0.5])

    def test_dimension_mismatch_is_value_error(self):
        assert issubclass(DimensionMismatchError, ValueError)


class TestFixedValues:
    def test_fixed_value_clamps_potentials(self, chain):
        chain.set_fixed_value("B", 1)
        assert np.allclose(chain.node_potentials("B", True), [0.0, 1.0, 0.0])
        assert np.allclose(chain.node_potentials("B", False), [1.0, 2.0, 3.0])

    def test_clear_fixed_value(self, chain):
        chain.set_fixed_value("B", 2)
        chain.clear_fixed_value("B")
        assert np.allclose(chain.node_potentials("B", True), [1.0, 2.0, 3.0])

    def test_fixed_value_at_construction(self):
        graph = PairwiseGraph()
        graph.add_node("X", [0.2, 0.8], fixed_value=0)
        assert np.allclose(graph.node_potentials("X"), [1.0, 0.0])

    def test_fixed_value_out_of_range(self, chain):
        with pytest.raises(ValueError):
            chain.set_fixed_value("A", 2)

    def test_shrinking_potentials_of_fixed_node(self):
        graph = PairwiseGraph()
        graph.add_node("A", [0.2, 0.3, 0.5], fixed_value=2)
        with pytest.raises(DimensionMismatchError):
            graph.set_node_potentials("A", [0.5, 0.5])
        # the rejected table is not stored
        assert np.allclose(graph.node_potentials("A", False), [0.2, 0.3, 0.5])

    def test_stale_fixed_value_caught_before_inference(self):
        graph = PairwiseGraph()
        graph.add_node("A", [0.2, 0.3, 0.5], fixed_value=2)
        graph.add_node("B", [0.5, 0.5])
        graph.add_edge("A", "B", np.ones((2, 2)))
        graph.node("A").potentials = np.array([0.5, 0.5])
        with pytest.raises(DimensionMismatchError):
            graph.recompute_potentials()
        with pytest.raises(DimensionMismatchError):
            lbp_marginals(graph)


class TestRecompute:
    def test_recompute_bumps_version(self, chain):
        before = chain.potential_version
        chain.recompute_potentials()
        assert chain.potential_version == before + 1

    def test_set_potentials(self, chain):
        chain.set_node_potentials("A", [0.1, 0.9])
        chain.set_edge_potentials("AB", np.full((2, 3), 2.0))
        assert np.allclose(chain.node_potentials("A"), [0.1, 0.9])
        assert np.allclose(chain.edge_potentials("AB"), 2.0)


class TestAdjacency:
    def test_to_networkx(self, chain):
        g = chain.to_networkx()
        assert list(g.nodes()) == ["A", "B", "C"]
        assert g.has_edge("A", "B")
        assert g.has_edge("B", "C")
        assert not g.has_edge("A", "C")
        assert g.edges["A", "B"]["edge_id"] == "AB"

    def test_parallel_edges_collapse(self):
        graph = PairwiseGraph()
        graph.add_node("A", [1.0, 1.0])
        graph.add_node("B", [1.0, 1.0])
        graph.add_edge("A", "B", np.ones((2, 2)), edge_id="e1")
        graph.add_edge("B", "A", np.ones((2, 2)), edge_id="e2")
        g = build_adjacency_graph(graph)
        assert g.number_of_edges() == 1
        assert g.edges["A", "B"]["edge_id"] == "e1"
