"""
Tests for score combinations.
"""

import numpy as np
import pytest

from pairbp.algebra.semiring import (
    max_product,
    normalize_or_keep,
    score_combination,
    sum_product,
)


class TestNormalize:
    def test_normalize(self):
        x = np.array([1.0, 2.0, 3.0])
        assert np.sum(normalize_or_keep(x)) == pytest.approx(1.0)

    def test_zero_mass_is_kept(self):
        x = np.zeros(3)
        out = normalize_or_keep(x)
        assert np.all(out == 0.0)
        assert not np.any(np.isnan(out))


class TestSumProduct:
    def test_matrix_vector_product(self):
        sr = sum_product()
        psi = np.array([[1.0, 2.0], [3.0, 4.0]])
        acc = np.array([1.0, 0.5])
        assert np.allclose(sr.message(psi, acc), [2.5, 4.0])

    def test_no_per_update_normalization(self):
        sr = sum_product()
        psi = np.full((2, 3), 5.0)
        out = sr.message(psi, np.ones(2))
        assert out.shape == (3,)
        assert np.allclose(out, 10.0)


class TestMaxProduct:
    def test_max_then_normalize(self):
        sr = max_product()
        psi = np.array([[1.0, 2.0], [3.0, 4.0]])
        acc = np.array([1.0, 0.5])
        out = sr.message(psi, acc)
        assert np.allclose(out, np.array([1.5, 2.0]) / 3.5)
        assert np.sum(out) == pytest.approx(1.0)

    def test_zero_accumulator_left_unnormalized(self):
        sr = max_product()
        out = sr.message(np.ones((2, 2)), np.zeros(2))
        assert np.all(out == 0.0)

    def test_rectangular_potential(self):
        sr = max_product()
        psi = np.array([[1.0, 0.0, 2.0], [0.5, 3.0, 1.0]])
        out = sr.eliminate(psi, np.array([1.0, 1.0]))
        assert np.allclose(out, [1.0, 3.0, 2.0])


class TestLookup:
    def test_by_name(self):
        assert score_combination("sum").name == "sum"
        assert score_combination("max").name == "max"

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            score_combination("min")
