"""
Tests for inference options.
"""

import numpy as np
import pytest

from pairbp.core.options import InferenceOptions, ProcessingOrder


class TestInferenceOptions:
    def test_defaults(self):
        opts = InferenceOptions()
        assert opts.max_iterations == 100
        assert opts.convergence_threshold == pytest.approx(1e-4)
        assert opts.use_fixed_node_values is True
        assert opts.processing_order is ProcessingOrder.FIXED
        assert opts.score_combination == "sum"
        assert opts.seed is None
        assert not opts.maximize

    def test_order_from_string(self):
        opts = InferenceOptions(processing_order="residual")
        assert opts.processing_order is ProcessingOrder.RESIDUAL

    def test_unknown_order(self):
        with pytest.raises(ValueError):
            InferenceOptions(processing_order="backwards")

    @pytest.mark.parametrize("value", [0, -3, 2.5, None, "10", True])
    def test_invalid_max_iterations(self, value):
        with pytest.raises(ValueError):
            InferenceOptions(max_iterations=value)

    def test_numpy_integer_iterations(self):
        assert InferenceOptions(max_iterations=np.int64(5)).max_iterations == 5

    @pytest.mark.parametrize("key", ["max_iterations", "convergence_threshold"])
    def test_from_dict_null_values(self, key):
        with pytest.raises(ValueError):
            InferenceOptions.from_dict({key: None})

    @pytest.mark.parametrize("value", [0.0, -1e-3, None, "1e-4", float("nan")])
    def test_invalid_threshold(self, value):
        with pytest.raises(ValueError):
            InferenceOptions(convergence_threshold=value)

    def test_invalid_score_combination(self):
        with pytest.raises(ValueError):
            InferenceOptions(score_combination="product")

    def test_maximize(self):
        assert InferenceOptions(score_combination="max").maximize

    def test_with_changes_copies(self):
        opts = InferenceOptions(seed=3)
        other = opts.with_changes(max_iterations=5)
        assert other.max_iterations == 5
        assert other.seed == 3
        assert opts.max_iterations == 100

    def test_from_dict(self):
        opts = InferenceOptions.from_dict({"max_iterations": 7, "processing_order": "random"})
        assert opts.max_iterations == 7
        assert opts.processing_order is ProcessingOrder.RANDOM

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError):
            InferenceOptions.from_dict({"max_iter": 7})

    def test_to_dict(self):
        data = InferenceOptions(seed=1).to_dict()
        assert data["processing_order"] == "fixed"
        assert InferenceOptions.from_dict(data) == InferenceOptions(seed=1)
