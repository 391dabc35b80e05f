"""Tests for impurity criteria."""

import logging
import math

import numpy as np
import pytest

from mlx_trees.trees._criterion import (
    Criterion,
    class_histogram,
    classification_node_impurity,
    entropy_impurity,
    gini_impurity,
    gradient_gain,
    regression_node_impurity,
    resolve_criterion,
)


class TestResolveCriterion:
    """Tests for criterion name resolution."""

    @pytest.mark.parametrize(
        ("name", "task", "expected"),
        [
            ("gini", "classification", Criterion.GINI),
            ("entropy", "classification", Criterion.ENTROPY),
            ("mse", "regression", Criterion.MSE),
            ("mae", "regression", Criterion.MAE),
        ],
    )
    def test_known_names(self, name: str, task: str, expected: Criterion) -> None:
        """Test known names resolve to their tags."""
        assert resolve_criterion(name, task) is expected

    def test_unknown_classification_name(self, caplog) -> None:
        """Test unknown classification names fall back to gini with a debug record."""
        with caplog.at_level(logging.DEBUG, logger="mlx_trees.trees._criterion"):
            assert resolve_criterion("mse", "classification") is Criterion.GINI

        assert "using gini" in caplog.text

    def test_unknown_regression_name(self) -> None:
        """Test unknown regression names fall back to mse."""
        assert resolve_criterion("gini", "regression") is Criterion.MSE


class TestClassificationImpurity:
    """Tests for gini and entropy."""

    def test_class_histogram(self) -> None:
        """Test class counts."""
        labels = np.array([0, 2, 2, 1, 2], dtype=np.int64)

        np.testing.assert_array_equal(class_histogram(labels, 4), [1.0, 1.0, 3.0, 0.0])

    def test_gini_pure(self) -> None:
        """Test a pure histogram has zero gini."""
        assert gini_impurity(np.array([0.0, 5.0]), 5) == 0.0

    def test_gini_balanced(self) -> None:
        """Test gini of a balanced binary histogram."""
        assert gini_impurity(np.array([3.0, 3.0]), 6) == pytest.approx(0.5)

    def test_entropy_formula(self) -> None:
        """Test entropy is -sum(p * ln(p + 1))."""
        histogram = np.array([1.0, 3.0])
        expected = -(0.25 * math.log(1.25) + 0.75 * math.log(1.75))

        assert entropy_impurity(histogram, 4) == pytest.approx(expected)

    def test_entropy_pure(self) -> None:
        """Test a pure node scores -ln 2."""
        result = entropy_impurity(np.array([4.0, 0.0]), 4)

        assert result == pytest.approx(-math.log(2.0))

    def test_node_impurity_dispatch(self) -> None:
        """Test the criterion tag selects the formula."""
        labels = np.array([0, 0, 1, 1], dtype=np.int64)

        gini = classification_node_impurity(int(Criterion.GINI), labels, 2)
        entropy = classification_node_impurity(int(Criterion.ENTROPY), labels, 2)

        assert gini == pytest.approx(0.5)
        assert entropy == pytest.approx(-math.log(1.5))


class TestRegressionImpurity:
    """Tests for mse and mae."""

    def test_mse_single_output(self) -> None:
        """Test mse equals the variance of a single output."""
        targets = np.array([[1.0], [2.0], [3.0], [4.0]])

        result = regression_node_impurity(int(Criterion.MSE), targets)

        assert result == pytest.approx(np.var(targets))

    def test_mse_averaged_over_outputs(self) -> None:
        """Test multi-output mse is the mean of per-output variances."""
        targets = np.array([[1.0, 0.0], [3.0, 10.0]])

        result = regression_node_impurity(int(Criterion.MSE), targets)

        assert result == pytest.approx((1.0 + 25.0) / 2.0)

    def test_mae(self) -> None:
        """Test mae is the mean absolute deviation from the mean."""
        targets = np.array([[0.0], [0.0], [3.0]])

        result = regression_node_impurity(int(Criterion.MAE), targets)

        assert result == pytest.approx((1.0 + 1.0 + 2.0) / 3.0)

    def test_mae_averaged_over_outputs(self) -> None:
        """Test multi-output mae divides by the number of outputs."""
        targets = np.array([[0.0, 0.0], [2.0, 4.0]])

        result = regression_node_impurity(int(Criterion.MAE), targets)

        assert result == pytest.approx((1.0 + 2.0) / 2.0)

    def test_constant_targets(self) -> None:
        """Test constant targets have zero impurity."""
        targets = np.full((5, 2), 3.0)

        assert regression_node_impurity(int(Criterion.MSE), targets) == 0.0
        assert regression_node_impurity(int(Criterion.MAE), targets) == 0.0

    def test_mse_large_offset(self) -> None:
        """Test mse keeps its precision when targets share a large offset."""
        targets = 1e9 + np.linspace(0.0, 2.0, 100).reshape(-1, 1)

        result = regression_node_impurity(int(Criterion.MSE), targets)

        assert result == pytest.approx(np.var(targets), rel=1e-4)
        assert result > 0.3


class TestGradientGain:
    """Tests for the second-order gain."""

    def test_gain_formula(self) -> None:
        """Test L^2/(H_L+l) + R^2/(H_R+l) - S^2/(H+l)."""
        gain = gradient_gain(2.0, 2.0, 0.0, 4.0, 1.0)

        assert gain == pytest.approx(4.0 / 3.0 + 4.0 / 3.0 - 0.0)

    def test_no_gain_for_proportional_split(self) -> None:
        """Test splitting gradients proportionally to hessians gains nothing."""
        gain = gradient_gain(1.0, 1.0, 2.0, 2.0, 0.0)

        assert gain == pytest.approx(0.0)
