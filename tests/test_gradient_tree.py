"""Tests for GradientTreeRegressor."""

import mlx.core as mx
import numpy as np
import pytest

from mlx_trees import GradientTreeRegressor, NotFittedError, ParameterError, ShapeError


@pytest.fixture
def step_data() -> tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Squared-loss gradients of a step target around its mean."""
    X = np.array([[1.0], [2.0], [3.0], [4.0]])
    y = np.array([1.0, 1.0, 3.0, 3.0])
    gradient = y.mean() - y
    hessian = np.ones_like(y)
    return X, y, gradient, hessian


class TestGradientTreeRegressor:
    """Tests for GradientTreeRegressor."""

    def test_fit_basic(self, step_data) -> None:
        """Test basic fitting on step data."""
        X, y, gradient, hessian = step_data

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)

        assert model.tree_ is not None
        assert model.n_features_in_ == 1
        assert model.n_leaves_ == 2
        assert model.tree_.root.threshold == pytest.approx(2.5)

    def test_leaf_weights_newton_step(self, step_data) -> None:
        """Test leaf weights equal -G / (H + lambda)."""
        X, y, gradient, hessian = step_data

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)

        np.testing.assert_allclose(np.array(model.leaf_weights_), [-1.0, 1.0])
        np.testing.assert_allclose(np.array(model.predict(X)), [-1.0, -1.0, 1.0, 1.0])

    def test_reg_lambda_and_shrinkage(self, step_data) -> None:
        """Test regularization and shrinkage scale the leaf weights."""
        X, y, gradient, hessian = step_data

        model = GradientTreeRegressor(reg_lambda=2.0, shrinkage_rate=0.5)
        model.fit(X, y, gradient, hessian)

        # -0.5 * 2 / (2 + 2)
        np.testing.assert_allclose(np.array(model.leaf_weights_), [-0.25, 0.25])

    def test_mx_input(self, step_data) -> None:
        """Test that MLX arrays are accepted."""
        X, y, gradient, hessian = (
            mx.array(a.astype(np.float32)) for a in step_data
        )

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)

        predictions = model.predict(X)
        mx.eval(predictions)

        assert predictions.shape == (4,)

    def test_pure_target_single_leaf(self) -> None:
        """Test equal targets stop growth even with varying gradients."""
        X = np.array([[1.0], [2.0], [3.0], [4.0]])
        y = np.full(4, 2.0)
        gradient = np.array([1.0, -1.0, 1.0, -1.0])
        hessian = np.ones(4)

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)

        assert model.n_leaves_ == 1

    def test_zero_hessian_no_split(self) -> None:
        """Test candidates with zero denominators are skipped."""
        X = np.array([[1.0], [2.0], [3.0], [4.0]])
        y = np.array([1.0, 1.0, 3.0, 3.0])
        gradient = np.array([1.0, 1.0, -1.0, -1.0])
        hessian = np.zeros(4)

        model = GradientTreeRegressor(reg_lambda=0.0)
        model.fit(X, y, gradient, hessian)

        assert model.n_leaves_ == 1
        assert np.isfinite(np.array(model.leaf_weights_)).all()

    def test_negative_hessian_sum_keeps_sign(self) -> None:
        """Test a negative H + lambda gives the plain Newton step."""
        X = np.array([[1.0], [2.0], [3.0], [4.0]])
        y = np.ones(4)
        gradient = np.ones(4)
        hessian = np.full(4, -2.0)

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)

        assert model.n_leaves_ == 1
        np.testing.assert_allclose(np.array(model.leaf_weights_), [0.5])

    def test_feature_importances_count_splits(self) -> None:
        """Test importances are normalized split counts."""
        X = np.column_stack([np.arange(8, dtype=np.float64), np.zeros(8)])
        y = np.arange(8, dtype=np.float64)
        gradient = y.mean() - y
        hessian = np.ones(8)

        model = GradientTreeRegressor(max_depth=2, random_seed=0)
        model.fit(X, y, gradient, hessian)

        importances = np.array(model.feature_importances_)
        np.testing.assert_allclose(importances, [1.0, 0.0])

    def test_set_leaf_weights(self, step_data) -> None:
        """Test replacing leaf weights changes predictions."""
        X, y, gradient, hessian = step_data

        model = GradientTreeRegressor()
        model.fit(X, y, gradient, hessian)
        model.set_leaf_weights(np.array([5.0, 6.0]))

        np.testing.assert_allclose(np.array(model.predict(X)), [5.0, 5.0, 6.0, 6.0])
        np.testing.assert_allclose(np.array(model.leaf_weights_), [5.0, 6.0])
        assert model.dump_tree()["root"]["left"]["leaf_weight"] == 5.0

    def test_set_leaf_weights_wrong_size(self, step_data) -> None:
        """Test a weight vector of the wrong size raises ShapeError."""
        X, y, gradient, hessian = step_data

        model = GradientTreeRegressor().fit(X, y, gradient, hessian)

        with pytest.raises(ShapeError):
            model.set_leaf_weights([1.0, 2.0, 3.0])

    def test_not_fitted(self) -> None:
        """Test error when using the tree before fitting."""
        model = GradientTreeRegressor()

        with pytest.raises(NotFittedError, match="not fitted"):
            model.predict([[1.0]])
        with pytest.raises(NotFittedError):
            model.set_leaf_weights([1.0])

    def test_length_mismatch(self, step_data) -> None:
        """Test gradients with a different length raise ShapeError."""
        X, y, gradient, hessian = step_data

        with pytest.raises(ShapeError):
            GradientTreeRegressor().fit(X, y, gradient[:3], hessian)
        with pytest.raises(ShapeError):
            GradientTreeRegressor().fit(X, y, gradient, hessian[:2])

    @pytest.mark.parametrize(
        "params",
        [
            {"reg_lambda": -1.0},
            {"shrinkage_rate": -0.1},
            {"shrinkage_rate": "0.1"},
            {"max_depth": -1},
            {"min_samples_leaf": 0},
        ],
    )
    def test_invalid_params(self, params: dict) -> None:
        """Test invalid parameters raise ParameterError."""
        with pytest.raises(ParameterError):
            GradientTreeRegressor(**params)

    def test_get_params(self) -> None:
        """Test get_params method."""
        model = GradientTreeRegressor(reg_lambda=1.0, max_depth=3)
        params = model.get_params()

        assert params["reg_lambda"] == 1.0
        assert params["shrinkage_rate"] == 1.0
        assert params["max_depth"] == 3

    def test_boosting_reduces_loss(self) -> None:
        """Test a few boosting rounds on squared loss lower the training error."""
        rng = np.random.default_rng(1)
        X = rng.uniform(-2.0, 2.0, size=(200, 2))
        y = np.sin(X[:, 0]) + 0.5 * X[:, 1]

        predictions = np.full(200, y.mean())
        initial_mse = np.mean((y - predictions) ** 2)
        for round_id in range(10):
            gradient = predictions - y
            hessian = np.ones_like(y)
            tree = GradientTreeRegressor(
                shrinkage_rate=0.3, max_depth=3, random_seed=round_id
            )
            tree.fit(X, y, gradient, hessian)
            predictions = predictions + np.array(tree.predict(X), dtype=np.float64)

        assert np.mean((y - predictions) ** 2) < 0.5 * initial_mse
