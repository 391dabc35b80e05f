"""Tests for extremely randomized tree estimators."""

import mlx.core as mx
import numpy as np
import pytest

from mlx_trees import ExtraTreeClassifier, ExtraTreeRegressor
from mlx_trees.trees import DecisionTreeClassifier


def _make_classification(seed: int = 0) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    X = rng.normal(size=(200, 4))
    y = (X[:, 0] + X[:, 1] > 0).astype(int)
    return X, y


class TestExtraTreeClassifier:
    """Tests for ExtraTreeClassifier."""

    def test_fit_predict(self) -> None:
        """Test fitting and predicting shapes."""
        X, y = _make_classification()

        model = ExtraTreeClassifier(random_seed=0)
        model.fit(X, y)

        assert model.predict(X).shape == (200,)
        assert model.predict_proba(X).shape == (200, 2)
        assert model.n_classes_ == 2

    def test_fits_training_data(self) -> None:
        """Test an unlimited extra tree nearly fits its training data."""
        X, y = _make_classification(seed=1)

        model = ExtraTreeClassifier(random_seed=1)
        model.fit(X, y)

        assert model.score(X, y) >= 0.95

    def test_thresholds_within_feature_range(self) -> None:
        """Test random thresholds lie between the node's min and max values."""
        X, y = _make_classification(seed=2)

        model = ExtraTreeClassifier(max_depth=1, random_seed=2)
        model.fit(X, y)

        root = model.tree_.root
        assert not root.is_leaf
        column = X[:, root.feature_id]
        assert column.min() <= root.threshold <= column.max()

    def test_differs_from_exhaustive_search(self) -> None:
        """Test random thresholds are not the exhaustive midpoints."""
        X, y = _make_classification(seed=3)

        extra = ExtraTreeClassifier(max_depth=1, random_seed=3).fit(X, y)
        exact = DecisionTreeClassifier(max_depth=1, random_seed=3).fit(X, y)

        assert extra.tree_.root.threshold != exact.tree_.root.threshold

    def test_determinism(self) -> None:
        """Test identical seeds produce identical trees."""
        X, y = _make_classification(seed=4)

        first = ExtraTreeClassifier(random_seed=9).fit(X, y)
        second = ExtraTreeClassifier(random_seed=9).fit(X, y)

        assert first.dump_tree() == second.dump_tree()

    def test_seed_changes_tree(self) -> None:
        """Test different seeds draw different thresholds."""
        X, y = _make_classification(seed=5)

        first = ExtraTreeClassifier(max_depth=2, random_seed=1).fit(X, y)
        second = ExtraTreeClassifier(max_depth=2, random_seed=2).fit(X, y)

        assert first.dump_tree() != second.dump_tree()

    def test_constant_features_give_leaf(self) -> None:
        """Test a constant feature matrix cannot be split."""
        X = np.ones((10, 3))
        y = np.array([0, 1] * 5)

        model = ExtraTreeClassifier(random_seed=0)
        model.fit(X, y)

        assert model.n_leaves_ == 1
        np.testing.assert_allclose(np.array(model.predict_proba(X))[0], [0.5, 0.5])

    def test_leaf_ids_dense(self) -> None:
        """Test apply returns every leaf id in [0, n_leaves)."""
        X, y = _make_classification(seed=6)

        model = ExtraTreeClassifier(max_leaf_nodes=6, random_seed=6)
        model.fit(X, y)

        leaf_ids = np.array(model.apply(X))
        assert model.n_leaves_ <= 6
        np.testing.assert_array_equal(np.unique(leaf_ids), np.arange(model.n_leaves_))


class TestExtraTreeRegressor:
    """Tests for ExtraTreeRegressor."""

    def test_fit_predict(self) -> None:
        """Test fitting and predicting on a smooth target."""
        rng = np.random.default_rng(0)
        X = rng.uniform(-1.0, 1.0, size=(300, 2))
        y = X[:, 0] ** 2 + X[:, 1]

        model = ExtraTreeRegressor(random_seed=0)
        model.fit(mx.array(X.astype(np.float32)), mx.array(y.astype(np.float32)))

        assert model.predict(X.astype(np.float32)).shape == (300,)
        assert model.score(X.astype(np.float32), y) > 0.99

    def test_min_samples_leaf(self) -> None:
        """Test every leaf holds at least min_samples_leaf samples."""
        rng = np.random.default_rng(1)
        X = rng.normal(size=(200, 3))
        y = X.sum(axis=1)

        model = ExtraTreeRegressor(min_samples_leaf=10, random_seed=1)
        model.fit(X, y)

        counts = np.bincount(np.array(model.apply(X)), minlength=model.n_leaves_)
        assert counts.min() >= 10

    def test_multi_output(self) -> None:
        """Test two-dimensional targets."""
        rng = np.random.default_rng(2)
        X = rng.normal(size=(50, 2))
        y = np.column_stack([X[:, 0], -X[:, 1]])

        model = ExtraTreeRegressor(random_seed=2)
        model.fit(X, y)

        assert model.predict(X).shape == (50, 2)
        assert np.array(model.leaf_values_).shape == (model.n_leaves_, 2)

    @pytest.mark.parametrize("criterion", ["mse", "mae"])
    def test_criteria(self, criterion: str) -> None:
        """Test both regression criteria grow a useful tree."""
        X = np.arange(20, dtype=np.float64).reshape(-1, 1)
        y = np.where(X[:, 0] < 10, 0.0, 1.0)

        model = ExtraTreeRegressor(criterion=criterion, random_seed=3)
        model.fit(X, y)

        np.testing.assert_allclose(np.array(model.predict(X)), y)
