"""Tests for feature importance aggregation."""

import numpy as np
import pytest

from mlx_trees.trees import DecisionTreeRegressor, Node
from mlx_trees.trees._importance import impurity_importances, split_count_importances


def _two_level_tree() -> Node:
    """Root splits on feature 2, its left child on feature 0."""
    leaves = [
        Node(depth=2, n_samples=2, impurity=0.0, is_leaf=True, leaf_id=0),
        Node(depth=2, n_samples=2, impurity=0.0, is_leaf=True, leaf_id=1),
        Node(depth=1, n_samples=4, impurity=0.0, is_leaf=True, leaf_id=2),
    ]
    left = Node(
        depth=1,
        n_samples=4,
        impurity=0.25,
        feature_id=0,
        left=leaves[0],
        right=leaves[1],
    )
    return Node(
        depth=0, n_samples=8, impurity=0.5, feature_id=2, left=left, right=leaves[2]
    )


class TestImpurityImportances:
    """Tests for impurity_importances."""

    def test_weighted_decrease(self) -> None:
        """Test each split credits n*imp - n_l*imp_l - n_r*imp_r."""
        importances = impurity_importances(_two_level_tree(), n_features=3)

        # Raw decreases: feature 2 -> 8*0.5 - 4*0.25 = 3, feature 0 -> 4*0.25 = 1.
        np.testing.assert_allclose(importances, [0.25, 0.0, 0.75])
        assert importances.sum() == pytest.approx(1.0)

    def test_single_leaf_all_zero(self) -> None:
        """Test a tree without splits has all-zero importances."""
        root = Node(n_samples=5, impurity=0.3, is_leaf=True, leaf_id=0)

        np.testing.assert_array_equal(impurity_importances(root, 4), np.zeros(4))

    def test_sums_to_one_on_fitted_tree(self) -> None:
        """Test importances of a fitted tree are normalized."""
        rng = np.random.default_rng(0)
        X = rng.normal(size=(200, 5))
        y = 3.0 * X[:, 1] + X[:, 3]

        model = DecisionTreeRegressor(max_depth=4, random_seed=0).fit(X, y)
        importances = np.array(model.feature_importances_)

        assert importances.sum() == pytest.approx(1.0, rel=1e-6)
        assert np.argmax(importances) == 1


class TestSplitCountImportances:
    """Tests for split_count_importances."""

    def test_counts_normalized(self) -> None:
        """Test every split counts once."""
        importances = split_count_importances(_two_level_tree(), n_features=3)

        np.testing.assert_allclose(importances, [0.5, 0.0, 0.5])

    def test_single_leaf_all_zero(self) -> None:
        """Test a tree without splits has all-zero importances."""
        root = Node(n_samples=5, is_leaf=True, leaf_id=0, leaf_weight=0.1)

        np.testing.assert_array_equal(split_count_importances(root, 2), np.zeros(2))
