"""Gradient tree used as the weak learner of gradient boosting.

The tree is grown on precomputed first- and second-order gradients of a
loss with the exact greedy algorithm: every split maximizes

    gain = G_L^2 / (H_L + lambda) + G_R^2 / (H_R + lambda) - G^2 / (H + lambda)

and every leaf predicts ``-shrinkage_rate * G / (H + lambda)``.

References:
    J. H. Friedman, "Greedy Function Approximation: A Gradient Boosting
    Machine", Annals of Statistics, 29(5), pp. 1189-1232, 2001.
    T. Chen and C. Guestrin, "XGBoost: A Scalable Tree Boosting System",
    Proc. KDD'16, pp. 785-794, 2016.
"""

import logging

import mlx.core as mx
import numpy as np

from mlx_trees.exceptions import ShapeError
from mlx_trees.trees._base import BaseTreeEstimator
from mlx_trees.trees._importance import split_count_importances
from mlx_trees.trees._tree_builder import build_gradient_tree
from mlx_trees.utils.data import check_same_length, check_sample_array, to_numpy_array
from mlx_trees.utils.validation import check_non_negative_float

logger = logging.getLogger(__name__)


class GradientTreeRegressor(BaseTreeEstimator):
    """Regression tree fitted to loss gradients.

    Args:
        reg_lambda: L2 regularization on leaf weights. Default is 0.0.
        shrinkage_rate: Multiplier applied to every leaf weight. Default is 1.0.
        max_depth: Maximum depth of the tree. None grows without depth limit.
        max_leaf_nodes: Maximum number of leaves. None for unlimited.
        min_samples_leaf: Minimum samples in a leaf node. Default is 1.
        max_features: Number of features drawn at each node. None uses all
            features; larger values are clamped to the number of features.
        random_seed: Seed for feature sampling. None draws fresh entropy on
            every fit.

    Attributes:
        tree_: Fitted TreeModel after calling fit().
        n_features_in_: Number of features seen during fit.
        leaf_weights_: Weight of each leaf, indexed by leaf id.
        feature_importances_: Number of splits on each feature, normalized.

    Example:
        >>> import mlx.core as mx
        >>> from mlx_trees import GradientTreeRegressor
        >>> X = mx.array([[1.0], [2.0], [3.0], [4.0]])
        >>> y = mx.array([1.0, 1.0, 3.0, 3.0])
        >>> gradient = -(y - mx.mean(y))
        >>> hessian = mx.ones_like(y)
        >>> model = GradientTreeRegressor(max_depth=2, shrinkage_rate=0.1)
        >>> model.fit(X, y, gradient, hessian)
        >>> updates = model.predict(X)
    """

    def __init__(
        self,
        reg_lambda: float = 0.0,
        shrinkage_rate: float = 1.0,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        self.reg_lambda = reg_lambda
        self.shrinkage_rate = shrinkage_rate
        self.max_depth = max_depth
        self.max_leaf_nodes = max_leaf_nodes
        self.min_samples_leaf = min_samples_leaf
        self.max_features = max_features
        self.random_seed = random_seed
        self._validate_params()
        self._reset_fitted()

    def _validate_params(self) -> None:
        check_non_negative_float("reg_lambda", self.reg_lambda)
        check_non_negative_float("shrinkage_rate", self.shrinkage_rate)
        super()._validate_params()

    def _reset_fitted(self) -> None:
        super()._reset_fitted()
        self.leaf_weights_: mx.array | None = None

    def fit(
        self,
        X: mx.array | np.ndarray | list,
        y: mx.array | np.ndarray | list,
        gradient: mx.array | np.ndarray | list,
        hessian: mx.array | np.ndarray | list,
    ) -> "GradientTreeRegressor":
        """Fit the tree to the gradients of a loss.

        Args:
            X: Training features of shape (n_samples, n_features).
            y: Target values of shape (n_samples,). Only used to stop at
                nodes whose targets are all equal.
            gradient: First-order gradient of the loss, shape (n_samples,).
            hessian: Second-order gradient of the loss, shape (n_samples,).

        Returns:
            Self for method chaining.

        Raises:
            ParameterError: If a parameter was set to an invalid value.
            ShapeError: If X is empty or any array differs from X in length.
        """
        self._validate_params()
        X = check_sample_array(X)
        y = to_numpy_array(y, dtype=np.float64).reshape(-1)
        gradient = to_numpy_array(gradient, dtype=np.float64).reshape(-1)
        hessian = to_numpy_array(hessian, dtype=np.float64).reshape(-1)
        check_same_length(X.shape[0], y=y, gradient=gradient, hessian=hessian)

        self._reset_fitted()
        self.n_features_in_ = X.shape[1]

        self.tree_ = build_gradient_tree(
            X=X,
            y=y,
            gradients=gradient,
            hessians=hessian,
            reg_lambda=self.reg_lambda,
            shrinkage_rate=self.shrinkage_rate,
            max_depth=self.max_depth,
            max_leaf_nodes=self.max_leaf_nodes,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            seed_sequence=self._seed_sequence(),
        )
        self.leaf_weights_ = mx.array(self.tree_.leaf_payloads.astype(np.float32))
        importances = split_count_importances(self.tree_.root, self.n_features_in_)
        self.feature_importances_ = mx.array(importances.astype(np.float32))

        logger.debug(
            f"GradientTreeRegressor fitted on {X.shape[0]} samples, "
            f"{self.n_leaves_} leaves"
        )
        return self

    def predict(self, X: mx.array | np.ndarray | list) -> mx.array:
        """Predict the leaf weight of each sample.

        Args:
            X: Features of shape (n_samples, n_features).

        Returns:
            Predictions of shape (n_samples,).

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of features differs from fit.
        """
        return mx.array(self._leaf_payloads(X).astype(np.float32))

    def set_leaf_weights(
        self, weights: mx.array | np.ndarray | list
    ) -> "GradientTreeRegressor":
        """Replace the leaf weights, e.g. after a line search on shrinkage.

        Args:
            weights: New weights indexed by leaf id, shape (n_leaves_,).

        Returns:
            Self for method chaining.

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of weights differs from n_leaves_.
        """
        self._check_fitted()
        weights = to_numpy_array(weights, dtype=np.float64).reshape(-1)
        if weights.shape[0] != self.n_leaves_:
            raise ShapeError(
                f"Expected {self.n_leaves_} leaf weights, got {weights.shape[0]}"
            )
        self.tree_.set_leaf_weights(weights)
        self.leaf_weights_ = mx.array(weights.astype(np.float32))
        return self
