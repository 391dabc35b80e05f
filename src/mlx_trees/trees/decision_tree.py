"""Decision Tree estimators with exact split search.

This module provides DecisionTreeClassifier and DecisionTreeRegressor.
Trees are grown on host arrays with JIT-compiled split scans; inputs may be
MLX arrays, numpy arrays or lists and predictions are returned as MLX arrays.
"""

import logging
from typing import Literal

import mlx.core as mx
import numpy as np

from mlx_trees.exceptions import ParameterError, ShapeError
from mlx_trees.trees._base import BaseTreeEstimator
from mlx_trees.trees._criterion import (
    DEFAULT_CLASSIFICATION_CRITERION,
    DEFAULT_REGRESSION_CRITERION,
    resolve_criterion,
)
from mlx_trees.trees._importance import impurity_importances
from mlx_trees.trees._tree_builder import (
    Splitter,
    build_classification_tree,
    build_regression_tree,
)
from mlx_trees.utils.data import check_same_length, check_sample_array, to_numpy_array
from mlx_trees.utils.metrics import accuracy, r2_score

logger = logging.getLogger(__name__)


class _BaseDecisionTree(BaseTreeEstimator):
    """Parameters and validation shared by impurity-based trees."""

    _splitter: Splitter = "best"

    def __init__(
        self,
        criterion: str,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        self.criterion = criterion
        self.max_depth = max_depth
        self.max_leaf_nodes = max_leaf_nodes
        self.min_samples_leaf = min_samples_leaf
        self.max_features = max_features
        self.random_seed = random_seed
        self._validate_params()
        self._reset_fitted()

    def _validate_params(self) -> None:
        if not isinstance(self.criterion, str):
            raise ParameterError(f"criterion must be a string, got {self.criterion!r}")
        super()._validate_params()

    def _split_options(self) -> dict:
        return {"splitter": self._splitter}

    def _set_importances(self) -> None:
        importances = impurity_importances(self.tree_.root, self.n_features_in_)
        self.feature_importances_ = mx.array(importances.astype(np.float32))


class DecisionTreeClassifier(_BaseDecisionTree):
    """Decision Tree Classifier with exact split search.

    At every node a subset of ``max_features`` features is drawn and each is
    scanned in sorted order for the threshold that most decreases impurity.

    Args:
        criterion: Split criterion. Unknown names fall back to "gini".
            - "gini": Gini impurity (default)
            - "entropy": Entropy variant ``-sum(p * ln(p + 1))``
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
        n_classes_: Number of classes.
        classes_: Array of unique class labels.
        leaf_labels_: Predicted class label of each leaf, indexed by leaf id.
        feature_importances_: Normalized impurity decrease per feature.

    Example:
        >>> import mlx.core as mx
        >>> from mlx_trees import DecisionTreeClassifier
        >>> X = mx.array([[1, 2], [3, 4], [5, 6], [7, 8]])
        >>> y = mx.array([0, 0, 1, 1])
        >>> model = DecisionTreeClassifier(max_depth=3, random_seed=1)
        >>> model.fit(X, y)
        >>> predictions = model.predict(X)
        >>> probabilities = model.predict_proba(X)
    """

    def __init__(
        self,
        criterion: Literal["gini", "entropy"] = DEFAULT_CLASSIFICATION_CRITERION,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            max_leaf_nodes=max_leaf_nodes,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            random_seed=random_seed,
        )

    def _reset_fitted(self) -> None:
        super()._reset_fitted()
        self.classes_: mx.array | None = None
        self.n_classes_: int | None = None
        self.leaf_labels_: mx.array | None = None
        self._leaf_labels: np.ndarray | None = None

    def fit(
        self, X: mx.array | np.ndarray | list, y: mx.array | np.ndarray | list
    ) -> "DecisionTreeClassifier":
        """Fit the decision tree classifier to training data.

        Args:
            X: Training features of shape (n_samples, n_features).
            y: Integer class labels of shape (n_samples,).

        Returns:
            Self for method chaining.

        Raises:
            ParameterError: If a parameter was set to an invalid value.
            ShapeError: If X is empty or X and y differ in length.
        """
        self._validate_params()
        X = check_sample_array(X)
        y = to_numpy_array(y).reshape(-1)
        check_same_length(X.shape[0], y=y)

        classes, y_indices = np.unique(y, return_inverse=True)

        self._reset_fitted()
        self.n_features_in_ = X.shape[1]
        self.classes_ = mx.array(classes)
        self.n_classes_ = len(classes)

        self.tree_ = build_classification_tree(
            X=X,
            y=y_indices.astype(np.int64),
            n_classes=self.n_classes_,
            criterion=resolve_criterion(self.criterion, "classification"),
            max_depth=self.max_depth,
            max_leaf_nodes=self.max_leaf_nodes,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            seed_sequence=self._seed_sequence(),
            **self._split_options(),
        )
        self._leaf_labels = classes[np.argmax(self.tree_.leaf_payloads, axis=1)]
        self.leaf_labels_ = mx.array(self._leaf_labels)
        self._set_importances()

        logger.debug(
            f"{type(self).__name__} fitted on {X.shape[0]} samples, "
            f"{self.n_classes_} classes, {self.n_leaves_} leaves"
        )
        return self

    def predict(self, X: mx.array | np.ndarray | list) -> mx.array:
        """Predict class labels for new data.

        Args:
            X: Features of shape (n_samples, n_features).

        Returns:
            Predicted class labels of shape (n_samples,).

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of features differs from fit.
        """
        leaf_ids = self._apply(X)
        return mx.array(self._leaf_labels[leaf_ids])

    def predict_proba(self, X: mx.array | np.ndarray | list) -> mx.array:
        """Predict class probabilities for new data.

        Args:
            X: Features of shape (n_samples, n_features).

        Returns:
            Class probabilities of shape (n_samples, n_classes), in the
            order of ``classes_``.

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of features differs from fit.
        """
        probabilities = self._leaf_payloads(X)
        return mx.array(probabilities.astype(np.float32))

    def score(
        self, X: mx.array | np.ndarray | list, y: mx.array | np.ndarray | list
    ) -> float:
        """Return the mean accuracy on the given data and labels."""
        y_true = mx.array(to_numpy_array(y).reshape(-1))
        return accuracy(y_true, self.predict(X)).item()


class DecisionTreeRegressor(_BaseDecisionTree):
    """Decision Tree Regressor with exact split search.

    Targets may be one-dimensional or of shape (n_samples, n_outputs); a
    multi-output tree predicts the mean target vector of each leaf.

    Args:
        criterion: Split criterion. Unknown names fall back to "mse".
            - "mse": Mean squared error (default)
            - "mae": Mean absolute error
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
        n_outputs_: Number of target columns seen during fit.
        leaf_values_: Mean target of each leaf, indexed by leaf id. Shape
            (n_leaves,) for single-output targets, else (n_leaves, n_outputs).
        feature_importances_: Normalized impurity decrease per feature.

    Example:
        >>> import mlx.core as mx
        >>> from mlx_trees import DecisionTreeRegressor
        >>> X = mx.array([[1, 2], [3, 4], [5, 6], [7, 8]])
        >>> y = mx.array([1.0, 2.0, 3.0, 4.0])
        >>> model = DecisionTreeRegressor(max_depth=3)
        >>> model.fit(X, y)
        >>> predictions = model.predict(X)
    """

    def __init__(
        self,
        criterion: Literal["mse", "mae"] = DEFAULT_REGRESSION_CRITERION,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            max_leaf_nodes=max_leaf_nodes,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            random_seed=random_seed,
        )

    def _reset_fitted(self) -> None:
        super()._reset_fitted()
        self.n_outputs_: int | None = None
        self.leaf_values_: mx.array | None = None

    def fit(
        self, X: mx.array | np.ndarray | list, y: mx.array | np.ndarray | list
    ) -> "DecisionTreeRegressor":
        """Fit the decision tree to training data.

        Args:
            X: Training features of shape (n_samples, n_features).
            y: Target values of shape (n_samples,) or (n_samples, n_outputs).

        Returns:
            Self for method chaining.

        Raises:
            ParameterError: If a parameter was set to an invalid value.
            ShapeError: If X is empty, y has more than two dimensions, or
                X and y differ in length.
        """
        self._validate_params()
        X = check_sample_array(X)
        y = to_numpy_array(y, dtype=np.float64)
        if y.ndim == 1:
            y = y.reshape(-1, 1)
        if y.ndim != 2:
            raise ShapeError(f"Expected 1D or 2D targets, got {y.ndim} dimensions")
        check_same_length(X.shape[0], y=y)

        self._reset_fitted()
        self.n_features_in_ = X.shape[1]
        self.n_outputs_ = y.shape[1]

        self.tree_ = build_regression_tree(
            X=X,
            y=y,
            criterion=resolve_criterion(self.criterion, "regression"),
            max_depth=self.max_depth,
            max_leaf_nodes=self.max_leaf_nodes,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            seed_sequence=self._seed_sequence(),
            **self._split_options(),
        )
        self.leaf_values_ = mx.array(self._format_output(self.tree_.leaf_payloads))
        self._set_importances()

        logger.debug(
            f"{type(self).__name__} fitted on {X.shape[0]} samples, "
            f"{self.n_outputs_} outputs, {self.n_leaves_} leaves"
        )
        return self

    def predict(self, X: mx.array | np.ndarray | list) -> mx.array:
        """Make predictions on new data.

        Args:
            X: Features of shape (n_samples, n_features).

        Returns:
            Predictions of shape (n_samples,) for single-output trees, else
            (n_samples, n_outputs).

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of features differs from fit.
        """
        return mx.array(self._format_output(self._leaf_payloads(X)))

    def score(
        self, X: mx.array | np.ndarray | list, y: mx.array | np.ndarray | list
    ) -> float:
        """Return the coefficient of determination R^2 of the prediction."""
        y_true = mx.array(to_numpy_array(y, dtype=np.float32))
        return r2_score(y_true, self.predict(X)).item()

    def _format_output(self, values: np.ndarray) -> np.ndarray:
        values = values.astype(np.float32)
        if self.n_outputs_ == 1:
            return values[:, 0]
        return values
