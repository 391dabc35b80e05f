"""Functionality shared by every tree estimator."""

from typing import Any

import mlx.core as mx
import numpy as np

from mlx_trees.base import BaseEstimator
from mlx_trees.exceptions import NotFittedError, ShapeError
from mlx_trees.trees._predictor import apply_tree, lookup_leaf_payloads
from mlx_trees.trees._tree_structure import TreeModel
from mlx_trees.utils.data import check_sample_array
from mlx_trees.utils.validation import check_tree_params


class BaseTreeEstimator(BaseEstimator):
    """Base class for estimators that fit a single tree.

    Subclasses store the growth parameters ``max_depth``, ``max_leaf_nodes``,
    ``min_samples_leaf``, ``max_features`` and ``random_seed`` as attributes
    and call ``_reset_fitted`` from their ``__init__``.
    """

    def _reset_fitted(self) -> None:
        self.tree_: TreeModel | None = None
        self.n_features_in_: int | None = None
        self.feature_importances_: mx.array | None = None

    def _validate_params(self) -> None:
        check_tree_params(
            max_depth=self.max_depth,
            max_leaf_nodes=self.max_leaf_nodes,
            min_samples_leaf=self.min_samples_leaf,
            max_features=self.max_features,
            random_seed=self.random_seed,
        )

    @property
    def n_leaves_(self) -> int | None:
        """Number of leaves of the fitted tree."""
        return None if self.tree_ is None else self.tree_.n_leaves

    def apply(self, X: mx.array | np.ndarray | list) -> mx.array:
        """Return the index of the leaf each sample is predicted as.

        Args:
            X: Features of shape (n_samples, n_features).

        Returns:
            Leaf ids of shape (n_samples,), in ``[0, n_leaves_)``.

        Raises:
            NotFittedError: If model has not been fitted.
            ShapeError: If the number of features differs from fit.
        """
        leaf_ids = self._apply(X)
        return mx.array(leaf_ids.astype(np.int32))

    def dump_tree(self) -> dict[str, Any]:
        """Return the fitted tree as a recursively nested dict.

        The result can be turned back into a tree with
        ``TreeModel.from_dict``.

        Raises:
            NotFittedError: If model has not been fitted.
        """
        self._check_fitted()
        return self.tree_.to_dict()

    def _check_fitted(self) -> None:
        if self.tree_ is None:
            raise NotFittedError("Model not fitted. Call fit() first.")

    def _validate_X(self, X: mx.array | np.ndarray | list) -> np.ndarray:
        """Convert features to float64 and check them against the fitted tree."""
        X = check_sample_array(X)
        if self.n_features_in_ is not None and X.shape[1] != self.n_features_in_:
            raise ShapeError(
                f"X has {X.shape[1]} features, but the model was fitted with "
                f"{self.n_features_in_} features"
            )
        return X

    def _apply(self, X: mx.array | np.ndarray | list) -> np.ndarray:
        self._check_fitted()
        X = self._validate_X(X)
        return apply_tree(self.tree_.arrays, X)

    def _leaf_payloads(self, X: mx.array | np.ndarray | list) -> np.ndarray:
        leaf_ids = self._apply(X)
        return lookup_leaf_payloads(self.tree_.leaf_payloads, leaf_ids)

    def _seed_sequence(self) -> np.random.SeedSequence:
        return np.random.SeedSequence(self.random_seed)
