"""Recursive tree growing.

Each node receives the index array of its samples (the feature matrix is
never copied), its impurity as computed by the parent's split search, and
its own ``np.random.SeedSequence``. The node draws its feature subset from a
generator seeded by that sequence and spawns one child sequence per branch,
so a tree is reproducible from its root seed and no generator is shared
between calls.

Stop conditions are checked in order: leaf budget exhausted,
``n_samples <= min_samples_leaf``, pure targets, ``depth == max_depth``.
A node whose best split has no positive gain also becomes a leaf.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Literal

import numpy as np

from mlx_trees.trees._criterion import (
    Criterion,
    classification_node_impurity,
    regression_node_impurity,
)
from mlx_trees.trees._split_finder import (
    NO_SPLIT,
    SplitResult,
    find_best_split_classification,
    find_best_split_gradient,
    find_best_split_regression,
    random_split_classification,
    random_split_regression,
    variable_split_classification,
    variable_split_regression,
)
from mlx_trees.trees._tree_structure import Node, TreeModel

logger = logging.getLogger(__name__)

Splitter = Literal["best", "random", "variable"]


@dataclass
class LeafCounter:
    """Leaf budget shared by the recursive calls of one fit.

    Growth is depth-first, so when a node splits it reserves one leaf for
    the right sibling of every ancestor still waiting to be grown. A node
    may split only if both of its children can still become leaves.

    Attributes:
        max_leaf_nodes: Maximum number of leaves, None for unlimited.
        n_leaves: Leaves emitted so far; also the next leaf id.
    """

    max_leaf_nodes: int | None = None
    n_leaves: int = 0

    def can_split(self, reserved: int) -> bool:
        if self.max_leaf_nodes is None:
            return True
        return self.n_leaves + reserved + 2 <= self.max_leaf_nodes

    def next_leaf_id(self) -> int:
        leaf_id = self.n_leaves
        self.n_leaves += 1
        return leaf_id


def resolve_max_features(max_features: int | None, n_features: int) -> int:
    """Number of features drawn per node, clamped to [1, n_features]."""
    if max_features is None:
        return n_features
    return min(max(max_features, 1), n_features)


class BaseTreeGrower(ABC):
    """Shared recursion for all tree kinds.

    A grower is created for one fit and holds read-only references to the
    training data. Mutable growth state (the leaf counter) is passed
    explicitly through the recursion.

    Args:
        X: Features of shape (n_samples, n_features), float64.
        max_depth: Maximum depth, None for unlimited.
        max_leaf_nodes: Maximum number of leaves, None for unlimited.
        min_samples_leaf: Nodes with at most this many samples are leaves,
            and no split may leave fewer samples on either side.
        max_features: Features drawn per node, None for all.
    """

    def __init__(
        self,
        X: np.ndarray,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
    ) -> None:
        self.X = X
        self.n_features = X.shape[1]
        self.max_depth = max_depth
        self.max_leaf_nodes = max_leaf_nodes
        self.min_samples_leaf = min_samples_leaf
        self.max_features = resolve_max_features(max_features, self.n_features)

    def grow(self, seed_sequence: np.random.SeedSequence) -> Node:
        """Grow a tree over all samples.

        Args:
            seed_sequence: Root of the per-node seed hierarchy.

        Returns:
            Root node of the grown tree.
        """
        counter = LeafCounter(max_leaf_nodes=self.max_leaf_nodes)
        indices = np.arange(self.X.shape[0])
        return self._grow_node(
            indices=indices,
            depth=0,
            impurity=self._node_impurity(indices),
            seed_sequence=seed_sequence,
            counter=counter,
            reserved=0,
        )

    def _grow_node(
        self,
        indices: np.ndarray,
        depth: int,
        impurity: float,
        seed_sequence: np.random.SeedSequence,
        counter: LeafCounter,
        reserved: int,
    ) -> Node:
        node = Node(depth=depth, impurity=impurity, n_samples=indices.shape[0])

        should_stop = (
            not counter.can_split(reserved)
            or indices.shape[0] <= self.min_samples_leaf
            or self._is_pure(indices)
            or (self.max_depth is not None and depth >= self.max_depth)
        )
        if should_stop:
            return self._put_leaf(node, indices, counter)

        rng = np.random.default_rng(seed_sequence)
        feature_ids = rng.choice(self.n_features, size=self.max_features, replace=False)

        best_feature = -1
        best_split = NO_SPLIT
        for feature_id in feature_ids:
            values = self.X[indices, feature_id]
            split = self._find_split(values, indices, impurity, rng)
            if split.gain > best_split.gain:
                best_feature = int(feature_id)
                best_split = split

        if not best_split.is_valid:
            return self._put_leaf(node, indices, counter)

        goes_left = self.X[indices, best_feature] <= best_split.threshold
        left_seed, right_seed = seed_sequence.spawn(2)

        node.left = self._grow_node(
            indices=indices[goes_left],
            depth=depth + 1,
            impurity=best_split.left_impurity,
            seed_sequence=left_seed,
            counter=counter,
            reserved=reserved + 1,
        )
        node.right = self._grow_node(
            indices=indices[~goes_left],
            depth=depth + 1,
            impurity=best_split.right_impurity,
            seed_sequence=right_seed,
            counter=counter,
            reserved=reserved,
        )
        node.feature_id = best_feature
        node.threshold = best_split.threshold
        return node

    def _put_leaf(self, node: Node, indices: np.ndarray, counter: LeafCounter) -> Node:
        node.is_leaf = True
        node.leaf_id = counter.next_leaf_id()
        self._set_payload(node, indices)
        return node

    @abstractmethod
    def _node_impurity(self, indices: np.ndarray) -> float:
        """Impurity of the samples in ``indices``."""

    @abstractmethod
    def _is_pure(self, indices: np.ndarray) -> bool:
        """Whether all targets in ``indices`` are identical."""

    @abstractmethod
    def _find_split(
        self,
        values: np.ndarray,
        indices: np.ndarray,
        impurity: float,
        rng: np.random.Generator,
    ) -> SplitResult:
        """Best split of ``indices`` on one feature whose values are given."""

    @abstractmethod
    def _set_payload(self, node: Node, indices: np.ndarray) -> None:
        """Store the prediction payload of a leaf."""


class ClassificationTreeGrower(BaseTreeGrower):
    """Grows trees whose leaves hold class probabilities.

    Args:
        X: Features of shape (n_samples, n_features).
        labels: Class indices in [0, n_classes), shape (n_samples,).
        n_classes: Number of classes.
        criterion: Gini or entropy.
        splitter: "best" for exhaustive thresholds, "random" for one
            uniformly drawn threshold per feature, "variable" for the
            variable-random choice between the two.
        alpha: Probability of an exhaustive search per feature when
            ``splitter`` is "variable".
        **kwargs: Growth limits, see BaseTreeGrower.
    """

    def __init__(
        self,
        X: np.ndarray,
        labels: np.ndarray,
        n_classes: int,
        criterion: Criterion = Criterion.GINI,
        splitter: Splitter = "best",
        alpha: float = 1.0,
        **kwargs,
    ) -> None:
        super().__init__(X, **kwargs)
        self.labels = labels
        self.n_classes = n_classes
        self.criterion = int(criterion)
        self.splitter = splitter
        self.alpha = float(alpha)

    def _node_impurity(self, indices: np.ndarray) -> float:
        return classification_node_impurity(
            self.criterion, self.labels[indices], self.n_classes
        )

    def _is_pure(self, indices: np.ndarray) -> bool:
        labels = self.labels[indices]
        return bool(np.all(labels == labels[0]))

    def _find_split(self, values, indices, impurity, rng) -> SplitResult:
        if self.splitter == "variable":
            return variable_split_classification(
                values,
                self.labels[indices],
                self.n_classes,
                self.criterion,
                impurity,
                self.alpha,
                rng,
                self.min_samples_leaf,
            )
        if self.splitter == "random":
            return random_split_classification(
                values,
                self.labels[indices],
                self.n_classes,
                self.criterion,
                impurity,
                rng,
                self.min_samples_leaf,
            )
        return find_best_split_classification(
            values,
            self.labels[indices],
            self.n_classes,
            self.criterion,
            impurity,
            self.min_samples_leaf,
        )

    def _set_payload(self, node: Node, indices: np.ndarray) -> None:
        counts = np.bincount(self.labels[indices], minlength=self.n_classes)
        node.class_distribution = counts.astype(np.float64) / indices.shape[0]


class RegressionTreeGrower(BaseTreeGrower):
    """Grows trees whose leaves hold per-output means.

    Args:
        X: Features of shape (n_samples, n_features).
        targets: Targets of shape (n_samples, n_outputs).
        criterion: MSE or MAE.
        splitter: "best", "random" or "variable", as for
            ClassificationTreeGrower.
        alpha: Exhaustive search probability for the "variable" splitter.
        **kwargs: Growth limits, see BaseTreeGrower.
    """

    def __init__(
        self,
        X: np.ndarray,
        targets: np.ndarray,
        criterion: Criterion = Criterion.MSE,
        splitter: Splitter = "best",
        alpha: float = 1.0,
        **kwargs,
    ) -> None:
        super().__init__(X, **kwargs)
        self.targets = np.ascontiguousarray(targets, dtype=np.float64)
        self.criterion = int(criterion)
        self.splitter = splitter
        self.alpha = float(alpha)

    def _node_impurity(self, indices: np.ndarray) -> float:
        return regression_node_impurity(self.criterion, self.targets[indices])

    def _is_pure(self, indices: np.ndarray) -> bool:
        targets = self.targets[indices]
        return bool(np.all(targets == targets[0]))

    def _find_split(self, values, indices, impurity, rng) -> SplitResult:
        if self.splitter == "variable":
            return variable_split_regression(
                values,
                self.targets[indices],
                self.criterion,
                impurity,
                self.alpha,
                rng,
                self.min_samples_leaf,
            )
        if self.splitter == "random":
            return random_split_regression(
                values,
                self.targets[indices],
                self.criterion,
                impurity,
                rng,
                self.min_samples_leaf,
            )
        return find_best_split_regression(
            values,
            self.targets[indices],
            self.criterion,
            impurity,
            self.min_samples_leaf,
        )

    def _set_payload(self, node: Node, indices: np.ndarray) -> None:
        node.mean_value = self.targets[indices].mean(axis=0)


class GradientTreeGrower(BaseTreeGrower):
    """Grows regression trees on loss gradients for gradient boosting.

    Leaves hold the Newton step ``-shrinkage_rate * G / (H + reg_lambda)``.

    Args:
        X: Features of shape (n_samples, n_features).
        y: Targets of shape (n_samples,), used only to detect pure nodes.
        gradients: First-order gradients, shape (n_samples,).
        hessians: Second-order gradients, shape (n_samples,).
        reg_lambda: L2 regularization on leaf weights.
        shrinkage_rate: Multiplier applied to every leaf weight.
        **kwargs: Growth limits, see BaseTreeGrower.
    """

    def __init__(
        self,
        X: np.ndarray,
        y: np.ndarray,
        gradients: np.ndarray,
        hessians: np.ndarray,
        reg_lambda: float = 0.0,
        shrinkage_rate: float = 1.0,
        **kwargs,
    ) -> None:
        super().__init__(X, **kwargs)
        self.y = y
        self.gradients = gradients
        self.hessians = hessians
        self.reg_lambda = float(reg_lambda)
        self.shrinkage_rate = float(shrinkage_rate)

    def _node_impurity(self, indices: np.ndarray) -> float:
        return 0.0

    def _is_pure(self, indices: np.ndarray) -> bool:
        y = self.y[indices]
        return bool(np.all(y == y[0]))

    def _find_split(self, values, indices, impurity, rng) -> SplitResult:
        gradients = self.gradients[indices]
        hessians = self.hessians[indices]
        return find_best_split_gradient(
            values,
            gradients,
            hessians,
            float(gradients.sum()),
            float(hessians.sum()),
            self.reg_lambda,
            self.min_samples_leaf,
        )

    def _set_payload(self, node: Node, indices: np.ndarray) -> None:
        denom = float(self.hessians[indices].sum()) + self.reg_lambda
        # Only near-zero denominators are clamped; negative ones keep their sign.
        if 0.0 <= denom < 1e-10:
            denom = 1e-10
        sum_grad = float(self.gradients[indices].sum())
        node.leaf_weight = -self.shrinkage_rate * sum_grad / denom


# =============================================================================
# Entry points
# =============================================================================


def build_classification_tree(
    X: np.ndarray,
    y: np.ndarray,
    n_classes: int,
    criterion: Criterion = Criterion.GINI,
    max_depth: int | None = None,
    max_leaf_nodes: int | None = None,
    min_samples_leaf: int = 1,
    max_features: int | None = None,
    seed_sequence: np.random.SeedSequence | None = None,
    splitter: Splitter = "best",
    alpha: float = 1.0,
) -> TreeModel:
    """Build a classification tree.

    Args:
        X: Features of shape (n_samples, n_features), float64.
        y: Class indices of shape (n_samples,), values in [0, n_classes).
        n_classes: Number of classes.
        criterion: Split criterion (gini or entropy).
        max_depth: Maximum depth of the tree, None for unlimited.
        max_leaf_nodes: Maximum number of leaves, None for unlimited.
        min_samples_leaf: Minimum samples in a leaf node.
        max_features: Features considered per node, None for all.
        seed_sequence: Seed for feature sampling and random thresholds.
        splitter: "best", "random" or "variable".
        alpha: Exhaustive search probability for the "variable" splitter.

    Returns:
        Fitted TreeModel with class probabilities as leaf payloads.
    """
    grower = ClassificationTreeGrower(
        X,
        y,
        n_classes,
        criterion=criterion,
        splitter=splitter,
        alpha=alpha,
        max_depth=max_depth,
        max_leaf_nodes=max_leaf_nodes,
        min_samples_leaf=min_samples_leaf,
        max_features=max_features,
    )
    return _finish(grower, seed_sequence)


def build_regression_tree(
    X: np.ndarray,
    y: np.ndarray,
    criterion: Criterion = Criterion.MSE,
    max_depth: int | None = None,
    max_leaf_nodes: int | None = None,
    min_samples_leaf: int = 1,
    max_features: int | None = None,
    seed_sequence: np.random.SeedSequence | None = None,
    splitter: Splitter = "best",
    alpha: float = 1.0,
) -> TreeModel:
    """Build a regression tree.

    Args:
        X: Features of shape (n_samples, n_features), float64.
        y: Targets of shape (n_samples, n_outputs).
        criterion: Split criterion (mse or mae).
        max_depth: Maximum depth of the tree, None for unlimited.
        max_leaf_nodes: Maximum number of leaves, None for unlimited.
        min_samples_leaf: Minimum samples in a leaf node.
        max_features: Features considered per node, None for all.
        seed_sequence: Seed for feature sampling and random thresholds.
        splitter: "best", "random" or "variable".
        alpha: Exhaustive search probability for the "variable" splitter.

    Returns:
        Fitted TreeModel with per-output means as leaf payloads.
    """
    grower = RegressionTreeGrower(
        X,
        y,
        criterion=criterion,
        splitter=splitter,
        alpha=alpha,
        max_depth=max_depth,
        max_leaf_nodes=max_leaf_nodes,
        min_samples_leaf=min_samples_leaf,
        max_features=max_features,
    )
    return _finish(grower, seed_sequence)


def build_gradient_tree(
    X: np.ndarray,
    y: np.ndarray,
    gradients: np.ndarray,
    hessians: np.ndarray,
    reg_lambda: float = 0.0,
    shrinkage_rate: float = 1.0,
    max_depth: int | None = None,
    max_leaf_nodes: int | None = None,
    min_samples_leaf: int = 1,
    max_features: int | None = None,
    seed_sequence: np.random.SeedSequence | None = None,
) -> TreeModel:
    """Build a gradient tree with exact greedy split search.

    Args:
        X: Features of shape (n_samples, n_features), float64.
        y: Targets of shape (n_samples,).
        gradients: Loss gradients of shape (n_samples,).
        hessians: Loss Hessians of shape (n_samples,).
        reg_lambda: L2 regularization on leaf weights.
        shrinkage_rate: Multiplier applied to every leaf weight.
        max_depth: Maximum depth of the tree, None for unlimited.
        max_leaf_nodes: Maximum number of leaves, None for unlimited.
        min_samples_leaf: Minimum samples in a leaf node.
        max_features: Features considered per node, None for all.
        seed_sequence: Seed for feature sampling.

    Returns:
        Fitted TreeModel with leaf weights as payloads.
    """
    grower = GradientTreeGrower(
        X,
        y,
        gradients,
        hessians,
        reg_lambda=reg_lambda,
        shrinkage_rate=shrinkage_rate,
        max_depth=max_depth,
        max_leaf_nodes=max_leaf_nodes,
        min_samples_leaf=min_samples_leaf,
        max_features=max_features,
    )
    return _finish(grower, seed_sequence)


def _finish(
    grower: BaseTreeGrower, seed_sequence: np.random.SeedSequence | None
) -> TreeModel:
    if seed_sequence is None:
        seed_sequence = np.random.SeedSequence()
    tree = TreeModel(root=grower.grow(seed_sequence), n_features=grower.n_features)
    logger.debug(
        f"Grew {type(grower).__name__} tree: {tree.n_leaves} leaves, depth {tree.depth}"
    )
    return tree
