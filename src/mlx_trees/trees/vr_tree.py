"""Variable-Random tree estimators.

A Variable-Random tree draws, for every feature considered at a node, a
number in (0, 1]. If it is at most ``alpha`` the feature is searched
exhaustively as in a decision tree; otherwise the threshold is the midpoint
of two distinct feature values picked at random. ``alpha = 1`` gives a
decision tree and ``alpha = 0`` a fully random tree.

Reference:
    F. T. Liu, K. M. Ting, Y. Yu and Z. H. Zhou, "Spectrum of Variable-Random
    Trees", Journal of Artificial Intelligence Research, 32, pp. 355-384, 2008.
"""

from typing import Literal

from mlx_trees.trees._criterion import (
    DEFAULT_CLASSIFICATION_CRITERION,
    DEFAULT_REGRESSION_CRITERION,
)
from mlx_trees.trees._tree_builder import Splitter
from mlx_trees.trees.decision_tree import DecisionTreeClassifier, DecisionTreeRegressor
from mlx_trees.utils.validation import check_float


def _clamp_alpha(alpha: float) -> float:
    return min(max(float(alpha), 0.0), 1.0)


class VRTreeClassifier(DecisionTreeClassifier):
    """Variable-Random tree classifier.

    Args:
        criterion: Split criterion, "gini" (default) or "entropy".
        alpha: Probability of an exhaustive split search per feature.
            Values outside [0, 1] are clamped. Default is 0.5.
        max_depth: Maximum depth of the tree. None grows without depth limit.
        max_leaf_nodes: Maximum number of leaves. None for unlimited.
        min_samples_leaf: Minimum samples in a leaf node. Default is 1.
        max_features: Number of features drawn at each node. None uses all.
        random_seed: Seed for feature sampling and the random splits.

    Example:
        >>> from mlx_trees import VRTreeClassifier
        >>> model = VRTreeClassifier(alpha=0.3, max_depth=3, random_seed=1)
        >>> model.fit([[1.0], [2.0], [3.0], [4.0]], [0, 0, 1, 1])
        >>> model.predict([[1.5], [3.5]])
    """

    _splitter: Splitter = "variable"

    def __init__(
        self,
        criterion: Literal["gini", "entropy"] = DEFAULT_CLASSIFICATION_CRITERION,
        alpha: float = 0.5,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        self.alpha = alpha
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            max_leaf_nodes=max_leaf_nodes,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            random_seed=random_seed,
        )

    def _validate_params(self) -> None:
        check_float("alpha", self.alpha)
        super()._validate_params()

    def _split_options(self) -> dict:
        return {"splitter": self._splitter, "alpha": _clamp_alpha(self.alpha)}


class VRTreeRegressor(DecisionTreeRegressor):
    """Variable-Random tree regressor.

    Takes the parameters of DecisionTreeRegressor plus ``alpha``, the
    probability of an exhaustive split search per feature (default 0.5,
    clamped to [0, 1]).
    """

    _splitter: Splitter = "variable"

    def __init__(
        self,
        criterion: Literal["mse", "mae"] = DEFAULT_REGRESSION_CRITERION,
        alpha: float = 0.5,
        max_depth: int | None = None,
        max_leaf_nodes: int | None = None,
        min_samples_leaf: int = 1,
        max_features: int | None = None,
        random_seed: int | None = None,
    ) -> None:
        self.alpha = alpha
        super().__init__(
            criterion=criterion,
            max_depth=max_depth,
            max_leaf_nodes=max_leaf_nodes,
            min_samples_leaf=min_samples_leaf,
            max_features=max_features,
            random_seed=random_seed,
        )

    def _validate_params(self) -> None:
        check_float("alpha", self.alpha)
        super()._validate_params()

    def _split_options(self) -> dict:
        return {"splitter": self._splitter, "alpha": _clamp_alpha(self.alpha)}
