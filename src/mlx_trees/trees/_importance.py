"""Feature importances of a fitted tree."""

import numpy as np

from mlx_trees.trees._tree_structure import Node


def _normalize(importances: np.ndarray) -> np.ndarray:
    total = importances.sum()
    if total > 0.0:
        importances /= total
    return importances


def impurity_importances(root: Node, n_features: int) -> np.ndarray:
    """Mean decrease in impurity, weighted by sample counts.

    Every internal node credits its feature with
    ``n * impurity - n_left * impurity_left - n_right * impurity_right``.
    The totals are divided by the number of root samples and normalized to
    sum to one. A tree without any positive decrease yields all zeros.

    Args:
        root: Root of the fitted tree.
        n_features: Number of features the tree was grown on.

    Returns:
        Importances of shape (n_features,).
    """
    importances = np.zeros(n_features, dtype=np.float64)

    def _visit(node: Node) -> None:
        if node.is_leaf:
            return
        _visit(node.left)
        _visit(node.right)
        importances[node.feature_id] += (
            node.n_samples * node.impurity
            - node.left.n_samples * node.left.impurity
            - node.right.n_samples * node.right.impurity
        )

    _visit(root)
    importances /= root.n_samples
    return _normalize(importances)


def split_count_importances(root: Node, n_features: int) -> np.ndarray:
    """Number of splits made on each feature, normalized to sum to one.

    Used for gradient trees, whose nodes carry no impurity.
    """
    importances = np.zeros(n_features, dtype=np.float64)
    stack = [root]
    while stack:
        node = stack.pop()
        if node.is_leaf:
            continue
        importances[node.feature_id] += 1.0
        stack.extend((node.left, node.right))
    return _normalize(importances)
