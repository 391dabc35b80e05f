"""Vectorized prediction functions for fitted trees.

All samples are traversed through the tree simultaneously, one depth level
per iteration, using gathers on the flat ``TreeArrays`` form. Traversal runs
on float64 host arrays so that the ``<=`` comparisons reproduce the partition
made while growing the tree exactly.
"""

import numpy as np

from mlx_trees.trees._tree_structure import TreeArrays


def apply_tree(tree: TreeArrays, X: np.ndarray) -> np.ndarray:
    """Return the id of the leaf each sample reaches.

    Args:
        tree: Flattened tree.
        X: Features of shape (n_samples, n_features), float64.

    Returns:
        Leaf ids of shape (n_samples,), int64.
    """
    n_samples = X.shape[0]

    # All samples start at root (node 0)
    current_nodes = np.zeros((n_samples,), dtype=np.int64)
    sample_indices = np.arange(n_samples)

    for _ in range(tree.max_depth):
        is_leaf = tree.is_leaf[current_nodes]
        if is_leaf.all():
            break

        # Leaf nodes store feature -1; any valid column works for them
        safe_features = np.maximum(tree.feature_indices[current_nodes], 0)
        feature_values = X[sample_indices, safe_features]

        goes_left = feature_values <= tree.thresholds[current_nodes]
        next_nodes = np.where(
            goes_left,
            tree.left_children[current_nodes],
            tree.right_children[current_nodes],
        )

        # Stay at leaf if already there
        current_nodes = np.where(is_leaf, current_nodes, next_nodes)

    return tree.leaf_ids[current_nodes]


def lookup_leaf_payloads(leaf_payloads: np.ndarray, leaf_ids: np.ndarray) -> np.ndarray:
    """Gather the payload of each sample's leaf.

    Args:
        leaf_payloads: Payload table of shape (n_leaves,) or (n_leaves, k).
        leaf_ids: Leaf id per sample, shape (n_samples,).

    Returns:
        Payloads of shape (n_samples,) or (n_samples, k).
    """
    return leaf_payloads[leaf_ids]
