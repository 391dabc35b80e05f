"""Tree data structures.

A fitted tree is kept in two equivalent forms:

- ``Node``: the recursive node graph produced by the grower. Each internal
  node owns exactly two children; leaves carry a dense ``leaf_id`` and their
  prediction payload.
- ``TreeArrays``: the same tree flattened in pre-order into parallel arrays,
  which enables vectorized prediction across all samples with index-based
  navigation (no pointer chasing).

The recursive form is also the persisted layout (see ``TreeModel.to_dict``).
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np


@dataclass
class Node:
    """A node of an induced binary tree.

    Attributes:
        depth: Depth of this node (root = 0).
        impurity: Impurity of the samples reaching this node.
        n_samples: Number of training samples reaching this node.
        is_leaf: Whether this node is a leaf.
        feature_id: Feature compared at an internal node.
        threshold: Samples with ``x[feature_id] <= threshold`` go left.
        left: Left child of an internal node.
        right: Right child of an internal node.
        leaf_id: Dense leaf index, assigned in construction order.
        class_distribution: Class probabilities of a classification leaf.
        mean_value: Per-output mean of a regression leaf.
        leaf_weight: Newton-step weight of a gradient tree leaf.
    """

    depth: int = 0
    impurity: float = 0.0
    n_samples: int = 0
    is_leaf: bool = False
    feature_id: int = -1
    threshold: float = 0.0
    left: "Node | None" = None
    right: "Node | None" = None
    leaf_id: int = -1
    class_distribution: np.ndarray | None = None
    mean_value: np.ndarray | None = None
    leaf_weight: float | None = None

    def payload(self) -> np.ndarray | float | None:
        """Prediction payload of a leaf (None for internal nodes)."""
        if self.class_distribution is not None:
            return self.class_distribution
        if self.mean_value is not None:
            return self.mean_value
        return self.leaf_weight

    def iter_leaves(self):
        """Yield the leaves under this node from left to right."""
        if self.is_leaf:
            yield self
            return
        yield from self.left.iter_leaves()
        yield from self.right.iter_leaves()

    def to_dict(self) -> dict[str, Any]:
        """Nested dict mirroring the node fields."""

        def _as_list(value: np.ndarray | None) -> list[float] | None:
            return None if value is None else [float(v) for v in value]

        leaf_weight = None if self.leaf_weight is None else float(self.leaf_weight)

        return {
            "depth": int(self.depth),
            "impurity": float(self.impurity),
            "n_samples": int(self.n_samples),
            "is_leaf": bool(self.is_leaf),
            "leaf_id": int(self.leaf_id),
            "class_distribution": _as_list(self.class_distribution),
            "mean_value": _as_list(self.mean_value),
            "leaf_weight": leaf_weight,
            "feature_id": int(self.feature_id),
            "threshold": float(self.threshold),
            "left": None if self.left is None else self.left.to_dict(),
            "right": None if self.right is None else self.right.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Node":
        """Rebuild a node graph from ``to_dict`` output."""

        def _as_array(value: list[float] | None) -> np.ndarray | None:
            return None if value is None else np.asarray(value, dtype=np.float64)

        return cls(
            depth=data["depth"],
            impurity=data["impurity"],
            n_samples=data["n_samples"],
            is_leaf=data["is_leaf"],
            feature_id=data["feature_id"],
            threshold=data["threshold"],
            left=None if data["left"] is None else cls.from_dict(data["left"]),
            right=None if data["right"] is None else cls.from_dict(data["right"]),
            leaf_id=data["leaf_id"],
            class_distribution=_as_array(data["class_distribution"]),
            mean_value=_as_array(data["mean_value"]),
            leaf_weight=data["leaf_weight"],
        )


@dataclass
class TreeArrays:
    """Tree stored as parallel arrays in pre-order (root = 0).

    Attributes:
        feature_indices: Which feature to split on (-1 for leaf nodes).
        thresholds: Split threshold values.
        left_children: Index of left child (-1 for leaf nodes).
        right_children: Index of right child (-1 for leaf nodes).
        leaf_ids: Leaf index for leaf nodes (-1 for internal nodes).
        is_leaf: Boolean mask indicating leaf nodes.
        n_nodes: Number of nodes in the tree.
        max_depth: Depth of the deepest leaf.
    """

    feature_indices: np.ndarray  # (n_nodes,) int64
    thresholds: np.ndarray  # (n_nodes,) float64
    left_children: np.ndarray  # (n_nodes,) int64
    right_children: np.ndarray  # (n_nodes,) int64
    leaf_ids: np.ndarray  # (n_nodes,) int64
    is_leaf: np.ndarray  # (n_nodes,) bool
    n_nodes: int = 0
    max_depth: int = 0


def flatten_tree(root: Node) -> TreeArrays:
    """Flatten a node graph into pre-order parallel arrays.

    Args:
        root: Root of a fully grown tree.

    Returns:
        TreeArrays describing the same tree.
    """
    feature_indices: list[int] = []
    thresholds: list[float] = []
    left_children: list[int] = []
    right_children: list[int] = []
    leaf_ids: list[int] = []
    is_leaf: list[bool] = []
    max_depth = 0

    stack: list[tuple[Node, int, bool]] = [(root, -1, True)]
    while stack:
        node, parent, goes_left = stack.pop()
        idx = len(feature_indices)
        if parent >= 0:
            if goes_left:
                left_children[parent] = idx
            else:
                right_children[parent] = idx

        max_depth = max(max_depth, node.depth)
        is_leaf.append(node.is_leaf)
        left_children.append(-1)
        right_children.append(-1)
        if node.is_leaf:
            feature_indices.append(-1)
            thresholds.append(0.0)
            leaf_ids.append(node.leaf_id)
        else:
            feature_indices.append(node.feature_id)
            thresholds.append(node.threshold)
            leaf_ids.append(-1)
            # Right is pushed first so the left subtree is numbered first.
            stack.append((node.right, idx, False))
            stack.append((node.left, idx, True))

    return TreeArrays(
        feature_indices=np.asarray(feature_indices, dtype=np.int64),
        thresholds=np.asarray(thresholds, dtype=np.float64),
        left_children=np.asarray(left_children, dtype=np.int64),
        right_children=np.asarray(right_children, dtype=np.int64),
        leaf_ids=np.asarray(leaf_ids, dtype=np.int64),
        is_leaf=np.asarray(is_leaf, dtype=bool),
        n_nodes=len(feature_indices),
        max_depth=max_depth,
    )


def collect_leaf_payloads(root: Node) -> np.ndarray:
    """Stack leaf payloads in ``leaf_id`` order.

    Returns:
        Array of shape (n_leaves,) for scalar payloads or
        (n_leaves, payload_size) for vector payloads.
    """
    leaves = sorted(root.iter_leaves(), key=lambda leaf: leaf.leaf_id)
    return np.asarray([leaf.payload() for leaf in leaves], dtype=np.float64)


@dataclass
class TreeModel:
    """A fitted tree: node graph, leaf payload table and flat arrays.

    Attributes:
        root: Root node.
        n_features: Number of features the tree was grown on.
        leaf_payloads: Payload of each leaf, indexed by leaf id.
        arrays: Pre-order array form used for prediction.
    """

    root: Node
    n_features: int
    leaf_payloads: np.ndarray = field(init=False)
    arrays: TreeArrays = field(init=False)

    def __post_init__(self) -> None:
        self.leaf_payloads = collect_leaf_payloads(self.root)
        self.arrays = flatten_tree(self.root)

    @property
    def n_leaves(self) -> int:
        return int(self.leaf_payloads.shape[0])

    @property
    def depth(self) -> int:
        return self.arrays.max_depth

    def set_leaf_weights(self, weights: np.ndarray) -> None:
        """Replace the scalar leaf weights of a gradient tree.

        Args:
            weights: New weights indexed by leaf id, shape (n_leaves,).

        Raises:
            ValueError: If the tree has vector payloads or the size differs.
        """
        weights = np.asarray(weights, dtype=np.float64)
        if self.leaf_payloads.ndim != 1:
            raise ValueError("Only trees with scalar leaf weights can be reset")
        if weights.shape != self.leaf_payloads.shape:
            raise ValueError(
                f"Expected {self.n_leaves} leaf weights, got shape {weights.shape}"
            )
        for leaf in self.root.iter_leaves():
            leaf.leaf_weight = float(weights[leaf.leaf_id])
        self.leaf_payloads = weights.copy()

    def to_dict(self) -> dict[str, Any]:
        """Serialize as a recursively nested record."""
        return {"n_features": self.n_features, "root": self.root.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TreeModel":
        """Rebuild a tree from ``to_dict`` output."""
        return cls(root=Node.from_dict(data["root"]), n_features=data["n_features"])
