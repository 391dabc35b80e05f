"""Tree implementations for MLX Trees.

Decision trees, extremely randomized trees, variable-random trees and the
gradient tree used by gradient boosting, all grown by the same recursive
builder.
"""

from mlx_trees.trees._tree_structure import Node, TreeModel
from mlx_trees.trees.decision_tree import (
    DecisionTreeClassifier,
    DecisionTreeRegressor,
)
from mlx_trees.trees.extra_tree import ExtraTreeClassifier, ExtraTreeRegressor
from mlx_trees.trees.gradient_tree import GradientTreeRegressor
from mlx_trees.trees.vr_tree import VRTreeClassifier, VRTreeRegressor

__all__ = [
    "DecisionTreeClassifier",
    "DecisionTreeRegressor",
    "ExtraTreeClassifier",
    "ExtraTreeRegressor",
    "GradientTreeRegressor",
    "Node",
    "TreeModel",
    "VRTreeClassifier",
    "VRTreeRegressor",
]
