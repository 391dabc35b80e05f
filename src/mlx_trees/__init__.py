"""MLX Trees - decision tree induction with exact split search."""

from mlx_trees.base import BaseEstimator
from mlx_trees.exceptions import NotFittedError, ParameterError, ShapeError
from mlx_trees.trees import (
    DecisionTreeClassifier,
    DecisionTreeRegressor,
    ExtraTreeClassifier,
    ExtraTreeRegressor,
    GradientTreeRegressor,
    VRTreeClassifier,
    VRTreeRegressor,
)

__version__ = "1.0.0"
__all__ = [
    "BaseEstimator",
    "DecisionTreeClassifier",
    "DecisionTreeRegressor",
    "ExtraTreeClassifier",
    "ExtraTreeRegressor",
    "GradientTreeRegressor",
    "NotFittedError",
    "ParameterError",
    "ShapeError",
    "VRTreeClassifier",
    "VRTreeRegressor",
    "__version__",
]
