"""Utilities for MLX Trees."""

from mlx_trees.utils.data import to_numpy_array
from mlx_trees.utils.metrics import accuracy, r2_score

__all__ = ["to_numpy_array", "accuracy", "r2_score"]
