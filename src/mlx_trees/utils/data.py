"""Data utilities for MLX Trees."""

import mlx.core as mx
import numpy as np

from mlx_trees.exceptions import ShapeError


def to_numpy_array(
    data: np.ndarray | mx.array | list, dtype: type | None = None
) -> np.ndarray:
    """Convert input data to a numpy array on the host.

    Args:
        data: Input data as numpy array, MLX array, or list.
        dtype: Optional dtype for the result.

    Returns:
        Numpy array.

    Raises:
        TypeError: If input type is not supported.
    """
    if isinstance(data, mx.array):
        return np.asarray(np.array(data), dtype=dtype)
    if isinstance(data, (np.ndarray, list, tuple)):
        return np.asarray(data, dtype=dtype)
    raise TypeError(f"Unsupported data type: {type(data)}")


def check_sample_array(X: np.ndarray | mx.array | list) -> np.ndarray:
    """Convert features to a float64 matrix of shape (n_samples, n_features).

    One-dimensional input is treated as a single feature column.

    Raises:
        ShapeError: If the array is empty or has more than two dimensions.
    """
    X = to_numpy_array(X, dtype=np.float64)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.ndim != 2:
        raise ShapeError(f"Expected a 2D feature array, got {X.ndim} dimensions")
    if X.shape[0] == 0 or X.shape[1] == 0:
        raise ShapeError(f"Feature array must not be empty, got shape {X.shape}")
    return X


def check_same_length(n_samples: int, **arrays: np.ndarray) -> None:
    """Check that every array has ``n_samples`` rows.

    Raises:
        ShapeError: On the first array whose row count differs.
    """
    for name, array in arrays.items():
        if array.shape[0] != n_samples:
            raise ShapeError(
                f"{name} has {array.shape[0]} rows but X has {n_samples} samples"
            )
