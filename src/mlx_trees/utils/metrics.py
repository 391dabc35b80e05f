"""Evaluation metrics for MLX Trees."""

import mlx.core as mx


def accuracy(y_true: mx.array, y_pred: mx.array) -> mx.array:
    """Compute classification accuracy.

    Args:
        y_true: Ground truth labels.
        y_pred: Predicted labels.

    Returns:
        Accuracy value.
    """
    return mx.mean(y_true == y_pred)


def r2_score(y_true: mx.array, y_pred: mx.array) -> mx.array:
    """Compute the coefficient of determination.

    Multi-output targets are scored per output and averaged uniformly.
    An output with constant ground truth scores 1.0 when predicted exactly
    and 0.0 otherwise.

    Args:
        y_true: Ground truth values of shape (n_samples,) or (n_samples, n_outputs).
        y_pred: Predicted values with the same shape.

    Returns:
        R^2 value.
    """
    y_true = y_true.reshape(y_true.shape[0], -1).astype(mx.float32)
    y_pred = y_pred.reshape(y_pred.shape[0], -1).astype(mx.float32)

    ss_res = mx.sum((y_true - y_pred) ** 2, axis=0)
    ss_tot = mx.sum((y_true - mx.mean(y_true, axis=0)) ** 2, axis=0)

    scores = mx.where(
        ss_tot > 0,
        1.0 - ss_res / mx.maximum(ss_tot, 1e-12),
        mx.where(ss_res > 0, 0.0, 1.0),
    )
    return mx.mean(scores)
