"""Exact split search over one feature column.

Every finder receives the feature values of the samples in a node and the
matching targets. Samples are sorted once by feature value; the scan then
walks the distinct values from smallest to largest, moving all samples that
share the current value from the right partition to the left one and
updating the sufficient statistics in place. Each boundary between two
consecutive distinct values is a candidate threshold ``0.5 * (curr + next)``.

The gain baseline is zero, so a node for which no boundary improves on it
becomes a leaf. Ties keep the first boundary found.

Randomized trees score a single drawn threshold per feature instead: a
uniform draw over the value range for extra trees, and for variable-random
trees either the exhaustive search or the midpoint of two distinct values.
"""

from typing import NamedTuple

import numpy as np
from numba import njit

from mlx_trees.trees._criterion import (
    classification_impurity,
    classification_node_impurity,
    gradient_gain,
    regression_impurity,
    regression_node_impurity,
)


class SplitResult(NamedTuple):
    """Best split found on one feature.

    Attributes:
        threshold: Samples with ``x <= threshold`` go left.
        gain: Impurity decrease (or second-order gain) of the split.
        left_impurity: Impurity of the left partition.
        right_impurity: Impurity of the right partition.
        is_valid: Whether any candidate improved on zero gain.
    """

    threshold: float
    gain: float
    left_impurity: float
    right_impurity: float
    is_valid: bool


NO_SPLIT = SplitResult(
    threshold=0.0, gain=0.0, left_impurity=0.0, right_impurity=0.0, is_valid=False
)


# =============================================================================
# Linear scans (JIT compiled)
# =============================================================================


@njit(cache=True)
def _scan_classification(
    values: np.ndarray,
    labels: np.ndarray,
    n_classes: int,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int,
) -> tuple[float, float, float, float, bool]:
    """Scan sorted ``values`` keeping class histograms for both partitions."""
    n_elements = values.shape[0]
    left_hist = np.zeros(n_classes, dtype=np.float64)
    right_hist = np.zeros(n_classes, dtype=np.float64)
    for i in range(n_elements):
        right_hist[labels[i]] += 1.0

    best_threshold = values[0]
    best_gain = 0.0
    best_left = 0.0
    best_right = whole_impurity
    found = False

    n_left = 0
    pos = 0
    while pos < n_elements:
        curr = values[pos]
        while pos < n_elements and values[pos] == curr:
            label = labels[pos]
            left_hist[label] += 1.0
            right_hist[label] -= 1.0
            n_left += 1
            pos += 1
        if pos == n_elements:
            break
        n_right = n_elements - n_left
        if n_right < min_samples_leaf:
            break
        if n_left < min_samples_leaf:
            continue

        left_impurity = classification_impurity(criterion, left_hist, n_left)
        right_impurity = classification_impurity(criterion, right_hist, n_right)
        gain = whole_impurity - (
            n_left * left_impurity + n_right * right_impurity
        ) / n_elements

        if gain > best_gain:
            best_threshold = 0.5 * (curr + values[pos])
            best_gain = gain
            best_left = left_impurity
            best_right = right_impurity
            found = True

    return best_threshold, best_gain, best_left, best_right, found


@njit(cache=True)
def _scan_regression(
    values: np.ndarray,
    targets: np.ndarray,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int,
) -> tuple[float, float, float, float, bool]:
    """Scan sorted ``values`` keeping per-output sums for both partitions."""
    n_elements, n_outputs = targets.shape
    left_sum = np.zeros(n_outputs, dtype=np.float64)
    left_sq = np.zeros(n_outputs, dtype=np.float64)
    right_sum = np.zeros(n_outputs, dtype=np.float64)
    right_sq = np.zeros(n_outputs, dtype=np.float64)
    for i in range(n_elements):
        for j in range(n_outputs):
            right_sum[j] += targets[i, j]
            right_sq[j] += targets[i, j] * targets[i, j]

    best_threshold = values[0]
    best_gain = 0.0
    best_left = 0.0
    best_right = whole_impurity
    found = False

    n_left = 0
    pos = 0
    while pos < n_elements:
        curr = values[pos]
        while pos < n_elements and values[pos] == curr:
            for j in range(n_outputs):
                t = targets[pos, j]
                left_sum[j] += t
                left_sq[j] += t * t
                right_sum[j] -= t
                right_sq[j] -= t * t
            n_left += 1
            pos += 1
        if pos == n_elements:
            break
        n_right = n_elements - n_left
        if n_right < min_samples_leaf:
            break
        if n_left < min_samples_leaf:
            continue

        left_impurity = regression_impurity(
            criterion, targets, 0, n_left, left_sum, left_sq
        )
        right_impurity = regression_impurity(
            criterion, targets, n_left, n_elements, right_sum, right_sq
        )
        gain = whole_impurity - (
            n_left * left_impurity + n_right * right_impurity
        ) / n_elements

        if gain > best_gain:
            best_threshold = 0.5 * (curr + values[pos])
            best_gain = gain
            best_left = left_impurity
            best_right = right_impurity
            found = True

    return best_threshold, best_gain, best_left, best_right, found


@njit(cache=True)
def _scan_gradient(
    values: np.ndarray,
    gradients: np.ndarray,
    hessians: np.ndarray,
    sum_grad: float,
    sum_hess: float,
    reg_lambda: float,
    min_samples_leaf: int,
) -> tuple[float, float, bool]:
    """Scan sorted ``values`` accumulating left gradient and Hessian sums."""
    n_elements = values.shape[0]
    left_grad = 0.0
    left_hess = 0.0

    best_threshold = values[0]
    best_gain = 0.0
    found = False

    n_left = 0
    pos = 0
    while pos < n_elements:
        curr = values[pos]
        while pos < n_elements and values[pos] == curr:
            left_grad += gradients[pos]
            left_hess += hessians[pos]
            n_left += 1
            pos += 1
        if pos == n_elements:
            break
        if n_elements - n_left < min_samples_leaf:
            break
        if n_left < min_samples_leaf:
            continue
        # Zero denominators make the gain undefined.
        if left_hess + reg_lambda <= 0.0 or sum_hess - left_hess + reg_lambda <= 0.0:
            continue

        gain = gradient_gain(left_grad, left_hess, sum_grad, sum_hess, reg_lambda)

        if gain > best_gain:
            best_threshold = 0.5 * (curr + values[pos])
            best_gain = gain
            found = True

    return best_threshold, best_gain, found


# =============================================================================
# Public finders
# =============================================================================


def find_best_split_classification(
    values: np.ndarray,
    labels: np.ndarray,
    n_classes: int,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Find the best threshold on one feature for class labels.

    Args:
        values: Feature values of the node's samples, shape (n_samples,).
        labels: Class indices in [0, n_classes), shape (n_samples,).
        n_classes: Number of classes.
        criterion: Criterion tag (gini or entropy).
        whole_impurity: Impurity of the node being split.
        min_samples_leaf: Minimum samples on each side of a candidate.

    Returns:
        SplitResult for the best boundary, or NO_SPLIT.
    """
    order = np.argsort(values, kind="stable")
    threshold, gain, left, right, found = _scan_classification(
        values[order],
        labels[order],
        n_classes,
        int(criterion),
        whole_impurity,
        min_samples_leaf,
    )
    if not found:
        return NO_SPLIT
    return SplitResult(threshold, gain, left, right, True)


def find_best_split_regression(
    values: np.ndarray,
    targets: np.ndarray,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Find the best threshold on one feature for real-valued targets.

    Args:
        values: Feature values of the node's samples, shape (n_samples,).
        targets: Targets of shape (n_samples, n_outputs).
        criterion: Criterion tag (mse or mae).
        whole_impurity: Impurity of the node being split.
        min_samples_leaf: Minimum samples on each side of a candidate.

    Returns:
        SplitResult for the best boundary, or NO_SPLIT.
    """
    order = np.argsort(values, kind="stable")
    # Impurities are shift invariant; centring avoids cancellation in the sums.
    centred = targets[order] - targets.mean(axis=0)
    threshold, gain, left, right, found = _scan_regression(
        values[order],
        np.ascontiguousarray(centred),
        int(criterion),
        whole_impurity,
        min_samples_leaf,
    )
    if not found:
        return NO_SPLIT
    return SplitResult(threshold, gain, left, right, True)


def find_best_split_gradient(
    values: np.ndarray,
    gradients: np.ndarray,
    hessians: np.ndarray,
    sum_grad: float,
    sum_hess: float,
    reg_lambda: float,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Find the threshold with the largest second-order gain on one feature.

    Gradient trees carry no impurity, so both impurity fields are zero.

    Args:
        values: Feature values of the node's samples, shape (n_samples,).
        gradients: First-order loss gradients, shape (n_samples,).
        hessians: Second-order loss gradients, shape (n_samples,).
        sum_grad: Sum of ``gradients`` over the node.
        sum_hess: Sum of ``hessians`` over the node.
        reg_lambda: L2 regularization on leaf weights.
        min_samples_leaf: Minimum samples on each side of a candidate.

    Returns:
        SplitResult for the best boundary, or NO_SPLIT.
    """
    order = np.argsort(values, kind="stable")
    threshold, gain, found = _scan_gradient(
        values[order],
        gradients[order],
        hessians[order],
        sum_grad,
        sum_hess,
        reg_lambda,
        min_samples_leaf,
    )
    if not found:
        return NO_SPLIT
    return SplitResult(threshold, gain, 0.0, 0.0, True)


# =============================================================================
# Randomized splits
# =============================================================================


def _draw_threshold(values: np.ndarray, rng: np.random.Generator) -> float | None:
    """Uniform threshold between the feature's min and max, None if constant."""
    low = float(values.min())
    high = float(values.max())
    if low == high:
        return None
    return float(rng.uniform(low, high))


def _draw_midpoint(values: np.ndarray, rng: np.random.Generator) -> float | None:
    """Midpoint of two distinct values drawn without replacement."""
    unique_values = np.unique(values)
    if unique_values.shape[0] < 2:
        return None
    first, second = rng.choice(unique_values, size=2, replace=False)
    return 0.5 * (float(first) + float(second))


def _use_exhaustive(alpha: float, rng: np.random.Generator) -> bool:
    # 1 - U[0, 1) lies in (0, 1], so alpha = 1 always searches exhaustively.
    return 1.0 - rng.random() <= alpha


def _score_classification_threshold(
    threshold: float | None,
    values: np.ndarray,
    labels: np.ndarray,
    n_classes: int,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int,
) -> SplitResult:
    if threshold is None:
        return NO_SPLIT

    goes_left = values <= threshold
    n_left = int(np.count_nonzero(goes_left))
    n_right = values.shape[0] - n_left
    if n_left < min_samples_leaf or n_right < min_samples_leaf:
        return NO_SPLIT

    left_impurity = classification_node_impurity(
        criterion, labels[goes_left], n_classes
    )
    right_impurity = classification_node_impurity(
        criterion, labels[~goes_left], n_classes
    )
    gain = whole_impurity - (
        n_left * left_impurity + n_right * right_impurity
    ) / values.shape[0]
    if gain <= 0.0:
        return NO_SPLIT
    return SplitResult(threshold, gain, left_impurity, right_impurity, True)


def _score_regression_threshold(
    threshold: float | None,
    values: np.ndarray,
    targets: np.ndarray,
    criterion: int,
    whole_impurity: float,
    min_samples_leaf: int,
) -> SplitResult:
    if threshold is None:
        return NO_SPLIT

    goes_left = values <= threshold
    n_left = int(np.count_nonzero(goes_left))
    n_right = values.shape[0] - n_left
    if n_left < min_samples_leaf or n_right < min_samples_leaf:
        return NO_SPLIT

    left_impurity = regression_node_impurity(
        criterion, np.ascontiguousarray(targets[goes_left])
    )
    right_impurity = regression_node_impurity(
        criterion, np.ascontiguousarray(targets[~goes_left])
    )
    gain = whole_impurity - (
        n_left * left_impurity + n_right * right_impurity
    ) / values.shape[0]
    if gain <= 0.0:
        return NO_SPLIT
    return SplitResult(threshold, gain, left_impurity, right_impurity, True)


def random_split_classification(
    values: np.ndarray,
    labels: np.ndarray,
    n_classes: int,
    criterion: int,
    whole_impurity: float,
    rng: np.random.Generator,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Score one randomly drawn threshold for class labels."""
    return _score_classification_threshold(
        _draw_threshold(values, rng),
        values,
        labels,
        n_classes,
        criterion,
        whole_impurity,
        min_samples_leaf,
    )


def random_split_regression(
    values: np.ndarray,
    targets: np.ndarray,
    criterion: int,
    whole_impurity: float,
    rng: np.random.Generator,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Score one randomly drawn threshold for real-valued targets."""
    return _score_regression_threshold(
        _draw_threshold(values, rng),
        values,
        targets,
        criterion,
        whole_impurity,
        min_samples_leaf,
    )


def variable_split_classification(
    values: np.ndarray,
    labels: np.ndarray,
    n_classes: int,
    criterion: int,
    whole_impurity: float,
    alpha: float,
    rng: np.random.Generator,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Variable-random split for class labels.

    With probability ``alpha`` the feature is searched exhaustively;
    otherwise two distinct values are drawn and split at their midpoint.

    Args:
        values: Feature values of the node's samples, shape (n_samples,).
        labels: Class indices in [0, n_classes), shape (n_samples,).
        n_classes: Number of classes.
        criterion: Criterion tag (gini or entropy).
        whole_impurity: Impurity of the node being split.
        alpha: Probability of the exhaustive search, in [0, 1].
        rng: Generator of the node being split.
        min_samples_leaf: Minimum samples on each side of a candidate.

    Returns:
        SplitResult for the chosen threshold, or NO_SPLIT.
    """
    if _use_exhaustive(alpha, rng):
        return find_best_split_classification(
            values, labels, n_classes, criterion, whole_impurity, min_samples_leaf
        )
    return _score_classification_threshold(
        _draw_midpoint(values, rng),
        values,
        labels,
        n_classes,
        criterion,
        whole_impurity,
        min_samples_leaf,
    )


def variable_split_regression(
    values: np.ndarray,
    targets: np.ndarray,
    criterion: int,
    whole_impurity: float,
    alpha: float,
    rng: np.random.Generator,
    min_samples_leaf: int = 1,
) -> SplitResult:
    """Variable-random split for real-valued targets, see the classifier version."""
    if _use_exhaustive(alpha, rng):
        return find_best_split_regression(
            values, targets, criterion, whole_impurity, min_samples_leaf
        )
    return _score_regression_threshold(
        _draw_midpoint(values, rng),
        values,
        targets,
        criterion,
        whole_impurity,
        min_samples_leaf,
    )
