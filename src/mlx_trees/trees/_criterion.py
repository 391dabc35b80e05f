"""Impurity criteria and their sufficient statistics.

Criteria are resolved once per fit into an integer tag. The JIT-compiled
kernels below switch on that tag instead of comparing names on every call.

Classification impurities are computed from a class histogram, regression
impurities from per-output sum and sum-of-squares vectors, so the split scan
can update them in O(1) per sample. The scan works on targets centred on the
node mean, which keeps ``sq_sum / n - mean**2`` well conditioned.
"""

import logging
import math
from enum import IntEnum
from typing import Literal

import numpy as np
from numba import njit

logger = logging.getLogger(__name__)

GINI: int = 0
ENTROPY: int = 1
MSE: int = 2
MAE: int = 3


class Criterion(IntEnum):
    """Impurity measure used to score candidate splits."""

    GINI = GINI
    ENTROPY = ENTROPY
    MSE = MSE
    MAE = MAE


DEFAULT_CLASSIFICATION_CRITERION: str = "gini"
DEFAULT_REGRESSION_CRITERION: str = "mse"

_CRITERIA: dict[str, dict[str, Criterion]] = {
    "classification": {"gini": Criterion.GINI, "entropy": Criterion.ENTROPY},
    "regression": {"mse": Criterion.MSE, "mae": Criterion.MAE},
}
_DEFAULTS: dict[str, Criterion] = {
    "classification": Criterion.GINI,
    "regression": Criterion.MSE,
}


def resolve_criterion(
    name: str, task: Literal["classification", "regression"]
) -> Criterion:
    """Map a criterion name to its tag.

    Unknown names fall back to the task default (gini or mse).

    Args:
        name: Criterion name as given to the estimator.
        task: "classification" or "regression".

    Returns:
        The resolved Criterion.
    """
    criterion = _CRITERIA[task].get(name)
    if criterion is None:
        criterion = _DEFAULTS[task]
        logger.debug(
            f"Unknown {task} criterion {name!r}, using {criterion.name.lower()}"
        )
    return criterion


# =============================================================================
# Classification
# =============================================================================


@njit(cache=True)
def gini_impurity(histogram: np.ndarray, n_elements: int) -> float:
    """Gini coefficient ``1 - sum(p_c^2)`` of a class histogram."""
    gini = 0.0
    for c in range(histogram.shape[0]):
        p = histogram[c] / n_elements
        gini += p * p
    return 1.0 - gini


@njit(cache=True)
def entropy_impurity(histogram: np.ndarray, n_elements: int) -> float:
    """Entropy variant ``-sum(p_c * ln(p_c + 1))`` of a class histogram.

    The ``+ 1`` inside the logarithm keeps the measure finite for empty
    classes. It is concave in each p_c, so split gains stay non-negative,
    but a pure node scores ``-ln 2`` rather than 0.
    """
    entropy = 0.0
    for c in range(histogram.shape[0]):
        p = histogram[c] / n_elements
        entropy += p * math.log(p + 1.0)
    return -entropy


@njit(cache=True)
def classification_impurity(
    criterion: int, histogram: np.ndarray, n_elements: int
) -> float:
    """Dispatch to the classification impurity selected by ``criterion``."""
    if criterion == ENTROPY:
        return entropy_impurity(histogram, n_elements)
    return gini_impurity(histogram, n_elements)


@njit(cache=True)
def class_histogram(labels: np.ndarray, n_classes: int) -> np.ndarray:
    """Count samples per class index."""
    histogram = np.zeros(n_classes, dtype=np.float64)
    for i in range(labels.shape[0]):
        histogram[labels[i]] += 1.0
    return histogram


@njit(cache=True)
def classification_node_impurity(
    criterion: int, labels: np.ndarray, n_classes: int
) -> float:
    """Impurity of a set of class indices, computed from scratch."""
    histogram = class_histogram(labels, n_classes)
    return classification_impurity(criterion, histogram, labels.shape[0])


# =============================================================================
# Regression
# =============================================================================


@njit(cache=True)
def mse_from_sums(
    sum_vec: np.ndarray, sq_sum_vec: np.ndarray, n_elements: int
) -> float:
    """Mean squared distance to the mean vector, averaged over outputs."""
    n_outputs = sum_vec.shape[0]
    total = 0.0
    for j in range(n_outputs):
        mean = sum_vec[j] / n_elements
        var = sq_sum_vec[j] / n_elements - mean * mean
        if var > 0.0:
            total += var
    return total / n_outputs


@njit(cache=True)
def mae_from_rows(
    targets: np.ndarray, start: int, stop: int, sum_vec: np.ndarray
) -> float:
    """Mean absolute distance of ``targets[start:stop]`` to their mean vector.

    Absolute deviations have no incremental form, so the rows are rescanned.
    """
    n_elements = stop - start
    n_outputs = targets.shape[1]
    total = 0.0
    for i in range(start, stop):
        for j in range(n_outputs):
            total += abs(targets[i, j] - sum_vec[j] / n_elements)
    return total / n_outputs / n_elements


@njit(cache=True)
def regression_impurity(
    criterion: int,
    targets: np.ndarray,
    start: int,
    stop: int,
    sum_vec: np.ndarray,
    sq_sum_vec: np.ndarray,
) -> float:
    """Dispatch to the regression impurity selected by ``criterion``."""
    if criterion == MAE:
        return mae_from_rows(targets, start, stop, sum_vec)
    return mse_from_sums(sum_vec, sq_sum_vec, stop - start)


@njit(cache=True)
def regression_node_impurity(criterion: int, targets: np.ndarray) -> float:
    """Impurity of a (n_samples, n_outputs) target block, computed from scratch.

    Squared deviations are summed around the mean in a second pass, so large
    target offsets do not cancel.
    """
    n_elements, n_outputs = targets.shape
    sum_vec = np.zeros(n_outputs, dtype=np.float64)
    for i in range(n_elements):
        for j in range(n_outputs):
            sum_vec[j] += targets[i, j]
    if criterion == MAE:
        return mae_from_rows(targets, 0, n_elements, sum_vec)

    total = 0.0
    for j in range(n_outputs):
        mean = sum_vec[j] / n_elements
        for i in range(n_elements):
            diff = targets[i, j] - mean
            total += diff * diff
    return total / n_elements / n_outputs


# =============================================================================
# Gradient boosting
# =============================================================================


@njit(cache=True)
def gradient_gain(
    left_grad: float,
    left_hess: float,
    sum_grad: float,
    sum_hess: float,
    reg_lambda: float,
) -> float:
    """Second-order split gain ``L^2/(H_L+l) + R^2/(H_R+l) - S^2/(H_S+l)``."""
    right_grad = sum_grad - left_grad
    right_hess = sum_hess - left_hess
    return (
        (left_grad * left_grad) / (left_hess + reg_lambda)
        + (right_grad * right_grad) / (right_hess + reg_lambda)
        - (sum_grad * sum_grad) / (sum_hess + reg_lambda)
    )
