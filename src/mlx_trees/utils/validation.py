"""Parameter checks shared by the tree estimators."""

import numbers

from mlx_trees.exceptions import ParameterError


def _is_integer(value: object) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def check_float(name: str, value: object) -> None:
    """Raise ParameterError unless ``value`` is a real number."""
    if not isinstance(value, numbers.Real) or isinstance(value, bool):
        raise ParameterError(f"{name} must be a number, got {value!r}")


def check_non_negative_int(name: str, value: object, allow_none: bool = False) -> None:
    """Raise ParameterError unless ``value`` is an integer >= 0 (or None if allowed)."""
    if value is None and allow_none:
        return
    if not _is_integer(value):
        raise ParameterError(f"{name} must be an integer, got {value!r}")
    if value < 0:
        raise ParameterError(f"{name} must be non-negative, got {value}")


def check_positive_int(name: str, value: object) -> None:
    """Raise ParameterError unless ``value`` is an integer >= 1."""
    if not _is_integer(value):
        raise ParameterError(f"{name} must be an integer, got {value!r}")
    if value < 1:
        raise ParameterError(f"{name} must be at least 1, got {value}")


def check_non_negative_float(name: str, value: object) -> None:
    """Raise ParameterError unless ``value`` is a real number >= 0."""
    check_float(name, value)
    if value < 0:
        raise ParameterError(f"{name} must be non-negative, got {value}")


def check_tree_params(
    max_depth: object,
    max_leaf_nodes: object,
    min_samples_leaf: object,
    max_features: object,
    random_seed: object,
) -> None:
    """Validate the growth parameters common to every tree estimator.

    Raises:
        ParameterError: If any value is negative or not an integer.
    """
    check_non_negative_int("max_depth", max_depth, allow_none=True)
    check_non_negative_int("max_leaf_nodes", max_leaf_nodes, allow_none=True)
    check_positive_int("min_samples_leaf", min_samples_leaf)
    check_non_negative_int("max_features", max_features, allow_none=True)
    check_non_negative_int("random_seed", random_seed, allow_none=True)
