"""Exceptions raised by MLX Trees estimators."""


class ParameterError(ValueError):
    """A constructor parameter has an invalid type or value."""


class ShapeError(ValueError):
    """Input arrays do not have the expected shapes."""


class NotFittedError(ValueError):
    """An estimator was queried before ``fit`` was called."""
