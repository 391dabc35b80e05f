"""Extremely randomized tree estimators.

Extra trees grow like decision trees, except that each sampled feature gets
a single threshold drawn uniformly between its minimum and maximum in the
node instead of an exhaustive threshold search.

Reference:
    P. Geurts, D. Ernst and L. Wehenkel, "Extremely randomized trees",
    Machine Learning, 63(1), pp. 3-42, 2006.
"""

from mlx_trees.trees._tree_builder import Splitter
from mlx_trees.trees.decision_tree import DecisionTreeClassifier, DecisionTreeRegressor


class ExtraTreeClassifier(DecisionTreeClassifier):
    """Extremely randomized tree classifier.

    Takes the same parameters and exposes the same attributes as
    DecisionTreeClassifier. ``random_seed`` also drives the threshold draws.

    Example:
        >>> from mlx_trees import ExtraTreeClassifier
        >>> model = ExtraTreeClassifier(max_depth=3, random_seed=1)
        >>> model.fit([[1.0], [2.0], [3.0], [4.0]], [0, 0, 1, 1])
        >>> model.predict([[1.5], [3.5]])
    """

    _splitter: Splitter = "random"


class ExtraTreeRegressor(DecisionTreeRegressor):
    """Extremely randomized tree regressor.

    Takes the same parameters and exposes the same attributes as
    DecisionTreeRegressor. ``random_seed`` also drives the threshold draws.
    """

    _splitter: Splitter = "random"
