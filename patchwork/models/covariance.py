# Group-aware covariance evaluation
# Author: Shengning Wang

import numpy as np
from typing import Any, Callable, Sequence

from patchwork.models.features import BoundaryFeature, GroupFeature


_WRAPPERS = (GroupFeature, BoundaryFeature)


def _indicator(a: Any, b: Any) -> float:
    return 1.0 if a == b else 0.0


class PatchworkCovariance:
    """
    Extends a base covariance k(x, y) to group features and boundary features.

    Every pairing of the closed variant set {feature, GroupFeature, BoundaryFeature} is resolved
    to a factor in {-1, 0, 1, 2} times k(x.feature, y.feature):

    - GroupFeature x GroupFeature: 1 if the keys match, else 0
    - GroupFeature x BoundaryFeature: +1 if key == lhs, -1 if key == rhs, else 0
    - BoundaryFeature x BoundaryFeature: 2 for the same pair, 1 when exactly one side matches,
      -1 when exactly one side matches the opposite side of the other boundary, and 0 otherwise.
      A pair with its sides swapped, (a, b) against (b, a), falls in the last case.

    Plain features only pair with plain features; mixing them with wrappers raises TypeError.

    Attributes:
    - base (Callable): Base covariance function k(x, y) -> float
    """

    def __init__(self, base: Callable[[Any, Any], float]):
        self.base = base

    def __repr__(self) -> str:
        return f'PatchworkCovariance({self.base!r})'

    # ------------------------------------------------------------------

    @staticmethod
    def factor(x: Any, y: Any) -> float:
        """
        Resolves the sign / scale applied to k(x.feature, y.feature) for one pair.

        Args:
        - x (Any): Feature, GroupFeature or BoundaryFeature
        - y (Any): Feature, GroupFeature or BoundaryFeature

        Returns:
        - float: Factor in {-1, 0, 1, 2}
        """
        x_wrapped, y_wrapped = isinstance(x, _WRAPPERS), isinstance(y, _WRAPPERS)
        if not x_wrapped and not y_wrapped:
            return 1.0
        if x_wrapped != y_wrapped:
            raise TypeError(f'Cannot evaluate covariance between {type(x).__name__} and {type(y).__name__}')

        if isinstance(x, GroupFeature) and isinstance(y, GroupFeature):
            return _indicator(x.key, y.key)

        if isinstance(x, GroupFeature) and isinstance(y, BoundaryFeature):
            return _indicator(x.key, y.lhs) - _indicator(x.key, y.rhs)

        if isinstance(x, BoundaryFeature) and isinstance(y, GroupFeature):
            return _indicator(y.key, x.lhs) - _indicator(y.key, x.rhs)

        # BoundaryFeature x BoundaryFeature
        same_lhs, same_rhs = x.lhs == y.lhs, x.rhs == y.rhs
        if same_lhs and same_rhs:
            return 2.0
        if same_lhs != same_rhs:
            return 1.0
        if (x.lhs == y.rhs) != (x.rhs == y.lhs):
            return -1.0
        # no group in common, or the same pair with the sides swapped
        return 0.0

    def __call__(self, x: Any, y: Any) -> float:
        f = self.factor(x, y)
        if f == 0.0:
            return 0.0
        if isinstance(x, _WRAPPERS):
            return f * self.base(x.feature, y.feature)
        return self.base(x, y)

    def matrix(self, xs: Sequence[Any], ys: Sequence[Any]) -> np.ndarray:
        """
        Evaluates the group-aware covariance between every pair of features.

        The base covariance is evaluated once over the unwrapped features (vectorized when it
        offers a matrix method), then scaled elementwise by the factor of each pair.

        Args:
        - xs (Sequence[Any]): Row features, length m
        - ys (Sequence[Any]): Column features, length p

        Returns:
        - np.ndarray: Covariance matrix (m, p)
        """
        factors = np.array([[self.factor(x, y) for y in ys] for x in xs], dtype=float).reshape(len(xs), len(ys))
        fx = [x.feature if isinstance(x, _WRAPPERS) else x for x in xs]
        fy = [y.feature if isinstance(y, _WRAPPERS) else y for y in ys]
        return factors * covariance_matrix(self.base, fx, fy)


def covariance_matrix(covariance: Callable[[Any, Any], float], xs: Sequence[Any], ys: Sequence[Any]) -> np.ndarray:
    """
    Dense covariance matrix between two feature sequences.

    Uses covariance.matrix when available, otherwise evaluates every pair and mirrors the upper
    triangle when both sequences are the same object.

    Args:
    - covariance (Callable): k(x, y) -> float, optionally with a matrix(xs, ys) method
    - xs (Sequence[Any]): Row features, length m
    - ys (Sequence[Any]): Column features, length p

    Returns:
    - np.ndarray: Covariance matrix (m, p)
    """
    if hasattr(covariance, 'matrix'):
        return np.asarray(covariance.matrix(xs, ys), dtype=float)

    num_x, num_y = len(xs), len(ys)
    cov = np.zeros((num_x, num_y))
    if xs is ys:
        for i in range(num_x):
            for j in range(i, num_y):
                cov[i, j] = covariance(xs[i], ys[j])
                cov[j, i] = cov[i, j]
        return cov

    for i in range(num_x):
        for j in range(num_y):
            cov[i, j] = covariance(xs[i], ys[j])
    return cov
