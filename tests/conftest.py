"""Pytest fixtures for patchwork tests."""
from typing import List

import numpy as np
import pytest

from patchwork.data import MarginalDistribution
from patchwork.models import StationaryCovariance


class TwoGroupFunctions:
    """Splits the line at x = 1 into 'left' and 'right' with one shared boundary point."""

    def __init__(self, boundary_points=(1.0,)):
        self.boundary_points = list(boundary_points)

    def grouper(self, x: float) -> str:
        return 'left' if x < 1.0 else 'right'

    def boundary(self, lhs: str, rhs: str) -> List[float]:
        return list(self.boundary_points)

    def nearest_group(self, groups: List[str], query: str) -> str:
        return query if query in groups else groups[0]


class StripFunctions:
    """Unit-width strips keyed by floor(x); adjacent strips share their edge."""

    def grouper(self, x: float) -> int:
        return int(np.floor(x))

    def boundary(self, lhs: int, rhs: int) -> List[float]:
        if abs(lhs - rhs) != 1:
            return []
        edge = float(max(lhs, rhs))
        return [edge - 0.1, edge, edge + 0.1]

    def nearest_group(self, groups: List[int], query: int) -> int:
        return min(groups, key=lambda g: abs(g - query))


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def base_covariance():
    return StationaryCovariance('gaussian', theta=1.0, sigma2=1.0)


@pytest.fixture
def two_group_functions():
    return TwoGroupFunctions()


@pytest.fixture
def strip_functions():
    return StripFunctions()


@pytest.fixture
def two_group_data():
    """Two groups of three points each on either side of x = 1.

    Returns:
        tuple: (features, targets) with measurement variance 0.01
    """
    x = np.array([0.1, 0.4, 0.8, 1.2, 1.5, 1.9])
    y = np.sin(3.0 * x)
    return list(x), MarginalDistribution(y, np.full(x.size, 0.01))


@pytest.fixture
def strip_data(rng):
    """Forty noisy samples of sin(2x) spread over the strips [0, 1), [1, 2), [2, 3), [3, 4)."""
    x = np.sort(rng.uniform(0.0, 4.0, 40))
    y = np.sin(2.0 * x) + 0.05 * rng.standard_normal(x.size)
    return list(x), MarginalDistribution(y, np.full(x.size, 0.05 ** 2))
