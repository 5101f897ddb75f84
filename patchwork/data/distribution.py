# Gaussian distributions returned by the GP engines
# Author: Shengning Wang

import numpy as np
from typing import Optional, Sequence


class MarginalDistribution:
    """
    Independent Gaussian marginals: a mean vector with an optional per-point variance.

    Attributes:
    - mean (np.ndarray): Mean vector (n,)
    - variance (Optional[np.ndarray]): Variance vector (n,) or None
    """

    def __init__(self, mean: np.ndarray, variance: Optional[np.ndarray] = None):
        self.mean = np.asarray(mean, dtype=float).reshape(-1)
        self.variance = None if variance is None else np.asarray(variance, dtype=float).reshape(-1)
        self.assert_valid()

    def __repr__(self) -> str:
        return f'MarginalDistribution(size={self.mean.size}, has_covariance={self.has_covariance()})'

    def __len__(self) -> int:
        return self.size()

    def assert_valid(self) -> None:
        if self.variance is not None and self.variance.shape != self.mean.shape:
            raise ValueError(f'variance has shape {self.variance.shape}, mean has shape {self.mean.shape}')

    def size(self) -> int:
        return self.mean.size

    def has_covariance(self) -> bool:
        return self.variance is not None

    def get_diagonal(self, i: int) -> float:
        return float(self.variance[i]) if self.has_covariance() else float('nan')

    def subset(self, indices: Sequence[int]) -> 'MarginalDistribution':
        indices = np.asarray(indices, dtype=int)
        variance = self.variance[indices] if self.has_covariance() else None
        return MarginalDistribution(self.mean[indices], variance)


class JointDistribution:
    """
    Multivariate Gaussian with a dense covariance matrix.

    Attributes:
    - mean (np.ndarray): Mean vector (n,)
    - covariance (np.ndarray): Covariance matrix (n, n)
    """

    def __init__(self, mean: np.ndarray, covariance: np.ndarray):
        self.mean = np.asarray(mean, dtype=float).reshape(-1)
        self.covariance = np.asarray(covariance, dtype=float)
        self.assert_valid()

    def __repr__(self) -> str:
        return f'JointDistribution(size={self.mean.size})'

    def __len__(self) -> int:
        return self.size()

    def assert_valid(self) -> None:
        n = self.mean.size
        if self.covariance.shape != (n, n):
            raise ValueError(f'covariance has shape {self.covariance.shape}, expected {(n, n)}')

    def size(self) -> int:
        return self.mean.size

    def has_covariance(self) -> bool:
        return True

    def get_diagonal(self, i: int) -> float:
        return float(self.covariance[i, i])

    def subset(self, indices: Sequence[int]) -> 'JointDistribution':
        """
        Symmetric subset: keeps the rows and the columns of the given indices.
        """
        indices = np.asarray(indices, dtype=int)
        return JointDistribution(self.mean[indices], self.covariance[np.ix_(indices, indices)])

    def marginal(self) -> MarginalDistribution:
        return MarginalDistribution(self.mean, np.diag(self.covariance).copy())
