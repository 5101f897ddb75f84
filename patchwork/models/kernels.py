# Stationary covariance functions for kriging
# Author: Shengning Wang

import numpy as np
from typing import Any, Callable, Sequence, Union


# ======================================================================
# Correlation Models
# ======================================================================

def _theta_matrix(theta: np.ndarray, num_diffs: int, num_features: int) -> np.ndarray:
    """
    Broadcasts correlation parameters against a difference matrix.

    Args:
    - theta (np.ndarray): Scalar (isotropic) or per-dimension (anisotropic) parameters
    - num_diffs (int): Number of difference rows
    - num_features (int): Number of feature dimensions

    Returns:
    - np.ndarray: Parameter matrix (num_diffs, num_features)
    """
    theta = np.atleast_1d(np.asarray(theta, dtype=float)).flatten()
    if theta.size == 1:
        return np.full((num_diffs, num_features), theta[0])
    if theta.size != num_features:
        raise ValueError(f'* Theta must be of length 1 or {num_features}')
    return np.tile(theta, (num_diffs, 1))


def corr_exponential(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Exponential correlation function
    r_i = prod_{j=1}^{n} exp(-theta_j * |d_{ij}|)

    Args:
    - theta (np.ndarray): Correlation parameters
    - d (np.ndarray): Differences between input sites (m, n)

    Returns:
    - np.ndarray: Correlation vector (m,)
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    return np.exp(np.sum(-theta_mat * np.abs(d), axis=1))


def corr_gaussian(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Gaussian correlation function
    r_i = prod_{j=1}^{n} exp(-theta_j * d_{ij}^2)

    Args:
    - theta (np.ndarray): Correlation parameters
    - d (np.ndarray): Differences between input sites (m, n)

    Returns:
    - np.ndarray: Correlation vector (m,)
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    return np.exp(np.sum(-theta_mat * d ** 2, axis=1))


def corr_linear(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Linear correlation function (Local support)
    r_i = prod_{j=1}^{n} max(0, 1 - theta_j * |d_{ij}|)
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    return np.prod(np.maximum(1 - theta_mat * np.abs(d), 0), axis=1)


def corr_spherical(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Spherical correlation function (Local support)
    r_i = prod_{j=1}^{n} 1 - 1.5 * x + 0.5 * x^3, x = min(1, theta_j * |d_{ij}|)
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    td = np.minimum(np.abs(d) * theta_mat, 1)
    return np.prod(1 - td * (1.5 - 0.5 * td ** 2), axis=1)


def corr_cubic(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Cubic correlation function (Local support)
    r_i = prod_{j=1}^{n} 1 - 3 * x^2 + 2 * x^3, x = min(1, theta_j * |d_{ij}|)
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    td = np.minimum(np.abs(d) * theta_mat, 1)
    return np.prod(1 - td ** 2 * (3 - 2 * td), axis=1)


def corr_spline(theta: np.ndarray, d: np.ndarray) -> np.ndarray:
    """
    Cubic Spline correlation function (Local support)
    Piecewise function:
    - r_i = 1 - 15 * x^2 + 30 * x^3  for 0 <= x <= 0.2
    - r_i = 1.25 * (1 - x)^3         for 0.2 < x < 1
    - r_i = 0                        for x >= 1
    where x = theta_j * |d_{ij}|
    """
    d = np.atleast_2d(d)
    theta_mat = _theta_matrix(theta, *d.shape)
    xi = np.abs(d) * theta_mat
    r_term = np.zeros_like(xi)

    mask1 = xi <= 0.2
    r_term[mask1] = 1 - 15 * xi[mask1] ** 2 + 30 * xi[mask1] ** 3

    mask2 = (xi > 0.2) & (xi < 1)
    r_term[mask2] = 1.25 * (1 - xi[mask2]) ** 3

    return np.prod(r_term, axis=1)


CORRELATION_MODELS = {
    'exponential': corr_exponential,
    'gaussian': corr_gaussian,
    'linear': corr_linear,
    'spherical': corr_spherical,
    'cubic': corr_cubic,
    'spline': corr_spline,
}


# ======================================================================
# Covariance Function
# ======================================================================

def as_points(features: Sequence[Any]) -> np.ndarray:
    """
    Stacks scalar or vector features into a (num_points, num_features) array.
    """
    if len(features) == 0:
        return np.zeros((0, 1))
    points = np.asarray([np.atleast_1d(np.asarray(f, dtype=float)) for f in features])
    return points.reshape(len(features), -1)


class StationaryCovariance:
    """
    Stationary covariance k(x, y) = sigma2 * r(theta, x - y) + nugget * [x == y].

    Features are scalars or 1-D array-likes. The nugget only applies to identical
    features, so it behaves as independent measurement noise.

    Attributes:
    - kernel_name (str): Name of the correlation model.
    - theta (np.ndarray): Correlation parameters.
    - sigma2 (float): Process variance.
    - nugget (float): Variance added between identical features.
    """

    def __init__(self, kernel: Union[str, Callable] = 'gaussian', theta: Union[float, np.ndarray] = 1.0,
                 sigma2: float = 1.0, nugget: float = 0.0):
        """
        Args:
        - kernel (Union[str, Callable]): Correlation model type.
            Options: 'exponential', 'gaussian', 'linear', 'spherical', 'cubic', 'spline'
            or a custom function r(theta, d) -> (m,).
        - theta (Union[float, np.ndarray]): Correlation parameters (isotropic or anisotropic).
        - sigma2 (float): Process variance, must be positive.
        - nugget (float): Non-negative variance added on identical features.
        """
        if isinstance(kernel, str):
            if kernel not in CORRELATION_MODELS:
                raise ValueError(f"Unknown kernel type: '{kernel}'. Available: {list(CORRELATION_MODELS.keys())}")
            self.corr_func = CORRELATION_MODELS[kernel]
        elif callable(kernel):
            self.corr_func = kernel
        else:
            raise ValueError(f'kernel must be a name or a callable, got {type(kernel).__name__}')

        theta = np.atleast_1d(np.asarray(theta, dtype=float))
        if np.any(theta <= 0):
            raise ValueError(f'theta must be positive, got {theta}')
        if sigma2 <= 0:
            raise ValueError(f'sigma2 must be positive, got {sigma2}')
        if nugget < 0:
            raise ValueError(f'nugget must be non-negative, got {nugget}')

        self.kernel_name = kernel if isinstance(kernel, str) else 'custom'
        self.theta = theta
        self.sigma2 = float(sigma2)
        self.nugget = float(nugget)

    def __repr__(self) -> str:
        return (f'StationaryCovariance(kernel={self.kernel_name!r}, theta={self.theta.tolist()}, '
                f'sigma2={self.sigma2}, nugget={self.nugget})')

    def __call__(self, x: Any, y: Any) -> float:
        return float(self.matrix([x], [y])[0, 0])

    def matrix(self, xs: Sequence[Any], ys: Sequence[Any]) -> np.ndarray:
        """
        Evaluates the covariance between every pair of features.

        Args:
        - xs (Sequence[Any]): Row features, length m
        - ys (Sequence[Any]): Column features, length p

        Returns:
        - np.ndarray: Covariance matrix (m, p)
        """
        px, py = as_points(xs), as_points(ys)
        num_x, num_y = px.shape[0], py.shape[0]
        if num_x == 0 or num_y == 0:
            return np.zeros((num_x, num_y))
        if px.shape[1] != py.shape[1]:
            raise ValueError(f'Feature dimensions differ: {px.shape[1]} vs {py.shape[1]}')

        d = (px[:, np.newaxis, :] - py[np.newaxis, :, :]).reshape(-1, px.shape[1])
        cov = self.sigma2 * self.corr_func(self.theta, d).reshape(num_x, num_y)

        if self.nugget > 0:
            identical = np.all(d == 0, axis=1).reshape(num_x, num_y)
            cov = cov + self.nugget * identical

        return cov
