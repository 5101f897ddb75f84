# Gaussian Process (Kriging) regression on a single partition
# Author: Shengning Wang

import numpy as np
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Union

from patchwork.data.dataset import RegressionDataset
from patchwork.data.distribution import JointDistribution, MarginalDistribution
from patchwork.models.covariance import covariance_matrix
from patchwork.models.kernels import StationaryCovariance
from patchwork.models.ldlt import LDLT
from patchwork.utils.hue_logger import hue, logger


@dataclass
class GPFit:
    """
    Everything a fitted Gaussian process needs at prediction time.

    Attributes:
        model: The GaussianProcess that produced this fit
        train_features: Training features
        targets: Training target marginals
        train_covariance: LDLT decomposition of K(train, train) + measurement variance
        information: train_covariance^{-1} @ targets.mean
    """
    model: 'GaussianProcess'
    train_features: List[Any]
    targets: MarginalDistribution
    train_covariance: LDLT = field(repr=False)
    information: np.ndarray = field(repr=False)

    def predict(self, features: Sequence[Any]) -> JointDistribution:
        return self.model.predict(features, self)


class GaussianProcess:
    """
    Exact Gaussian Process (Simple Kriging) regression.

    The training covariance K(train, train) plus the measurement variance of the targets is
    decomposed once with LDLT at fit time; prediction reuses that decomposition for the posterior
    mean K_*^T K^{-1} y and the joint covariance K_** - K_*^T K^{-1} K_*.

    Hyperparameters are fixed at construction, no likelihood optimization is performed.

    Attributes:
    - covariance_function (Callable): k(x, y), optionally with a vectorized matrix(xs, ys)
    """

    def __init__(self, kernel: Union[str, Callable] = 'gaussian', theta: Union[float, np.ndarray] = 1.0,
                 sigma2: float = 1.0, nugget: float = 0.0,
                 covariance_function: Optional[Callable[[Any, Any], float]] = None):
        """
        Args:
        - kernel (Union[str, Callable]): Correlation model, see StationaryCovariance.
        - theta (Union[float, np.ndarray]): Correlation parameters.
        - sigma2 (float): Process variance.
        - nugget (float): Variance added between identical features.
        - covariance_function (Optional[Callable]): Overrides kernel / theta / sigma2 / nugget
            with any covariance callable.
        """
        if covariance_function is None:
            covariance_function = StationaryCovariance(kernel, theta, sigma2, nugget)
        self.covariance_function = covariance_function

    def __repr__(self) -> str:
        return f'GaussianProcess({self.covariance_function!r})'

    def fit(self, features: Union[RegressionDataset, Sequence[Any]],
            targets: Optional[Union[MarginalDistribution, np.ndarray]] = None) -> GPFit:
        """
        Conditions the process on training data.

        Args:
        - features (Union[RegressionDataset, Sequence[Any]]): Training features or a whole dataset
        - targets (Optional[Union[MarginalDistribution, np.ndarray]]): Training targets,
            omitted when features is a RegressionDataset

        Returns:
        - GPFit: Decomposed training covariance and information vector
        """
        dataset = features if isinstance(features, RegressionDataset) else RegressionDataset(features, targets)
        num_samples = len(dataset)

        cov = covariance_matrix(self.covariance_function, dataset.features, dataset.features)
        if dataset.targets.has_covariance():
            cov[np.diag_indices(num_samples)] += dataset.targets.variance

        # jitter for numerical stability
        if num_samples > 0:
            scale = max(np.max(np.abs(np.diag(cov))), 1.0)
            cov[np.diag_indices(num_samples)] += (10 + num_samples) * np.finfo(float).eps * scale

        train_covariance = LDLT(cov)
        information = train_covariance.solve(dataset.targets.mean)

        logger.debug(f'fitted GP on {hue.m}{num_samples}{hue.q} samples')

        return GPFit(model=self, train_features=dataset.features, targets=dataset.targets,
                     train_covariance=train_covariance, information=information)

    def predict(self, features: Sequence[Any], fit: GPFit) -> JointDistribution:
        """
        Joint posterior at the given features.

        Args:
        - features (Sequence[Any]): Query features (num_queries,)
        - fit (GPFit): Result of fit()

        Returns:
        - JointDistribution: Posterior mean (num_queries,) and covariance (num_queries, num_queries)
        """
        features = list(features)
        cross = covariance_matrix(self.covariance_function, fit.train_features, features)
        prior = covariance_matrix(self.covariance_function, features, features)

        mean = cross.T @ fit.information
        cov = prior - cross.T @ fit.train_covariance.solve(cross)
        return JointDistribution(mean, cov)
