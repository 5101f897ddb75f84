# Evaluation metrics for probabilistic predictions
# Author: Shengning Wang

import numpy as np
from sklearn.metrics import mean_squared_error, r2_score
from typing import Dict, Union

from patchwork.data.distribution import JointDistribution, MarginalDistribution
from patchwork.models.errors import NumericalError
from patchwork.models.ldlt import LDLT


def negative_log_likelihood(deviation: np.ndarray, covariance: Union[np.ndarray, LDLT]) -> float:
    """
    Negative log density of a zero-mean multivariate normal.

    -log p(x) = 0.5 * (x^T C^{-1} x + log|C| + n * log(2 * pi))

    Args:
    - deviation (np.ndarray): Deviation from the mean (n,)
    - covariance (Union[np.ndarray, LDLT]): Covariance matrix (n, n) or its decomposition

    Returns:
    - float: Negative log likelihood

    Raises:
    - NumericalError: If the covariance is singular
    """
    deviation = np.asarray(deviation, dtype=float).reshape(-1)
    ldlt = covariance if isinstance(covariance, LDLT) else LDLT(covariance)
    if ldlt.is_singular():
        raise NumericalError('negative log likelihood is undefined for a singular covariance')

    mahalanobis = float(deviation @ ldlt.solve(deviation))
    return 0.5 * (mahalanobis + ldlt.log_determinant() + deviation.size * np.log(2.0 * np.pi))


def root_mean_square_error(prediction: np.ndarray, truth: np.ndarray) -> float:
    prediction = np.asarray(prediction, dtype=float).reshape(-1)
    truth = np.asarray(truth, dtype=float).reshape(-1)
    return float(np.sqrt(np.mean((prediction - truth) ** 2)))


def evaluate(prediction: Union[JointDistribution, MarginalDistribution, np.ndarray],
             truth: np.ndarray) -> Dict[str, float]:
    """
    Scores a prediction against held-out targets.

    Args:
    - prediction (Union[JointDistribution, MarginalDistribution, np.ndarray]): Predicted distribution or mean
    - truth (np.ndarray): True target values (n,)

    Returns:
    - Dict[str, float]: r2, mse and rmse, plus nll when the prediction carries a covariance
        (joint for a JointDistribution, sum of independent terms for a MarginalDistribution)
    """
    truth = np.asarray(truth, dtype=float).reshape(-1)
    mean = prediction if isinstance(prediction, np.ndarray) else prediction.mean

    mse = mean_squared_error(truth, mean)
    metrics = {
        'r2': r2_score(truth, mean),
        'mse': mse,
        'rmse': np.sqrt(mse)
    }

    if isinstance(prediction, JointDistribution):
        metrics['nll'] = negative_log_likelihood(truth - mean, prediction.covariance)
    elif isinstance(prediction, MarginalDistribution) and prediction.has_covariance():
        metrics['nll'] = negative_log_likelihood(truth - mean, np.diag(prediction.variance))

    return metrics
