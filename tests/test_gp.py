"""Tests for the single-partition Gaussian process."""
import numpy as np
import pytest

from patchwork.data import JointDistribution, MarginalDistribution, RegressionDataset
from patchwork.models import GaussianProcess, NumericalError


def gaussian_kernel(a, b):
    return np.exp(-np.subtract.outer(a, b) ** 2)


class TestGaussianProcess:
    def test_matches_closed_form(self):
        """Posterior mean and covariance follow the textbook formulas."""
        x = np.array([0.0, 0.5, 1.3, 2.0])
        y = np.cos(x)
        q = np.array([0.2, 1.0, 2.5])
        noise = 0.01

        gp = GaussianProcess('gaussian', theta=1.0, sigma2=1.0)
        prediction = gp.fit(list(x), MarginalDistribution(y, np.full(x.size, noise))).predict(list(q))

        K = gaussian_kernel(x, x) + noise * np.eye(x.size)
        K_s = gaussian_kernel(x, q)
        expected_mean = K_s.T @ np.linalg.solve(K, y)
        expected_cov = gaussian_kernel(q, q) - K_s.T @ np.linalg.solve(K, K_s)

        assert isinstance(prediction, JointDistribution)
        np.testing.assert_allclose(prediction.mean, expected_mean, rtol=1e-8, atol=1e-10)
        np.testing.assert_allclose(prediction.covariance, expected_cov, rtol=1e-8, atol=1e-10)

    def test_posterior_covariance_is_valid(self, rng):
        x = rng.uniform(0.0, 3.0, 15)
        dataset = RegressionDataset(list(x), np.sin(x), variance=np.full(x.size, 1e-3))
        prediction = GaussianProcess(theta=2.0).fit(dataset).predict(list(np.linspace(-1.0, 4.0, 9)))

        np.testing.assert_allclose(prediction.covariance, prediction.covariance.T, atol=1e-12)
        assert np.all(np.diag(prediction.covariance) > -1e-10)

    def test_interpolates_noise_free_data(self):
        """Without measurement noise the mean passes through the training targets."""
        x = [0.0, 0.7, 1.5]
        y = np.array([1.0, -0.5, 2.0])
        prediction = GaussianProcess().fit(x, y).predict(x)

        np.testing.assert_allclose(prediction.mean, y, atol=1e-6)
        np.testing.assert_allclose(np.diag(prediction.covariance), 0.0, atol=1e-6)

    def test_custom_covariance_function(self):
        gp = GaussianProcess(covariance_function=lambda a, b: float(np.exp(-abs(a - b))))
        prediction = gp.fit([0.0, 1.0], np.array([1.0, 2.0])).predict([0.0])

        assert prediction.mean[0] == pytest.approx(1.0, abs=1e-8)

    def test_nan_targets_rejected(self):
        with pytest.raises(NumericalError):
            GaussianProcess().fit([0.0, 1.0], np.array([np.nan, 1.0]))
