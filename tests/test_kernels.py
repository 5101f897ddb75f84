"""Tests for stationary covariance functions."""
import numpy as np
import pytest

from patchwork.models import CORRELATION_MODELS, StationaryCovariance


class TestStationaryCovariance:
    def test_gaussian_value(self):
        """k(x, y) = sigma2 * exp(-theta * |x - y|^2)."""
        cov = StationaryCovariance('gaussian', theta=0.5, sigma2=2.0)
        assert cov(0.0, 2.0) == pytest.approx(2.0 * np.exp(-0.5 * 4.0))

    def test_anisotropic_theta(self):
        cov = StationaryCovariance('exponential', theta=[1.0, 2.0])
        assert cov([0.0, 0.0], [1.0, 1.0]) == pytest.approx(np.exp(-3.0))

    def test_theta_length_mismatch(self):
        cov = StationaryCovariance('gaussian', theta=[1.0, 2.0, 3.0])
        with pytest.raises(ValueError):
            cov([0.0, 0.0], [1.0, 1.0])

    def test_unknown_kernel(self):
        with pytest.raises(ValueError, match='Unknown kernel type'):
            StationaryCovariance('matern')

    @pytest.mark.parametrize('kwargs', [{'theta': -1.0}, {'sigma2': 0.0}, {'nugget': -1e-3}])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValueError):
            StationaryCovariance('gaussian', **kwargs)

    def test_nugget_only_on_identical_features(self):
        """The nugget behaves as independent noise."""
        cov = StationaryCovariance('gaussian', theta=1.0, sigma2=1.0, nugget=0.25)

        assert cov(0.3, 0.3) == pytest.approx(1.25)
        assert cov(0.3, 0.4) == pytest.approx(np.exp(-0.01))

    @pytest.mark.parametrize('kernel', sorted(CORRELATION_MODELS))
    def test_matrix_is_symmetric_with_unit_diagonal(self, kernel, rng):
        """Every correlation model gives a symmetric matrix with sigma2 on the diagonal."""
        points = list(rng.uniform(0.0, 1.0, (5, 2)))
        cov = StationaryCovariance(kernel, theta=1.5, sigma2=3.0)
        matrix = cov.matrix(points, points)

        np.testing.assert_allclose(matrix, matrix.T, atol=1e-12)
        np.testing.assert_allclose(np.diag(matrix), 3.0)

    def test_custom_correlation(self):
        """A custom r(theta, d) callable is accepted."""
        cov = StationaryCovariance(lambda theta, d: np.ones(np.atleast_2d(d).shape[0]), sigma2=2.0)
        assert cov(0.0, 10.0) == pytest.approx(2.0)
        assert cov.kernel_name == 'custom'
