"""Tests for the group-aware covariance dispatch."""
import itertools

import numpy as np
import pytest

from patchwork.models import BoundaryFeature, GroupFeature, PatchworkCovariance, StationaryCovariance


@pytest.fixture
def patchwork_cov():
    return PatchworkCovariance(StationaryCovariance('gaussian', theta=1.0, sigma2=1.0))


def k(x, y):
    return np.exp(-(x - y) ** 2)


class TestDispatchRules:
    def test_plain_features(self, patchwork_cov):
        assert patchwork_cov(0.2, 0.7) == pytest.approx(k(0.2, 0.7))

    def test_group_group(self, patchwork_cov):
        """Same key: base covariance, different keys: zero."""
        assert patchwork_cov(GroupFeature('a', 0.2), GroupFeature('a', 0.7)) == pytest.approx(k(0.2, 0.7))
        assert patchwork_cov(GroupFeature('a', 0.2), GroupFeature('b', 0.7)) == 0.0

    def test_group_boundary(self, patchwork_cov):
        """+k on the lhs group, -k on the rhs group, zero otherwise."""
        boundary = BoundaryFeature('a', 'b', 0.7)

        assert patchwork_cov(GroupFeature('a', 0.2), boundary) == pytest.approx(k(0.2, 0.7))
        assert patchwork_cov(GroupFeature('b', 0.2), boundary) == pytest.approx(-k(0.2, 0.7))
        assert patchwork_cov(GroupFeature('c', 0.2), boundary) == 0.0

    @pytest.mark.parametrize('other, scale', [
        (('a', 'b'), 2.0),    # same pair
        (('a', 'c'), 1.0),    # lhs matches
        (('c', 'b'), 1.0),    # rhs matches
        (('c', 'a'), -1.0),   # x.lhs == y.rhs
        (('b', 'c'), -1.0),   # x.rhs == y.lhs
        (('c', 'd'), 0.0),    # nothing in common
        (('b', 'a'), 0.0),    # sides swapped
    ])
    def test_boundary_boundary(self, patchwork_cov, other, scale):
        x = BoundaryFeature('a', 'b', 0.2)
        y = BoundaryFeature(other[0], other[1], 0.7)
        assert patchwork_cov(x, y) == pytest.approx(scale * k(0.2, 0.7))

    def test_mixing_plain_and_wrapped_features_fails(self, patchwork_cov):
        with pytest.raises(TypeError):
            patchwork_cov(0.2, GroupFeature('a', 0.7))
        with pytest.raises(TypeError):
            patchwork_cov(BoundaryFeature('a', 'b', 0.7), 0.2)

    def test_boundary_needs_two_groups(self):
        with pytest.raises(ValueError):
            BoundaryFeature.create('a', 'a', 0.5)


class TestSymmetry:
    def test_every_variant_pair_is_symmetric(self, patchwork_cov):
        """K(x, y) == K(y, x) for every combination of wrappers and keys."""
        keys = ['a', 'b', 'c']
        features = [GroupFeature(key, f) for key in keys for f in (0.1, 0.9)]
        features += [BoundaryFeature(lhs, rhs, f) for lhs, rhs in itertools.permutations(keys, 2) for f in (0.3, 0.6)]

        for x, y in itertools.product(features, repeat=2):
            assert patchwork_cov(x, y) == pytest.approx(patchwork_cov(y, x))

    def test_matrix_matches_pairwise_calls(self, patchwork_cov):
        """The vectorized matrix agrees with scalar evaluation."""
        xs = [GroupFeature('a', 0.1), GroupFeature('b', 0.4), BoundaryFeature('a', 'b', 0.5)]
        ys = [BoundaryFeature('b', 'c', 0.8), GroupFeature('a', 0.3)]

        expected = np.array([[patchwork_cov(x, y) for y in ys] for x in xs])
        np.testing.assert_allclose(patchwork_cov.matrix(xs, ys), expected)

    def test_matrix_with_pairwise_base(self):
        """Bases without a matrix method are evaluated pair by pair."""
        cov = PatchworkCovariance(lambda x, y: k(x, y))
        xs = [GroupFeature('a', 0.1), BoundaryFeature('a', 'b', 0.5)]

        matrix = cov.matrix(xs, xs)
        np.testing.assert_allclose(matrix, [[1.0, k(0.1, 0.5)], [k(0.1, 0.5), 2.0]])
