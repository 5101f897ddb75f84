"""Tests for group features and boundary construction."""
import pytest

from patchwork.models import (
    BoundaryFeature, DegenerateBoundaryError, GroupFeature, build_boundary_features
)


class TestBuildBoundaryFeatures:
    def test_pairs_in_group_order(self):
        """Every pair i < j is visited once, lhs is the earlier group."""
        calls = []

        def boundary(lhs, rhs):
            calls.append((lhs, rhs))
            return [f'{lhs}{rhs}']

        features = build_boundary_features(boundary, ['a', 'b', 'c'])

        assert calls == [('a', 'b'), ('a', 'c'), ('b', 'c')]
        assert features == [BoundaryFeature('a', 'b', 'ab'),
                            BoundaryFeature('a', 'c', 'ac'),
                            BoundaryFeature('b', 'c', 'bc')]

    def test_missing_boundaries_are_skipped(self):
        """Pairs without a shared boundary (empty or None) contribute nothing."""
        def boundary(lhs, rhs):
            if (lhs, rhs) == ('a', 'c'):
                return None
            if (lhs, rhs) == ('a', 'b'):
                return []
            return [0.5, 0.6]

        features = build_boundary_features(boundary, ['a', 'b', 'c'])
        assert [(f.lhs, f.rhs, f.feature) for f in features] == [('b', 'c', 0.5), ('b', 'c', 0.6)]

    def test_no_boundaries_at_all(self):
        with pytest.raises(DegenerateBoundaryError):
            build_boundary_features(lambda lhs, rhs: [], ['a', 'b'])

    def test_degenerate_boundary_is_a_value_error(self):
        with pytest.raises(ValueError):
            build_boundary_features(lambda lhs, rhs: [], ['a'])


class TestGroupFeatures:
    def test_wrappers_compare_by_value(self):
        assert GroupFeature('a', 1.0) == GroupFeature('a', 1.0)
        assert BoundaryFeature.create('a', 'b', 1.0) == BoundaryFeature('a', 'b', 1.0)
