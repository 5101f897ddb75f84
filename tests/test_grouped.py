"""Tests for Grouped containers, partitioning and datasets."""
import numpy as np
import pytest

from patchwork.data import Grouped, MarginalDistribution, RegressionDataset, group_indices, partition


class TestPartition:
    def test_every_feature_lands_in_exactly_one_bucket(self, rng):
        """Concatenating all buckets reproduces the input exactly once."""
        features = list(rng.integers(0, 100, 50))
        grouped = partition(features, lambda f: f % 7)

        flattened = [f for bucket in grouped.values() for f in bucket]
        assert sorted(flattened) == sorted(features)
        assert sum(len(bucket) for bucket in grouped.values()) == len(features)

    def test_bucket_order_is_first_seen(self):
        """Buckets appear in first-seen key order, members keep their relative order."""
        features = [5, 2, 8, 1, 4, 7]
        grouped = partition(features, lambda f: 'big' if f > 4 else 'small')

        assert grouped.keys() == ['big', 'small']
        assert grouped.at('big') == [5, 8, 7]
        assert grouped.at('small') == [2, 1, 4]

    def test_grouper_errors_propagate(self):
        """A failing grouper aborts with its own exception."""
        def grouper(f):
            if f == 3:
                raise KeyError('no group for 3')
            return f

        with pytest.raises(KeyError, match='no group for 3'):
            partition([1, 2, 3, 4], grouper)

    def test_group_indices(self):
        """group_indices returns positions, not values."""
        grouped = group_indices(['a', 'b', 'a', 'c'], lambda s: s)
        assert grouped.at('a') == [0, 2]
        assert grouped.at('c') == [3]


class TestGrouped:
    def test_duplicate_keys_rejected(self):
        """Keys must be unique."""
        with pytest.raises(ValueError):
            Grouped([('a', 1), ('a', 2)])

    def test_apply_with_and_without_key(self):
        """apply passes the key only to two-argument functions."""
        grouped = Grouped([('a', 1), ('b', 2)])

        doubled = grouped.apply(lambda value: 2 * value)
        tagged = grouped.apply(lambda key, value: f'{key}{value}')

        assert doubled.items() == [('a', 2), ('b', 4)]
        assert tagged.items() == [('a', 'a1'), ('b', 'b2')]

    def test_apply_with_optional_argument_gets_value_only(self):
        """Optional parameters do not turn a function into a (key, value) function."""
        grouped = Grouped([('a', 1)])
        assert grouped.apply(lambda value, scale=3: value * scale).at('a') == 3

    def test_filter(self):
        grouped = Grouped([('a', 1), ('b', 2), ('c', 3)])
        assert grouped.filter(lambda value: value % 2 == 1).keys() == ['a', 'c']
        assert grouped.filter(lambda key, value: key == 'b').values() == [2]

    def test_first_value_and_size(self):
        grouped = Grouped({'x': 10, 'y': 20})
        assert grouped.first_value() == 10
        assert grouped.size() == len(grouped) == 2
        assert 'y' in grouped

        with pytest.raises(IndexError):
            Grouped().first_value()


class TestRegressionDataset:
    def test_length_mismatch(self):
        """Features and targets must have the same length."""
        with pytest.raises(ValueError):
            RegressionDataset([1.0, 2.0], np.array([1.0]))

    def test_subset_keeps_variance(self):
        dataset = RegressionDataset([0.0, 1.0, 2.0], np.array([3.0, 4.0, 5.0]), variance=np.array([0.1, 0.2, 0.3]))
        subset = dataset.subset([2, 0])

        assert subset.features == [2.0, 0.0]
        np.testing.assert_allclose(subset.targets.mean, [5.0, 3.0])
        np.testing.assert_allclose(subset.targets.variance, [0.3, 0.1])

    def test_group_by_splits_targets_consistently(self):
        """Each group's targets line up with its features."""
        features = [0.5, 1.5, 0.2, 1.1]
        dataset = RegressionDataset(features, MarginalDistribution(np.array(features) * 10))
        grouped = dataset.group_by(lambda f: int(f))

        assert grouped.keys() == [0, 1]
        for group in grouped.values():
            np.testing.assert_allclose(group.targets.mean, np.array(group.features) * 10)
