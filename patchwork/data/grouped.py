# Key-indexed containers and partitioning
# Author: Shengning Wang

import inspect
from typing import Any, Callable, Dict, Generic, Hashable, Iterable, Iterator, List, Sequence, Tuple, TypeVar


K = TypeVar('K', bound=Hashable)
V = TypeVar('V')


class Grouped(Generic[K, V]):
    """
    Ordered mapping from a group key to a per-group value.

    Keys are unique and iterate in insertion (first-seen) order. Values are whatever a group
    carries: a list of features, a matrix, a fitted model or a solver. Block operations across
    several Grouped objects look values up by key, never by position.
    """

    def __init__(self, items: Iterable[Tuple[K, V]] = ()):
        self._data: Dict[K, V] = {}
        if isinstance(items, (Grouped, dict)):
            items = items.items()
        for key, value in items:
            if key in self._data:
                raise ValueError(f'Duplicate group key: {key!r}')
            self._data[key] = value

    def __repr__(self) -> str:
        return f'Grouped({list(self._data.keys())!r})'

    def __len__(self) -> int:
        return len(self._data)

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __contains__(self, key: Any) -> bool:
        return key in self._data

    def __getitem__(self, key: K) -> V:
        return self._data[key]

    def size(self) -> int:
        return len(self._data)

    def at(self, key: K) -> V:
        return self._data[key]

    def keys(self) -> List[K]:
        return list(self._data.keys())

    def values(self) -> List[V]:
        return list(self._data.values())

    def items(self) -> List[Tuple[K, V]]:
        return list(self._data.items())

    def first_value(self) -> V:
        if not self._data:
            raise IndexError('first_value() on an empty Grouped')
        return next(iter(self._data.values()))

    def apply(self, function: Callable) -> 'Grouped':
        """
        Applies a function to every group, keeping the keys.

        The function receives (key, value) if it takes two positional arguments, otherwise just value.

        Args:
        - function (Callable): f(key, value) or f(value)

        Returns:
        - Grouped: Results keyed identically, in the same order
        """
        with_key = _takes_two_arguments(function)
        if with_key:
            return Grouped((key, function(key, value)) for key, value in self._data.items())
        return Grouped((key, function(value)) for key, value in self._data.items())

    def filter(self, predicate: Callable) -> 'Grouped':
        """
        Keeps the groups for which predicate(key, value) or predicate(value) is true.
        """
        with_key = _takes_two_arguments(predicate)
        if with_key:
            return Grouped((key, value) for key, value in self._data.items() if predicate(key, value))
        return Grouped((key, value) for key, value in self._data.items() if predicate(value))


def _takes_two_arguments(function: Callable) -> bool:
    try:
        params = inspect.signature(function).parameters.values()
    except (TypeError, ValueError):
        return False
    # only required positionals count, f(value, option=None) is a one-argument function
    positional = [p for p in params
                  if p.kind in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD) and p.default is p.empty]
    return len(positional) >= 2


def group_indices(values: Sequence[Any], grouper: Callable[[Any], K]) -> Grouped[K, List[int]]:
    """
    Buckets the indices of values by grouper(value).

    Buckets appear in first-seen key order; indices inside a bucket keep their original order.
    Exceptions raised by the grouper propagate unchanged and no partial result is returned.

    Args:
    - values (Sequence[Any]): Values to group
    - grouper (Callable): Pure function mapping a value to its group key

    Returns:
    - Grouped[K, List[int]]: Indices of the values belonging to each key
    """
    buckets: Dict[K, List[int]] = {}
    for i, value in enumerate(values):
        buckets.setdefault(grouper(value), []).append(i)
    return Grouped(buckets.items())


def group_by(values: Sequence[Any], grouper: Callable[[Any], K]) -> Grouped[K, List[Any]]:
    """
    Buckets values by grouper(value), same ordering rules as group_indices.
    """
    return group_indices(values, grouper).apply(lambda indices: [values[i] for i in indices])


def partition(features: Sequence[Any], grouper: Callable[[Any], K]) -> Grouped[K, List[Any]]:
    """
    Partitions a feature collection into named subsets.

    Every feature lands in exactly one bucket. Buckets are ordered by first-seen key and preserve
    the relative order of their members.

    Args:
    - features (Sequence[Any]): Features to partition
    - grouper (Callable): Pure, total function mapping a feature to its group key

    Returns:
    - Grouped[K, List[Any]]: Features of each group
    """
    return group_by(features, grouper)
