# Group-aware feature wrappers and boundary construction
# Author: Shengning Wang

from typing import Any, Callable, Hashable, List, NamedTuple, Sequence

from patchwork.models.errors import DegenerateBoundaryError
from patchwork.utils.hue_logger import hue, logger


class GroupFeature(NamedTuple):
    """
    A feature known to belong to exactly one group.

    Attributes:
        key: Group the feature belongs to
        feature: The wrapped feature
    """
    key: Hashable
    feature: Any


class BoundaryFeature(NamedTuple):
    """
    Pseudo observation of model(lhs).predict(feature) - model(rhs).predict(feature).

    Patchwork kriging pins these to zero so that otherwise independent group models agree
    along the boundary between them.

    Attributes:
        lhs: Group whose prediction enters with a positive sign
        rhs: Group whose prediction enters with a negative sign
        feature: Location of the pseudo observation
    """
    lhs: Hashable
    rhs: Hashable
    feature: Any

    @classmethod
    def create(cls, lhs: Hashable, rhs: Hashable, feature: Any) -> 'BoundaryFeature':
        if lhs == rhs:
            raise ValueError(f'A boundary needs two different groups, got {lhs!r} twice')
        return cls(lhs, rhs, feature)


def as_group_features(key: Hashable, features: Sequence[Any]) -> List[GroupFeature]:
    return [GroupFeature(key, f) for f in features]


def as_boundary_features(lhs: Hashable, rhs: Hashable, features: Sequence[Any]) -> List[BoundaryFeature]:
    return [BoundaryFeature.create(lhs, rhs, f) for f in features]


def build_boundary_features(boundary_function: Callable[[Hashable, Hashable], Sequence[Any]],
                            groups: Sequence[Hashable]) -> List[BoundaryFeature]:
    """
    Collects the boundary pseudo observations between every pair of groups.

    For every pair (groups[i], groups[j]) with i < j the boundary function is asked for the shared
    locations, each of which becomes BoundaryFeature(groups[i], groups[j], location).

    Args:
    - boundary_function (Callable): boundary(key_a, key_b) -> locations shared by the two groups
    - groups (Sequence[Hashable]): Ordered group keys

    Returns:
    - List[BoundaryFeature]: All boundary features, in pair order

    Raises:
    - DegenerateBoundaryError: If no pair of groups shares a boundary
    """
    groups = list(groups)
    boundary_features: List[BoundaryFeature] = []
    for i in range(len(groups)):
        for j in range(i + 1, len(groups)):
            locations = boundary_function(groups[i], groups[j])
            if locations is None:
                continue
            boundary_features.extend(as_boundary_features(groups[i], groups[j], locations))

    if not boundary_features:
        raise DegenerateBoundaryError(f'No boundary features between any of the {len(groups)} groups')

    logger.debug(f'built {hue.m}{len(boundary_features)}{hue.q} boundary features across {hue.m}{len(groups)}{hue.q} groups')
    return boundary_features
