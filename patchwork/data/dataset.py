# Regression dataset container
# Author: Shengning Wang

import numpy as np
from typing import Any, Callable, List, Optional, Sequence, Union

from patchwork.data.distribution import MarginalDistribution
from patchwork.data.grouped import Grouped, group_indices


class RegressionDataset:
    """
    Ordered features with matching target marginals.

    Attributes:
    - features (List[Any]): Training features, any type the covariance function accepts
    - targets (MarginalDistribution): Target means with optional measurement variance
    """

    def __init__(self, features: Sequence[Any], targets: Union[MarginalDistribution, np.ndarray, Sequence[float]],
                 variance: Optional[np.ndarray] = None):
        """
        Args:
        - features (Sequence[Any]): Features (num_samples,)
        - targets (Union[MarginalDistribution, np.ndarray]): Targets (num_samples,) or a MarginalDistribution
        - variance (Optional[np.ndarray]): Measurement variance, only used when targets is an array
        """
        if not isinstance(targets, MarginalDistribution):
            targets = MarginalDistribution(np.asarray(targets, dtype=float).reshape(-1), variance)
        elif variance is not None:
            raise ValueError('variance must be carried by the MarginalDistribution when one is given')

        self.features: List[Any] = list(features)
        self.targets: MarginalDistribution = targets

        if len(self.features) != self.targets.size():
            raise ValueError(f'{len(self.features)} features but {self.targets.size()} targets')

    def __repr__(self) -> str:
        return f'RegressionDataset(size={len(self)})'

    def __len__(self) -> int:
        return len(self.features)

    def subset(self, indices: Sequence[int]) -> 'RegressionDataset':
        return RegressionDataset([self.features[i] for i in indices], self.targets.subset(indices))

    def group_by(self, grouper: Callable[[Any], Any]) -> Grouped[Any, 'RegressionDataset']:
        """
        Splits the dataset by grouper(feature), first-seen key order.
        """
        return group_indices(self.features, grouper).apply(self.subset)
