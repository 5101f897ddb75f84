# patchwork/data/__init__.py
"""
patchwork.data: Containers shared by the GP engines.
Includes:
    Key-indexed Containers and Partitioning (grouped.py),
    Gaussian Distributions (distribution.py),
    Regression Dataset (dataset.py),
"""

from .grouped import Grouped, group_by, group_indices, partition
from .distribution import MarginalDistribution, JointDistribution
from .dataset import RegressionDataset


__all__ = [
    # Key-indexed Containers and Partitioning
    "Grouped", "group_by", "group_indices", "partition",

    # Gaussian Distributions
    "MarginalDistribution", "JointDistribution",

    # Regression Dataset
    "RegressionDataset",
]
