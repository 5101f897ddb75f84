# patchwork/__init__.py
"""
Patchwork: Partitioned Gaussian Process Regression by Patchwork Kriging.

Patchwork fits an independent Gaussian Process to every partition of the training data and
stitches the local posteriors into one consistent global predictive distribution by conditioning
on boundary pseudo observations between neighbouring partitions (Park & Apley, JMLR 2018).
The global solve is never formed: it is carried out as per-partition block solves plus a
Woodbury correction over the much smaller boundary system.

The library follows the "initialize, fit, predict" pattern of the surrogate models it grew out of.

Key Features:
- Partition-Aware Covariance: closed dispatch over plain, group and boundary features
- Block Matrix Algebra: key-indexed block products and block-diagonal solves
- Stable Linear Algebra: LDLT decompositions for every solve, no explicit inverses
- Parallel Fitting: per-partition fits fanned out on a thread pool

System Architecture:
```
patchwork/
├── data/          # Grouped containers, distributions and datasets
├── models/        # Kernels, LDLT, single-partition GP and the patchwork engine
└── utils/         # Logging and evaluation metrics
```
"""

__version__ = "0.1.0"
__author__ = "Shengning Wang (王晟宁)"
__email__ = "snwang2023@163.com"
__description__ = "Partitioned Gaussian Process Regression by Patchwork Kriging"
__license__ = "MIT"
