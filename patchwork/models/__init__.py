# patchwork/models/__init__.py
"""
patchwork.models: Gaussian Process models and the patchwork combination machinery.
Organized into Kernels, Linear Algebra, Single-partition GP and Patchwork Kriging.
"""

# Hoist from Errors
from .errors import PatchworkError, BlockStructureError, DegenerateBoundaryError, NumericalError

# Hoist from Kernels (Stationary Covariance Functions)
from .kernels import (
    StationaryCovariance, CORRELATION_MODELS,
    corr_exponential, corr_gaussian, corr_linear, corr_spherical, corr_cubic, corr_spline
)

# Hoist from Linear Algebra
from .ldlt import LDLT
from .block import block_accumulate, block_product, block_inner_product, block_solve

# Hoist from Single-partition GP
from .gp import GaussianProcess, GPFit

# Hoist from Patchwork Kriging
from .features import (
    GroupFeature, BoundaryFeature,
    as_group_features, as_boundary_features, build_boundary_features
)
from .covariance import PatchworkCovariance, covariance_matrix
from .patchwork import PatchworkGP, PatchworkFit, PatchworkFunctions, fit_groups


__all__ = [
    # Errors
    'PatchworkError', 'BlockStructureError', 'DegenerateBoundaryError', 'NumericalError',

    # Kernels
    'StationaryCovariance', 'CORRELATION_MODELS',
    'corr_exponential', 'corr_gaussian', 'corr_linear', 'corr_spherical', 'corr_cubic', 'corr_spline',

    # Linear Algebra
    'LDLT',
    'block_accumulate', 'block_product', 'block_inner_product', 'block_solve',

    # Single-partition GP
    'GaussianProcess', 'GPFit',

    # Patchwork Kriging
    'GroupFeature', 'BoundaryFeature',
    'as_group_features', 'as_boundary_features', 'build_boundary_features',
    'PatchworkCovariance', 'covariance_matrix',
    'PatchworkGP', 'PatchworkFit', 'PatchworkFunctions', 'fit_groups'
]
