# Exception hierarchy for patchwork kriging
# Author: Shengning Wang

import numpy as np


class PatchworkError(Exception):
    """
    Base class for every error raised by the patchwork package itself.

    Errors raised by user-supplied functions (grouper, boundary, nearest_group)
    are never wrapped and propagate unchanged.
    """


class BlockStructureError(PatchworkError, ValueError):
    """
    Grouped operands of a block operation do not share the same non-empty key set.
    """


class DegenerateBoundaryError(BlockStructureError):
    """
    No boundary features were produced although two or more groups were fitted.
    """


class NumericalError(PatchworkError, np.linalg.LinAlgError):
    """
    A decomposition hit a singular or indefinite block, or a predictive variance came out negative.
    """
