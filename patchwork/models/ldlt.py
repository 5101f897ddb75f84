# Symmetric indefinite (LDLT) solver
# Author: Shengning Wang

import numpy as np
from scipy.linalg import ldl, solve_triangular
from typing import Optional, Tuple

from patchwork.models.errors import NumericalError


class LDLT:
    """
    Bunch-Kaufman LDL^T decomposition of a symmetric matrix with a narrow solve() interface.

    The factorization A = P^T L D L^T P is computed once at construction and reused for every
    right-hand side. D is block diagonal with 1x1 and 2x2 pivot blocks, so the decomposition stays
    well defined for indefinite matrices where a Cholesky factor would not exist.

    Singular matrices are accepted: solve() applies the pseudo-inverse of D, so directions with
    a zero pivot contribute nothing to the solution. For a right-hand side in the range of A the
    result satisfies A @ x = rhs, which is all a positive semi-definite covariance needs.

    Attributes:
    - size (int): Number of rows (and columns) of the decomposed matrix.
    - pivots (np.ndarray): Eigenvalues of the pivot blocks of D, in factorization order.
    - rank (int): Number of pivots that are not treated as zero.
    """

    def __init__(self, matrix: np.ndarray, assume_psd: bool = True, psd_tol: float = 1e-8,
                 singular_tol: Optional[float] = None):
        """
        Decomposes a symmetric matrix.

        Args:
        - matrix (np.ndarray): Symmetric matrix (n, n). Only the lower triangle is read.
        - assume_psd (bool): Raise NumericalError when a pivot is clearly negative,
            i.e. when the matrix is not a valid covariance.
        - psd_tol (float): Relative tolerance below zero tolerated for a pivot before the
            matrix is declared indefinite. Tolerated negative pivots are treated as zero.
        - singular_tol (Optional[float]): Relative magnitude under which a pivot is treated as zero.
            Defaults to 10 * n * machine epsilon.

        Raises:
        - ValueError: If the matrix is not square.
        - NumericalError: If the matrix has non-finite entries or (with assume_psd) a negative pivot.
        """
        matrix = np.asarray(matrix, dtype=float)
        if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
            raise ValueError(f'LDLT requires a square matrix, got shape {matrix.shape}')
        if not np.all(np.isfinite(matrix)):
            raise NumericalError('LDLT received a matrix with non-finite entries')

        self.size = matrix.shape[0]
        self.assume_psd = assume_psd
        self.psd_tol = psd_tol
        self.singular_tol = singular_tol if singular_tol is not None else 10 * max(self.size, 1) * np.finfo(float).eps

        if self.size == 0:
            self._lower = np.zeros((0, 0))
            self._banded_pinv = np.zeros((3, 0))
            self._perm = np.zeros(0, dtype=int)
            self.pivots = np.zeros(0)
            self.rank = 0
            return

        lu, d, perm = ldl(matrix, lower=True)

        # lu[perm] is unit lower triangular
        self._lower = lu[perm]
        self._perm = perm

        # pseudo-inverse of D, tridiagonal at most, in banded storage
        self._banded_pinv, self.pivots = self._invert_pivots(d, matrix)
        self.rank = int(np.count_nonzero(self.pivots))

    def _invert_pivots(self, d: np.ndarray, matrix: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        Walks the 1x1 / 2x2 pivot blocks of D, validates them and inverts the non-zero part.

        Args:
        - d (np.ndarray): Block diagonal factor (n, n).
        - matrix (np.ndarray): The decomposed matrix, used to scale the tolerances.

        Returns:
        - Tuple[np.ndarray, np.ndarray]: Banded pseudo-inverse of D (3, n) and the pivot
            eigenvalues (n,), with pivots treated as zero set to exactly 0.
        """
        scale = max(np.max(np.abs(np.diag(matrix))), np.max(np.abs(d)), np.finfo(float).tiny)
        banded = np.zeros((3, self.size))
        pivots = np.zeros(self.size)

        i = 0
        while i < self.size:
            width = 2 if i + 1 < self.size and d[i + 1, i] != 0.0 else 1
            eigvals, eigvecs = np.linalg.eigh(d[i:i + width, i:i + width])

            if self.assume_psd and np.min(eigvals) < -self.psd_tol * scale:
                raise NumericalError(f'matrix is not positive semi-definite '
                                     f'(pivot block at {i}, eigenvalue {np.min(eigvals):.3e})')

            zero = np.abs(eigvals) <= self.singular_tol * scale
            if self.assume_psd:
                zero |= eigvals < 0.0
            eigvals = np.where(zero, 0.0, eigvals)
            inverse = np.where(zero, 0.0, 1.0 / np.where(zero, 1.0, eigvals))

            block = (eigvecs * inverse) @ eigvecs.T
            banded[1, i:i + width] = np.diag(block)
            if width == 2:
                banded[0, i + 1] = block[0, 1]
                banded[2, i] = block[1, 0]

            pivots[i:i + width] = eigvals
            i += width

        return banded, pivots

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.size, self.size)

    def is_singular(self) -> bool:
        return self.rank < self.size

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        """
        Solves A @ x = rhs, with the pseudo-inverse of D on singular pivots.

        Args:
        - rhs (np.ndarray): Right-hand side (n,) or (n, k).

        Returns:
        - np.ndarray: Solution with the same shape as rhs.
        """
        rhs = np.asarray(rhs, dtype=float)
        if rhs.shape[0] != self.size:
            raise ValueError(f'Right-hand side has {rhs.shape[0]} rows, expected {self.size}')
        if not np.all(np.isfinite(rhs)):
            raise NumericalError('LDLT solve received a right-hand side with non-finite values')
        if self.size == 0:
            return np.zeros_like(rhs)

        # L D L^T (P x) = P rhs
        z = solve_triangular(self._lower, rhs[self._perm], lower=True, unit_diagonal=True, check_finite=False)
        w = _banded_multiply(self._banded_pinv, z)
        u = solve_triangular(self._lower.T, w, lower=False, unit_diagonal=True, check_finite=False)

        x = np.empty_like(u)
        x[self._perm] = u

        if not np.all(np.isfinite(x)):
            raise NumericalError('LDLT solve produced non-finite values')
        return x

    def log_determinant(self) -> float:
        """
        Returns log|det(A)|, -inf for a singular matrix.
        """
        if self.is_singular():
            return -np.inf
        return float(np.sum(np.log(np.abs(self.pivots))))

    def sign(self) -> float:
        """
        Returns the sign of det(A), 0 for a singular matrix.
        """
        return float(np.prod(np.sign(self.pivots)))


def _banded_multiply(banded: np.ndarray, x: np.ndarray) -> np.ndarray:
    """
    Multiplies a tridiagonal matrix in (1, 1) banded storage with a vector / matrix.
    """
    x2 = x.reshape(x.shape[0], -1)
    out = banded[1][:, np.newaxis] * x2
    out[:-1] += banded[0, 1:][:, np.newaxis] * x2[1:]
    out[1:] += banded[2, :-1][:, np.newaxis] * x2[:-1]
    return out.reshape(x.shape)
