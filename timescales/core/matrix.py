"""
Shift Matrix Engine.

Builds shift (lag) operators and the AR(p) companion matrix on top of them.

A shift matrix has a single band of 1's displaced from the main diagonal:

    diag_extend(4, -1)      diag_extend(3, 1)
    0 0 0 0                 0 1 0
    1 0 0 0                 0 0 1
    0 1 0 0                 0 0 0
    0 0 1 0

Multiplying a lag vector [x_t, x_{t-1}, ..., x_{t-p+1}] by the sub-diagonal
shift moves every lag down one slot. Putting AR coefficients in the first
row gives the companion matrix, whose dominant eigenvalue modulus tends to 1
as a system loses resilience.
"""

import numpy as np
from typing import Sequence

from timescales.core._errors import InvalidArgument, check_int


def diag_extend(size: int, offset: int = -1) -> np.ndarray:
    """
    Square matrix with 1's along one off-diagonal and 0 elsewhere.

    M[i, i + offset] = 1 for every row i where i + offset is a valid column.
    Negative offset fills a sub-diagonal, positive a super-diagonal, zero
    gives the identity. When |offset| >= size no position is valid and the
    all-zero matrix is returned.

    Args:
        size: Matrix dimension (>= 0)
        offset: Diagonal displacement (default -1, first sub-diagonal)

    Returns:
        (size, size) float64 array

    Raises:
        InvalidArgument: size is negative or either argument is not an integer
    """
    size = check_int(size, 'size')
    offset = check_int(offset, 'offset')
    if size < 0:
        raise InvalidArgument(f"size must be >= 0, got {size}")

    m = np.zeros((size, size), dtype=np.float64)
    if abs(offset) >= size:
        return m

    rows = np.arange(max(0, -offset), min(size, size - offset))
    m[rows, rows + offset] = 1.0
    return m


def companion_matrix(coefs: Sequence[float]) -> np.ndarray:
    """
    AR(p) companion matrix.

    First row holds phi_1..phi_p, the first sub-diagonal shifts lags.
    """
    coefs = np.asarray(coefs, dtype=np.float64).ravel()
    p = len(coefs)
    if p == 0:
        raise InvalidArgument("companion matrix needs at least one coefficient")

    m = diag_extend(p, -1)
    m[0, :] = coefs
    return m


def ar_fit(x: np.ndarray, order: int = 1) -> np.ndarray:
    """
    Least-squares AR(order) coefficients of a demeaned series.

    Rows of the lag design that touch a missing value are dropped.
    Returns NaN coefficients when fewer than order + 1 complete rows remain.
    """
    order = check_int(order, 'order')
    if order < 1:
        raise InvalidArgument(f"order must be >= 1, got {order}")

    x = np.asarray(x, dtype=np.float64).ravel()
    if np.all(np.isnan(x)):
        return np.full(order, np.nan)
    x = x - np.nanmean(x)

    n = len(x)
    if n <= order:
        return np.full(order, np.nan)

    # Column k holds lag k + 1
    design = np.column_stack([x[order - k - 1:n - k - 1] for k in range(order)])
    target = x[order:]

    complete = np.isfinite(target) & np.all(np.isfinite(design), axis=1)
    if complete.sum() < order + 1:
        return np.full(order, np.nan)

    coefs, *_ = np.linalg.lstsq(design[complete], target[complete], rcond=None)
    return coefs


def ar_eigenvalues(coefs: Sequence[float]) -> np.ndarray:
    """Eigenvalues of the companion matrix, largest modulus first."""
    coefs = np.asarray(coefs, dtype=np.float64).ravel()
    if not np.all(np.isfinite(coefs)):
        return np.full(len(coefs), np.nan, dtype=np.complex128)

    eig = np.linalg.eigvals(companion_matrix(coefs))
    return eig[np.argsort(-np.abs(eig), kind='stable')]


def max_modulus(coefs: Sequence[float]) -> float:
    """Modulus of the dominant companion eigenvalue (< 1 means stationary)."""
    eig = ar_eigenvalues(coefs)
    if len(eig) == 0 or not np.all(np.isfinite(eig)):
        return np.nan
    return float(np.abs(eig[0]))
