from __future__ import annotations

import numpy as np

from common.errors import SingularMatrixError
from common.utils import as_square_matrix, as_vector


PIVOT_TOLERANCE = 1e-10


def solve(A, b) -> np.ndarray:
    """
    Solve A·x = b by Gaussian elimination with partial pivoting.

    Works on private float64 copies; the caller's A and b are left untouched.

    Args:
        A: n x n array-like
        b: length-n array-like

    Returns:
        x as a float64 ndarray of length n.

    Raises:
        SingularMatrixError: a pivot magnitude fell below PIVOT_TOLERANCE.
        ValueError: A is not square or b does not match it.
    """
    M = as_square_matrix(A)
    n = M.shape[0]
    v = as_vector(b, n)

    # Forward elimination
    for i in range(n):
        p = i + int(np.argmax(np.abs(M[i:, i])))
        if p != i:
            M[[i, p]] = M[[p, i]]
            v[[i, p]] = v[[p, i]]

        pivot = M[i, i]
        if not np.isfinite(pivot) or abs(pivot) < PIVOT_TOLERANCE:
            raise SingularMatrixError(f"pivot {pivot:.3e} below tolerance in column {i}")

        factors = M[i + 1 :, i] / pivot
        M[i + 1 :, i:] -= np.outer(factors, M[i, i:])
        v[i + 1 :] -= factors * v[i]

    # Back substitution
    x = np.zeros(n, dtype=float)
    for i in range(n - 1, -1, -1):
        x[i] = (v[i] - M[i, i + 1 :] @ x[i + 1 :]) / M[i, i]
    return x
