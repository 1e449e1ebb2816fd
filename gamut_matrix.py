# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: gamut_matrix.py — Dense 2D / 3x3 linear algebra primitives.

Every operation is pure: inputs are coerced to float64 arrays, never
mutated, and results are freshly allocated.  Determinant and inverse are
restricted to 3x3, the only size the colour pipeline needs.  The inverse
uses the classical cofactor / adjugate construction so that registry
matrices are derived by the same arithmetic on every platform.

Vector convention
─────────────────
Matrices are stored row-major and act on COLUMN vectors (M · v), as in
Lindbloom's RGB/XYZ derivations.  ``apply`` accepts a single (3,) triple
or an (N, 3) batch of triples and handles the transposition internally.
"""

from __future__ import annotations

from typing import Final, Sequence, TypeAlias, Union

import numpy as np
from numba import njit

from gamut_errors import ShapeError, SingularMatrixError

__all__ = [
    "ArrayFloat",
    "MatrixLike",
    "SINGULAR_EPSILON",
    "as_matrix",
    "multiply",
    "transpose",
    "scale",
    "diagonal",
    "determinant_3x3",
    "minors_3x3",
    "cofactor_matrix",
    "adjugate",
    "invert_3x3",
    "apply",
]

ArrayFloat: TypeAlias = np.typing.NDArray[np.floating]
MatrixLike: TypeAlias = Union[ArrayFloat, Sequence[Sequence[float]]]

# Determinants below this magnitude are treated as zero.
SINGULAR_EPSILON: Final[float] = 1e-12


# =============================================================================
# 1. VALIDATION
# =============================================================================

def as_matrix(m: MatrixLike, name: str = "matrix") -> ArrayFloat:
    """
    Coerce *m* to a fresh, C-contiguous 2D float64 array.

    Raises:
        ShapeError: If *m* is ragged, empty, or not two-dimensional.
    """
    try:
        arr = np.array(m, dtype=np.float64)
    except ValueError as exc:
        raise ShapeError(f"{name} is ragged: {exc}") from exc
    if arr.ndim != 2 or arr.size == 0:
        raise ShapeError(f"{name} must be a non-empty 2D matrix, got shape {arr.shape}")
    return arr


def _as_3x3(m: MatrixLike, name: str = "matrix") -> ArrayFloat:
    arr = as_matrix(m, name)
    if arr.shape != (3, 3):
        raise ShapeError(f"{name} must be 3x3, got shape {arr.shape}")
    return arr


# =============================================================================
# 2. LOW-LEVEL KERNELS (Numba)
# =============================================================================

@njit(cache=True)
def _minor_kernel(m: ArrayFloat, row: int, col: int) -> float:
    """Determinant of the 2x2 sub-matrix obtained by deleting (row, col)."""
    r0 = 1 if row == 0 else 0
    r1 = 1 if row == 2 else 2
    c0 = 1 if col == 0 else 0
    c1 = 1 if col == 2 else 2
    return m[r0, c0] * m[r1, c1] - m[r0, c1] * m[r1, c0]


@njit(cache=True)
def _minors_kernel(m: ArrayFloat) -> ArrayFloat:
    out = np.empty((3, 3), dtype=np.float64)
    for i in range(3):
        for j in range(3):
            out[i, j] = _minor_kernel(m, i, j)
    return out


@njit(cache=True)
def _det3_kernel(m: ArrayFloat) -> float:
    """Laplace expansion along the first row."""
    return (
        m[0, 0] * _minor_kernel(m, 0, 0)
        - m[0, 1] * _minor_kernel(m, 0, 1)
        + m[0, 2] * _minor_kernel(m, 0, 2)
    )


@njit(cache=True)
def _cofactor_kernel(m: ArrayFloat) -> ArrayFloat:
    out = _minors_kernel(m)
    for i in range(3):
        for j in range(3):
            if (i + j) % 2 == 1:
                out[i, j] = -out[i, j]
    return out


# =============================================================================
# 3. PUBLIC OPERATIONS
# =============================================================================

def multiply(a: MatrixLike, b: MatrixLike) -> ArrayFloat:
    """
    Matrix product ``a · b``.

    Raises:
        ShapeError: If the inner dimensions of *a* and *b* differ.
    """
    ma = as_matrix(a, "left operand")
    mb = as_matrix(b, "right operand")
    if ma.shape[1] != mb.shape[0]:
        raise ShapeError(
            f"Cannot multiply {ma.shape} by {mb.shape}: inner dimensions differ"
        )
    return ma @ mb


def transpose(m: MatrixLike) -> ArrayFloat:
    """Transpose of *m* as a new contiguous array."""
    return np.ascontiguousarray(as_matrix(m).T)


def scale(k: float, m: MatrixLike) -> ArrayFloat:
    """Every element of *m* multiplied by scalar *k*."""
    return float(k) * as_matrix(m)


def diagonal(values: Sequence[float]) -> ArrayFloat:
    """Square diagonal matrix with *values* on the main diagonal."""
    return np.diag(np.asarray(values, dtype=np.float64))


def determinant_3x3(m: MatrixLike) -> float:
    """Determinant of a 3x3 matrix."""
    return float(_det3_kernel(_as_3x3(m)))


def minors_3x3(m: MatrixLike) -> ArrayFloat:
    """Matrix of 2x2 minors of a 3x3 matrix."""
    return _minors_kernel(_as_3x3(m))


def cofactor_matrix(m: MatrixLike) -> ArrayFloat:
    """Matrix of minors with the checkerboard sign pattern applied."""
    return _cofactor_kernel(_as_3x3(m))


def adjugate(m: MatrixLike) -> ArrayFloat:
    """Transposed cofactor matrix."""
    return np.ascontiguousarray(_cofactor_kernel(_as_3x3(m)).T)


def invert_3x3(m: MatrixLike) -> ArrayFloat:
    """
    Inverse of a 3x3 matrix via ``adj(m) / det(m)``.

    Raises:
        ShapeError: If *m* is not 3x3.
        SingularMatrixError: If ``|det(m)| < SINGULAR_EPSILON``.
    """
    arr = _as_3x3(m)
    det = _det3_kernel(arr)
    if abs(det) < SINGULAR_EPSILON:
        raise SingularMatrixError(float(det))
    return np.ascontiguousarray(_cofactor_kernel(arr).T) / det


def apply(m: MatrixLike, vectors: ArrayFloat) -> ArrayFloat:
    """
    Apply a 3x3 matrix to column vector(s).

    Args:
        m: 3x3 matrix.
        vectors: A single (3,) triple or an (N, 3) batch.

    Returns:
        ``m · v`` for each triple, with the input's shape.
    """
    mat = _as_3x3(m)
    v = np.asarray(vectors, dtype=np.float64)
    if v.shape[-1] != 3 or v.ndim > 2:
        raise ShapeError(f"Expected (3,) or (N, 3) vectors, got shape {v.shape}")
    # Row-vector batch: (N, 3) @ M.T == (M @ v.T).T
    return v @ mat.T
