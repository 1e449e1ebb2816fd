# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: gamut_companding.py — Per-colour-space transfer functions.

Two transfer families are supported:

  * Pure gamma
        linear(V)    = V ** γ
        nonlinear(v) = v ** (1/γ)

  * Piecewise (sRGB-style): a linear segment near black joined to an
    offset power law,
        nonlinear(v) = φ·v                      v <  K0/φ
                     = α·v^(1/γ) − (α − 1)      otherwise
        linear(V)    = V/φ                      V <= K0
                     = ((V + α − 1)/α)^γ        otherwise

    with the breakpoint and slope derived analytically from α and γ so
    that value and first derivative are continuous:
        K0 = (α − 1) / (γ − 1)
        φ  = α^γ (γ − 1)^(γ − 1) / ((α − 1)^(γ − 1) γ^γ)

    For sRGB (α = 1.055, γ = 2.4) this yields K0 ≈ 0.03929 and φ ≈ 12.92.
    α = 1 collapses the linear segment (φ → ∞, breakpoint 0) and the curve
    degenerates to a pure power law.

Values are expected normalised to [0, 1].  Negative inputs are mirrored
(sign(v)·f(|v|)) so out-of-gamut values survive an encode/decode pair.
"""

from __future__ import annotations

import functools
import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np
from numba import njit

from gamut_matrix import ArrayFloat

__all__ = [
    "CompandMethod",
    "TransferParams",
    "k_sub_zero",
    "phi",
    "breakpoints",
    "linearize",
    "delinearize",
]


class CompandMethod(str, Enum):
    """Transfer-curve family of a colour space."""
    GAMMA = "gamma"
    PIECEWISE = "sRGB"


@dataclass(frozen=True, slots=True)
class TransferParams:
    """Transfer-function parameters of one colour space."""
    method: CompandMethod
    gamma: float
    alpha: Optional[float] = None

    def __post_init__(self) -> None:
        if self.gamma <= 0.0:
            raise ValueError(f"gamma must be positive, got {self.gamma}")
        if self.method is CompandMethod.PIECEWISE:
            if self.alpha is None or self.alpha < 1.0:
                raise ValueError(
                    f"piecewise transfer requires alpha >= 1, got {self.alpha}"
                )
            if self.gamma <= 1.0:
                raise ValueError(
                    f"piecewise transfer requires gamma > 1, got {self.gamma}"
                )


# =============================================================================
# 1. ANALYTIC CONSTANTS
# =============================================================================

def k_sub_zero(alpha: float, gamma: float) -> float:
    """Breakpoint in the encoded (non-linear) domain."""
    return (alpha - 1.0) / (gamma - 1.0)


def phi(alpha: float, gamma: float) -> float:
    """Slope of the linear segment near black."""
    if alpha == 1.0:
        return math.inf
    return (alpha ** gamma * (gamma - 1.0) ** (gamma - 1.0)) / (
        (alpha - 1.0) ** (gamma - 1.0) * gamma ** gamma
    )


@functools.lru_cache(maxsize=32)
def breakpoints(alpha: float, gamma: float) -> Tuple[float, float, float]:
    """
    Derived piecewise constants.

    Returns:
        ``(phi, linear_breakpoint, encoded_breakpoint)`` where the linear
        breakpoint is ``K0 / phi`` and the encoded breakpoint is ``K0``.
    """
    p = phi(alpha, gamma)
    k0 = k_sub_zero(alpha, gamma)
    linear_bp = 0.0 if math.isinf(p) else k0 / p
    return p, linear_bp, k0


# =============================================================================
# 2. NUMBA KERNELS
# =============================================================================

@njit(cache=True)
def _gamma_linear_kernel(values: ArrayFloat, gamma: float) -> ArrayFloat:
    out = np.empty_like(values)
    v_flat = values.ravel()
    out_flat = out.ravel()
    for i in range(values.size):
        v = v_flat[i]
        if v < 0.0:
            out_flat[i] = -((-v) ** gamma)
        else:
            out_flat[i] = v ** gamma
    return out


@njit(cache=True)
def _gamma_nonlinear_kernel(values: ArrayFloat, gamma: float) -> ArrayFloat:
    out = np.empty_like(values)
    v_flat = values.ravel()
    out_flat = out.ravel()
    inv_gamma = 1.0 / gamma
    for i in range(values.size):
        v = v_flat[i]
        if v < 0.0:
            out_flat[i] = -((-v) ** inv_gamma)
        else:
            out_flat[i] = v ** inv_gamma
    return out


@njit(cache=True)
def _piecewise_linear_kernel(
    values: ArrayFloat, alpha: float, gamma: float, slope: float, encoded_bp: float
) -> ArrayFloat:
    out = np.empty_like(values)
    v_flat = values.ravel()
    out_flat = out.ravel()
    offset = alpha - 1.0
    for i in range(values.size):
        v = v_flat[i]
        sign = 1.0
        if v < 0.0:
            sign = -1.0
            v = -v
        if v <= encoded_bp:
            # slope is +inf when alpha == 1; only v == 0 reaches here then
            out_flat[i] = sign * (v / slope)
        else:
            out_flat[i] = sign * (((v + offset) / alpha) ** gamma)
    return out


@njit(cache=True)
def _piecewise_nonlinear_kernel(
    values: ArrayFloat, alpha: float, gamma: float, slope: float, linear_bp: float
) -> ArrayFloat:
    out = np.empty_like(values)
    v_flat = values.ravel()
    out_flat = out.ravel()
    offset = alpha - 1.0
    inv_gamma = 1.0 / gamma
    for i in range(values.size):
        v = v_flat[i]
        sign = 1.0
        if v < 0.0:
            sign = -1.0
            v = -v
        if v < linear_bp:
            out_flat[i] = sign * (slope * v)
        else:
            out_flat[i] = sign * (alpha * v ** inv_gamma - offset)
    return out


# =============================================================================
# 3. PUBLIC API
# =============================================================================

def _prepare(values: ArrayFloat) -> ArrayFloat:
    return np.ascontiguousarray(np.array(values, dtype=np.float64))


def linearize(values: ArrayFloat, params: TransferParams) -> ArrayFloat:
    """
    Decode companded (display-referred) values into linear light.

    Args:
        values: Normalised values of any shape, typically (3,) or (N, 3).
        params: Transfer parameters of the source colour space.

    Returns:
        Linear-light values with the same shape.
    """
    arr = _prepare(values)
    if params.method is CompandMethod.GAMMA:
        return _gamma_linear_kernel(arr, params.gamma)
    alpha = float(params.alpha)
    slope, _, encoded_bp = breakpoints(alpha, params.gamma)
    return _piecewise_linear_kernel(arr, alpha, params.gamma, slope, encoded_bp)


def delinearize(values: ArrayFloat, params: TransferParams) -> ArrayFloat:
    """
    Encode linear-light values with the colour space's transfer curve.

    Args:
        values: Linear values of any shape, typically (3,) or (N, 3).
        params: Transfer parameters of the destination colour space.

    Returns:
        Companded values with the same shape.
    """
    arr = _prepare(values)
    if params.method is CompandMethod.GAMMA:
        return _gamma_nonlinear_kernel(arr, params.gamma)
    alpha = float(params.alpha)
    slope, linear_bp, _ = breakpoints(alpha, params.gamma)
    return _piecewise_nonlinear_kernel(arr, alpha, params.gamma, slope, linear_bp)
