# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: gamut_spectral.py — Colour-matching functions and the spectral locus.

The CIE 1931 2° colour-matching functions are a static input table
(wavelength → x̄, ȳ, z̄).  They are either read from a CSV asset or, when
no file is at hand, approximated analytically with the multi-lobe
piecewise-Gaussian fit of Wyman, Sloan & Shirley (2013).

References:
    - CIE 15:2004 "Colorimetry", Table T.4
    - Wyman, C., Sloan, P.-P., & Shirley, P. (2013). "Simple Analytic
      Approximations to the CIE XYZ Color Matching Functions".
      Journal of Computer Graphics Techniques 2(2), 1-11.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final, Sequence, Tuple, Union

import numpy as np
from scipy.interpolate import PchipInterpolator

from gamut_colorengine import Color, xyz_to_xyy
from gamut_matrix import ArrayFloat
from gamut_registry import ColorModel, ColorSpace, Illuminant

__all__ = [
    "VISIBLE_RANGE",
    "CMFTable",
    "load_cmf_csv",
    "approximate_cmf",
    "resample_cmf",
    "spectral_locus",
]

# Wavelength span rendered as the spectral locus (nm)
VISIBLE_RANGE: Final[Tuple[float, float]] = (390.0, 700.0)

# (alpha, beta, gamma, delta) per Gaussian lobe
_LOBES_X: Final = (
    (0.362, 442.0, 0.0624, 0.0374),
    (1.056, 599.8, 0.0264, 0.0323),
    (-0.065, 501.1, 0.0490, 0.0382),
)
_LOBES_Y: Final = (
    (0.821, 568.8, 0.0213, 0.0247),
    (0.286, 530.9, 0.0613, 0.0322),
)
_LOBES_Z: Final = (
    (1.217, 437.0, 0.0845, 0.0278),
    (0.681, 459.0, 0.0385, 0.0725),
)


@dataclass(frozen=True)
class CMFTable:
    """Tabulated colour-matching functions on a strictly increasing grid."""
    wavelengths: ArrayFloat = field(repr=False)
    xyz: ArrayFloat = field(repr=False)

    def __post_init__(self) -> None:
        wl = np.array(self.wavelengths, dtype=np.float64).ravel()
        xyz = np.array(self.xyz, dtype=np.float64)
        if xyz.ndim != 2 or xyz.shape != (wl.size, 3):
            raise ValueError(
                f"xyz must have shape ({wl.size}, 3) to match the wavelengths, got {xyz.shape}"
            )
        if wl.size < 2 or np.any(np.diff(wl) <= 0.0):
            raise ValueError("Wavelengths must be strictly increasing with at least two samples")
        wl.setflags(write=False)
        xyz.setflags(write=False)
        object.__setattr__(self, "wavelengths", wl)
        object.__setattr__(self, "xyz", xyz)

    @property
    def wl_bounds(self) -> Tuple[float, float]:
        return float(self.wavelengths[0]), float(self.wavelengths[-1])

    def __len__(self) -> int:
        return self.wavelengths.size

    def __repr__(self) -> str:
        lo, hi = self.wl_bounds
        return f"CMFTable({len(self)} samples, {lo:g}-{hi:g} nm)"


def _is_numeric_row(line: str) -> bool:
    try:
        [float(cell) for cell in line.split(",")]
    except ValueError:
        return False
    return True


def load_cmf_csv(path: Union[str, os.PathLike]) -> CMFTable:
    """
    Read ``wavelength,x̄,ȳ,z̄`` rows from a CSV file.

    A single header line is skipped when present.

    Raises:
        ValueError: If a row does not have four numeric columns, or the
            wavelengths are not strictly increasing.
    """
    with open(path, "r", encoding="utf-8") as f:
        first = f.readline().strip()
    skip = 0 if _is_numeric_row(first) else 1
    data = np.loadtxt(path, delimiter=",", skiprows=skip, dtype=np.float64, ndmin=2)
    if data.shape[1] != 4:
        raise ValueError(f"Expected 4 columns (wavelength, x, y, z), got {data.shape[1]}")
    return CMFTable(data[:, 0], data[:, 1:])


def _lobe_sum(wl: ArrayFloat, lobes: Sequence[Tuple[float, float, float, float]]) -> ArrayFloat:
    out = np.zeros_like(wl)
    for alpha, beta, gamma, delta in lobes:
        t = (wl - beta) * np.where(wl < beta, gamma, delta)
        out += alpha * np.exp(-0.5 * t * t)
    return out


def approximate_cmf(wavelengths: Union[ArrayFloat, Sequence[float]]) -> CMFTable:
    """
    Analytic CIE 1931 2° observer on the given wavelength grid (nm).

    Accurate to roughly 1% of the peak over the visible range.
    """
    wl = np.asarray(wavelengths, dtype=np.float64).ravel()
    xyz = np.stack(
        [_lobe_sum(wl, _LOBES_X), _lobe_sum(wl, _LOBES_Y), _lobe_sum(wl, _LOBES_Z)],
        axis=1,
    )
    return CMFTable(wl, xyz)


def resample_cmf(table: CMFTable, wavelengths: Union[ArrayFloat, Sequence[float]]) -> CMFTable:
    """
    Resample a table onto a new grid with PCHIP interpolation.

    PCHIP preserves monotonicity between samples, so the functions never
    overshoot below zero.  Points outside the table are set to zero.
    """
    wl = np.asarray(wavelengths, dtype=np.float64).ravel()
    values = PchipInterpolator(table.wavelengths, table.xyz, axis=0, extrapolate=False)(wl)
    return CMFTable(wl, np.nan_to_num(values, nan=0.0))


def spectral_locus(
    table: CMFTable,
    start: float = VISIBLE_RANGE[0],
    stop: float = VISIBLE_RANGE[1],
) -> ArrayFloat:
    """
    Chromaticities of monochromatic stimuli as an ``(N, 3)`` xyY array.

    Samples outside ``[start, stop]`` are dropped.
    """
    mask = (table.wavelengths >= start) & (table.wavelengths <= stop)
    if not np.any(mask):
        raise ValueError(f"No samples of the table fall within [{start}, {stop}] nm")
    xyz = Color(ColorModel.XYZ, table.xyz[mask])
    return np.array(xyz_to_xyy(xyz, ColorSpace.SRGB, Illuminant.E).values)
