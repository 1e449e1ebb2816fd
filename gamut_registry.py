# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: gamut_registry.py — Reference data for illuminants, RGB colour
spaces and colour models, plus the matrices derived from them.

All tables are read-only mappings populated at import time.  Nothing in
this module mutates after initialisation, so lookups are thread-safe.

RGB → XYZ matrices are never hard-coded: they are re-derived from the
chromaticity primaries and the reference whitepoint (Lindbloom,
"RGB/XYZ Matrices"), so a new colour space needs registry data only.

References:
    - CIE 15:2004 "Colorimetry" (illuminant tristimulus values, 2° observer)
    - http://www.brucelindbloom.com/index.html?Eqn_RGB_XYZ_Matrix.html
    - http://www.brucelindbloom.com/index.html?Eqn_ChromAdapt.html
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping, Optional, Tuple, Type, TypeVar, Union

import numpy as np

from gamut_companding import CompandMethod, TransferParams
from gamut_errors import MissingReferenceDataError
from gamut_matrix import ArrayFloat, apply, diagonal, invert_3x3, multiply, transpose

__all__ = [
    # --- Enums ---
    "Illuminant",
    "ColorSpace",
    "ColorModel",
    "GraphType",
    "AdaptationMethod",
    # --- Records ---
    "ColorSpaceProfile",
    "ColorModelProfile",
    # --- Tables ---
    "ILLUMINANTS",
    "COLOR_SPACES",
    "COLOR_MODELS",
    "ADAPTATION_MATRICES",
    # --- Lookups ---
    "parse_illuminant",
    "parse_color_space",
    "parse_color_model",
    "whitepoint",
    "color_space_profile",
    "color_model_profile",
    # --- Derivations ---
    "primary_matrix",
    "derive_rgb_to_xyz_matrix",
    "derive_xyz_to_rgb_matrix",
    "derive_adaptation_matrix",
]


# =============================================================================
# 1. ENUMERATIONS
# =============================================================================

class Illuminant(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D50 = "D50"
    D55 = "D55"
    D65 = "D65"
    D75 = "D75"
    E = "E"
    F2 = "F2"
    F7 = "F7"
    F11 = "F11"


class ColorSpace(str, Enum):
    ADOBE_RGB = "adobeRGB"
    ADOBE_WIDE_GAMUT = "adobeWideGamut"
    APPLE_RGB = "appleRGB"
    DISPLAY_P3 = "displayP3"
    PRO_PHOTO = "proPhoto"
    SRGB = "sRGB"


class ColorModel(str, Enum):
    """Representation tag of a numeric triple."""
    RGB = "RGB"
    XYZ = "XYZ"
    XYY = "xyY"
    LUV = "LUV"
    LCHUV = "LCHuv"
    # Reserved: no transform edges are registered yet.
    LAB = "LAB"
    LCHAB = "LCHab"


class GraphType(str, Enum):
    BOX = "box"
    CYLINDRICAL = "cylindrical"


class AdaptationMethod(str, Enum):
    """Cone-response domain used for von Kries style chromatic adaptation."""
    BRADFORD = "bradford"
    VON_KRIES = "vonKries"
    XYZ_SCALING = "scale"


# =============================================================================
# 2. RECORDS
# =============================================================================

Chromaticity = Tuple[float, float]


@dataclass(frozen=True, slots=True)
class ColorSpaceProfile:
    """
    Static description of one RGB colour space.

    ``primaries`` are the (x, y) chromaticities of red, green and blue.
    The whitepoint of ``illuminant`` is expressed in the same xy system.
    """
    label:      str
    illuminant: Illuminant
    primaries:  Tuple[Chromaticity, Chromaticity, Chromaticity]
    transfer:   TransferParams

    def __post_init__(self) -> None:
        if len(self.primaries) != 3:
            raise ValueError(f"{self.label}: expected 3 primaries, got {len(self.primaries)}")
        for x, y in self.primaries:
            # y is a divisor in the primary matrix
            if y == 0.0:
                raise ValueError(f"{self.label}: primary ({x}, {y}) has y == 0")


@dataclass(frozen=True, slots=True)
class ColorModelProfile:
    """
    How a colour model is laid out when plotted.

    ``axis_order`` maps model components to render axes (e.g. lightness
    to the vertical axis).  ``ranges`` are the expected component bounds
    used for normalisation.
    """
    graph_type:          GraphType
    ranges:              Tuple[Tuple[float, float], Tuple[float, float], Tuple[float, float]]
    axis_order:          Optional[Tuple[int, int, int]] = None
    use_absolute_values: bool = False


# =============================================================================
# 3. TABLES
# =============================================================================

# XYZ tristimulus of each standard illuminant, Y normalised to 1.
ILLUMINANTS: Final[Mapping[Illuminant, Tuple[float, float, float]]] = MappingProxyType({
    Illuminant.A:   (1.09850, 1.0, 0.35585),
    Illuminant.B:   (0.99072, 1.0, 0.85223),
    Illuminant.C:   (0.98074, 1.0, 1.18232),
    Illuminant.D50: (0.96422, 1.0, 0.82521),
    Illuminant.D55: (0.95682, 1.0, 0.92149),
    Illuminant.D65: (0.95047, 1.0, 1.08883),
    Illuminant.D75: (0.94972, 1.0, 1.22638),
    Illuminant.E:   (1.00000, 1.0, 1.00000),
    Illuminant.F2:  (0.99186, 1.0, 0.67393),
    Illuminant.F7:  (0.95041, 1.0, 1.08747),
    Illuminant.F11: (1.00962, 1.0, 0.64350),
})

COLOR_SPACES: Final[Mapping[ColorSpace, ColorSpaceProfile]] = MappingProxyType({
    ColorSpace.ADOBE_RGB: ColorSpaceProfile(
        label="Adobe RGB 1998",
        illuminant=Illuminant.D65,
        primaries=((0.64, 0.33), (0.21, 0.71), (0.15, 0.06)),
        transfer=TransferParams(CompandMethod.PIECEWISE, gamma=20.0 / 9.0, alpha=1.099),
    ),
    ColorSpace.ADOBE_WIDE_GAMUT: ColorSpaceProfile(
        label="Adobe Wide Gamut",
        illuminant=Illuminant.D50,
        primaries=((0.7347, 0.2653), (0.1152, 0.8264), (0.1566, 0.0177)),
        transfer=TransferParams(CompandMethod.GAMMA, gamma=563.0 / 256.0),
    ),
    ColorSpace.APPLE_RGB: ColorSpaceProfile(
        label="Apple RGB",
        illuminant=Illuminant.D65,
        primaries=((0.625, 0.34), (0.28, 0.595), (0.155, 0.07)),
        transfer=TransferParams(CompandMethod.GAMMA, gamma=1.8),
    ),
    ColorSpace.DISPLAY_P3: ColorSpaceProfile(
        label="Display P3",
        illuminant=Illuminant.D65,
        primaries=((0.68, 0.32), (0.265, 0.69), (0.15, 0.06)),
        transfer=TransferParams(CompandMethod.PIECEWISE, gamma=12.0 / 5.0, alpha=1.055),
    ),
    ColorSpace.PRO_PHOTO: ColorSpaceProfile(
        label="ProPhoto",
        illuminant=Illuminant.D50,
        primaries=((0.734699, 0.265301), (0.159597, 0.840403), (0.036598, 0.000105)),
        transfer=TransferParams(CompandMethod.PIECEWISE, gamma=9.0 / 5.0, alpha=1.0),
    ),
    ColorSpace.SRGB: ColorSpaceProfile(
        label="sRGB",
        illuminant=Illuminant.D65,
        primaries=((0.64, 0.33), (0.30, 0.60), (0.15, 0.06)),
        transfer=TransferParams(CompandMethod.PIECEWISE, gamma=12.0 / 5.0, alpha=1.055),
    ),
})

COLOR_MODELS: Final[Mapping[ColorModel, ColorModelProfile]] = MappingProxyType({
    ColorModel.LAB: ColorModelProfile(
        graph_type=GraphType.BOX,
        ranges=((0.0, 100.0), (-200.0, 200.0), (-200.0, 200.0)),
        axis_order=(1, 0, 2),
    ),
    ColorModel.LCHAB: ColorModelProfile(
        graph_type=GraphType.CYLINDRICAL,
        ranges=((0.0, 100.0), (0.0, 200.0), (0.0, 360.0)),
        use_absolute_values=True,
    ),
    ColorModel.LCHUV: ColorModelProfile(
        graph_type=GraphType.CYLINDRICAL,
        ranges=((0.0, 100.0), (0.0, 400.0), (0.0, 360.0)),
        use_absolute_values=True,
    ),
    ColorModel.LUV: ColorModelProfile(
        graph_type=GraphType.BOX,
        ranges=((0.0, 100.0), (-134.0, 220.0), (-140.0, 122.0)),
        axis_order=(1, 0, 2),
    ),
    ColorModel.RGB: ColorModelProfile(
        graph_type=GraphType.BOX,
        ranges=((0.0, 255.0), (0.0, 255.0), (0.0, 255.0)),
    ),
    ColorModel.XYZ: ColorModelProfile(
        graph_type=GraphType.BOX,
        ranges=((0.0, 1.0), (0.0, 1.0), (0.0, 1.0)),
    ),
    ColorModel.XYY: ColorModelProfile(
        graph_type=GraphType.BOX,
        ranges=((0.0, 1.0), (0.0, 1.0), (0.0, 1.0)),
    ),
})


def _readonly(arr: ArrayFloat) -> ArrayFloat:
    arr.setflags(write=False)
    return arr


# Cone-response matrices (XYZ → LMS, column-vector convention).
ADAPTATION_MATRICES: Final[Mapping[AdaptationMethod, ArrayFloat]] = MappingProxyType({
    AdaptationMethod.BRADFORD: _readonly(np.array([
        [ 0.8951,  0.2664, -0.1614],
        [-0.7502,  1.7135,  0.0367],
        [ 0.0389, -0.0685,  1.0296],
    ], dtype=np.float64)),
    AdaptationMethod.VON_KRIES: _readonly(np.array([
        [ 0.4002,  0.7076, -0.0808],
        [-0.2263,  1.1653,  0.0457],
        [ 0.0,     0.0,     0.9182],
    ], dtype=np.float64)),
    AdaptationMethod.XYZ_SCALING: _readonly(np.eye(3, dtype=np.float64)),
})


# =============================================================================
# 4. LOOKUPS
# =============================================================================

_E = TypeVar("_E", bound=Enum)


def _parse(enum_type: Type[_E], key: Union[_E, str], field: str) -> _E:
    if isinstance(key, enum_type):
        return key
    try:
        return enum_type(key)
    except ValueError:
        pass
    # Accept member names too ("SRGB", "PRO_PHOTO")
    if isinstance(key, str) and key in enum_type.__members__:
        return enum_type.__members__[key]
    raise MissingReferenceDataError(field, key)


def parse_illuminant(key: Union[Illuminant, str]) -> Illuminant:
    """Resolve an illuminant key; unknown keys have no whitepoint."""
    return _parse(Illuminant, key, "whitepoint")


def parse_color_space(key: Union[ColorSpace, str]) -> ColorSpace:
    """Resolve a colour-space key; unknown keys have no primaries."""
    return _parse(ColorSpace, key, "primaries")


def parse_color_model(key: Union[ColorModel, str]) -> ColorModel:
    return _parse(ColorModel, key, "color model")


def whitepoint(illuminant: Union[Illuminant, str]) -> ArrayFloat:
    """XYZ whitepoint (Y = 1) of *illuminant* as a fresh (3,) array."""
    ill = parse_illuminant(illuminant)
    try:
        return np.array(ILLUMINANTS[ill], dtype=np.float64)
    except KeyError:
        raise MissingReferenceDataError("whitepoint", ill) from None


def color_space_profile(space: Union[ColorSpace, str]) -> ColorSpaceProfile:
    cs = parse_color_space(space)
    try:
        return COLOR_SPACES[cs]
    except KeyError:
        raise MissingReferenceDataError("primaries", cs) from None


def color_model_profile(model: Union[ColorModel, str]) -> ColorModelProfile:
    cm = parse_color_model(model)
    try:
        return COLOR_MODELS[cm]
    except KeyError:
        raise MissingReferenceDataError("color model", cm) from None


# =============================================================================
# 5. DERIVED MATRICES
# =============================================================================

def primary_matrix(primaries: Tuple[Chromaticity, ...]) -> ArrayFloat:
    """
    Unscaled primary matrix.

    Each primary (x, y) is projected to XYZ with Y = 1,
    ``[x/y, 1, (1 - x - y)/y]``, and the three vectors become the columns.
    """
    rows = [[x / y, 1.0, (1.0 - x - y) / y] for x, y in primaries]
    return transpose(rows)


@functools.lru_cache(maxsize=64)
def _rgb_to_xyz_cached(space: ColorSpace, reference: Illuminant) -> ArrayFloat:
    profile = color_space_profile(space)
    m = primary_matrix(profile.primaries)
    # Per-channel scale S = M⁻¹ · W so that RGB (1, 1, 1) maps to the whitepoint.
    s = apply(invert_3x3(m), whitepoint(reference))
    return _readonly(multiply(m, diagonal(s)))


def derive_rgb_to_xyz_matrix(
    space: Union[ColorSpace, str],
    reference_illuminant: Optional[Union[Illuminant, str]] = None,
) -> ArrayFloat:
    """
    Linear RGB → XYZ matrix of *space*.

    Args:
        space: RGB colour space.
        reference_illuminant: Whitepoint the matrix is scaled against;
            defaults to the colour space's native illuminant.

    Returns:
        Read-only 3x3 matrix (column-vector convention).

    Raises:
        MissingReferenceDataError: Unknown colour space or illuminant.
        SingularMatrixError: Degenerate (collinear) primaries.
    """
    cs = parse_color_space(space)
    ref = (
        color_space_profile(cs).illuminant
        if reference_illuminant is None
        else parse_illuminant(reference_illuminant)
    )
    return _rgb_to_xyz_cached(cs, ref)


@functools.lru_cache(maxsize=64)
def _xyz_to_rgb_cached(space: ColorSpace, reference: Illuminant) -> ArrayFloat:
    return _readonly(invert_3x3(_rgb_to_xyz_cached(space, reference)))


def derive_xyz_to_rgb_matrix(
    space: Union[ColorSpace, str],
    reference_illuminant: Optional[Union[Illuminant, str]] = None,
) -> ArrayFloat:
    """Inverse of :func:`derive_rgb_to_xyz_matrix`."""
    cs = parse_color_space(space)
    ref = (
        color_space_profile(cs).illuminant
        if reference_illuminant is None
        else parse_illuminant(reference_illuminant)
    )
    return _xyz_to_rgb_cached(cs, ref)


@functools.lru_cache(maxsize=128)
def _adaptation_cached(
    source: Illuminant, destination: Illuminant, method: AdaptationMethod
) -> ArrayFloat:
    cone = ADAPTATION_MATRICES[method]
    src_lms = apply(cone, whitepoint(source))
    dst_lms = apply(cone, whitepoint(destination))
    # Von Kries gain in the cone domain, sandwiched between M⁻¹ and M.
    gain = diagonal(dst_lms / src_lms)
    return _readonly(multiply(multiply(invert_3x3(cone), gain), cone))


def derive_adaptation_matrix(
    source: Union[Illuminant, str],
    destination: Union[Illuminant, str],
    method: AdaptationMethod = AdaptationMethod.BRADFORD,
) -> ArrayFloat:
    """
    Chromatic adaptation matrix from *source* to *destination* whitepoint.

    ``M_A⁻¹ · diag(ρd/ρs, γd/γs, βd/βs) · M_A`` where ``M_A`` is the
    cone-response matrix of *method*.
    """
    return _adaptation_cached(
        parse_illuminant(source), parse_illuminant(destination), AdaptationMethod(method)
    )
