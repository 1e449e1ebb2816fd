# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Transform Graph
===============
Dispatch table of pure conversion functions keyed by an ordered pair
``(source model, destination model)``.

Design:
1. Tagged values: every numeric triple travels inside a :class:`Color`
   carrying its :class:`ColorModel`.  Edges verify the tag, so an RGB
   triple can never reach an XYZ-only edge by accident.
2. No transitive closure: composite conversions (RGB → LCHuv, RGB → xyY,
   ...) are registered edges of their own, composed internally from the
   ``_raw`` stage functions.  Unregistered pairs raise.
3. Batching: a Color holds a (3,) triple or an (N, 3) batch; all stages
   are vectorised over the batch.

Conventions:
- RGB values are encoded integers in ``[0, 2**bit_depth - 1]`` on both
  sides of the graph.  RGB → XYZ normalises, XYZ → RGB expands.
- XYZ values are relative to the requested reference illuminant (Y of the
  whitepoint = 1).  RGB edges adapt between the colour space's native
  illuminant and the reference illuminant (Bradford by default).
- LCHuv hue is in degrees, normalised to [0, 360).

References:
    - CIE 15:2004 "Colorimetry" (CIE 1976 L*u*v*)
    - http://www.brucelindbloom.com/index.html?Eqn_XYZ_to_Luv.html
    - http://www.brucelindbloom.com/index.html?Eqn_Luv_to_XYZ.html
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Final, Mapping, Optional, Tuple, TypeAlias, Union

import numpy as np

from gamut_companding import delinearize, linearize
from gamut_errors import ModelMismatchError, ShapeError, UnsupportedTransformError
from gamut_matrix import ArrayFloat, apply
from gamut_registry import (
    AdaptationMethod,
    ColorModel,
    ColorSpace,
    Illuminant,
    color_model_profile,
    color_space_profile,
    derive_adaptation_matrix,
    derive_rgb_to_xyz_matrix,
    derive_xyz_to_rgb_matrix,
    parse_color_model,
    parse_color_space,
    parse_illuminant,
    whitepoint,
)

__all__ = [
    # --- Types ---
    "Color",
    "TransformOptions",
    "TransformFn",
    # --- Constants ---
    "LUV_EPSILON",
    "LUV_KAPPA",
    "TRANSFORM_EDGES",
    # --- Graph ---
    "transform",
    "chromatic_adaptation",
    # --- Edges ---
    "rgb_to_xyz",
    "xyz_to_rgb",
    "xyz_to_luv",
    "luv_to_xyz",
    "luv_to_lchuv",
    "lchuv_to_luv",
    "xyz_to_xyy",
    "xyy_to_xyz",
    # --- Helpers ---
    "normalize_rgb",
    "expand_rgb",
    "normalize_to_model_range",
    "polar_coordinates",
    "contrast_ratio",
]

SpaceKey: TypeAlias = Union[ColorSpace, str]
IlluminantKey: TypeAlias = Union[Illuminant, str]

# --- Exact Rational CIE Constants ---
# Below (6/29)^3 the lightness curve switches from cube root to linear.
LUV_EPSILON: Final[float] = 216.0 / 24389.0          # (6/29)^3 ~ 0.008856
LUV_KAPPA: Final[float] = 24389.0 / 27.0             # (29/3)^3 ~ 903.296
_RAD2DEG: Final[float] = 180.0 / np.pi
_DEG2RAD: Final[float] = np.pi / 180.0


# =============================================================================
# 1. TAGGED COLOUR
# =============================================================================

@dataclass(frozen=True, slots=True)
class Color:
    """
    A triple (or batch of triples) tagged with its colour model.

    ``values`` is stored as a read-only float64 array of shape (3,) or
    (N, 3).  Construct with any array-like.
    """
    model:  ColorModel
    values: ArrayFloat = field(repr=False)

    def __post_init__(self) -> None:
        arr = np.array(self.values, dtype=np.float64)
        if arr.ndim not in (1, 2) or arr.shape[-1] != 3:
            raise ShapeError(f"Expected shape (3,) or (N, 3), got {arr.shape}")
        arr.setflags(write=False)
        object.__setattr__(self, "model", parse_color_model(self.model))
        object.__setattr__(self, "values", arr)

    @property
    def is_batch(self) -> bool:
        return self.values.ndim == 2

    def __len__(self) -> int:
        return self.values.shape[0] if self.is_batch else 1

    def tolist(self) -> list:
        return self.values.tolist()

    def __repr__(self) -> str:
        if self.is_batch:
            return f"Color({self.model.value}, batch={self.values.shape[0]})"
        return f"Color({self.model.value}, {self.values.tolist()})"


@dataclass(frozen=True, slots=True)
class TransformOptions:
    """
    Options shared by all edges.

    Attributes:
        compand: Apply the colour space's transfer curve on RGB edges
            (linearise on the way in, re-encode on the way out).
        bit_depth: Bit depth of the encoded RGB domain.
        adaptation: Cone-response domain for chromatic adaptation.
    """
    compand:    bool = True
    bit_depth:  int = 8
    adaptation: AdaptationMethod = AdaptationMethod.BRADFORD


_DEFAULT_OPTIONS: Final[TransformOptions] = TransformOptions()

TransformFn: TypeAlias = Callable[..., Color]


def _expect(color: Color, model: ColorModel) -> ArrayFloat:
    if not isinstance(color, Color):
        raise ModelMismatchError(model, type(color).__name__)
    if color.model is not model:
        raise ModelMismatchError(model, color.model)
    return np.atleast_2d(color.values)


def _wrap(model: ColorModel, values: ArrayFloat, like: Color) -> Color:
    return Color(model, values if like.is_batch else values[0])


# =============================================================================
# 2. HELPERS
# =============================================================================

def normalize_rgb(rgb: ArrayFloat, bit_depth: int = 8) -> ArrayFloat:
    """Encoded RGB ``[0, 2**depth - 1]`` → ``[0, 1]``."""
    return np.asarray(rgb, dtype=np.float64) / float(2 ** bit_depth - 1)


def expand_rgb(rgb: ArrayFloat, bit_depth: int = 8) -> ArrayFloat:
    """Normalised RGB ``[0, 1]`` → encoded ``[0, 2**depth - 1]``."""
    return np.asarray(rgb, dtype=np.float64) * float(2 ** bit_depth - 1)


def normalize_to_model_range(values: ArrayFloat, model: Union[ColorModel, str]) -> ArrayFloat:
    """
    Scale components by the span of the model's expected ranges.

    Cylindrical models (``use_absolute_values``) are non-negative already
    and are divided by their spans directly. Signed box models such as LUV
    are returned as magnitudes.
    """
    profile = color_model_profile(model)
    span = np.array([hi - lo for lo, hi in profile.ranges], dtype=np.float64)
    scaled = np.asarray(values, dtype=np.float64) / span
    if profile.use_absolute_values:
        return scaled
    return np.abs(scaled)


def polar_coordinates(lch_normalized: ArrayFloat) -> ArrayFloat:
    """
    Normalised LCh → cylindrical render coordinates ``[C·cos h, L, C·sin h]``.

    Hue is a fraction of a full turn (h = 1 ↔ 360°).
    """
    lch = np.atleast_2d(np.asarray(lch_normalized, dtype=np.float64))
    hue = lch[:, 2] * 2.0 * np.pi
    chroma = lch[:, 1]
    out = np.empty_like(lch)
    out[:, 0] = chroma * np.cos(hue)
    out[:, 1] = lch[:, 0]
    out[:, 2] = chroma * np.sin(hue)
    return out if np.ndim(lch_normalized) == 2 else out[0]


def contrast_ratio(xyz_a: Color, xyz_b: Color) -> float:
    """WCAG contrast ratio of two XYZ colours: ``(Y_light + 0.05) / (Y_dark + 0.05)``."""
    ya = float(_expect(xyz_a, ColorModel.XYZ)[0, 1])
    yb = float(_expect(xyz_b, ColorModel.XYZ)[0, 1])
    light, dark = max(ya, yb), min(ya, yb)
    return (light + 0.05) / (dark + 0.05)


def _uv_prime(xyz: ArrayFloat) -> Tuple[ArrayFloat, ArrayFloat]:
    """CIE 1976 u', v'; black (zero denominator) maps to (0, 0)."""
    denom = xyz[..., 0] + 15.0 * xyz[..., 1] + 3.0 * xyz[..., 2]
    with np.errstate(divide="ignore", invalid="ignore"):
        u = 4.0 * xyz[..., 0] / denom
        v = 9.0 * xyz[..., 1] / denom
    # Near-black fallback: the only place NaN is masked in the graph.
    return np.nan_to_num(u, nan=0.0), np.nan_to_num(v, nan=0.0)


def _white_uv_prime(wp: ArrayFloat) -> Tuple[float, float]:
    denom = wp[0] + 15.0 * wp[1] + 3.0 * wp[2]
    return 4.0 * wp[0] / denom, 9.0 * wp[1] / denom


# =============================================================================
# 3. CHROMATIC ADAPTATION
# =============================================================================

def _adapt_raw(
    xyz: ArrayFloat,
    source: Illuminant,
    destination: Illuminant,
    method: AdaptationMethod,
) -> ArrayFloat:
    if source is destination:
        # Identity: no matrix product, values pass through bit-for-bit.
        return np.array(xyz, dtype=np.float64, copy=True)
    return apply(derive_adaptation_matrix(source, destination, method), xyz)


def chromatic_adaptation(
    color: Color,
    source: IlluminantKey,
    destination: IlluminantKey,
    method: AdaptationMethod = AdaptationMethod.BRADFORD,
) -> Color:
    """
    Adapt an XYZ colour from *source* to *destination* whitepoint.

    Returns the input values unchanged when both illuminants are equal;
    callers must not assume a matrix product took place.
    """
    xyz = _expect(color, ColorModel.XYZ)
    out = _adapt_raw(xyz, parse_illuminant(source), parse_illuminant(destination), method)
    return _wrap(ColorModel.XYZ, out, color)


# =============================================================================
# 4. RAW STAGES  (assume validated (N, 3) float64)
# =============================================================================

def _rgb_to_xyz_raw(
    rgb: ArrayFloat, space: ColorSpace, reference: Illuminant, opts: TransformOptions
) -> ArrayFloat:
    profile = color_space_profile(space)
    normalized = normalize_rgb(rgb, opts.bit_depth)
    linear = linearize(normalized, profile.transfer) if opts.compand else normalized
    xyz = apply(derive_rgb_to_xyz_matrix(space), linear)
    return _adapt_raw(xyz, profile.illuminant, reference, opts.adaptation)


def _xyz_to_rgb_raw(
    xyz: ArrayFloat, space: ColorSpace, reference: Illuminant, opts: TransformOptions
) -> ArrayFloat:
    profile = color_space_profile(space)
    native = _adapt_raw(xyz, reference, profile.illuminant, opts.adaptation)
    linear = apply(derive_xyz_to_rgb_matrix(space), native)
    encoded = delinearize(linear, profile.transfer) if opts.compand else linear
    return expand_rgb(encoded, opts.bit_depth)


def _xyz_to_luv_raw(xyz: ArrayFloat, reference: Illuminant) -> ArrayFloat:
    wp = whitepoint(reference)
    ur, vr = _white_uv_prime(wp)
    u_prime, v_prime = _uv_prime(xyz)

    yr = xyz[:, 1] / wp[1]
    L = np.where(yr > LUV_EPSILON, 116.0 * np.cbrt(yr) - 16.0, LUV_KAPPA * yr)

    out = np.empty_like(xyz)
    out[:, 0] = L
    out[:, 1] = 13.0 * L * (u_prime - ur)
    out[:, 2] = 13.0 * L * (v_prime - vr)
    return out


def _luv_to_xyz_raw(luv: ArrayFloat, reference: Illuminant) -> ArrayFloat:
    """
    Closed-form inverse of the forward L*u*v* equations.

        u' = u / (13 L) + u'r        v' = v / (13 L) + v'r
        Y  = Yr ((L + 16)/116)^3     if L > κε   else  Yr L / κ
        X  = Y · 9u' / (4v')
        Z  = Y · (12 − 3u' − 20v') / (4v')

    L = 0 is black.  Negative L (negative luminance after adaptation) stays on
    the linear segment and inverts like any other value.
    """
    wp = whitepoint(reference)
    ur, vr = _white_uv_prime(wp)
    L, u, v = luv[:, 0], luv[:, 1], luv[:, 2]

    Y = np.where(
        L > LUV_KAPPA * LUV_EPSILON,
        ((L + 16.0) / 116.0) ** 3,
        L / LUV_KAPPA,
    ) * wp[1]

    out = np.zeros_like(luv)
    lit = L != 0.0
    if np.any(lit):
        inv_13L = 1.0 / (13.0 * L[lit])
        up = u[lit] * inv_13L + ur
        vp = v[lit] * inv_13L + vr
        valid = vp != 0.0
        Yl = Y[lit]
        X = np.zeros_like(Yl)
        Z = np.zeros_like(Yl)
        X[valid] = Yl[valid] * 9.0 * up[valid] / (4.0 * vp[valid])
        Z[valid] = Yl[valid] * (12.0 - 3.0 * up[valid] - 20.0 * vp[valid]) / (4.0 * vp[valid])
        out[lit, 0] = X
        out[lit, 1] = Yl
        out[lit, 2] = Z
    return out


def _luv_to_lchuv_raw(luv: ArrayFloat) -> ArrayFloat:
    out = np.empty_like(luv)
    out[:, 0] = luv[:, 0]
    out[:, 1] = np.hypot(luv[:, 1], luv[:, 2])
    h = np.arctan2(luv[:, 2], luv[:, 1]) * _RAD2DEG
    h = np.where(h < 0.0, h + 360.0, h)
    out[:, 2] = np.where(h >= 360.0, h - 360.0, h)
    return out


def _lchuv_to_luv_raw(lch: ArrayFloat) -> ArrayFloat:
    h = lch[:, 2] * _DEG2RAD
    out = np.empty_like(lch)
    out[:, 0] = lch[:, 0]
    out[:, 1] = lch[:, 1] * np.cos(h)
    out[:, 2] = lch[:, 1] * np.sin(h)
    return out


def _xyz_to_xyy_raw(xyz: ArrayFloat, reference: Illuminant) -> ArrayFloat:
    total = np.sum(xyz, axis=1)
    lit = total != 0.0
    out = np.empty_like(xyz)
    # Black takes the reference whitepoint chromaticity (Lindbloom convention).
    wp = whitepoint(reference)
    out[~lit, 0] = wp[0] / wp.sum()
    out[~lit, 1] = wp[1] / wp.sum()
    out[lit, 0] = xyz[lit, 0] / total[lit]
    out[lit, 1] = xyz[lit, 1] / total[lit]
    out[:, 2] = xyz[:, 1]
    return out


def _xyy_to_xyz_raw(xyy: ArrayFloat) -> ArrayFloat:
    x, y, Y = xyy[:, 0], xyy[:, 1], xyy[:, 2]
    out = np.zeros_like(xyy)
    lit = y != 0.0
    factor = Y[lit] / y[lit]
    out[lit, 0] = x[lit] * factor
    out[lit, 1] = Y[lit]
    out[lit, 2] = (1.0 - x[lit] - y[lit]) * factor
    return out


# =============================================================================
# 5. EDGES  (public, tag-checked)
# =============================================================================

def _resolve(space: SpaceKey, illuminant: IlluminantKey, options: Optional[TransformOptions]):
    return (
        parse_color_space(space),
        parse_illuminant(illuminant),
        options if options is not None else _DEFAULT_OPTIONS,
    )


def rgb_to_xyz(
    color: Color,
    color_space: SpaceKey,
    illuminant: IlluminantKey,
    options: Optional[TransformOptions] = None,
) -> Color:
    """
    Encoded RGB → XYZ relative to *illuminant*.

    Normalise by bit depth, optionally linearise, multiply by the
    registry matrix, then adapt from the colour space's native
    illuminant to *illuminant* (skipped when they match).
    """
    rgb = _expect(color, ColorModel.RGB)
    cs, ill, opts = _resolve(color_space, illuminant, options)
    return _wrap(ColorModel.XYZ, _rgb_to_xyz_raw(rgb, cs, ill, opts), color)


def xyz_to_rgb(
    color: Color,
    color_space: SpaceKey,
    illuminant: IlluminantKey,
    options: Optional[TransformOptions] = None,
) -> Color:
    """Inverse of :func:`rgb_to_xyz`; output is unclipped encoded RGB."""
    xyz = _expect(color, ColorModel.XYZ)
    cs, ill, opts = _resolve(color_space, illuminant, options)
    return _wrap(ColorModel.RGB, _xyz_to_rgb_raw(xyz, cs, ill, opts), color)


def xyz_to_luv(
    color: Color,
    color_space: SpaceKey,
    illuminant: IlluminantKey,
    options: Optional[TransformOptions] = None,
) -> Color:
    """XYZ → CIE 1976 L*u*v* referenced to the whitepoint of *illuminant*."""
    xyz = _expect(color, ColorModel.XYZ)
    _, ill, _ = _resolve(color_space, illuminant, options)
    return _wrap(ColorModel.LUV, _xyz_to_luv_raw(xyz, ill), color)


def luv_to_xyz(
    color: Color,
    color_space: SpaceKey,
    illuminant: IlluminantKey,
    options: Optional[TransformOptions] = None,
) -> Color:
    luv = _expect(color, ColorModel.LUV)
    _, ill, _ = _resolve(color_space, illuminant, options)
    return _wrap(ColorModel.XYZ, _luv_to_xyz_raw(luv, ill), color)


def luv_to_lchuv(
    color: Color,
    color_space: SpaceKey = ColorSpace.SRGB,
    illuminant: IlluminantKey = Illuminant.D65,
    options: Optional[TransformOptions] = None,
) -> Color:
    """Cartesian u*v* → polar chroma / hue (degrees in [0, 360))."""
    luv = _expect(color, ColorModel.LUV)
    return _wrap(ColorModel.LCHUV, _luv_to_lchuv_raw(luv), color)


def lchuv_to_luv(
    color: Color,
    color_space: SpaceKey = ColorSpace.SRGB,
    illuminant: IlluminantKey = Illuminant.D65,
    options: Optional[TransformOptions] = None,
) -> Color:
    lch = _expect(color, ColorModel.LCHUV)
    return _wrap(ColorModel.LUV, _lchuv_to_luv_raw(lch), color)


def xyz_to_xyy(
    color: Color,
    color_space: SpaceKey,
    illuminant: IlluminantKey,
    options: Optional[TransformOptions] = None,
) -> Color:
    """
    XYZ → xyY.

    Black (X + Y + Z = 0) takes the chromaticity of the reference
    whitepoint with Y = 0 instead of producing NaN.
    """
    xyz = _expect(color, ColorModel.XYZ)
    _, ill, _ = _resolve(color_space, illuminant, options)
    return _wrap(ColorModel.XYY, _xyz_to_xyy_raw(xyz, ill), color)


def xyy_to_xyz(
    color: Color,
    color_space: SpaceKey = ColorSpace.SRGB,
    illuminant: IlluminantKey = Illuminant.D65,
    options: Optional[TransformOptions] = None,
) -> Color:
    """xyY → XYZ; y = 0 yields black."""
    xyy = _expect(color, ColorModel.XYY)
    return _wrap(ColorModel.XYZ, _xyy_to_xyz_raw(xyy), color)


# --- Composed edges ---

def _compose(*stages: TransformFn) -> TransformFn:
    """Chain edges left to right, threading the same space/illuminant/options."""
    def composed(
        color: Color,
        color_space: SpaceKey,
        illuminant: IlluminantKey,
        options: Optional[TransformOptions] = None,
    ) -> Color:
        for stage in stages:
            color = stage(color, color_space, illuminant, options)
        return color
    composed.__name__ = "_then_".join(s.__name__ for s in stages)
    composed.__doc__ = "Composed edge: " + " → ".join(s.__name__ for s in stages)
    return composed


rgb_to_luv = _compose(rgb_to_xyz, xyz_to_luv)
luv_to_rgb = _compose(luv_to_xyz, xyz_to_rgb)
rgb_to_lchuv = _compose(rgb_to_xyz, xyz_to_luv, luv_to_lchuv)
lchuv_to_rgb = _compose(lchuv_to_luv, luv_to_xyz, xyz_to_rgb)
xyz_to_lchuv = _compose(xyz_to_luv, luv_to_lchuv)
lchuv_to_xyz = _compose(lchuv_to_luv, luv_to_xyz)
rgb_to_xyy = _compose(rgb_to_xyz, xyz_to_xyy)
xyy_to_rgb = _compose(xyy_to_xyz, xyz_to_rgb)


# =============================================================================
# 6. DISPATCH
# =============================================================================

_TRANSFORM_MAP: Final[Mapping[Tuple[ColorModel, ColorModel], TransformFn]] = MappingProxyType({
    (ColorModel.RGB, ColorModel.XYZ):     rgb_to_xyz,
    (ColorModel.XYZ, ColorModel.RGB):     xyz_to_rgb,
    (ColorModel.XYZ, ColorModel.LUV):     xyz_to_luv,
    (ColorModel.LUV, ColorModel.XYZ):     luv_to_xyz,
    (ColorModel.LUV, ColorModel.LCHUV):   luv_to_lchuv,
    (ColorModel.LCHUV, ColorModel.LUV):   lchuv_to_luv,
    (ColorModel.XYZ, ColorModel.XYY):     xyz_to_xyy,
    (ColorModel.XYY, ColorModel.XYZ):     xyy_to_xyz,
    (ColorModel.RGB, ColorModel.LUV):     rgb_to_luv,
    (ColorModel.LUV, ColorModel.RGB):     luv_to_rgb,
    (ColorModel.RGB, ColorModel.LCHUV):   rgb_to_lchuv,
    (ColorModel.LCHUV, ColorModel.RGB):   lchuv_to_rgb,
    (ColorModel.XYZ, ColorModel.LCHUV):   xyz_to_lchuv,
    (ColorModel.LCHUV, ColorModel.XYZ):   lchuv_to_xyz,
    (ColorModel.RGB, ColorModel.XYY):     rgb_to_xyy,
    (ColorModel.XYY, ColorModel.RGB):     xyy_to_rgb,
})

TRANSFORM_EDGES: Final[frozenset] = frozenset(_TRANSFORM_MAP)


def transform(
    source: Union[ColorModel, str], destination: Union[ColorModel, str]
) -> TransformFn:
    """
    Look up the registered edge for ``source → destination``.

    Usage::

        white = Color(ColorModel.RGB, [255, 255, 255])
        luv = transform(ColorModel.RGB, ColorModel.LUV)(white, ColorSpace.SRGB, Illuminant.D65)

    Raises:
        UnsupportedTransformError: The pair is not a registered edge
            (including identity pairs and the reserved LAB / LCHab models).
    """
    src = parse_color_model(source)
    dst = parse_color_model(destination)
    try:
        return _TRANSFORM_MAP[(src, dst)]
    except KeyError:
        raise UnsupportedTransformError(src, dst) from None
