# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Geometry Engine
===============
Boundary-surface lattices of the RGB unit cube and their projection into
colour models.

A lattice holds six *paths*, one per cube face, each a square grid of
``(d + 1)**2`` points for ``d`` divisions:

    face order   X=0, X=1, Y=0, Y=1, Z=0, Z=1
    point order  row-major over the two free axes (outer i, inner j)
    X face       [c, a_i, b_j]
    Y face       [a_i, c, b_j]
    Z face       [a_i, b_j, c]

Facet indices are derived purely from that ordering: vertex ``k`` of path
``p`` sits at ``p * (d + 1)**2 + k`` in the flattened vertex buffer, and
every cell of a face contributes two triangles.  Faces are not stitched to
each other; shared cube edges are duplicated vertices.

Lattices are generated once at high fidelity and *trimmed* (re-selected,
never interpolated) to coarser grids.
"""

from __future__ import annotations

import json
import math
import warnings
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from numba import njit

from gamut_colorengine import (
    Color,
    TransformOptions,
    expand_rgb,
    normalize_rgb,
    normalize_to_model_range,
    polar_coordinates,
    rgb_to_xyz,
    transform,
    xyz_to_rgb,
)
from gamut_config import logger
from gamut_errors import LatticeFidelityError, LatticeFidelityWarning, ShapeError
from gamut_matrix import ArrayFloat
from gamut_registry import (
    ColorModel,
    ColorSpace,
    GraphType,
    Illuminant,
    color_model_profile,
    parse_color_model,
)

__all__ = [
    "FACE_COUNT",
    "GeometryLattice",
    "VertexData",
    "generate_plane",
    "generate_lattice",
    "map_facets",
    "lattice_facets",
    "trim_lattice",
    "map_positions",
    "map_colors",
    "build_vertex_data",
]

FACE_COUNT = 6

_AXES = {"x": 0, "y": 1, "z": 2}


# =============================================================================
# 1. NUMBA KERNELS
# =============================================================================

@njit(cache=True)
def _plane_kernel(fixed: float, axis: int, divisions: int) -> ArrayFloat:
    n = divisions + 1
    out = np.empty((n * n, 3), dtype=np.float64)
    for i in range(n):
        # i / d keeps the far edge at exactly 1.0
        a = i / divisions
        for j in range(n):
            b = j / divisions
            k = i * n + j
            if axis == 0:
                out[k, 0] = fixed
                out[k, 1] = a
                out[k, 2] = b
            elif axis == 1:
                out[k, 0] = a
                out[k, 1] = fixed
                out[k, 2] = b
            else:
                out[k, 0] = a
                out[k, 1] = b
                out[k, 2] = fixed
    return out


@njit(cache=True)
def _lattice_kernel(divisions: int) -> ArrayFloat:
    n = divisions + 1
    out = np.empty((6, n * n, 3), dtype=np.float64)
    for axis in range(3):
        for end in range(2):
            out[2 * axis + end] = _plane_kernel(float(end), axis, divisions)
    return out


@njit(cache=True)
def _facets_kernel(path_count: int, divisions: int) -> np.ndarray:
    stride = divisions + 1
    path_length = stride * stride
    out = np.empty((path_count * 2 * divisions * divisions, 3), dtype=np.int64)
    f = 0
    for p in range(path_count):
        base = p * path_length
        # last row and last column have no neighbour to close a cell
        for row in range(divisions):
            for col in range(divisions):
                p0 = base + row * stride + col
                adj_p0 = p0 + stride
                out[f, 0] = p0
                out[f, 1] = adj_p0 + 1
                out[f, 2] = adj_p0
                out[f + 1, 0] = p0
                out[f + 1, 1] = p0 + 1
                out[f + 1, 2] = adj_p0 + 1
                f += 2
    return out


@njit(cache=True)
def _nearest_source_index(target_index: int, source_divisions: int, target_divisions: int) -> int:
    """
    Source row (or column) nearest to a target row, rounded per axis.

    Rows and columns are resolved independently rather than by rounding the
    flat index, so a selected point always lies on its own target row even
    when the division ratio is not an integer.  Edges are pinned exactly;
    interior positions round half up.
    """
    if target_index == 0:
        return 0
    if target_index == target_divisions:
        return source_divisions
    return int(np.floor(target_index * source_divisions / target_divisions + 0.5))


@njit(cache=True)
def _trim_kernel(paths: ArrayFloat, source_divisions: int, target_divisions: int) -> ArrayFloat:
    src_stride = source_divisions + 1
    dst_stride = target_divisions + 1
    out = np.empty((paths.shape[0], dst_stride * dst_stride, 3), dtype=np.float64)
    for p in range(paths.shape[0]):
        for outer in range(dst_stride):
            src_outer = _nearest_source_index(outer, source_divisions, target_divisions)
            for inner in range(dst_stride):
                src_inner = _nearest_source_index(inner, source_divisions, target_divisions)
                src = src_outer * src_stride + src_inner
                dst = outer * dst_stride + inner
                for c in range(3):
                    out[p, dst, c] = paths[p, src, c]
    return out


# =============================================================================
# 2. LATTICE
# =============================================================================

def _divisions_from_path_length(path_length: int) -> int:
    side = math.isqrt(path_length)
    if side * side != path_length or side < 2:
        raise ShapeError(
            f"Path length {path_length} is not a perfect square (d + 1)**2 with d >= 1"
        )
    return side - 1


@dataclass(frozen=True, slots=True)
class GeometryLattice:
    """
    Immutable lattice of paths.

    ``paths`` is a read-only float64 array of shape ``(P, (d + 1)**2, 3)``;
    generated lattices have ``P == 6``.
    """
    paths: ArrayFloat = field(repr=False)

    def __post_init__(self) -> None:
        arr = np.array(self.paths, dtype=np.float64)
        if arr.ndim != 3 or arr.shape[2] != 3 or arr.shape[0] == 0:
            raise ShapeError(f"Lattice must have shape (P, L, 3), got {arr.shape}")
        _divisions_from_path_length(arr.shape[1])
        arr.setflags(write=False)
        object.__setattr__(self, "paths", arr)

    @property
    def divisions(self) -> int:
        return _divisions_from_path_length(self.paths.shape[1])

    @property
    def path_count(self) -> int:
        return self.paths.shape[0]

    @property
    def path_length(self) -> int:
        return self.paths.shape[1]

    @property
    def vertex_count(self) -> int:
        return self.paths.shape[0] * self.paths.shape[1]

    def points(self) -> ArrayFloat:
        """All vertices as a flat ``(V, 3)`` read-only view in buffer order."""
        return self.paths.reshape(-1, 3)

    def to_list(self) -> List[List[List[float]]]:
        """Nested lists for JSON persistence."""
        return self.paths.tolist()

    @classmethod
    def from_list(cls, data: Sequence[Sequence[Sequence[float]]]) -> "GeometryLattice":
        try:
            arr = np.array(data, dtype=np.float64)
        except ValueError as exc:
            raise ShapeError(f"Lattice paths are ragged: {exc}") from exc
        return cls(arr)

    def __repr__(self) -> str:
        return f"GeometryLattice(paths={self.path_count}, divisions={self.divisions})"


def generate_plane(fixed: float, axis: Union[int, str], divisions: int) -> ArrayFloat:
    """
    Points of one cube face.

    Args:
        fixed: Value of the fixed component (0 or 1 for cube faces).
        axis: Fixed axis as ``0/1/2`` or ``"x"/"y"/"z"``.
        divisions: Subdivisions per free axis (>= 1).

    Returns:
        ``((divisions + 1)**2, 3)`` array, row-major over the free axes.
    """
    if isinstance(axis, str):
        try:
            axis = _AXES[axis.lower()]
        except KeyError:
            raise ValueError(f"axis must be one of x, y, z; got {axis!r}") from None
    if axis not in (0, 1, 2):
        raise ValueError(f"axis must be 0, 1 or 2; got {axis!r}")
    _check_divisions(divisions)
    return _plane_kernel(float(fixed), int(axis), int(divisions))


def generate_lattice(divisions: int) -> GeometryLattice:
    """Six-face lattice of the RGB unit cube at *divisions* subdivisions."""
    _check_divisions(divisions)
    return GeometryLattice(_lattice_kernel(int(divisions)))


def _check_divisions(divisions: int) -> None:
    if int(divisions) != divisions or divisions < 1:
        raise ValueError(f"divisions must be a positive integer, got {divisions!r}")


# =============================================================================
# 3. FACETS
# =============================================================================

def map_facets(point_index: int, row_stride: int) -> np.ndarray:
    """
    The two triangles of the cell whose top-left corner is *point_index*.

    Returns ``[[p0, adj_p1, adj_p0], [p0, p1, adj_p1]]`` with
    ``adj_* = p* + row_stride``.  The caller must not invoke this for the
    last column or last row of a path; those indices would leave the cell.
    """
    p0 = int(point_index)
    adj_p0 = p0 + int(row_stride)
    return np.array([[p0, adj_p0 + 1, adj_p0], [p0, p0 + 1, adj_p0 + 1]], dtype=np.int64)


def lattice_facets(lattice: Union[GeometryLattice, int]) -> np.ndarray:
    """
    Triangle indices for every cell of every path.

    Accepts a lattice or a bare subdivision count (a six-face lattice is
    assumed).  Returns an ``(F, 3)`` int64 array with ``F = 2·P·d²``; all
    indices are below the lattice's vertex count.
    """
    if isinstance(lattice, GeometryLattice):
        return _facets_kernel(lattice.path_count, lattice.divisions)
    _check_divisions(lattice)
    return _facets_kernel(FACE_COUNT, int(lattice))


# =============================================================================
# 4. TRIMMING
# =============================================================================

def trim_lattice(
    lattice: GeometryLattice, target_divisions: int, strict: bool = False
) -> GeometryLattice:
    """
    Re-select a coarser lattice from an existing one.

    Each target row and column takes the nearest source row and column:
    the first and last are pinned to the source edges, interior ones round
    ``index · D / t`` half up.  Every output point is therefore a point of
    the input; nothing is interpolated or re-transformed.

    Args:
        lattice: Source lattice with ``D`` divisions.
        target_divisions: Requested divisions ``t``.
        strict: Raise instead of warning when ``t > D``.

    Returns:
        A new lattice with ``t`` divisions, or *lattice* itself when the
        trim is refused (``t > D``, non-strict).

    Raises:
        LatticeFidelityError: ``t > D`` and *strict* is set.
        ValueError: ``t < 1``.
    """
    _check_divisions(target_divisions)
    source_divisions = lattice.divisions
    if target_divisions > source_divisions:
        error = LatticeFidelityError(source_divisions, int(target_divisions))
        if strict:
            raise error
        logger.debug(f"Trim refused, returning source lattice: {error}")
        warnings.warn(str(error), LatticeFidelityWarning, stacklevel=2)
        return lattice

    logger.debug(f"Trimming lattice {source_divisions} -> {target_divisions} divisions")
    return GeometryLattice(
        _trim_kernel(lattice.paths, source_divisions, int(target_divisions))
    )


# =============================================================================
# 5. PROJECTION INTO COLOUR MODELS
# =============================================================================

def map_positions(
    lattice: GeometryLattice,
    color_space: Union[ColorSpace, str],
    target_model: Union[ColorModel, str],
    illuminant: Union[Illuminant, str],
    options: Optional[TransformOptions] = None,
) -> ArrayFloat:
    """
    Render positions of every lattice vertex in *target_model*.

    RGB positions are the unit-cube lattice itself.  XYZ, xyY and LUV
    positions are the transformed values; cylindrical models (LCHuv) are
    placed at the polar coordinates of the range-normalised LCh value.  The model's render
    ``axis_order`` is applied last (LUV plots L on the vertical axis).

    Returns:
        ``(V, 3)`` float64 array in vertex-buffer order.
    """
    model = parse_color_model(target_model)
    profile = color_model_profile(model)
    opts = options if options is not None else TransformOptions()
    points = lattice.points()

    if model is ColorModel.RGB:
        positions = np.array(points, dtype=np.float64)
    else:
        edge = transform(ColorModel.RGB, model)
        rgb = Color(ColorModel.RGB, expand_rgb(points, opts.bit_depth))
        positions = np.array(edge(rgb, color_space, illuminant, opts).values)
        if profile.graph_type is GraphType.CYLINDRICAL:
            positions = polar_coordinates(normalize_to_model_range(positions, model))

    if profile.axis_order is not None:
        positions = positions[:, list(profile.axis_order)]
    return np.ascontiguousarray(positions)


def map_colors(
    lattice: GeometryLattice,
    color_space: Union[ColorSpace, str],
    illuminant: Union[Illuminant, str],
    display_space: Union[ColorSpace, str] = ColorSpace.SRGB,
    bit_depth: int = 8,
) -> ArrayFloat:
    """
    Display colours of every lattice vertex.

    RGB(*color_space*) → XYZ(*illuminant*) → RGB(*display_space*), both
    legs companded, normalised and clipped to [0, 1].

    Returns:
        ``(V, 4)`` RGBA array with alpha 1.
    """
    opts = TransformOptions(compand=True, bit_depth=bit_depth)
    rgb = Color(ColorModel.RGB, expand_rgb(lattice.points(), bit_depth))
    xyz = rgb_to_xyz(rgb, color_space, illuminant, opts)
    display = xyz_to_rgb(xyz, display_space, illuminant, opts)

    out = np.ones((lattice.vertex_count, 4), dtype=np.float64)
    out[:, :3] = np.clip(normalize_rgb(display.values, bit_depth), 0.0, 1.0)
    return out


# =============================================================================
# 6. VERTEX DATA
# =============================================================================

@dataclass
class VertexData:
    """Flattened buffers for a mesh renderer (triples / quads concatenated)."""
    positions: List[float]
    colors: List[float]
    indices: List[int]

    @classmethod
    def from_arrays(
        cls, positions: ArrayFloat, colors: ArrayFloat, indices: np.ndarray
    ) -> "VertexData":
        return cls(
            positions=np.asarray(positions, dtype=np.float64).ravel().tolist(),
            colors=np.asarray(colors, dtype=np.float64).ravel().tolist(),
            indices=np.asarray(indices, dtype=np.int64).ravel().tolist(),
        )

    @property
    def vertex_count(self) -> int:
        return len(self.positions) // 3

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


def build_vertex_data(
    lattice: GeometryLattice,
    color_space: Union[ColorSpace, str],
    target_model: Union[ColorModel, str],
    illuminant: Union[Illuminant, str],
    options: Optional[TransformOptions] = None,
    display_space: Union[ColorSpace, str] = ColorSpace.SRGB,
) -> VertexData:
    """Positions, colours and facet indices of *lattice* in one structure."""
    bit_depth = options.bit_depth if options is not None else 8
    return VertexData.from_arrays(
        map_positions(lattice, color_space, target_model, illuminant, options),
        map_colors(lattice, color_space, illuminant, display_space, bit_depth),
        lattice_facets(lattice),
    )
