# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Configuration, request parsing and the library logger.

The library logs to ``logging.getLogger("gamut")``, which carries a
``NullHandler`` so nothing is printed unless the application configures
logging.  To see cache and trimming decisions::

    import logging
    logging.basicConfig(level=logging.DEBUG)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Mapping, Optional, Tuple, Union

from gamut_errors import UnsupportedTransformError
from gamut_registry import (
    ColorModel,
    ColorSpace,
    Illuminant,
    parse_color_model,
    parse_color_space,
    parse_illuminant,
)

__all__ = [
    "logger",
    "FidelityLevel",
    "GamutConfig",
    "GeometryRequest",
]

logger = logging.getLogger("gamut")
logger.addHandler(logging.NullHandler())


class FidelityLevel(IntEnum):
    """Named lattice subdivision levels offered to clients."""

    LOW = 8
    MEDIUM = 16
    HIGH = 32


@dataclass(frozen=True)
class GamutConfig:
    """Configuration for geometry generation and caching."""

    # Divisions of the reference lattice (2^8); requests are clamped to it
    max_divisions: int = 256
    default_color_space: ColorSpace = ColorSpace.SRGB
    default_illuminant: Illuminant = Illuminant.D65
    default_target_model: ColorModel = ColorModel.XYZ
    # Vertex colours are always rendered in this space
    display_space: ColorSpace = ColorSpace.SRGB
    bit_depth: int = 8
    fidelity_levels: Tuple[FidelityLevel, ...] = (
        FidelityLevel.LOW,
        FidelityLevel.MEDIUM,
        FidelityLevel.HIGH,
    )

    def __post_init__(self) -> None:
        if self.max_divisions < 1:
            raise ValueError(f"max_divisions must be >= 1, got {self.max_divisions}")
        if self.bit_depth < 1:
            raise ValueError(f"bit_depth must be >= 1, got {self.bit_depth}")
        if not self.fidelity_levels:
            raise ValueError("fidelity_levels must offer at least one level")
        object.__setattr__(
            self, "fidelity_levels", tuple(FidelityLevel(level) for level in self.fidelity_levels)
        )

    def clamp_divisions(self, divisions: int) -> int:
        """Clamp a requested subdivision count to ``[1, max_divisions]``."""
        return max(1, min(int(divisions), self.max_divisions))


def _pick(params: Mapping[str, Any], *names: str) -> Optional[Any]:
    for name in names:
        if name in params and params[name] is not None:
            return params[name]
    return None


def _parse_divisions(value: Union[int, str, None], config: GamutConfig) -> int:
    if value is None:
        levels = config.fidelity_levels
        default = FidelityLevel.MEDIUM if FidelityLevel.MEDIUM in levels else levels[0]
        return config.clamp_divisions(default)
    if isinstance(value, str) and not value.strip().lstrip("-").isdigit():
        offered = {level.name.lower(): level for level in config.fidelity_levels}
        level = offered.get(value.strip().lower())
        if level is None:
            raise ValueError(
                f"divisions must be an integer or one of {list(offered)}, got {value!r}"
            )
        return config.clamp_divisions(level)
    return config.clamp_divisions(int(value))


@dataclass(frozen=True)
class GeometryRequest:
    """
    Parameters of one geometry request as they cross the service boundary.

    Build from raw query parameters with :meth:`from_params`, which accepts
    either the camelCase keys of the web client (``colorSpace``,
    ``targetModel``...) or snake_case keys.
    """

    divisions: int
    color_space: ColorSpace
    source_model: ColorModel
    target_model: ColorModel
    illuminant: Illuminant

    @classmethod
    def from_params(
        cls, params: Mapping[str, Any], config: Optional[GamutConfig] = None
    ) -> "GeometryRequest":
        """Parse and validate raw request parameters.

        Args:
            params: Raw request parameters (strings or enum members).
            config: Configuration supplying defaults and the division limit.

        Raises:
            MissingReferenceDataError: If an enum key is unknown.
            UnsupportedTransformError: If the source model is not RGB.
            ValueError: If ``divisions`` is neither an integer nor a level name.
        """
        config = config or GamutConfig()

        source = parse_color_model(_pick(params, "sourceModel", "source_model") or ColorModel.RGB)
        target = parse_color_model(
            _pick(params, "targetModel", "target_model") or config.default_target_model
        )
        # Lattices are always generated in the RGB unit cube
        if source is not ColorModel.RGB:
            raise UnsupportedTransformError(source, target)

        return cls(
            divisions=_parse_divisions(_pick(params, "divisions", "fidelity"), config),
            color_space=parse_color_space(
                _pick(params, "colorSpace", "color_space") or config.default_color_space
            ),
            source_model=source,
            target_model=target,
            illuminant=parse_illuminant(
                _pick(params, "illuminant", "referenceIlluminant") or config.default_illuminant
            ),
        )
