# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Error taxonomy shared by every gamut module.

Pure-computation errors (shape, singular matrix, missing reference data,
unsupported transform, model mismatch) signal malformed registry data or
malformed call sites and are never retried.  ``LatticeFidelityError`` is
recoverable: the default trimming policy downgrades it to a
``LatticeFidelityWarning``.  ``StoreUnavailableError`` wraps any failure of
the document store behind the geometry cache.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = [
    "GamutError",
    "ShapeError",
    "SingularMatrixError",
    "MissingReferenceDataError",
    "UnsupportedTransformError",
    "ModelMismatchError",
    "LatticeFidelityError",
    "LatticeFidelityWarning",
    "StoreUnavailableError",
    "DuplicateRecordError",
]


class GamutError(Exception):
    """Base exception for gamut errors."""

    pass


class ShapeError(GamutError, ValueError):
    """Matrix or vector dimensions are incompatible."""

    pass


class SingularMatrixError(GamutError, ArithmeticError):
    """A matrix could not be inverted (determinant is zero within epsilon)."""

    def __init__(self, determinant: float) -> None:
        self.determinant = determinant
        super().__init__(
            f"Matrix is singular (determinant={determinant!r}); degenerate primaries?"
        )


class MissingReferenceDataError(GamutError, LookupError):
    """No registry entry exists for the requested key.

    Attributes:
        field: Name of the missing datum, e.g. ``"primaries"`` or ``"whitepoint"``.
        key: The lookup key that failed.
    """

    def __init__(self, field: str, key: Any) -> None:
        self.field = field
        self.key = key
        super().__init__(f"Missing reference data '{field}' for {key!r}")

    def __str__(self) -> str:
        # LookupError would otherwise repr() the message.
        return self.args[0]


class UnsupportedTransformError(GamutError, LookupError):
    """No transform edge is registered for the requested model pair."""

    def __init__(self, source: Any, destination: Any) -> None:
        self.source = source
        self.destination = destination
        super().__init__(f"No transform registered from {source} to {destination}")

    def __str__(self) -> str:
        return self.args[0]


class ModelMismatchError(GamutError, TypeError):
    """A tagged colour was handed to a transform expecting another model."""

    def __init__(self, expected: Any, received: Any) -> None:
        self.expected = expected
        self.received = received
        super().__init__(f"Expected a {expected} colour, got {received}")


class LatticeFidelityError(GamutError, ValueError):
    """A trim was requested at a finer fidelity than the source lattice holds."""

    def __init__(self, source_divisions: int, target_divisions: int) -> None:
        self.source_divisions = source_divisions
        self.target_divisions = target_divisions
        super().__init__(
            f"Cannot trim a lattice of {source_divisions} divisions to "
            f"{target_divisions} divisions; trimming never upsamples"
        )


class LatticeFidelityWarning(UserWarning):
    """Emitted when a trim is refused and the input lattice is returned."""

    pass


class StoreUnavailableError(GamutError, RuntimeError):
    """The document store failed; the request cannot be served."""

    def __init__(self, operation: str, cause: Optional[BaseException] = None) -> None:
        self.operation = operation
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Document store unavailable during {operation}{detail}")


class DuplicateRecordError(GamutError):
    """A record with the same natural key already exists in the store."""

    def __init__(self, query: Any) -> None:
        self.query = query
        super().__init__(f"A record already exists for {query!r}")
