# -*- coding: utf-8 -*-
"""
Gamut: Geometry of RGB colour spaces in perceptual colour models
Copyright (c) 2026 opticsWolf

SPDX-License-Identifier: LGPL-3.0-or-later

Module: gamut_cache.py — Compute-once, natural-key cache of lattice geometry.

Design notes:
  1.  DocumentStore protocol decouples the cache from a specific database.
      Any object with async ``find_one`` / ``insert_one`` / ``delete_many``
      / ``count`` over plain JSON-compatible documents qualifies (a Motor
      collection, for instance).  MemoryDocumentStore is the in-process
      implementation used by default and in tests.
  2.  One record per natural key ``(kind, color_space, target_model,
      illuminant, fidelity)``.  Concurrent misses for the same key are
      collapsed in-process (single flight); a duplicate insert from another
      process is recovered by re-reading the record that won.
  3.  The reference lattice (maximum fidelity, ``XYZ-reference``) is stored
      once; every other fidelity is trimmed from it, never regenerated.
  4.  Store failures surface as StoreUnavailableError.  Nothing is retried.
  5.  CPU-bound work (lattice generation, transforms) runs in a worker
      thread via ``asyncio.to_thread`` so the event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import inspect
import json
import threading
from dataclasses import dataclass
from enum import Enum
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    List,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

import numpy as np

from __about__ import metadata_summary
from gamut_colorengine import TransformOptions
from gamut_config import GamutConfig, GeometryRequest, logger
from gamut_errors import DuplicateRecordError, GamutError, StoreUnavailableError
from gamut_geometry import (
    GeometryLattice,
    VertexData,
    generate_lattice,
    lattice_facets,
    map_colors,
    map_positions,
    trim_lattice,
)
from gamut_matrix import ArrayFloat
from gamut_registry import (
    ColorModel,
    ColorSpace,
    Illuminant,
    parse_color_model,
    parse_color_space,
    parse_illuminant,
)

__all__ = [
    "REFERENCE_SPACE",
    "NATURAL_KEY_FIELDS",
    "CacheKind",
    "CacheKey",
    "DocumentStore",
    "MemoryDocumentStore",
    "GeometryCache",
]

Document = Dict[str, Any]
_SCALARS = (str, int, float, bool, type(None))

REFERENCE_SPACE = "XYZ-reference"
NATURAL_KEY_FIELDS: Tuple[str, ...] = (
    "kind",
    "color_space",
    "target_model",
    "illuminant",
    "fidelity",
)


# ═══════════════════════════════════════════════════════════════════════════════
# 1.  Cache keys
# ═══════════════════════════════════════════════════════════════════════════════
class CacheKind(str, Enum):
    POSITIONS = "positions"
    COLORS = "colors"
    FACETS = "facets"


@dataclass(frozen=True)
class CacheKey:
    """
    Natural key of one cache record.

    Facet records are independent of colour space, model and illuminant;
    those fields are ``None``.  Colour records do not depend on the target
    model.
    """
    kind: CacheKind
    color_space: Optional[str]
    target_model: Optional[str]
    illuminant: Optional[str]
    fidelity: int

    @classmethod
    def positions(
        cls,
        color_space: Union[ColorSpace, str],
        target_model: Union[ColorModel, str],
        illuminant: Union[Illuminant, str],
        fidelity: int,
    ) -> "CacheKey":
        return cls(
            CacheKind.POSITIONS,
            parse_color_space(color_space).value,
            parse_color_model(target_model).value,
            parse_illuminant(illuminant).value,
            int(fidelity),
        )

    @classmethod
    def colors(
        cls,
        color_space: Union[ColorSpace, str],
        illuminant: Union[Illuminant, str],
        fidelity: int,
    ) -> "CacheKey":
        return cls(
            CacheKind.COLORS,
            parse_color_space(color_space).value,
            None,
            parse_illuminant(illuminant).value,
            int(fidelity),
        )

    @classmethod
    def facets(cls, fidelity: int) -> "CacheKey":
        return cls(CacheKind.FACETS, None, None, None, int(fidelity))

    @classmethod
    def reference(cls, max_divisions: int) -> "CacheKey":
        """The distinguished maximum-fidelity lattice record."""
        return cls(CacheKind.POSITIONS, REFERENCE_SPACE, None, None, int(max_divisions))

    def to_query(self) -> Document:
        return {
            "kind": self.kind.value,
            "color_space": self.color_space,
            "target_model": self.target_model,
            "illuminant": self.illuminant,
            "fidelity": self.fidelity,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# 2.  DocumentStore: pluggable persistence
# ═══════════════════════════════════════════════════════════════════════════════
@runtime_checkable
class DocumentStore(Protocol):
    """
    Minimal async interface of a document collection.

    find_one(query)    → first document whose fields equal *query*, or None
    insert_one(record) → persist; DuplicateRecordError on natural-key clash
    delete_many(query) → number of removed documents
    count(query)       → number of matching documents
    """
    async def find_one(self, query: Document) -> Optional[Document]: ...
    async def insert_one(self, record: Document) -> None: ...
    async def delete_many(self, query: Document) -> int: ...
    async def count(self, query: Document) -> int: ...


class MemoryDocumentStore:
    """
    In-process document store.

    Documents are held as JSON text, so every read returns a fresh copy
    and non-JSON values are rejected at insert time.  Queries match on
    top-level scalar fields by equality.  Inserting a second
    document with the same natural key raises DuplicateRecordError, the
    behaviour of a unique compound index.
    """

    def __init__(self, unique_fields: Tuple[str, ...] = NATURAL_KEY_FIELDS) -> None:
        self.unique_fields = unique_fields
        self._documents: List[Tuple[Document, str]] = []
        # Never held across an await
        self._lock = threading.Lock()

    @staticmethod
    def _matches(document: Document, query: Document) -> bool:
        return all(k in document and document[k] == v for k, v in query.items())

    def _natural_key(self, record: Document) -> Document:
        return {k: record.get(k) for k in self.unique_fields}

    async def find_one(self, query: Document) -> Optional[Document]:
        await asyncio.sleep(0)
        with self._lock:
            for fields, text in self._documents:
                if self._matches(fields, query):
                    return json.loads(text)
        return None

    async def insert_one(self, record: Document) -> None:
        text = json.dumps(record)
        natural_key = self._natural_key(record)
        fields = {k: v for k, v in record.items() if isinstance(v, _SCALARS)}
        await asyncio.sleep(0)
        with self._lock:
            if any(self._matches(f, natural_key) for f, _ in self._documents):
                raise DuplicateRecordError(natural_key)
            self._documents.append((fields, text))

    async def delete_many(self, query: Document) -> int:
        with self._lock:
            kept = [(f, t) for f, t in self._documents if not self._matches(f, query)]
            removed = len(self._documents) - len(kept)
            self._documents = kept
        return removed

    async def count(self, query: Document) -> int:
        with self._lock:
            return sum(1 for f, _ in self._documents if self._matches(f, query))

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)


# ═══════════════════════════════════════════════════════════════════════════════
# 3.  GeometryCache
# ═══════════════════════════════════════════════════════════════════════════════
@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    computations: int = 0
    duplicate_recoveries: int = 0


Compute = Callable[[], Union[Any, Awaitable[Any]]]


class GeometryCache:
    """
    Compute-once delivery of lattices, positions, colours and facets.

    Usage::

        cache = GeometryCache(MemoryDocumentStore())
        await cache.ensure_reference_lattice()
        data = await cache.vertex_data(GeometryRequest.from_params({...}))
        data.to_json()
    """

    def __init__(
        self, store: Optional[DocumentStore] = None, config: Optional[GamutConfig] = None
    ) -> None:
        self.store: DocumentStore = store if store is not None else MemoryDocumentStore()
        self.config = config or GamutConfig()
        self.options = TransformOptions(bit_depth=self.config.bit_depth)
        self.stats = CacheStats()
        self._inflight: Dict[CacheKey, asyncio.Future] = {}
        self._reference: Optional[GeometryLattice] = None

    # ── store access ──────────────────────────────────────────────────────────
    async def _guard(self, operation: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await awaitable
        except GamutError:
            raise
        except Exception as exc:
            raise StoreUnavailableError(operation, exc) from exc

    async def _find(self, key: CacheKey) -> Optional[Document]:
        return await self._guard("find_one", self.store.find_one(key.to_query()))

    # ── core protocol ─────────────────────────────────────────────────────────
    async def get_or_create(self, key: CacheKey, compute: Compute) -> Any:
        """
        Return the stored value for *key*, computing and persisting it on a miss.

        *compute* is a zero-argument callable returning a JSON-compatible
        value; plain functions run in a worker thread, coroutine functions
        are awaited.  Concurrent callers for the same key share one
        computation.

        Raises:
            StoreUnavailableError: The document store failed.
        """
        record = await self._find(key)
        if record is not None:
            self.stats.hits += 1
            logger.debug(f"Cache hit: {key}")
            return record["value"]

        self.stats.misses += 1
        task = self._inflight.get(key)
        if task is None:
            logger.debug(f"Cache miss: {key}")
            task = asyncio.ensure_future(self._compute_and_store(key, compute))
            self._inflight[key] = task
            task.add_done_callback(lambda _: self._inflight.pop(key, None))
        else:
            logger.debug(f"Cache miss joined in-flight computation: {key}")
        return await asyncio.shield(task)

    async def _compute_and_store(self, key: CacheKey, compute: Compute) -> Any:
        self.stats.computations += 1
        if inspect.iscoroutinefunction(compute):
            value = await compute()
        else:
            value = await asyncio.to_thread(compute)

        record = dict(key.to_query(), value=value, meta=metadata_summary())
        try:
            await self._guard("insert_one", self.store.insert_one(record))
        except DuplicateRecordError:
            # Another writer won the race; its value is equivalent
            self.stats.duplicate_recoveries += 1
            logger.debug(f"Duplicate insert for {key}; re-reading stored record")
            winner = await self._find(key)
            if winner is not None:
                return winner["value"]
        return value

    # ── reference lattice ─────────────────────────────────────────────────────
    async def ensure_reference_lattice(self) -> GeometryLattice:
        """Load the maximum-fidelity lattice, generating and storing it if absent."""
        if self._reference is None:
            divisions = self.config.max_divisions
            data = await self.get_or_create(
                CacheKey.reference(divisions),
                lambda: generate_lattice(divisions).to_list(),
            )
            self._reference = await asyncio.to_thread(GeometryLattice.from_list, data)
            logger.debug(f"Reference lattice ready at {divisions} divisions")
        return self._reference

    async def reference_lattice(self) -> GeometryLattice:
        return await self.ensure_reference_lattice()

    async def lattice(self, fidelity: int) -> GeometryLattice:
        """Lattice at *fidelity* divisions, trimmed from the reference."""
        reference = await self.ensure_reference_lattice()
        if fidelity == reference.divisions:
            return reference
        return trim_lattice(reference, fidelity)

    def _effective_fidelity(self, fidelity: int) -> int:
        # Requests outside [1, max_divisions] are served at the nearest bound
        return self.config.clamp_divisions(fidelity)

    # ── typed artefacts ───────────────────────────────────────────────────────
    async def positions(
        self,
        color_space: Union[ColorSpace, str],
        target_model: Union[ColorModel, str],
        illuminant: Union[Illuminant, str],
        fidelity: int,
    ) -> ArrayFloat:
        """``(V, 3)`` vertex positions in *target_model*."""
        divisions = self._effective_fidelity(fidelity)
        key = CacheKey.positions(color_space, target_model, illuminant, divisions)

        async def compute() -> List[List[float]]:
            lattice = await self.lattice(divisions)
            return await asyncio.to_thread(
                lambda: map_positions(
                    lattice, color_space, target_model, illuminant, self.options
                ).tolist()
            )

        return np.array(await self.get_or_create(key, compute), dtype=np.float64)

    async def colors(
        self,
        color_space: Union[ColorSpace, str],
        illuminant: Union[Illuminant, str],
        fidelity: int,
    ) -> ArrayFloat:
        """``(V, 4)`` RGBA display colours."""
        divisions = self._effective_fidelity(fidelity)
        key = CacheKey.colors(color_space, illuminant, divisions)

        async def compute() -> List[List[float]]:
            lattice = await self.lattice(divisions)
            return await asyncio.to_thread(
                lambda: map_colors(
                    lattice,
                    color_space,
                    illuminant,
                    self.config.display_space,
                    self.config.bit_depth,
                ).tolist()
            )

        return np.array(await self.get_or_create(key, compute), dtype=np.float64)

    async def facets(self, fidelity: int) -> np.ndarray:
        """``(F, 3)`` triangle indices of a six-face lattice."""
        divisions = self._effective_fidelity(fidelity)
        value = await self.get_or_create(
            CacheKey.facets(divisions), lambda: lattice_facets(divisions).tolist()
        )
        return np.array(value, dtype=np.int64).reshape(-1, 3)

    async def vertex_data(self, request: GeometryRequest) -> VertexData:
        """Positions, colours and facets for one parsed request."""
        positions, colors, facets = await asyncio.gather(
            self.positions(
                request.color_space, request.target_model, request.illuminant, request.divisions
            ),
            self.colors(request.color_space, request.illuminant, request.divisions),
            self.facets(request.divisions),
        )
        return VertexData.from_arrays(positions, colors, facets)

    # ── maintenance ───────────────────────────────────────────────────────────
    async def clear(self, kind: Optional[Union[CacheKind, str]] = None) -> int:
        """Delete all records, or only those of *kind*.  Returns the count removed."""
        query = {} if kind is None else {"kind": CacheKind(kind).value}
        removed = await self._guard("delete_many", self.store.delete_many(query))
        if kind is None or CacheKind(kind) is CacheKind.POSITIONS:
            self._reference = None
        logger.debug(f"Cleared {removed} cache record(s)")
        return removed

    async def count(self, kind: Optional[Union[CacheKind, str]] = None) -> int:
        query = {} if kind is None else {"kind": CacheKind(kind).value}
        return await self._guard("count", self.store.count(query))
