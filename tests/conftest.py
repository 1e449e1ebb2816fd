"""Pytest fixtures for gamut tests."""
from __future__ import annotations

import numpy as np
import pytest

from gamut_cache import GeometryCache, MemoryDocumentStore
from gamut_config import GamutConfig
from gamut_geometry import GeometryLattice, generate_lattice


@pytest.fixture
def rng() -> np.random.Generator:
    """Seeded generator so randomized properties are reproducible."""
    return np.random.default_rng(20260101)


@pytest.fixture
def small_config() -> GamutConfig:
    """Config with a small reference lattice to keep cache tests fast."""
    return GamutConfig(max_divisions=8)


@pytest.fixture
def lattice_2() -> GeometryLattice:
    """Two-division lattice: six paths of nine points."""
    return generate_lattice(2)


@pytest.fixture
def lattice_16() -> GeometryLattice:
    return generate_lattice(16)


@pytest.fixture
def make_cache(small_config: GamutConfig):
    """Factory for caches; each call gets a fresh store unless one is passed."""
    def factory(store=None, config: GamutConfig = small_config) -> GeometryCache:
        return GeometryCache(store if store is not None else MemoryDocumentStore(), config)

    return factory
