"""Pytest fixtures for the string simulation core.

Run tests from the repo root:
    python -m pytest -q
"""

from __future__ import annotations

import pytest

from stringsim.src.curve import CellElectricalParams, build_full_curve

# Reference cell used across the core tests
VOC: float = 0.68
ISC: float = 6.24


@pytest.fixture(scope="session")
def cell_params() -> CellElectricalParams:
    """Ideal-diode cell with no series resistance."""
    return CellElectricalParams(voc=VOC, isc=ISC, vmp=0.57, imp=5.85, n=1.0, rs=0.0)


@pytest.fixture(scope="session")
def lossy_params() -> CellElectricalParams:
    """Datasheet-like cell with ideality 1.26 and a little series resistance."""
    return CellElectricalParams(voc=0.686, isc=6.27, vmp=0.58, imp=6.01, n=1.26, rs=0.003)


@pytest.fixture
def make_curves(cell_params):
    """Factory: list of full curves, one per irradiance ratio."""
    def _make(ratios, params=None, samples=200):
        p = params or cell_params
        return [build_full_curve(p, r, samples) for r in ratios]
    return _make
