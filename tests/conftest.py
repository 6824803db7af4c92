"""Pytest fixtures for the model, simulator and config tests.

These provide small layouts and conditions so tests stay concise and
deterministic.

Run tests from the repo root:
    python -m pytest -q
"""

from __future__ import annotations

import json
from typing import Callable, List, Sequence

import pytest

from stringsim.config import (
    CellConfig,
    LayoutConfig,
    SegmentConfig,
    StringConfig,
    get_preset,
)
from stringsim.models.types import StringConditions
from stringsim.src.bypassdiode import BypassSegment
from stringsim.src.string import StringTopology


@pytest.fixture(scope="session")
def preset():
    return get_preset("Maxeon Gen 3 (ME3)")


@pytest.fixture
def conditions(preset) -> Callable[..., StringConditions]:
    """Factory: StringConditions for ``ratios`` with optional segments."""
    def _make(ratios: Sequence[float], segments: List[BypassSegment] = None, samples=None):
        topo = StringTopology(list(range(len(ratios))), list(segments or []))
        return StringConditions(topology=topo, params=preset.electrical(), ratios=list(ratios), samples=samples)
    return _make


@pytest.fixture
def small_layout() -> LayoutConfig:
    """Two strings (one shaded cell each) plus one unwired cell."""
    s0 = StringConfig(cells=[CellConfig() for _ in range(6)])
    s0.cells[2].ratio = 0.0
    s0.cells[2].bypass = True
    s1 = StringConfig(
        cells=[CellConfig() for _ in range(8)],
        bypass=[SegmentConfig(0, 3), SegmentConfig(4, 7, 0.5)],
    )
    s1.cells[5].ratio = 0.25
    return LayoutConfig(title="test layout", model="full", samples=120,
                        strings=[s0, s1], unwired=[CellConfig(ratio=0.5)])


@pytest.fixture
def layout_file(tmp_path, small_layout):
    path = tmp_path / "layout.json"
    path.write_text(json.dumps(small_layout.to_dict(), indent=2), encoding="utf-8")
    return path
