"""Curve-sweep models

Build one I-V curve per cell for the instant's irradiance, then solve the
string by sweeping its current:

- per-cell bypass diodes with one shared drop -> node-voltage solver
- anything else (multi-cell, nested, overlapping, mixed drops) -> segment resolver

``FullCurveModel`` uses the single-diode curve, ``PreviewCurveModel`` the
fast preview curve, and ``SegmentCurveModel`` always goes through the segment
resolver (handy to cross-check the two solvers).
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..src.curve import (
    FULL_SAMPLES,
    SIMPLE_SAMPLES,
    IVCurve,
    build_full_curve,
    build_simple_curve,
)
from ..src.string import STRING_SAMPLES, StringSimResult, solve_string
from ..src.substring import resolve_segments
from .base import StringPowerModel
from .types import StringConditions


class FullCurveModel(StringPowerModel):
    """Single-diode curves + exact string sweep.

    Parameters
    curve_samples : int
        Samples per cell curve.
    string_samples : int
        Current samples in the string sweep (overridden by StringConditions.samples).
    series_resistance : bool
        Apply the first-order Rs correction to cell curves.
    """

    name = "full"
    fidelity = "high"

    def __init__(self, curve_samples: int = FULL_SAMPLES, string_samples: int = STRING_SAMPLES,
                 series_resistance: bool = True) -> None:
        self.curve_samples = max(2, int(curve_samples))
        self.string_samples = max(2, int(string_samples))
        self.series_resistance = bool(series_resistance)
        self.force_segments = False

    def describe(self) -> Dict[str, Any]:
        desc = super().describe()
        desc["params"] = [
            {"name": "curve_samples", "type": "int", "min": 2, "default": FULL_SAMPLES},
            {"name": "string_samples", "type": "int", "min": 2, "default": STRING_SAMPLES},
            {"name": "series_resistance", "type": "bool", "default": True},
        ]
        return desc

    def get_config(self) -> Dict[str, Any]:
        return {
            "curve_samples": self.curve_samples,
            "string_samples": self.string_samples,
            "series_resistance": self.series_resistance,
        }

    def build_curves(self, conditions: StringConditions) -> List[IVCurve]:
        return [
            build_full_curve(conditions.params, r, self.curve_samples, self.series_resistance)
            for r in conditions.ratios
        ]

    def _evaluate(self, conditions: StringConditions) -> StringSimResult:
        curves = self.build_curves(conditions)
        samples = conditions.samples or self.string_samples
        return solve_curves(curves, conditions, samples, self.force_segments)


class PreviewCurveModel(FullCurveModel):
    """Fast preview curves, same string solvers."""

    name = "preview"
    fidelity = "medium"

    def __init__(self, curve_samples: int = SIMPLE_SAMPLES, string_samples: int = STRING_SAMPLES) -> None:
        super().__init__(curve_samples=curve_samples, string_samples=string_samples)

    def describe(self) -> Dict[str, Any]:
        desc = StringPowerModel.describe(self)
        desc["params"] = [
            {"name": "curve_samples", "type": "int", "min": 2, "default": SIMPLE_SAMPLES},
            {"name": "string_samples", "type": "int", "min": 2, "default": STRING_SAMPLES},
        ]
        return desc

    def get_config(self) -> Dict[str, Any]:
        return {"curve_samples": self.curve_samples, "string_samples": self.string_samples}

    def build_curves(self, conditions: StringConditions) -> List[IVCurve]:
        return [build_simple_curve(conditions.params, r, self.curve_samples) for r in conditions.ratios]


class SegmentCurveModel(FullCurveModel):
    """Single-diode curves, always solved by the segment resolver."""

    name = "segment"

    def __init__(self, curve_samples: int = FULL_SAMPLES, string_samples: int = STRING_SAMPLES,
                 series_resistance: bool = True) -> None:
        super().__init__(curve_samples, string_samples, series_resistance)
        self.force_segments = True


def solve_curves(
    curves: List[IVCurve],
    conditions: StringConditions,
    samples: int,
    force_segments: bool = False,
) -> StringSimResult:
    """Dispatch a built set of cell curves to the right string solver."""
    topo = conditions.topology
    drop: Optional[float] = topo.uniform_forward_drop()
    if not force_segments and topo.is_per_cell() and drop is not None:
        return solve_string(curves, drop, topo.has_bypass_flags(), samples)
    return resolve_segments(curves, topo.segments, samples)


__all__ = ["FullCurveModel", "PreviewCurveModel", "SegmentCurveModel", "solve_curves"]
