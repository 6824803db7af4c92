"""Linear estimate model

O(cells) string power for batch sweeps (many strings x many headings x
many times of day). No curves are built; each cell contributes its
photo-current and irradiance-shifted Vmp.

Only per-cell bypass diodes are understood here. Multi-cell segments are
treated as a diode on each cell they span, which is the usual over-estimate
of the cheap path.
"""
from __future__ import annotations

from typing import List

import numpy as np

from ..src.curve import IVCurve, scaled_vmp
from ..src.bypassdiode import DEFAULT_FORWARD_DROP
from ..src.estimate import SimpleEstimate, estimate_string_power
from ..src.string import StringSimResult
from .base import StringPowerModel
from .types import StringConditions


class SimpleEstimateModel(StringPowerModel):
    name = "simple"
    fidelity = "low"
    produces_curve = False

    def bypass_flags(self, conditions: StringConditions) -> List[bool]:
        flags = [False] * conditions.n_cells
        for seg in conditions.topology.segments:
            for pos in range(max(seg.start, 0), min(seg.end, conditions.n_cells - 1) + 1):
                flags[pos] = True
        return flags

    def estimate(self, conditions: StringConditions) -> SimpleEstimate:
        currents = conditions.photocurrents()
        vmps = [scaled_vmp(conditions.params, r) for r in conditions.ratios]
        drop = conditions.topology.uniform_forward_drop()
        if drop is None:
            drop = max((s.forward_drop for s in conditions.topology.segments), default=DEFAULT_FORWARD_DROP)
        return estimate_string_power(currents, vmps, drop, self.bypass_flags(conditions))

    def _evaluate(self, conditions: StringConditions) -> StringSimResult:
        est = self.estimate(conditions)
        v_op = est.power / est.limiting_current if est.limiting_current > 0 else 0.0
        # two-point stand-in curve through the estimated operating point
        curve = IVCurve(
            current=np.array([est.limiting_current, 0.0]),
            voltage=np.array([v_op, v_op]),
            voc=v_op,
            isc=est.limiting_current,
            vmp=v_op,
            imp=est.limiting_current,
        )
        bypassed = tuple(pos for pos, b in enumerate(est.bypassed) if b)
        return StringSimResult(
            power=est.power,
            voltage=v_op,
            current=est.limiting_current,
            iv_curve=curve,
            cells_bypassed=len(bypassed),
            bypassed_positions=bypassed,
        )


__all__ = ["SimpleEstimateModel"]
