# array.py
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Union

from .curve import scaled_vmp
from .string import (
    CellOperatingState,
    StringSimResult,
    StringTopology,
    cell_operating_states,
)
from ..models.base import StringPowerModel
from ..models.registry import build
from ..models.types import StringConditions

STC_IRRADIANCE = 1000.0  # W/m^2


@dataclass
class ArraySimResult:
    total_power: float = 0.0
    string_results: List[StringSimResult] = field(default_factory=list)
    cell_states: Dict[int, CellOperatingState] = field(default_factory=dict)
    unwired_power: float = 0.0
    shaded_count: int = 0
    shaded_percentage: float = 0.0
    bypassed_count: int = 0

    def to_dict(self) -> dict:
        return {
            "total_power": self.total_power,
            "unwired_power": self.unwired_power,
            "shaded_count": self.shaded_count,
            "shaded_percentage": self.shaded_percentage,
            "bypassed_count": self.bypassed_count,
            "strings": [r.to_dict() for r in self.string_results],
        }


def _ratio(ratios: Sequence[float], cell_id: int) -> float:
    if 0 <= cell_id < len(ratios):
        return min(max(float(ratios[cell_id]), 0.0), 1.0)
    return 0.0


def unwired_cell_power(ratio: float, area: float, efficiency: float) -> float:
    """Output of a cell that is not part of any string (no electrical losses)."""
    return max(float(ratio), 0.0) * STC_IRRADIANCE * area * efficiency


def _estimate_states(conditions: StringConditions, result: StringSimResult, drop: float) -> List[CellOperatingState]:
    # no curves to read from: bypassed cells sit at -Vf, the rest at a Vmp share
    i_op = result.current
    bypassed = set(result.bypassed_positions)
    states = []
    for pos, (ratio, iph) in enumerate(zip(conditions.ratios, conditions.photocurrents())):
        if pos in bypassed:
            v = -drop
            states.append(CellOperatingState(True, v, i_op, i_op * v))
            continue
        v = scaled_vmp(conditions.params, ratio)
        if i_op > 0 and iph < i_op:
            v *= iph / i_op
        states.append(CellOperatingState(False, v, i_op, i_op * v))
    return states


def simulate_array(
    strings: Sequence[StringTopology],
    ratios: Sequence[float],
    preset,
    model: Union[str, StringPowerModel] = "full",
    samples: Optional[int] = None,
) -> ArraySimResult:
    """Solve every string and account for the cells wired to none of them.

    ``strings`` hold global cell ids as positions; ``ratios[cell_id]`` is the
    irradiance ratio of that cell. ``preset`` is a CellPreset.
    """
    solver = build(model) if isinstance(model, str) else model
    params = preset.electrical()
    out = ArraySimResult()

    wired = set()
    for topo in strings:
        positions = list(topo.positions)
        wired.update(positions)
        conditions = StringConditions(
            topology=topo,
            params=params,
            ratios=[_ratio(ratios, cid) for cid in positions],
            samples=samples,
        )
        result = solver.evaluate(conditions)
        out.string_results.append(result)
        out.total_power += result.power
        out.bypassed_count += result.cells_bypassed

        if not positions:
            continue
        if solver.produces_curve and hasattr(solver, "build_curves"):
            states = cell_operating_states(solver.build_curves(conditions), result)
        else:
            drop = topo.uniform_forward_drop(preset.bypass_v_drop) or preset.bypass_v_drop
            states = _estimate_states(conditions, result, drop)
        for cid, state in zip(positions, states):
            out.cell_states[cid] = state

    for cid in range(len(ratios)):
        if cid in wired:
            continue
        r = _ratio(ratios, cid)
        p = unwired_cell_power(r, preset.area, preset.efficiency)
        v = scaled_vmp(params, r)
        out.cell_states[cid] = CellOperatingState(False, v, p / v if v > 0 else 0.0, p)
        out.unwired_power += p

    out.total_power += out.unwired_power
    out.shaded_count = sum(1 for r in ratios if r <= 0)
    if len(ratios):
        out.shaded_percentage = 100.0 * out.shaded_count / len(ratios)
    return out
