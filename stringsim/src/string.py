from dataclasses import dataclass, field
from typing import Hashable, List, Optional, Sequence, Tuple

import numpy as np

from .curve import IVCurve
from .interp import voltage_at_current
from .bypassdiode import (
    BypassDiode,
    BypassSegment,
    DEFAULT_FORWARD_DROP,
    flags_from_segments,
    is_per_cell,
    segments_from_flags,
    uniform_forward_drop,
)

STRING_SAMPLES = 200
NEG_INF = float("-inf")


@dataclass
class StringTopology:
    """
    Series string: ordered cell references plus the bypass diodes across them.
    Positions are indices into ``positions``; segments refer to positions.
    """

    positions: List[Hashable]
    segments: List[BypassSegment] = field(default_factory=list)

    @classmethod
    def with_cell_diodes(cls, positions: Sequence[Hashable], has_bypass: Sequence[bool],
                         forward_drop: float = DEFAULT_FORWARD_DROP) -> "StringTopology":
        return cls(list(positions), segments_from_flags(has_bypass, forward_drop))

    @property
    def n_cells(self) -> int:
        return len(self.positions)

    def is_per_cell(self) -> bool:
        return is_per_cell(self.segments)

    def has_bypass_flags(self) -> List[bool]:
        return flags_from_segments(self.segments, self.n_cells)

    def uniform_forward_drop(self, default: float = DEFAULT_FORWARD_DROP) -> Optional[float]:
        return uniform_forward_drop(self.segments, default)


@dataclass
class StringSimResult:
    power: float = 0.0
    voltage: float = 0.0
    current: float = 0.0
    iv_curve: Optional[IVCurve] = None
    cells_bypassed: int = 0
    bypassed_positions: Tuple[int, ...] = ()
    activated_segments: Tuple[BypassSegment, ...] = ()
    power_ideal: float = 0.0

    @classmethod
    def zero(cls, n_samples: int = 2) -> "StringSimResult":
        """All-zero result: no light, no cells, or nothing to sweep."""
        zeros = np.zeros(max(int(n_samples), 2))
        return cls(iv_curve=IVCurve(current=zeros, voltage=zeros))

    def to_dict(self) -> dict:
        """JSON-friendly summary (the curve is reduced to its scalars)."""
        curve = self.iv_curve
        return {
            "power": self.power,
            "voltage": self.voltage,
            "current": self.current,
            "cells_bypassed": self.cells_bypassed,
            "bypassed_positions": list(self.bypassed_positions),
            "activated_segments": [[s.start, s.end, s.forward_drop] for s in self.activated_segments],
            "power_ideal": self.power_ideal,
            "voc": curve.voc if curve is not None else 0.0,
            "isc": curve.isc if curve is not None else 0.0,
        }


@dataclass
class CellOperatingState:
    is_bypassed: bool = False
    voltage: float = 0.0
    current: float = 0.0
    power: float = 0.0


# -------- shared sweep helpers --------

def sweep_currents(curves: Sequence[IVCurve], samples: int = STRING_SAMPLES) -> Optional[np.ndarray]:
    """Current grid 0..max(Isc); None when no cell produces current."""
    if not curves:
        return None
    max_isc = max(c.isc for c in curves)
    if max_isc <= 0:
        return None
    return np.linspace(0.0, max_isc, max(int(samples), 2))


def pick_mpp(currents: np.ndarray, voltages: np.ndarray, n_used: int) -> Tuple[int, float]:
    """Index and power of the first maximum of I*V over the first ``n_used`` samples."""
    max_power = 0.0
    mp_idx = 0
    for idx in range(n_used):
        p = float(currents[idx] * voltages[idx])
        if p > max_power:
            max_power = p
            mp_idx = idx
    return mp_idx, max_power


def sweep_to_curve(currents: np.ndarray, voltages: np.ndarray, n_used: int, mp_idx: int) -> IVCurve:
    """Turn an ascending-current sweep into an IVCurve (current descending)."""
    cur = currents[:n_used][::-1]
    vol = voltages[:n_used][::-1]
    return IVCurve(
        current=cur,
        voltage=vol,
        voc=float(voltages[0]),
        isc=float(currents[n_used - 1]),
        vmp=float(voltages[mp_idx]),
        imp=float(currents[mp_idx]),
    )


# -------- full-model string solve --------

def _cell_voltage(curve: IVCurve, current: float) -> float:
    """V(I) of one cell; -inf once the current reaches what it can carry."""
    if current < curve.isc:
        return voltage_at_current(curve, current)
    return NEG_INF


def solve_string(
    curves: Sequence[IVCurve],
    forward_drop: float = DEFAULT_FORWARD_DROP,
    has_bypass: Optional[Sequence[bool]] = None,
    samples: int = STRING_SAMPLES,
) -> StringSimResult:
    """
    Sweep the series current from 0 to the largest cell Isc and accumulate
    node voltages along the string.

    For every position the node voltage is the previous node plus the cell
    voltage at the sweep current (-inf once the current exceeds what the cell
    can carry). A bypass diode lifts the node to ``previous - forward_drop``
    whenever that is higher. The retained sweep stops at the first sample
    whose last node went negative.
    """
    n_cells = len(curves)
    currents = sweep_currents(curves, samples)
    if currents is None:
        return StringSimResult.zero()

    flags = list(has_bypass) if has_bypass is not None else [False] * n_cells
    diode = BypassDiode(forward_drop)
    n_samples = currents.size
    voltages = np.zeros(n_samples)
    n_good = n_samples

    node_v = np.zeros(n_cells + 1)
    for k, current in enumerate(currents):
        node_v[0] = 0.0
        for j in range(1, n_cells + 1):
            cell_v = _cell_voltage(curves[j - 1], current)
            if flags[j - 1]:
                cell_v = diode.clamp(cell_v, current)
            node_v[j] = node_v[j - 1] + cell_v

        voltages[k] = max(node_v[n_cells], 0.0)
        if node_v[n_cells] < 0 and n_good == n_samples:
            n_good = k

    # keep the first invalid sample (clamped to 0 V) as the string's Isc end
    n_used = n_good + 1 if n_good < n_samples else n_samples
    n_used = max(n_used, 2)

    mp_idx, max_power = pick_mpp(currents, voltages, n_used)
    i_mpp = float(currents[mp_idx])

    bypassed = tuple(
        pos for pos in range(n_cells)
        if flags[pos] and diode.activation_condition(_cell_voltage(curves[pos], i_mpp), i_mpp)
    )
    segments = tuple(BypassSegment(pos, pos, forward_drop) for pos in bypassed)

    return StringSimResult(
        power=max_power,
        voltage=float(voltages[mp_idx]),
        current=i_mpp,
        iv_curve=sweep_to_curve(currents, voltages, n_used, mp_idx),
        cells_bypassed=len(bypassed),
        bypassed_positions=bypassed,
        activated_segments=segments,
    )


def cell_operating_states(curves: Sequence[IVCurve], result: StringSimResult) -> List[CellOperatingState]:
    """Per-cell voltage/power at the string operating point.

    Bypassed cells share the forward drop of the smallest active diode
    spanning them (a single-cell diode puts its cell at ``-Vf``); every other
    cell is read off its own curve at the string current.
    """
    owner = {}
    for pos in result.bypassed_positions:
        covering = [s for s in result.activated_segments if s.covers(pos)]
        if covering:
            owner[pos] = min(covering, key=BypassSegment.rank)
    shares = {}
    for seg in owner.values():
        shares[seg] = shares.get(seg, 0) + 1

    i_op = result.current
    states: List[CellOperatingState] = []
    for pos, curve in enumerate(curves):
        if pos in owner:
            seg = owner[pos]
            v = -seg.forward_drop / shares[seg]
            states.append(CellOperatingState(True, v, i_op, i_op * v))
        else:
            v = voltage_at_current(curve, i_op)
            states.append(CellOperatingState(False, v, i_op, i_op * v))
    return states


def ideal_string_power(n_cells: int, vmp: float, imp: float) -> float:
    """String power if every cell were fully lit at its datasheet MPP."""
    return n_cells * vmp * imp


__all__ = [
    "StringTopology", "StringSimResult", "CellOperatingState",
    "solve_string", "cell_operating_states", "ideal_string_power",
    "sweep_currents", "pick_mpp", "sweep_to_curve", "STRING_SAMPLES",
]
