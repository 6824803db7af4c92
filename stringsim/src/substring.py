from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Sequence, Tuple

import numpy as np

from .curve import IVCurve
from .interp import voltages_at_current
from .bypassdiode import BypassSegment
from .string import (
    STRING_SAMPLES,
    StringSimResult,
    pick_mpp,
    sweep_currents,
    sweep_to_curve,
)


@dataclass(frozen=True)
class BypassResolution:
    """Which diodes conduct at one sweep current.

    weak       : positions whose own Isc cannot carry the current
    activated  : segments switched on (smallest cover of some weak position)
    bypassed   : positions whose voltage is replaced by the diode drop
    stranded   : weak positions no segment covers (they block the string)
    """

    weak: FrozenSet[int]
    activated: Tuple[BypassSegment, ...]
    bypassed: FrozenSet[int]
    stranded: FrozenSet[int]

    @property
    def total_drop(self) -> float:
        return sum(seg.forward_drop for seg in self.activated)


def order_segments(segments: Sequence[BypassSegment]) -> List[BypassSegment]:
    """Distinct segments sorted smallest first (ties: lowest start, then end, then drop)."""
    return sorted(set(segments), key=BypassSegment.rank)


def covering_index(segments: Sequence[BypassSegment], n_cells: int) -> Dict[int, List[BypassSegment]]:
    """position -> covering segments, smallest first. ``segments`` must be ordered."""
    covers: Dict[int, List[BypassSegment]] = {pos: [] for pos in range(n_cells)}
    for seg in segments:
        lo = max(seg.start, 0)
        hi = min(seg.end, n_cells - 1)
        for pos in range(lo, hi + 1):
            covers[pos].append(seg)
    return covers


def resolve_bypass(
    iscs: Sequence[float],
    segments: Sequence[BypassSegment],
    current: float,
    covers: Optional[Dict[int, List[BypassSegment]]] = None,
) -> BypassResolution:
    """Resolve which segments conduct at ``current``.

    Each weak position switches on its smallest covering segment. A position
    is bypassed when an active segment covers it and no strictly smaller
    inactive segment also covers it, so only the minimal active cover ever
    takes a cell out of the string.
    """
    n_cells = len(iscs)
    if covers is None:
        covers = covering_index(order_segments(segments), n_cells)

    weak = frozenset(pos for pos in range(n_cells) if iscs[pos] <= current)

    active = set()
    stranded = set()
    for pos in weak:
        if covers[pos]:
            active.add(covers[pos][0])
        else:
            stranded.add(pos)

    bypassed = set()
    for pos in range(n_cells):
        # covers are smallest first, so the first inactive one is the smallest
        smallest_inactive = None
        for seg in covers[pos]:
            if seg in active:
                if smallest_inactive is None or smallest_inactive >= seg.size:
                    bypassed.add(pos)
                break
            if smallest_inactive is None:
                smallest_inactive = seg.size

    return BypassResolution(
        weak=weak,
        activated=tuple(sorted(active, key=BypassSegment.rank)),
        bypassed=frozenset(bypassed),
        stranded=frozenset(stranded),
    )


def segment_voltage(curves: Sequence[IVCurve], resolution: BypassResolution, current: float) -> float:
    """Unclamped string voltage at ``current`` under a given bypass resolution."""
    if resolution.stranded:
        return float("-inf")
    cell_v = voltages_at_current(curves, current)
    total = sum(v for pos, v in enumerate(cell_v) if pos not in resolution.bypassed)
    return total + sum(seg.diode().v_at_i(current) for seg in resolution.activated)


def resolve_segments(
    curves: Sequence[IVCurve],
    segments: Sequence[BypassSegment],
    samples: int = STRING_SAMPLES,
    covers: Optional[Dict[int, List[BypassSegment]]] = None,
) -> StringSimResult:
    """
    String sweep with bypass diodes spanning arbitrary, possibly nested or
    overlapping, runs of positions.

    Every sample resolves the diode network with :func:`resolve_bypass` and
    sums the voltages of the cells still in circuit, less one forward drop per
    distinct conducting diode. The whole sweep is kept (no truncation).
    """
    n_cells = len(curves)
    currents = sweep_currents(curves, samples)
    if currents is None:
        return StringSimResult.zero()

    ordered = order_segments(segments)
    if covers is None:
        covers = covering_index(ordered, n_cells)
    iscs = [c.isc for c in curves]

    n_samples = currents.size
    voltages = np.zeros(n_samples)
    resolutions: List[BypassResolution] = []
    for k, current in enumerate(currents):
        res = resolve_bypass(iscs, ordered, float(current), covers)
        resolutions.append(res)
        voltages[k] = max(segment_voltage(curves, res, float(current)), 0.0)

    mp_idx, max_power = pick_mpp(currents, voltages, n_samples)
    at_mpp = resolutions[mp_idx]

    return StringSimResult(
        power=max_power,
        voltage=float(voltages[mp_idx]),
        current=float(currents[mp_idx]),
        iv_curve=sweep_to_curve(currents, voltages, n_samples, mp_idx),
        cells_bypassed=len(at_mpp.bypassed),
        bypassed_positions=tuple(sorted(at_mpp.bypassed)),
        activated_segments=at_mpp.activated,
    )


class SegmentBypassResolver:
    """Reusable solver for one fixed segment layout.

    The segment ordering and coverage index are built once; :meth:`solve`
    can then be called for every irradiance instant.
    """

    def __init__(self, segments: Sequence[BypassSegment], n_cells: int, samples: int = STRING_SAMPLES):
        self.segments = order_segments(segments)
        self.n_cells = int(n_cells)
        self.samples = int(samples)
        self.covers = covering_index(self.segments, self.n_cells)

    def resolve(self, iscs: Sequence[float], current: float) -> BypassResolution:
        return resolve_bypass(iscs, self.segments, current, self.covers)

    def solve(self, curves: Sequence[IVCurve]) -> StringSimResult:
        if len(curves) != self.n_cells:
            return resolve_segments(curves, self.segments, self.samples)
        return resolve_segments(curves, self.segments, self.samples, self.covers)
