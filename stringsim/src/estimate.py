"""
Cheap string power estimate for batch sweeps.

No curve synthesis and no current sweep: the string is assumed to run at the
current of its weakest non-bypassable cell, every cell that can carry that
current contributes its Vmp, and every cell that cannot either drops out
through its diode or (without one) contributes a linear share of its Vmp.
The partial-credit term is an explicit approximation, not physics.
"""
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from .bypassdiode import DEFAULT_FORWARD_DROP


@dataclass(frozen=True)
class SimpleEstimate:
    power: float = 0.0
    limiting_current: float = 0.0
    total_voltage: float = 0.0
    bypassed: Tuple[bool, ...] = ()

    @property
    def cells_bypassed(self) -> int:
        return sum(1 for b in self.bypassed if b)


def limiting_current(cell_currents: Sequence[float], has_bypass: Sequence[bool]) -> float:
    """Current the string settles at; 0 when nothing can carry current."""
    limit = None
    for cur, flag in zip(cell_currents, has_bypass):
        if not flag and (limit is None or cur < limit):
            limit = cur

    # every cell can be bypassed: the weakest cell that still produces sets it
    if limit is None:
        for cur in cell_currents:
            if cur > 0 and (limit is None or cur < limit):
                limit = cur

    if limit is None or limit <= 0:
        return 0.0
    return float(limit)


def estimate_string_power(
    cell_currents: Sequence[float],
    cell_vmp: Sequence[float],
    forward_drop: float = DEFAULT_FORWARD_DROP,
    has_bypass: Optional[Sequence[bool]] = None,
) -> SimpleEstimate:
    """O(cells) approximate string power from per-cell photo-current and Vmp."""
    n_cells = len(cell_currents)
    if n_cells == 0:
        return SimpleEstimate()

    flags = list(has_bypass) if has_bypass is not None else [False] * n_cells
    i_lim = limiting_current(cell_currents, flags)
    if i_lim <= 0:
        return SimpleEstimate(bypassed=tuple(True for _ in range(n_cells)))

    total_voltage = 0.0
    bypassed = []
    for cur, vmp, flag in zip(cell_currents, cell_vmp, flags):
        if cur < i_lim:
            if flag:
                bypassed.append(True)
                total_voltage -= forward_drop
            else:
                bypassed.append(False)
                total_voltage += vmp * (cur / i_lim)
        else:
            bypassed.append(False)
            total_voltage += vmp

    return SimpleEstimate(
        power=i_lim * max(total_voltage, 0.0),
        limiting_current=i_lim,
        total_voltage=total_voltage,
        bypassed=tuple(bypassed),
    )
