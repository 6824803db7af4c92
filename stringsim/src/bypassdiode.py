from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple

DEFAULT_FORWARD_DROP = 0.35  # V, Schottky-class bypass diode


class BypassDiode:
    """Reverse-wired bypass diode seen from the string.

    The diode is modelled as a fixed forward drop plus an optional ohmic
    term. Across the cells it protects it sits at ``-(Vf + I*Rs)``; it only
    matters when the protected cells would otherwise sit lower than that.
    """

    def __init__(self, forward_drop: float = DEFAULT_FORWARD_DROP, series_resistance: float = 0.0):
        self.forward_drop = float(forward_drop)
        self.series_resistance = float(series_resistance)

    def v_at_i(self, current: float) -> float:
        """Voltage across the diode at string current ``current`` (always <= 0)."""
        i = max(float(current), 0.0)
        return -(self.forward_drop + i * self.series_resistance)

    def activation_condition(self, cells_voltage: float, current: float) -> bool:
        """True if the diode conducts, i.e. the cells sit below the diode voltage."""
        return cells_voltage < self.v_at_i(current)

    def clamp(self, cells_voltage: float, current: float) -> float:
        """Voltage of the protected span: the larger of cells vs diode."""
        return max(cells_voltage, self.v_at_i(current))


@dataclass(frozen=True)
class BypassSegment:
    """Bypass diode spanning series positions ``start..end`` (inclusive)."""

    start: int
    end: int
    forward_drop: float = DEFAULT_FORWARD_DROP

    @property
    def size(self) -> int:
        return max(self.end - self.start + 1, 0)

    def covers(self, position: int) -> bool:
        return self.start <= position <= self.end

    def rank(self) -> Tuple[int, int, int, float]:
        # smaller spans first; equal sizes fall back to the lowest start index
        return (self.size, self.start, self.end, self.forward_drop)

    def diode(self) -> BypassDiode:
        return BypassDiode(self.forward_drop)


def segments_from_flags(has_bypass: Sequence[bool], forward_drop: float = DEFAULT_FORWARD_DROP) -> List[BypassSegment]:
    """One single-cell segment for every flagged position."""
    return [BypassSegment(pos, pos, forward_drop) for pos, flag in enumerate(has_bypass) if flag]


def flags_from_segments(segments: Iterable[BypassSegment], n_cells: int) -> List[bool]:
    """Per-position has-bypass flags for single-cell segments."""
    flags = [False] * n_cells
    for seg in segments:
        if seg.size == 1 and 0 <= seg.start < n_cells:
            flags[seg.start] = True
    return flags


def is_per_cell(segments: Sequence[BypassSegment]) -> bool:
    """True when every segment spans one cell and all share one forward drop.

    That is exactly the case the node-voltage solver handles directly.
    """
    if any(seg.size != 1 for seg in segments):
        return False
    drops = {seg.forward_drop for seg in segments}
    return len(drops) <= 1


def uniform_forward_drop(segments: Sequence[BypassSegment], default: float = DEFAULT_FORWARD_DROP) -> Optional[float]:
    """The shared forward drop of ``segments``; ``default`` when empty, None if mixed."""
    drops = {seg.forward_drop for seg in segments}
    if not drops:
        return default
    if len(drops) == 1:
        return drops.pop()
    return None
