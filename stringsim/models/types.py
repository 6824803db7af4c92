"""
Core types for string power models

Minimal dataclasses shared by every model and by the batch runners.
Keep this file stable to avoid churn across the codebase.
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..src.curve import CellElectricalParams
from ..src.string import StringTopology


@dataclass
class StringConditions:
    """Everything a model needs to evaluate one string at one instant.

    Parameters
    topology : StringTopology
        Series positions and the bypass segments across them.
    params : CellElectricalParams
        Static electrical parameters shared by every cell in the string.
    ratios : Sequence[float]
        Irradiance ratio per series position (same order as ``topology.positions``).
    samples : int, optional
        Sweep sample count for curve-based models (None -> model default).
    """

    topology: StringTopology
    params: CellElectricalParams
    ratios: Sequence[float]
    samples: Optional[int] = None

    @property
    def n_cells(self) -> int:
        return self.topology.n_cells

    def photocurrents(self) -> List[float]:
        """Isc * ratio per position (ratios clamped into [0, 1])."""
        return [self.params.isc * min(max(float(r), 0.0), 1.0) for r in self.ratios]


__all__ = ["StringConditions"]
