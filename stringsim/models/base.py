"""
Base string power model interface
- Defines the contract shared by the precise (curve sweep) and cheap
  (linear estimate) paths so callers can swap fidelity freely.

Design goals:
- Keep the API tiny and stable so models remain swappable.
- Make models pure: read StringConditions -> return StringSimResult.
- Allow callers to introspect fidelity and tunables.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict

from ..src.string import StringSimResult, ideal_string_power
from .types import StringConditions


class StringPowerModel(ABC):
    """Abstract base class for all string power models.

    Attributes
    name : str
        Short, stable identifier (e.g., "full", "preview", "simple").
    fidelity : str
        "high" for curve sweeps, "low" for approximations.
    produces_curve : bool
        True if results carry a swept string I-V curve.
    """

    name: str = "base"
    fidelity: str = "high"
    produces_curve: bool = True

    def describe(self) -> Dict[str, Any]:
        """Return metadata for tunable parameters (empty by default)."""
        return {"key": self.name, "label": self.name.upper(), "fidelity": self.fidelity, "params": []}

    def get_config(self) -> Dict[str, Any]:
        return {}

    def evaluate(self, conditions: StringConditions) -> StringSimResult:
        """Solve one string and stamp the ideal (all-lit) power on the result."""
        if conditions.n_cells == 0:
            return StringSimResult.zero()
        result = self._evaluate(conditions)
        p = conditions.params
        result.power_ideal = ideal_string_power(conditions.n_cells, p.vmp, p.imp)
        return result

    @abstractmethod
    def _evaluate(self, conditions: StringConditions) -> StringSimResult:
        """Model-specific solve for a non-empty string."""
        ...


__all__ = ["StringPowerModel"]
