"""
Cell presets and layout configuration.

Layout configs are plain JSON produced from the dataclasses below with
``asdict`` (see ``ConfigCreator.py``)::

    {
      "title": "...",
      "preset": "Maxeon Gen 3 (ME3)",
      "model": "full",
      "samples": 200,
      "irradiance": 1000.0,
      "strings": [
        {
          "cells": [ {"ratio": 1.0, "normal": [0, 1, 0], "bypass": false}, ... ],
          "bypass": [ {"start": 0, "end": 9, "drop": 0.35}, ... ]
        }
      ],
      "unwired": [ {"ratio": 1.0, "normal": [0, 1, 0]} ]
    }
"""
import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .src.curve import CellElectricalParams
from .src.bypassdiode import BypassSegment
from .src.string import StringTopology


@dataclass(frozen=True)
class CellPreset:
    name: str
    width: float        # m
    height: float       # m
    efficiency: float   # 0-1
    voc: float          # V (STC)
    isc: float          # A (STC)
    vmp: float          # V
    imp: float          # A
    n_ideal: float = 1.3
    series_r: float = 0.0
    bypass_v_drop: float = 0.35

    @property
    def area(self) -> float:
        return self.width * self.height

    def electrical(self) -> CellElectricalParams:
        return CellElectricalParams(
            voc=self.voc, isc=self.isc, vmp=self.vmp, imp=self.imp,
            n=self.n_ideal, rs=self.series_r,
        )


PRESETS: Dict[str, CellPreset] = {
    p.name: p
    for p in (
        CellPreset(
            name="Maxeon Gen 3 (ME3)",
            width=0.125, height=0.125, efficiency=0.227,
            voc=0.686, isc=6.27, vmp=0.58, imp=6.01,
            n_ideal=1.26, series_r=0.003, bypass_v_drop=0.35,
        ),
        CellPreset(
            name="Maxeon Gen 5",
            width=0.125, height=0.125, efficiency=0.24,
            voc=0.70, isc=6.50, vmp=0.60, imp=6.20,
            n_ideal=1.2, series_r=0.003, bypass_v_drop=0.35,
        ),
        CellPreset(
            name="Generic Silicon",
            width=0.156, height=0.156, efficiency=0.20,
            voc=0.64, isc=9.5, vmp=0.54, imp=9.0,
            n_ideal=1.3, series_r=0.005, bypass_v_drop=0.7,
        ),
    )
}

DEFAULT_PRESET = "Maxeon Gen 3 (ME3)"


def get_preset(name: Optional[str] = None) -> CellPreset:
    """Look up a preset by name (case-insensitive)."""
    if not name:
        return PRESETS[DEFAULT_PRESET]
    for key, preset in PRESETS.items():
        if key.lower() == name.strip().lower():
            return preset
    raise KeyError(f"Unknown cell preset '{name}'. Available: {list(PRESETS)}")


# -------- layout config --------

@dataclass
class CellConfig:
    ratio: float = 1.0
    normal: List[float] = field(default_factory=lambda: [0.0, 1.0, 0.0])
    bypass: bool = False


@dataclass
class SegmentConfig:
    start: int = 0
    end: int = 0
    drop: Optional[float] = None  # None -> preset bypass_v_drop


@dataclass
class StringConfig:
    cells: List[CellConfig] = field(default_factory=list)
    bypass: List[SegmentConfig] = field(default_factory=list)

    def topology(self, first_cell_id: int, default_drop: float) -> StringTopology:
        """Topology whose positions are global cell ids starting at ``first_cell_id``."""
        positions = list(range(first_cell_id, first_cell_id + len(self.cells)))
        segments = []
        for pos, cell in enumerate(self.cells):
            if cell.bypass:
                segments.append(BypassSegment(pos, pos, default_drop))
        for seg in self.bypass:
            drop = default_drop if seg.drop is None else float(seg.drop)
            segments.append(BypassSegment(int(seg.start), int(seg.end), drop))
        return StringTopology(positions, segments)


@dataclass
class LayoutConfig:
    title: str = "String layout"
    preset: str = DEFAULT_PRESET
    model: str = "full"
    samples: int = 200
    irradiance: float = 1000.0
    strings: List[StringConfig] = field(default_factory=list)
    unwired: List[CellConfig] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def cell_preset(self) -> CellPreset:
        return get_preset(self.preset)

    def topologies(self) -> List[StringTopology]:
        """One topology per string; cell ids run over strings first, then unwired cells."""
        drop = self.cell_preset().bypass_v_drop
        out = []
        next_id = 0
        for s in self.strings:
            out.append(s.topology(next_id, drop))
            next_id += len(s.cells)
        return out

    def all_cells(self) -> List[CellConfig]:
        cells = [c for s in self.strings for c in s.cells]
        return cells + list(self.unwired)

    def ratios(self) -> List[float]:
        return [c.ratio for c in self.all_cells()]

    def unwired_ids(self) -> List[int]:
        first = sum(len(s.cells) for s in self.strings)
        return list(range(first, first + len(self.unwired)))


def _cell_from_dict(raw: Any, where: str) -> CellConfig:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected an object, got {type(raw).__name__}")
    ratio = float(raw.get("ratio", 1.0))
    if not 0.0 <= ratio <= 1.0:
        raise ValueError(f"{where}.ratio must be within [0, 1], got {ratio}")
    normal = raw.get("normal", [0.0, 1.0, 0.0])
    if not isinstance(normal, (list, tuple)) or len(normal) != 3:
        raise ValueError(f"{where}.normal must be a 3-vector")
    return CellConfig(ratio=ratio, normal=[float(x) for x in normal], bypass=bool(raw.get("bypass", False)))


def _segment_from_dict(raw: Any, where: str, n_cells: int) -> SegmentConfig:
    if not isinstance(raw, dict) or "start" not in raw or "end" not in raw:
        raise ValueError(f"{where}: bypass entries need 'start' and 'end'")
    start, end = int(raw["start"]), int(raw["end"])
    if start < 0 or end < start or end >= n_cells:
        raise ValueError(f"{where}: invalid span [{start}, {end}] for a {n_cells}-cell string")
    drop = raw.get("drop")
    return SegmentConfig(start=start, end=end, drop=None if drop is None else float(drop))


def config_from_dict(data: Dict[str, Any]) -> LayoutConfig:
    """Validate a decoded JSON layout and build a :class:`LayoutConfig`."""
    if not isinstance(data, dict):
        raise ValueError("layout config must be a JSON object")

    strings = []
    for s_idx, raw_string in enumerate(data.get("strings", [])):
        where = f"strings[{s_idx}]"
        if not isinstance(raw_string, dict):
            raise ValueError(f"{where}: expected an object")
        cells = [_cell_from_dict(c, f"{where}.cells[{c_idx}]")
                 for c_idx, c in enumerate(raw_string.get("cells", []))]
        segs = [_segment_from_dict(b, f"{where}.bypass[{b_idx}]", len(cells))
                for b_idx, b in enumerate(raw_string.get("bypass", []))]
        strings.append(StringConfig(cells=cells, bypass=segs))

    unwired = [_cell_from_dict(c, f"unwired[{idx}]") for idx, c in enumerate(data.get("unwired", []))]

    samples = int(data.get("samples", 200))
    if samples < 2:
        raise ValueError(f"samples must be >= 2, got {samples}")

    cfg = LayoutConfig(
        title=str(data.get("title", "String layout")),
        preset=str(data.get("preset", DEFAULT_PRESET)),
        model=str(data.get("model", "full")),
        samples=samples,
        irradiance=float(data.get("irradiance", 1000.0)),
        strings=strings,
        unwired=unwired,
    )
    # fail early on an unknown preset
    cfg.cell_preset()
    return cfg


def load_config(path) -> LayoutConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"layout config not found: {path}")
    with p.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return config_from_dict(data)


def save_config(cfg: LayoutConfig, path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(cfg.to_dict(), f, indent=2)
