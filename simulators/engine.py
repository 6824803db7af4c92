"""
Time/heading sweep engine for StringSim.

This module glues together:
- the sun geometry (`stringsim.sun`),
- the string power models (`stringsim.models`, picked by registry name),
- and the array accounting (`stringsim.src.array.simulate_array`),

into a loop over times of day (outer) and vehicle headings (inner). For each
time step the array power is averaged over all headings and integrated into
energy.

The goal is to have one place that:
1. builds a layout (from a config file or a flat default),
2. runs the sweep,
3. emits JSON-friendly dicts per time step (so a UI or logger can plot them).
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generator, List, Optional

import numpy as np

from stringsim.config import DEFAULT_PRESET, LayoutConfig, get_preset
from stringsim.models import registry as model_registry
from stringsim.src.array import simulate_array
from stringsim.src.string import StringTopology
from stringsim.sun import atmospheric_factor, irradiance_ratio, rotate_heading, sun_position

UP = (0.0, 1.0, 0.0)


@dataclass
class ArrayLayout:
    """Cell normals plus the strings wiring them.

    ``normals`` is N x 3; string positions are indices into it. Cells that no
    string references are unwired.
    """
    normals: np.ndarray
    strings: List[StringTopology] = field(default_factory=list)

    def __post_init__(self):
        self.normals = np.asarray(self.normals, dtype=float).reshape(-1, 3)

    @property
    def n_cells(self) -> int:
        return int(self.normals.shape[0])

    @classmethod
    def from_config(cls, cfg: LayoutConfig) -> "ArrayLayout":
        normals = [c.normal for c in cfg.all_cells()]
        return cls(normals=np.array(normals, dtype=float).reshape(-1, 3), strings=cfg.topologies())


def build_flat_layout(n_strings: int = 2, cells_per_string: int = 12, bypass_every: int = 0,
                      forward_drop: float = 0.35) -> ArrayLayout:
    """Flat, upward-facing array; optional one-cell diode on every ``bypass_every``-th cell."""
    strings = []
    for s in range(n_strings):
        ids = list(range(s * cells_per_string, (s + 1) * cells_per_string))
        flags = [bool(bypass_every) and (k % bypass_every == 0) for k in range(cells_per_string)]
        strings.append(StringTopology.with_cell_diodes(ids, flags, forward_drop))
    normals = np.tile(np.array(UP), (n_strings * cells_per_string, 1))
    return ArrayLayout(normals=normals, strings=strings)


@dataclass
class SweepConfig:
    latitude: float = 30.27
    longitude: float = -97.74
    month: int = 6
    day: int = 21
    irradiance: float = 1000.0      # W/m^2 above the atmosphere
    start_hour: float = 6.0
    duration_h: float = 12.0
    time_samples: int = 48
    heading_samples: int = 36
    model: str = "simple"
    preset: str = DEFAULT_PRESET
    samples: Optional[int] = None   # string sweep samples for curve models
    # Optional: per-time-step callback for UIs/loggers
    on_sample: Optional[Callable[[Dict[str, Any]], None]] = None
    # Optional: occlusion hook shade_func(cell_index, sun_dir) -> True if shaded
    shade_func: Optional[Callable[[int, np.ndarray], bool]] = None

    @property
    def dt_hours(self) -> float:
        if self.time_samples < 2:
            return self.duration_h
        return self.duration_h / (self.time_samples - 1)

    def hours(self) -> List[float]:
        if self.time_samples < 2:
            return [self.start_hour]
        return [self.start_hour + self.duration_h * k / (self.time_samples - 1)
                for k in range(self.time_samples)]

    def headings(self) -> List[float]:
        n = max(int(self.heading_samples), 1)
        return [k * 360.0 / n for k in range(n)]


@dataclass
class SweepResult:
    total_energy_wh: float = 0.0
    average_power_w: float = 0.0
    peak_power_w: float = 0.0
    energy_by_hour: List[float] = field(default_factory=lambda: [0.0] * 24)
    cell_energy_wh: List[float] = field(default_factory=list)
    string_energy_wh: List[float] = field(default_factory=list)
    average_shaded_pct: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_energy_wh": self.total_energy_wh,
            "average_power_w": self.average_power_w,
            "peak_power_w": self.peak_power_w,
            "energy_by_hour": list(self.energy_by_hour),
            "cell_energy_wh": list(self.cell_energy_wh),
            "string_energy_wh": list(self.string_energy_wh),
            "average_shaded_pct": self.average_shaded_pct,
        }


class SweepEngine:
    """
    Day-long time x heading sweep.

    Usage:
        eng = SweepEngine(SweepConfig(time_samples=24), build_flat_layout())

        # Simple blocking loop (CLI / scripts):
        for rec in eng.run():
            print(rec)
        print(eng.result())

        # Or step-wise (GUI-friendly):
        eng.start()
        while eng.step() is not None:
            pass
    """

    def __init__(self, cfg: SweepConfig, layout: ArrayLayout):
        self.cfg = cfg
        self.layout = layout
        self.preset = get_preset(cfg.preset)
        self.model = model_registry.build(cfg.model)
        self.on_sample = cfg.on_sample
        self._iter = None  # type: Optional[Generator[Dict[str, Any], None, None]]
        self._started = False
        self._reset_totals()

    def _reset_totals(self) -> None:
        self._result = SweepResult(
            cell_energy_wh=[0.0] * self.layout.n_cells,
            string_energy_wh=[0.0] * len(self.layout.strings),
        )
        self._cell_samples = 0
        self._shaded_samples = 0

    def start(self) -> None:
        self._iter = self.run()

    def step(self) -> Optional[Dict[str, Any]]:
        """Advance by one daylight time step; None once the sweep is done."""
        if self._iter is None:
            self.start()
        try:
            return next(self._iter)
        except StopIteration:
            return None

    def cell_ratios(self, sun_dir: np.ndarray, irradiance: float) -> List[float]:
        """Irradiance ratio of every cell for one (already heading-rotated) sun direction."""
        ratios = []
        for idx, normal in enumerate(self.layout.normals):
            shaded = False
            if self.cfg.shade_func is not None and float(np.dot(normal, sun_dir)) > 0:
                shaded = bool(self.cfg.shade_func(idx, sun_dir))
            ratios.append(irradiance_ratio(normal, sun_dir, irradiance, shaded=shaded))
        return ratios

    def run(self) -> Generator[Dict[str, Any], None, None]:
        """
        Run the sweep and yield one JSON-friendly dict per daylight time step.
        Totals accumulate into :meth:`result`.
        """
        self._reset_totals()
        self._started = True
        cfg = self.cfg
        res = self._result
        headings = cfg.headings()
        n_head = len(headings)
        dt = cfg.dt_hours

        for hour in cfg.hours():
            sun = sun_position(cfg.latitude, cfg.longitude, cfg.month, cfg.day, hour)
            if not sun.is_daytime:
                continue
            g_eff = cfg.irradiance * atmospheric_factor(sun.altitude_deg)

            power_sum = 0.0
            cell_power = np.zeros(self.layout.n_cells)
            string_power = np.zeros(len(self.layout.strings))
            shaded_step = 0
            for heading in headings:
                sun_dir = rotate_heading(sun.direction, heading)
                ratios = self.cell_ratios(sun_dir, g_eff)
                arr = simulate_array(self.layout.strings, ratios, self.preset, self.model, cfg.samples)

                power_sum += arr.total_power
                res.peak_power_w = max(res.peak_power_w, arr.total_power)
                for cid, state in arr.cell_states.items():
                    cell_power[cid] += state.power
                for s_idx, s_res in enumerate(arr.string_results):
                    string_power[s_idx] += s_res.power
                shaded_step += arr.shaded_count

            avg_power = power_sum / n_head
            energy = avg_power * dt
            res.total_energy_wh += energy
            bucket = int(hour)
            if 0 <= bucket < 24:
                res.energy_by_hour[bucket] += energy
            for cid in range(self.layout.n_cells):
                res.cell_energy_wh[cid] += cell_power[cid] / n_head * dt
            for s_idx in range(len(self.layout.strings)):
                res.string_energy_wh[s_idx] += string_power[s_idx] / n_head * dt

            self._cell_samples += n_head * self.layout.n_cells
            self._shaded_samples += shaded_step

            rec = {
                "hour": hour,
                "altitude": sun.altitude_deg,
                "azimuth": sun.azimuth_deg,
                "irradiance": g_eff,
                "power": avg_power,
                "energy_wh": energy,
                "total_energy_wh": res.total_energy_wh,
                "shaded_pct": 100.0 * shaded_step / (n_head * self.layout.n_cells) if self.layout.n_cells else 0.0,
            }
            if self.on_sample is not None:
                self.on_sample(rec)
            yield rec

    def result(self) -> SweepResult:
        """Totals of the last (or current) run; runs the sweep to completion if never started."""
        if not self._started:
            for _ in self.run():
                pass
        res = self._result
        res.average_power_w = res.total_energy_wh / self.cfg.duration_h if self.cfg.duration_h > 0 else 0.0
        if self._cell_samples:
            res.average_shaded_pct = 100.0 * self._shaded_samples / self._cell_samples
        return res


# CLI demo
def _demo() -> None:
    cfg = SweepConfig(time_samples=13, heading_samples=8, on_sample=lambda rec: print(rec))
    eng = SweepEngine(cfg, build_flat_layout(n_strings=2, cells_per_string=12, bypass_every=4))
    for _ in eng.run():
        pass
    print(eng.result().to_dict())


if __name__ == "__main__":
    _demo()
