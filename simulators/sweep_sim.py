"""
sweep_sim.py

Day-long energy estimate for a layout.

Runs the SweepEngine over times of day and vehicle headings for a given
location and date. The layout comes from a config file or a flat default
array. Prints each time-step record (unless --quiet) and a final summary,
and can plot energy by hour.
"""

import argparse
import json
from typing import List, Optional

from simulators.engine import ArrayLayout, SweepConfig, SweepEngine, SweepResult, build_flat_layout
from stringsim.config import DEFAULT_PRESET, load_config
from stringsim.models import registry as model_registry


def build_layout(config_path: Optional[str], n_strings: int, cells_per_string: int) -> ArrayLayout:
    if not config_path:
        return build_flat_layout(n_strings=n_strings, cells_per_string=cells_per_string)
    try:
        return ArrayLayout.from_config(load_config(config_path))
    except FileNotFoundError as e:
        raise SystemExit(f"[sweep_sim] {e}")
    except (ValueError, KeyError) as e:
        raise SystemExit(f"[sweep_sim] Invalid layout config {config_path}: {e}")


def run_sweep_sim(
    layout: ArrayLayout,
    latitude: float = 30.27,
    longitude: float = -97.74,
    month: int = 6,
    day: int = 21,
    model: str = "simple",
    preset: str = DEFAULT_PRESET,
    time_samples: int = 48,
    heading_samples: int = 36,
    verbose: bool = True,
) -> SweepResult:
    try:
        model_registry.get_class(model)
    except KeyError:
        raise SystemExit(
            f"[sweep_sim] Unknown model '{model}'. "
            f"Available: {', '.join(sorted(model_registry.available()))}"
        )

    cfg = SweepConfig(
        latitude=latitude,
        longitude=longitude,
        month=month,
        day=day,
        model=model,
        preset=preset,
        time_samples=time_samples,
        heading_samples=heading_samples,
        on_sample=print if verbose else None,
    )
    try:
        eng = SweepEngine(cfg, layout)
    except KeyError as e:
        raise SystemExit(f"[sweep_sim] {e}")
    for _ in eng.run():
        pass
    return eng.result()


def plot_energy(result: SweepResult, out_path: str) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    plt.figure(figsize=(7, 4))
    plt.bar(list(range(24)), result.energy_by_hour)
    plt.xlabel("Hour of day")
    plt.ylabel("Energy (Wh)")
    plt.title(f"Energy by hour (total {result.total_energy_wh:.1f} Wh)")
    plt.grid(True, axis="y")
    plt.tight_layout()
    plt.savefig(out_path)
    plt.close()
    print(f"[sweep_sim] Saved plot: {out_path}")


# CLI
def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Run a time-of-day x heading energy sweep.")
    parser.add_argument("--config", type=str, default=None,
                        help="Layout config JSON; omit for a flat default array")
    parser.add_argument("--strings", type=int, default=2, help="Flat default: number of strings")
    parser.add_argument("--cells", type=int, default=12, help="Flat default: cells per string")
    parser.add_argument("--lat", type=float, default=30.27, help="Latitude (deg)")
    parser.add_argument("--lon", type=float, default=-97.74, help="Longitude (deg)")
    parser.add_argument("--month", type=int, default=6)
    parser.add_argument("--day", type=int, default=21)
    parser.add_argument("--model", type=str, default="simple",
                        help="Model key from stringsim.models.registry")
    parser.add_argument("--preset", type=str, default=DEFAULT_PRESET, help="Cell preset name")
    parser.add_argument("--time-samples", type=int, default=48)
    parser.add_argument("--heading-samples", type=int, default=36)
    parser.add_argument("--plot", type=str, default=None,
                        help="Write an energy-by-hour bar chart to this PNG")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print each time step")

    args = parser.parse_args(argv)

    layout = build_layout(args.config, args.strings, args.cells)
    result = run_sweep_sim(
        layout,
        latitude=args.lat,
        longitude=args.lon,
        month=args.month,
        day=args.day,
        model=args.model,
        preset=args.preset,
        time_samples=args.time_samples,
        heading_samples=args.heading_samples,
        verbose=not args.quiet,
    )
    out = result.to_dict()
    out.pop("cell_energy_wh")
    print(json.dumps(out, indent=2))
    if args.plot:
        plot_energy(result, args.plot)


if __name__ == "__main__":
    main()
