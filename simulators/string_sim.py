"""
string_sim.py

One-shot array evaluation from a layout config.

Loads a layout JSON (see ``ConfigCreator.py``), solves every string with the
chosen model at the configured irradiance ratios, and prints a per-string
summary. Optionally plots the string I-V / P-V curves with matplotlib.
"""

import argparse
import json
from typing import Any, Dict, List, Optional

from stringsim.config import LayoutConfig, load_config
from stringsim.models import registry as model_registry
from stringsim.src.array import ArraySimResult, simulate_array


def resolve_model(name: str) -> str:
    try:
        model_registry.get_class(name)
    except KeyError:
        raise SystemExit(
            f"[string_sim] Unknown model '{name}'. "
            f"Available: {', '.join(sorted(model_registry.available()))}"
        )
    return name


def load_layout(path: str) -> LayoutConfig:
    try:
        return load_config(path)
    except FileNotFoundError as e:
        raise SystemExit(f"[string_sim] {e}")
    except (ValueError, KeyError) as e:
        raise SystemExit(f"[string_sim] Invalid layout config {path}: {e}")


def run_string_sim(cfg: LayoutConfig, model: Optional[str] = None, verbose: bool = True) -> ArraySimResult:
    """Solve the layout; prints one line per string unless ``verbose`` is False."""
    name = resolve_model(model or cfg.model)
    scale = cfg.irradiance / 1000.0
    ratios = [min(max(r * scale, 0.0), 1.0) for r in cfg.ratios()]
    result = simulate_array(cfg.topologies(), ratios, cfg.cell_preset(), name, cfg.samples)

    if verbose:
        for idx, s_res in enumerate(result.string_results):
            print({"string": idx, **s_res.to_dict()})
    return result


def summary(cfg: LayoutConfig, result: ArraySimResult) -> Dict[str, Any]:
    return {
        "title": cfg.title,
        "preset": cfg.cell_preset().name,
        "strings": len(result.string_results),
        "total_power": round(result.total_power, 4),
        "unwired_power": round(result.unwired_power, 4),
        "shaded_pct": round(result.shaded_percentage, 2),
        "bypassed": result.bypassed_count,
    }


def plot_strings(result: ArraySimResult, out_path: str) -> None:
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, (ax_iv, ax_pv) = plt.subplots(1, 2, figsize=(10, 4))
    for idx, s_res in enumerate(result.string_results):
        curve = s_res.iv_curve
        if curve is None or curve.n_samples < 2:
            continue
        ax_iv.plot(curve.voltage, curve.current, label=f"string {idx}")
        ax_pv.plot(curve.voltage, curve.power(), label=f"string {idx}")
        ax_pv.scatter([s_res.voltage], [s_res.power], marker="x")
    ax_iv.set_xlabel("Voltage (V)")
    ax_iv.set_ylabel("Current (A)")
    ax_iv.set_title("String I-V")
    ax_pv.set_xlabel("Voltage (V)")
    ax_pv.set_ylabel("Power (W)")
    ax_pv.set_title("String P-V")
    for ax in (ax_iv, ax_pv):
        ax.grid(True)
        ax.legend()
    fig.tight_layout()
    fig.savefig(out_path)
    plt.close(fig)
    print(f"[string_sim] Saved plot: {out_path}")


# CLI
def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Evaluate the strings of a layout config at one instant.")
    parser.add_argument("--config", type=str, required=True,
                        help="Layout config JSON (see ConfigCreator.py)")
    parser.add_argument("--model", type=str, default=None,
                        help="Model key from stringsim.models.registry (default: the config's model)")
    parser.add_argument("--plot", type=str, default=None,
                        help="Write an I-V/P-V plot of every string to this PNG")
    parser.add_argument("--quiet", action="store_true",
                        help="Only print the summary")

    args = parser.parse_args(argv)

    cfg = load_layout(args.config)
    result = run_string_sim(cfg, model=args.model, verbose=not args.quiet)
    print(json.dumps(summary(cfg, result), indent=2))
    if args.plot:
        plot_strings(result, args.plot)


if __name__ == "__main__":
    main()
