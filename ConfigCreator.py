"""StringSim Config Creator CLI

Standalone command-line tool for building StringSim layout config JSON files.

Run this file directly:

    python ConfigCreator.py

It will prompt you for the cell preset, solver settings, strings and their
bypass diodes, then save the generated JSON config file.

The generated JSON matches the structure expected by
``stringsim.config.load_config``, i.e.::

    {
      "title": "...",
      "preset": "Maxeon Gen 3 (ME3)",
      "model": "full",
      "samples": 200,
      "irradiance": 1000.0,
      "strings": [
        { "cells": [ {"ratio": 1.0, "normal": [0, 1, 0], "bypass": false}, ... ],
          "bypass": [ {"start": 0, "end": 11, "drop": null}, ... ] },
        ...
      ],
      "unwired": [ ... ]
    }
"""

import json
from typing import List

from stringsim.config import (
    DEFAULT_PRESET,
    PRESETS,
    CellConfig,
    LayoutConfig,
    SegmentConfig,
    StringConfig,
    config_from_dict,
)
from stringsim.models import available


def prompt_float(prompt: str, default: float, min_val: float = None, max_val: float = None) -> float:
    while True:
        raw = input(f"{prompt} [{default}]: ").strip()
        if not raw:
            return default
        try:
            val = float(raw)
            if (min_val is not None and val < min_val) or (max_val is not None and val > max_val):
                print(f"Value must be between {min_val} and {max_val}. Please try again.")
                continue
            return val
        except ValueError:
            print("Invalid number. Please try again.")


def prompt_int(prompt: str, default: int, min_val: int = None, max_val: int = None) -> int:
    while True:
        raw = input(f"{prompt} [{default}]: ").strip()
        if not raw:
            return default
        try:
            val = int(raw)
            if (min_val is not None and val < min_val) or (max_val is not None and val > max_val):
                print(f"Value must be between {min_val} and {max_val}. Please try again.")
                continue
            return val
        except ValueError:
            print("Invalid integer. Please try again.")


def prompt_bool(prompt: str, default: bool) -> bool:
    yes = {"yes", "y"}
    no = {"no", "n"}
    default_str = "y" if default else "n"
    while True:
        raw = input(f"{prompt} (y/n) [{default_str}]: ").strip().lower()
        if not raw:
            return default
        if raw in yes:
            return True
        if raw in no:
            return False
        print("Please enter 'y' or 'n'.")


def prompt_choice(prompt: str, choices: List[str], default: str) -> str:
    for idx, c in enumerate(choices):
        print(f"  {idx}: {c}")
    while True:
        raw = input(f"{prompt} [{default}]: ").strip()
        if not raw:
            return default
        if raw.isdigit() and int(raw) < len(choices):
            return choices[int(raw)]
        for c in choices:
            if c.lower() == raw.lower():
                return c
        print("Pick a listed number or name.")


def uniform_segments(n_cells: int, cells_per_diode: int) -> List[SegmentConfig]:
    """Back-to-back diodes of ``cells_per_diode`` cells (the last one may be shorter)."""
    if cells_per_diode <= 0:
        return []
    return [
        SegmentConfig(start=s, end=min(s + cells_per_diode, n_cells) - 1)
        for s in range(0, n_cells, cells_per_diode)
    ]


def build_layout(
    title: str,
    preset: str,
    model: str,
    samples: int,
    irradiance: float,
    n_strings: int,
    cells_per_string: int,
    cells_per_diode: int,
    n_unwired: int = 0,
) -> LayoutConfig:
    """Uniform, fully lit, flat layout; every string gets the same diode layout."""
    strings = []
    for _ in range(n_strings):
        cells = [CellConfig() for _ in range(cells_per_string)]
        strings.append(StringConfig(cells=cells, bypass=uniform_segments(cells_per_string, cells_per_diode)))
    return LayoutConfig(
        title=title,
        preset=preset,
        model=model,
        samples=samples,
        irradiance=irradiance,
        strings=strings,
        unwired=[CellConfig() for _ in range(n_unwired)],
    )


def main() -> int:
    print("StringSim Config Creator CLI")
    print("============================\n")

    title = input("Title [My String Layout]: ").strip()
    if not title:
        title = "My String Layout"

    print("Cell presets:")
    preset = prompt_choice("Preset", list(PRESETS), DEFAULT_PRESET)
    print("String models:")
    model = prompt_choice("Model", list(available()), "full")
    samples = prompt_int("Sweep samples", 200, 2, 5000)
    irradiance = prompt_float("Irradiance (W/m²)", 1000.0, 0.0, 1500.0)

    n_strings = prompt_int("# Strings", 1, 1, 100)
    cells_per_string = prompt_int("# Cells per string", 12, 1, 500)
    cells_per_diode = prompt_int("# Cells per bypass diode (0 = none)", 0, 0, cells_per_string)
    n_unwired = prompt_int("# Unwired cells", 0, 0, 1000)

    cfg = build_layout(title, preset, model, samples, irradiance,
                       n_strings, cells_per_string, cells_per_diode, n_unwired)
    # same validation a loader applies
    config_from_dict(cfg.to_dict())

    print("\nGenerated config JSON:")
    print(json.dumps(cfg.to_dict(), indent=2))

    while True:
        save_path = input("\nEnter filename to save config (e.g. layout.json): ").strip()
        if not save_path:
            print("Filename cannot be empty.")
            continue
        try:
            with open(save_path, "w", encoding="utf-8") as f:
                json.dump(cfg.to_dict(), f, indent=2)
            print(f"Config saved to {save_path}")
            break
        except OSError as e:
            print(f"Error saving file: {e}")
            retry = prompt_bool("Try again?", True)
            if not retry:
                print("Exiting without saving.")
                break

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
