"""StringSim entrypoint

This file is the single starting point for the command-line tools.

Running:

    python StringSim.py string --config layout.json
    python StringSim.py sweep --lat 30.27 --lon -97.74 --month 6 --day 21

dispatches to ``simulators.string_sim`` (one instant, per-string results)
or ``simulators.sweep_sim`` (time-of-day x heading energy). Use
``python StringSim.py models`` to list the registered string models.

All of the heavy lifting (core models, simulators) lives in the package
modules; this file simply wires them together as an explicit entrypoint.
"""

import json
import sys
from pathlib import Path

# Ensure the repository root is on sys.path so that ``stringsim.*`` and
# ``simulators.*`` imports work when running this file directly.
REPO_ROOT = Path(__file__).resolve().parent
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

USAGE = "usage: StringSim.py {string,sweep,models} [options]"


def main(argv=None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        return 0

    command, rest = args[0], args[1:]
    if command == "string":
        from simulators.string_sim import main as string_main
        string_main(rest)
    elif command == "sweep":
        from simulators.sweep_sim import main as sweep_main
        sweep_main(rest)
    elif command == "models":
        from stringsim.models import catalog
        print(json.dumps(catalog(), indent=2))
    else:
        print(f"[string_sim] Unknown command '{command}'")
        print(USAGE)
        return 2
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
