#!/usr/bin/env python
from __future__ import annotations

import argparse
import logging

from patched_conics.case import default_encounters_path, save_encounters
from patched_conics.config import load_case
from patched_conics.solver import solve
from patched_conics.system import System
from patched_conics.util import format_time


def main():
    ap = argparse.ArgumentParser(description="Solve a case and save its encounter schedule")
    ap.add_argument("--case", required=True, help="Path to case JSON")
    ap.add_argument("--out", default=None, help="Encounter schedule path (default: encounters.json next to the case)")
    ap.add_argument("--progress", action="store_true", help="Show a progress bar")
    ap.add_argument("-v", "--verbose", action="store_true")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    case = load_case(args.case)
    system = System.from_defs(case.bodies, case.solver.end_time)
    # a failed solve raises before anything is written, so the old schedule survives
    encounters = solve(system, case.solver, progress=args.progress)

    out = args.out or default_encounters_path(args.case)
    save_encounters(encounters, out)

    for e in encounters:
        print(f"{format_time(e.time):>16}  {e.kind.value:<8}  {e.object} -> {e.new_parent}")
    print("Saved:", out)


if __name__ == "__main__":
    main()
