#!/usr/bin/env python
from __future__ import annotations

import argparse
import os

from patched_conics.case import default_encounters_path, load_encounters
from patched_conics.config import load_case
from patched_conics.plotting import FigureConfig, ensure_dir, plot_system, savefig, set_plot_style
from patched_conics.system import System
from patched_conics.util import format_time

import matplotlib
matplotlib.use("Agg", force=True)
import matplotlib.pyplot as plt


def main():
    ap = argparse.ArgumentParser(description="Draw a case's predicted paths at a playback time")
    ap.add_argument("--case", required=True, help="Path to case JSON")
    ap.add_argument("--encounters", default=None, help="Encounter schedule (default: encounters.json next to the case)")
    ap.add_argument("--time", type=float, default=0.0, help="Playback time to draw at")
    ap.add_argument("--frames", type=int, default=1, help="Playback steps used to reach --time")
    ap.add_argument("--out", required=True, help="Figure path")
    args = ap.parse_args()

    case = load_case(args.case)
    system = System.from_defs(case.bodies, case.solver.end_time)

    enc_path = args.encounters or default_encounters_path(args.case)
    if os.path.exists(enc_path):
        system.apply_encounters(load_encounters(enc_path))
    else:
        print("No encounter schedule at", enc_path, "- drawing unpatched orbits")

    frames = max(1, int(args.frames))
    for _ in range(frames):
        system.update(args.time / frames)

    cfg = FigureConfig()
    set_plot_style(cfg)
    fig, ax = plt.subplots()
    plot_system(system, ax=ax, focus=case.focus)
    ax.set_title(f"t = {format_time(system.time)}")

    out_dir = os.path.dirname(args.out)
    if out_dir:
        ensure_dir(out_dir)
    savefig(fig, args.out, cfg)
    plt.close(fig)
    print("Saved:", args.out)


if __name__ == "__main__":
    main()
