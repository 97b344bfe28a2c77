from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np
from numpy.typing import NDArray

# Matplotlib is only needed for drawing; the solver never imports this module.
import matplotlib
matplotlib.use("Agg", force=True)  # headless
import matplotlib.pyplot as plt

from .body import OrbitingBody
from .orbit import OrbitSegment
from .system import System
from .util import TWO_PI

# polyline resolution of one full revolution
LINES_PER_ORBIT = 100


@dataclass(frozen=True)
class FigureConfig:
    fmt: str = "png"          # "pdf", "png", "svg"
    dpi: int = 200            # used for raster formats only
    fontsize: float = 10.0
    tight: bool = True
    pad_inches: float = 0.02
    figsize: Tuple[float, float] = (5.0, 5.0)


def set_plot_style(cfg: FigureConfig) -> None:
    plt.rcParams.update({
        "figure.figsize": cfg.figsize,
        "figure.dpi": 120,
        "savefig.dpi": cfg.dpi,
        "font.size": cfg.fontsize,
        "axes.labelsize": cfg.fontsize,
        "legend.fontsize": max(6.0, cfg.fontsize - 2.0),
        "xtick.direction": "in",
        "ytick.direction": "in",
        "legend.frameon": False,
        "lines.linewidth": 1.0,
    })


def ensure_dir(path: str) -> None:
    os.makedirs(path, exist_ok=True)


def savefig(fig: plt.Figure, path: str, cfg: FigureConfig) -> None:
    kwargs = {}
    if cfg.tight:
        kwargs["bbox_inches"] = "tight"
        kwargs["pad_inches"] = cfg.pad_inches
    if path.lower().endswith((".png", ".jpg", ".jpeg", ".tif", ".tiff")):
        kwargs["dpi"] = cfg.dpi
    fig.savefig(path, **kwargs)


def segment_path(segment: OrbitSegment, n_per_orbit: int = LINES_PER_ORBIT) -> NDArray[np.float64]:
    """(N, 2) points from the playback cursor to the segment end, relative to the parent.

    The sweep is ``remaining_angle`` in the direction of motion, so at most one
    full revolution is drawn.
    """
    angle = segment.remaining_angle
    n = max(2, int(np.ceil(n_per_orbit * angle / TWO_PI)) + 1)
    thetas = segment.current_point.theta + segment.direction.sign * np.linspace(0.0, angle, n)
    return np.array([segment.position_from_theta(float(t)) for t in thetas], dtype=np.float64)


def system_paths(system: System, n_per_orbit: int = LINES_PER_ORBIT):
    """Predicted paths of every orbiting body in root coordinates, keyed by body name.

    Each segment is drawn around its parent's current absolute position.
    """
    out = {}
    for body in system.orbiting():
        paths = []
        for segment in body.segments:
            origin = system.absolute_position(segment.parent)
            paths.append(segment_path(segment, n_per_orbit) + origin)
        out[body.name] = paths
    return out


def plot_system(system: System, ax: Optional[plt.Axes] = None, focus: Optional[str] = None,
                n_per_orbit: int = LINES_PER_ORBIT) -> plt.Axes:
    """Draw current positions, predicted paths and (dashed) spheres of influence."""
    if ax is None:
        _, ax = plt.subplots()
    colors = plt.rcParams["axes.prop_cycle"].by_key()["color"]
    paths = system_paths(system, n_per_orbit)
    for i, body in enumerate(system):
        c = colors[i % len(colors)]
        pos = system.absolute_position(body.name)
        ax.plot([pos[0]], [pos[1]], "o", color=c, label=body.name)
        for path in paths.get(body.name, []):
            ax.plot(path[:, 0], path[:, 1], "-", color=c, alpha=0.8)
        if isinstance(body, OrbitingBody):
            soi = body.sphere_of_influence
            ax.add_patch(plt.Circle((pos[0], pos[1]), soi, fill=False, ls="--", lw=0.6, color=c))

    if focus is not None:
        centre = system.absolute_position(focus)
        span = np.max(np.abs(np.concatenate([p for ps in paths.values() for p in ps] or [np.zeros((1, 2))]) - centre))
        span = span if span > 0.0 else 1.0
        ax.set_xlim(centre[0] - span, centre[0] + span)
        ax.set_ylim(centre[1] - span, centre[1] + span)
    ax.set_aspect("equal")
    ax.set_xlabel("x [m]")
    ax.set_ylabel("y [m]")
    ax.legend(loc="upper right")
    return ax
