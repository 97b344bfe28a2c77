"""Sphere-of-influence transitions.

An encounter moves a body to a new parent at a refined time inside one solver
step. The detectors only look at the head (under-construction) segments,
which the solver caps at the end of the current step before calling them.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

import numpy as np

from .bisection import bisection
from .config import BISECTION_MAXITER, BISECTION_XTOL, SOI_MASS_THRESHOLD

if TYPE_CHECKING:
    from .body import OrbitingBody
    from .system import System


class EncounterKind(Enum):
    ENTRANCE = "entrance"
    EXIT = "exit"


@dataclass(frozen=True)
class Encounter:
    kind: EncounterKind
    object: str
    new_parent: str
    time: float

    @classmethod
    def entrance(cls, object: str, new_parent: str, time: float) -> "Encounter":
        return cls(EncounterKind.ENTRANCE, object, new_parent, float(time))

    @classmethod
    def exit(cls, object: str, new_parent: str, time: float) -> "Encounter":
        return cls(EncounterKind.EXIT, object, new_parent, float(time))

    def __str__(self) -> str:
        return f"{self.kind.value}({self.object} -> {self.new_parent} @ t={self.time:.6g})"


def _head_distance(a: "OrbitingBody", b: "OrbitingBody", time: float) -> float:
    d = a.head.position_at(time) - b.head.position_at(time)
    return float(np.hypot(d[0], d[1]))


def _crossing_time(f, time: float, time_step: float, xtol: float, maxiter: int) -> float:
    """Refine the sign change of f over the step; a crossing already past at step start maps to step start."""
    lo, hi = time, time + time_step
    if (f(lo) > 0.0) == (f(hi) > 0.0):
        return lo
    return bisection(f, lo, hi, xtol=xtol, maxiter=maxiter)


def find_entrance(system: "System", name: str, time: float, time_step: float,
                  soi_mass_threshold: float = SOI_MASS_THRESHOLD,
                  xtol: float = BISECTION_XTOL, maxiter: int = BISECTION_MAXITER) -> List[Encounter]:
    """Entrances of ``name`` into the SOI of a sibling by ``time + time_step``, in arena order."""
    body = system.orbiting_body(name)
    parent = body.final_parent
    end = time + time_step
    found = []
    for other in system.orbiting():
        if other.name == name or other.mass <= soi_mass_threshold or other.final_parent != parent:
            continue
        soi = other.sphere_of_influence_at(end)
        if _head_distance(body, other, end) >= soi:
            continue
        t = _crossing_time(lambda s: _head_distance(body, other, s) - soi, time, time_step, xtol, maxiter)
        found.append(Encounter.entrance(name, other.name, t))
    return found


def find_exit(system: "System", name: str, time: float, time_step: float,
              xtol: float = BISECTION_XTOL, maxiter: int = BISECTION_MAXITER) -> Optional[Encounter]:
    """Exit of ``name`` from its head parent's SOI by ``time + time_step``; the new parent is the grandparent."""
    body = system.orbiting_body(name)
    parent = system[body.final_parent]
    grandparent = parent.final_parent
    if grandparent is None:
        return None
    soi = parent.sphere_of_influence_at(time + time_step)
    if float(np.linalg.norm(body.final_position)) <= soi:
        return None
    t = _crossing_time(lambda s: float(np.linalg.norm(body.head.position_at(s))) - soi,
                       time, time_step, xtol, maxiter)
    return Encounter.exit(name, grandparent, t)


def detect(system: "System", name: str, time: float, time_step: float,
           soi_mass_threshold: float = SOI_MASS_THRESHOLD,
           xtol: float = BISECTION_XTOL, maxiter: int = BISECTION_MAXITER) -> Optional[Encounter]:
    """The one encounter of ``name`` in this step: earliest wins, ties keep exit-then-siblings order."""
    candidates: List[Encounter] = []
    exit_ = find_exit(system, name, time, time_step, xtol, maxiter)
    if exit_ is not None:
        candidates.append(exit_)
    candidates.extend(find_entrance(system, name, time, time_step, soi_mass_threshold, xtol, maxiter))
    if not candidates:
        return None
    # min() keeps the first of equal keys
    return min(candidates, key=lambda e: e.time)
