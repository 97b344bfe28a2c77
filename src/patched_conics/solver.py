from __future__ import annotations

import logging
import time as _time
from typing import List

from tqdm import tqdm

from .config import SolverParams
from .encounter import Encounter, detect
from .system import System
from .util import format_time

logger = logging.getLogger(__name__)


def solve(system: System, params: SolverParams, progress: bool = False) -> List[Encounter]:
    """Advance every body in fixed steps and return the encounter schedule in time order.

    The system is mutated in place: each applied encounter appends a head
    segment. Playback cursors are not touched, so the solved system can be
    played back directly. Within one step each body gets at most one
    encounter (the earliest); the step's encounters are applied in time order
    and any that no longer fit the hierarchy are left for the next step.
    """
    step = params.time_step
    n_steps = params.n_steps
    t0 = _time.time()
    encounters: List[Encounter] = []

    system.end_heads_at(step)
    for i in tqdm(range(n_steps), disable=not progress, desc="solve"):
        time = i * step
        found = []
        for body in system.orbiting():
            e = detect(system, body.name, time, step, params.soi_mass_threshold,
                       params.bisection_xtol, params.bisection_maxiter)
            if e is not None:
                found.append(e)
        # sorted() is stable, so equal times keep arena order
        for e in sorted(found, key=lambda e: e.time):
            if not system.is_applicable(e):
                logger.debug("skipped %s at step %d, hierarchy changed earlier in the step", e, i)
                continue
            system.apply_encounter(e)
            encounters.append(e)
            logger.debug("step %d: %s", i, e)
        system.end_heads_at((i + 2) * step)

    system.end_heads_at(system.end_time)
    logger.info("solved %d steps to t=%s: %d encounters in %.2fs",
                n_steps, format_time(n_steps * step), len(encounters), _time.time() - t0)
    return encounters
