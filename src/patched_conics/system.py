"""Arena of bodies keyed by name.

Segments refer to their parent by name, so the hierarchy has no reference
cycles; the arena resolves names and guards the parent graph against loops.
Both the solver and playback go through ``apply_encounter`` so a replayed
schedule reproduces solve-time state exactly.
"""
from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from .body import Body, OrbitingBody, StationaryBody
from .config import BodyDef, Units
from .encounter import Encounter, EncounterKind
from .errors import CaseError, OrbitError, UnknownBodyError

logger = logging.getLogger(__name__)


def _resolution_order(defs: Mapping[str, BodyDef]) -> List[str]:
    """Names in an order where every parent precedes its children.

    Definition order is kept where possible; a body whose parent is not built
    yet is deferred to a later pass.
    """
    for name, d in defs.items():
        if d.parent is not None and d.parent not in defs:
            raise CaseError(f"body {name!r} has unknown parent {d.parent!r}")
        if d.parent == name:
            raise CaseError(f"body {name!r} is its own parent")

    order: List[str] = []
    built = set()
    pending = list(defs)
    while pending:
        deferred = []
        for name in pending:
            parent = defs[name].parent
            if parent is None or parent in built:
                order.append(name)
                built.add(name)
            else:
                deferred.append(name)
        if len(deferred) == len(pending):
            raise CaseError(f"parent cycle among bodies {sorted(deferred)}")
        pending = deferred
    return order


class System:
    """All bodies of one case plus the playback clock."""

    def __init__(self, bodies: Iterable[Body], end_time: float, units: Units = Units()):
        self.units = units
        self.end_time = float(end_time)
        self.time = 0.0
        self._bodies: Dict[str, Body] = {}
        for body in bodies:
            if body.name in self._bodies:
                raise CaseError(f"duplicate body name {body.name!r}")
            self._bodies[body.name] = body
        for body in self._bodies.values():
            if isinstance(body, OrbitingBody):
                for segment in body.segments:
                    if segment.parent not in self._bodies:
                        raise CaseError(f"body {body.name!r} orbits unknown parent {segment.parent!r}")
                self._check_no_cycle(body.name, body.final_parent, body.head.start_point.time)

    @classmethod
    def from_defs(cls, defs: Mapping[str, BodyDef], end_time: float, units: Units = Units()) -> "System":
        """Build bodies parents-first; positions and velocities are relative to the parent."""
        bodies: Dict[str, Body] = {}
        for name in _resolution_order(defs):
            d = defs[name]
            if d.parent is None:
                bodies[name] = StationaryBody(name, d.mass, d.position)
            else:
                parent_mass = bodies[d.parent].mass
                bodies[name] = OrbitingBody.new(name, d.mass, d.position, d.velocity, d.parent, parent_mass,
                                                end_time, units=units)
        logger.debug("built %d bodies in order %s", len(bodies), list(bodies))
        return cls(bodies.values(), end_time, units)

    # --- lookup ---
    def __getitem__(self, name: str) -> Body:
        try:
            return self._bodies[name]
        except KeyError:
            raise UnknownBodyError(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._bodies

    def __iter__(self) -> Iterator[Body]:
        return iter(self._bodies.values())

    def __len__(self) -> int:
        return len(self._bodies)

    @property
    def names(self) -> List[str]:
        return list(self._bodies)

    def orbiting(self) -> List[OrbitingBody]:
        return [b for b in self._bodies.values() if isinstance(b, OrbitingBody)]

    def orbiting_body(self, name: str) -> OrbitingBody:
        body = self[name]
        if not isinstance(body, OrbitingBody):
            raise OrbitError(f"{name!r} is stationary and has no orbit")
        return body

    def ancestors(self, name: str, time: Optional[float] = None) -> List[str]:
        """Parent chain up to the root, at ``time`` or on the playback side if None."""
        out: List[str] = []
        parent = self._parent(name, time)
        while parent is not None:
            if parent in out or parent == name:
                raise OrbitError(f"parent cycle through {name!r}: {out + [parent]}")
            out.append(parent)
            parent = self._parent(parent, time)
        return out

    def _parent(self, name: str, time: Optional[float]) -> Optional[str]:
        body = self[name]
        return body.current_parent if time is None else body.parent_at(time)

    def _check_no_cycle(self, name: str, new_parent: str, time: float) -> None:
        if new_parent == name or name in self.ancestors(new_parent, time):
            raise OrbitError(f"making {new_parent!r} the parent of {name!r} would create a cycle")

    # --- positions ---
    def absolute_position(self, name: str) -> NDArray[np.float64]:
        """Playback position relative to the root, summed up the current parent chain."""
        body = self[name]
        position = body.current_position
        parent = body.current_parent
        while parent is not None:
            p = self[parent]
            position = position + p.current_position
            parent = p.current_parent
        return position

    def absolute_state(self, name: str, time: float) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Position and velocity at ``time`` relative to the root."""
        body = self[name]
        position, velocity = body.state_at(time)
        parent = body.parent_at(time)
        while parent is not None:
            p = self[parent]
            pp, pv = p.state_at(time)
            position = position + pp
            velocity = velocity + pv
            parent = p.parent_at(time)
        return position, velocity

    def sphere_of_influence(self, name: str) -> Optional[float]:
        return self[name].sphere_of_influence

    # --- encounters ---
    def reconcile(self, encounter: Encounter) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """State of the subject relative to the encounter's new parent at the encounter time.

        Entrance: subject minus new parent, both relative to their shared
        parent. Exit: subject plus old parent, the old parent being relative
        to the new one.
        """
        t = encounter.time
        body = self.orbiting_body(encounter.object)
        new_parent = self[encounter.new_parent]
        old_parent = body.parent_at(t)
        position, velocity = body.state_at(t)

        if encounter.kind is EncounterKind.ENTRANCE:
            if new_parent.parent_at(t) != old_parent:
                raise OrbitError(f"{encounter}: {new_parent.name!r} does not share the parent "
                                 f"{old_parent!r} of {body.name!r}")
            pp, pv = new_parent.state_at(t)
            return position - pp, velocity - pv

        parent = self[old_parent]
        if parent.parent_at(t) != new_parent.name:
            raise OrbitError(f"{encounter}: {new_parent.name!r} is not the parent of {old_parent!r}")
        pp, pv = parent.state_at(t)
        return position + pp, velocity + pv

    def is_applicable(self, encounter: Encounter) -> bool:
        """Whether the encounter still matches the hierarchy at its time."""
        try:
            self.reconcile(encounter)
        except OrbitError:
            return False
        return True

    def apply_encounter(self, encounter: Encounter) -> None:
        body = self.orbiting_body(encounter.object)
        self._check_no_cycle(body.name, encounter.new_parent, encounter.time)
        position, velocity = self.reconcile(encounter)
        body.change_parent(encounter.new_parent, self[encounter.new_parent].mass, position, velocity, encounter.time)
        logger.debug("applied %s", encounter)

    def apply_encounters(self, encounters: Iterable[Encounter]) -> None:
        """Replay a solved schedule on a freshly built system, then cap every head at the horizon."""
        n = 0
        for encounter in encounters:
            self.apply_encounter(encounter)
            n += 1
        self.end_heads_at(self.end_time)
        logger.info("replayed %d encounters", n)

    def end_heads_at(self, time: float) -> None:
        for body in self.orbiting():
            body.end_head_at(time)

    # --- playback ---
    def update(self, delta_time: float) -> None:
        self.time += delta_time
        for body in self.orbiting():
            body.update_tail(delta_time)

    def reset(self) -> None:
        self.time = 0.0
        for body in self.orbiting():
            body.reset()
