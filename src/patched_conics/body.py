"""Bodies of the hierarchy.

A body is either stationary (a fixed point, never has a parent) or orbiting.
An orbiting body owns a chain of orbit segments:

    segments[0]   tail  earliest segment, the playback cursor lives here
    segments[-1]  head  latest segment, extended by the solver

Consecutive segments touch: each segment's end time is the next one's start
time. Parents are referenced by name; the ``System`` arena resolves them.
"""
from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, Optional, Tuple
import numpy as np
from numpy.typing import NDArray

from .config import Units
from .errors import OrbitError
from .orbit import OrbitSegment

# exponent of the Laplace sphere-of-influence radius
SOI_EXPONENT = 2.0 / 5.0


class Body:
    def __init__(self, name: str, mass: float):
        self.name = name
        self.mass = float(mass)

    @property
    def is_stationary(self) -> bool:
        return False

    @property
    def current_parent(self) -> Optional[str]:
        return None

    @property
    def final_parent(self) -> Optional[str]:
        return None

    def parent_at(self, time: float) -> Optional[str]:
        return None

    @property
    def sphere_of_influence(self) -> Optional[float]:
        return None

    def sphere_of_influence_at(self, time: float) -> Optional[float]:
        return None


class StationaryBody(Body):
    def __init__(self, name: str, mass: float, position):
        super().__init__(name, mass)
        self.position = np.array(position, dtype=np.float64)

    def __repr__(self) -> str:
        return f"StationaryBody(name={self.name!r}, mass={self.mass}, position={self.position.tolist()})"

    @property
    def is_stationary(self) -> bool:
        return True

    @property
    def current_position(self) -> NDArray[np.float64]:
        return self.position.copy()

    @property
    def current_velocity(self) -> NDArray[np.float64]:
        return np.zeros(2, dtype=np.float64)

    def state_at(self, time: float) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        return self.position.copy(), np.zeros(2, dtype=np.float64)


class OrbitingBody(Body):
    def __init__(self, name: str, mass: float, segments: Iterable[OrbitSegment], units: Units = Units()):
        super().__init__(name, mass)
        self.units = units
        self.segments: Deque[OrbitSegment] = deque(segments)
        if not self.segments:
            raise OrbitError(f"orbiting body {name!r} needs at least one segment")
        # segments played past, kept so reset() can rewind the whole chain
        self._retired: Deque[OrbitSegment] = deque()

    @classmethod
    def new(cls, name: str, mass: float, position, velocity, parent: str, parent_mass: float,
            end_time: float, time: float = 0.0, units: Units = Units()) -> "OrbitingBody":
        """First segment starts at ``time`` and runs to the horizon until an encounter shortens it."""
        segment = OrbitSegment(parent, parent_mass, position, velocity, time, units)
        segment.end_at(end_time)
        return cls(name, mass, [segment], units)

    def __repr__(self) -> str:
        return f"OrbitingBody(name={self.name!r}, mass={self.mass}, segments={len(self.segments)})"

    @property
    def tail(self) -> OrbitSegment:
        return self.segments[0]

    @property
    def head(self) -> OrbitSegment:
        return self.segments[-1]

    # --- playback side (tail) ---
    @property
    def current_parent(self) -> str:
        return self.tail.parent

    @property
    def current_position(self) -> NDArray[np.float64]:
        return self.tail.current_point.position.copy()

    @property
    def current_velocity(self) -> NDArray[np.float64]:
        return self.tail.current_point.velocity.copy()

    # --- solving side (head) ---
    @property
    def final_parent(self) -> str:
        return self.head.parent

    @property
    def final_time(self) -> float:
        return self.head.end_point.time

    @property
    def final_position(self) -> NDArray[np.float64]:
        return self.head.end_point.position.copy()

    @property
    def final_velocity(self) -> NDArray[np.float64]:
        return self.head.end_point.velocity.copy()

    def segment_at(self, time: float) -> OrbitSegment:
        """Latest segment starting at or before ``time`` (the tail if none does)."""
        for segment in reversed(self.segments):
            if segment.start_point.time <= time:
                return segment
        return self.tail

    def parent_at(self, time: float) -> str:
        return self.segment_at(time).parent

    def state_at(self, time: float) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
        """Position and velocity relative to ``parent_at(time)``."""
        segment = self.segment_at(time)
        theta = segment.theta_from_time(time)
        position = segment.position_from_theta(theta)
        return position, segment.conic.velocity(position, theta)

    @staticmethod
    def _soi(segment: OrbitSegment, mass: float) -> float:
        return abs(segment.semi_major_axis) * (mass / segment.parent_mass)**SOI_EXPONENT

    @property
    def sphere_of_influence(self) -> float:
        return self._soi(self.tail, self.mass)

    def sphere_of_influence_at(self, time: float) -> float:
        return self._soi(self.segment_at(time), self.mass)

    # --- mutation ---
    def end_head_at(self, time: float) -> None:
        self.head.end_at(time)

    def change_parent(self, new_parent: str, new_parent_mass: float, position, velocity, time: float) -> OrbitSegment:
        """Cap the head at ``time`` and push a new head around ``new_parent``.

        ``position``/``velocity`` are relative to the new parent at ``time``.
        """
        if time < self.head.start_point.time:
            raise OrbitError(f"{self.name}: parent change at t={time} precedes the head segment "
                             f"starting at t={self.head.start_point.time}")
        self.head.end_at(time)
        segment = OrbitSegment(new_parent, new_parent_mass, position, velocity, time, self.units)
        self.segments.append(segment)
        return segment

    def update_tail(self, delta_time: float) -> None:
        """Advance the playback cursor, retiring finished segments without losing time."""
        self.tail.update(delta_time)
        while self.tail.is_finished and len(self.segments) > 1:
            finished = self.segments.popleft()
            self._retired.append(finished)
            overshoot = finished.current_point.time - self.tail.current_point.time
            self.tail.update(overshoot)

    def reset(self) -> None:
        """Put retired segments back and rewind every cursor to its segment start."""
        self.segments.extendleft(reversed(self._retired))
        self._retired.clear()
        for segment in self.segments:
            segment.reset()
