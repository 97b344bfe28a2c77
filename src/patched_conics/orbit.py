from __future__ import annotations

from dataclasses import dataclass, field
import numpy as np
from numpy.typing import NDArray

from .config import Units
from .conic import Conic, ConicType, OrbitDirection, new_conic
from .util import TWO_PI, normalize_angle


@dataclass(frozen=True, eq=False)
class OrbitPoint:
    theta: float
    time: float
    position: NDArray[np.float64] = field(repr=False)
    velocity: NDArray[np.float64] = field(repr=False)
    # unwrapped, so it keeps counting past one period
    time_since_periapsis: float = 0.0

    @classmethod
    def from_state(cls, conic: Conic, position, velocity, time: float) -> "OrbitPoint":
        r = np.array(position, dtype=np.float64)
        v = np.array(velocity, dtype=np.float64)
        theta = normalize_angle(np.arctan2(r[1], r[0]))
        tsp = conic.time_since_last_periapsis(theta)
        return cls(theta, float(time), r, v, float(tsp))

    @classmethod
    def from_time_since_periapsis(cls, conic: Conic, time_since_periapsis: float, time: float) -> "OrbitPoint":
        theta = conic.theta_from_time_since_periapsis(time_since_periapsis)
        r = conic.position(theta)
        v = conic.velocity(r, theta)
        return cls(theta, float(time), r, v, float(time_since_periapsis))

    def next(self, conic: Conic, delta_time: float) -> "OrbitPoint":
        return OrbitPoint.from_time_since_periapsis(conic, self.time_since_periapsis + delta_time, self.time + delta_time)

    def is_after(self, other: "OrbitPoint") -> bool:
        return self.time > other.time

    def is_before(self, other: "OrbitPoint") -> bool:
        return self.time < other.time

    def __lt__(self, other: "OrbitPoint") -> bool:
        return self.is_before(other)


class OrbitSegment:
    """One conic around one parent, valid over [start_point.time, end_point.time].

    ``current_point`` is the playback cursor. ``update`` moves it without
    clamping; callers check ``is_finished``.
    """

    def __init__(self, parent: str, parent_mass: float, position, velocity, time: float,
                 units: Units = Units()):
        self.parent = parent
        self.parent_mass = float(parent_mass)
        self.conic: Conic = new_conic(units.G * self.parent_mass, position, velocity)
        self.start_point = OrbitPoint.from_state(self.conic, position, velocity, time)
        self.end_point = self.start_point
        self.current_point = self.start_point

    def __repr__(self) -> str:
        return (f"OrbitSegment(parent={self.parent!r}, kind={self.kind.value}, "
                f"start={self.start_point.time}, end={self.end_point.time})")

    # --- conic accessors ---
    @property
    def kind(self) -> ConicType:
        return self.conic.kind

    @property
    def semi_major_axis(self) -> float:
        return self.conic.semi_major_axis

    @property
    def semi_minor_axis(self) -> float:
        return self.conic.semi_minor_axis

    @property
    def eccentricity(self) -> float:
        return self.conic.eccentricity

    @property
    def argument_of_periapsis(self) -> float:
        return self.conic.argument_of_periapsis

    @property
    def direction(self) -> OrbitDirection:
        return self.conic.direction

    @property
    def period(self):
        return self.conic.period

    # --- time/angle queries ---
    @property
    def first_periapsis_time(self) -> float:
        return self.start_point.time - self.start_point.time_since_periapsis

    def theta_from_time(self, time: float) -> float:
        return self.conic.theta_from_time_since_periapsis(time - self.first_periapsis_time)

    def point_at(self, time: float) -> OrbitPoint:
        return OrbitPoint.from_time_since_periapsis(self.conic, time - self.first_periapsis_time, time)

    def position_at(self, time: float) -> NDArray[np.float64]:
        return self.conic.position(self.theta_from_time(time))

    def velocity_at(self, time: float) -> NDArray[np.float64]:
        return self.velocity_from_theta(self.theta_from_time(time))

    def position_from_theta(self, theta: float) -> NDArray[np.float64]:
        return self.conic.position(theta)

    def velocity_from_theta(self, theta: float) -> NDArray[np.float64]:
        return self.conic.velocity(self.position_from_theta(theta), theta)

    def time_since_last_periapsis(self, theta: float) -> float:
        return self.conic.time_since_last_periapsis(theta)

    def time_since_first_periapsis(self, theta: float) -> float:
        t = self.time_since_last_periapsis(theta)
        if self.period is not None:
            t += self.period * self.completed_orbits
        return t

    @property
    def remaining_orbits(self) -> int:
        return self.conic.orbits(self.end_point.time - self.current_point.time)

    @property
    def completed_orbits(self) -> int:
        return self.conic.orbits(self.current_point.time - self.start_point.time)

    @property
    def remaining_angle(self) -> float:
        """Unsigned angle still to sweep from the cursor to the end point, capped at 2pi."""
        if self.remaining_orbits > 0:
            return TWO_PI
        end = normalize_angle(self.end_point.theta)
        current = normalize_angle(self.current_point.theta)
        if self.direction is OrbitDirection.ANTICLOCKWISE:
            if end < current:
                end += TWO_PI
            return end - current
        if end > current:
            end -= TWO_PI
        return current - end

    def is_time_within_orbit(self, time: float) -> bool:
        return self.conic.is_time_between_points(self.current_point, self.end_point, time)

    @property
    def is_finished(self) -> bool:
        return self.current_point.is_after(self.end_point)

    def overshot_time(self, time: float) -> float:
        return time - self.end_point.time

    # --- mutation ---
    def end_at(self, time: float) -> None:
        self.end_point = self.point_at(time)

    def reset(self) -> None:
        self.current_point = self.start_point

    def update(self, delta_time: float) -> None:
        self.current_point = self.current_point.next(self.conic, delta_time)
