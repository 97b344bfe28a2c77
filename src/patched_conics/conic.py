"""Analytic two-body conics (planar).

A conic is derived once from the parent's standard gravitational parameter
and a relative position/velocity pair, and is immutable afterwards.

Angles
------
``theta`` is the polar angle of the body measured from the +x axis of the
parent frame. ``nu = theta - argument_of_periapsis`` is the geometric angle
from periapsis. For clockwise orbits the true anomaly along the direction of
motion is ``-nu``; the two Kepler directions below account for that with
``direction.sign``.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union
import numpy as np
from numpy.typing import NDArray

from .config import CIRCULAR_TOLERANCE, PARABOLIC_TOLERANCE
from .errors import OrbitError
from .kepler import solve_kepler_ellipse, solve_kepler_hyperbola
from .util import TWO_PI, normalize_angle

if TYPE_CHECKING:
    from .orbit import OrbitPoint


class OrbitDirection(Enum):
    ANTICLOCKWISE = 1
    CLOCKWISE = -1

    @property
    def sign(self) -> float:
        return float(self.value)


class ConicType(Enum):
    ELLIPSE = "ellipse"
    HYPERBOLA = "hyperbola"


@dataclass(frozen=True)
class _ConicBase:
    mu: float
    semi_major_axis: float          # negative for hyperbolae
    eccentricity: float
    direction: OrbitDirection
    argument_of_periapsis: float
    specific_angular_momentum: float  # signed z component of r x v

    @property
    def semi_latus_rectum(self) -> float:
        return self.specific_angular_momentum**2 / self.mu

    def position(self, theta: float) -> NDArray[np.float64]:
        nu = theta - self.argument_of_periapsis
        denom = 1.0 + self.eccentricity * np.cos(nu)
        if denom <= 0.0:
            raise OrbitError(f"theta={theta} is not on this conic (beyond the asymptotes)")
        r = self.semi_latus_rectum / denom
        return np.array([r * np.cos(theta), r * np.sin(theta)], dtype=np.float64)

    def velocity(self, position: NDArray[np.float64], theta: float) -> NDArray[np.float64]:
        """d(position)/dt at ``theta``, via d(position)/d(theta) * d(theta)/dt."""
        e = self.eccentricity
        nu = theta - self.argument_of_periapsis
        r = float(np.hypot(position[0], position[1]))
        dr = self.semi_latus_rectum * e * np.sin(nu) / (1.0 + e * np.cos(nu))**2
        c, s = np.cos(theta), np.sin(theta)
        dpos = np.array([dr * c - r * s, dr * s + r * c], dtype=np.float64)
        # signed h gives the sense of rotation
        return dpos * (self.specific_angular_momentum / (r * r))

    def is_time_between_points(self, start: "OrbitPoint", end: "OrbitPoint", time: float) -> bool:
        return start.time < time < end.time


@dataclass(frozen=True)
class Ellipse(_ConicBase):
    period: float = 0.0

    @property
    def kind(self) -> ConicType:
        return ConicType.ELLIPSE

    @property
    def semi_minor_axis(self) -> float:
        return self.semi_major_axis * float(np.sqrt(1.0 - self.eccentricity**2))

    def orbits(self, time: float) -> int:
        return int(np.floor(time / self.period))

    def theta_from_time_since_periapsis(self, time_since_periapsis: float) -> float:
        e = self.eccentricity
        t = time_since_periapsis % self.period
        mean_anomaly = TWO_PI * t / self.period
        E = solve_kepler_ellipse(e, mean_anomaly)
        nu = 2.0 * np.arctan(np.sqrt((1.0 + e) / (1.0 - e)) * np.tan(E / 2.0))
        return normalize_angle(self.direction.sign * nu + self.argument_of_periapsis)

    def time_since_last_periapsis(self, theta: float) -> float:
        """Always in [0, period)."""
        e = self.eccentricity
        nu = self.direction.sign * (theta - self.argument_of_periapsis)
        E = 2.0 * np.arctan(np.sqrt((1.0 - e) / (1.0 + e)) * np.tan(nu / 2.0))
        mean_anomaly = normalize_angle(E - e * np.sin(E))
        return mean_anomaly * self.period / TWO_PI


@dataclass(frozen=True)
class Hyperbola(_ConicBase):

    @property
    def kind(self) -> ConicType:
        return ConicType.HYPERBOLA

    @property
    def period(self) -> Optional[float]:
        return None

    @property
    def semi_minor_axis(self) -> float:
        return abs(self.semi_major_axis) * float(np.sqrt(self.eccentricity**2 - 1.0))

    @property
    def mean_motion(self) -> float:
        """dM/dt in rad/s."""
        h = abs(self.specific_angular_momentum)
        return self.mu**2 / h**3 * (self.eccentricity**2 - 1.0)**1.5

    def orbits(self, time: float) -> int:
        return 0

    def theta_from_time_since_periapsis(self, time_since_periapsis: float) -> float:
        e = self.eccentricity
        F = solve_kepler_hyperbola(e, self.mean_motion * time_since_periapsis)
        nu = 2.0 * np.arctan(np.sqrt((e + 1.0) / (e - 1.0)) * np.tanh(F / 2.0))
        return normalize_angle(self.direction.sign * nu + self.argument_of_periapsis)

    def time_since_last_periapsis(self, theta: float) -> float:
        """Negative before periapsis."""
        e = self.eccentricity
        nu = self.direction.sign * (theta - self.argument_of_periapsis)
        nu = normalize_angle(nu + np.pi) - np.pi
        x = np.sqrt((e - 1.0) / (e + 1.0)) * np.tan(nu / 2.0)
        if abs(x) >= 1.0:
            raise OrbitError(f"theta={theta} is beyond the asymptotes of this hyperbola")
        F = 2.0 * np.arctanh(x)
        mean_anomaly = e * np.sinh(F) - F
        return float(mean_anomaly / self.mean_motion)


Conic = Union[Ellipse, Hyperbola]


def new_conic(mu: float, position, velocity) -> Conic:
    """Build the conic followed by a body with the given state relative to its parent."""
    r = np.asarray(position, dtype=np.float64)
    v = np.asarray(velocity, dtype=np.float64)
    if not (mu > 0.0 and np.all(np.isfinite(r)) and np.all(np.isfinite(v))):
        raise OrbitError(f"bad orbital state: mu={mu}, position={r}, velocity={v}")

    rmag = float(np.hypot(r[0], r[1]))
    if rmag == 0.0:
        raise OrbitError("body sits exactly on its parent")
    h = float(r[0] * v[1] - r[1] * v[0])
    if h == 0.0:
        raise OrbitError("radial trajectory has zero angular momentum")

    v2 = float(v @ v)
    energy = 0.5 * v2 - mu / rmag
    evec = ((v2 - mu / rmag) * r - float(r @ v) * v) / mu
    e = float(np.hypot(evec[0], evec[1]))

    if abs(e - 1.0) < PARABOLIC_TOLERANCE:
        raise OrbitError(f"parabolic orbits are not supported (e={e})")

    direction = OrbitDirection.ANTICLOCKWISE if h > 0.0 else OrbitDirection.CLOCKWISE
    if e < CIRCULAR_TOLERANCE:
        # periapsis is undefined; pin it to the starting point
        e = 0.0
        argument_of_periapsis = float(np.arctan2(r[1], r[0]))
    else:
        argument_of_periapsis = float(np.arctan2(evec[1], evec[0]))
    semi_major_axis = -mu / (2.0 * energy)

    if e < 1.0:
        period = TWO_PI * float(np.sqrt(semi_major_axis**3 / mu))
        return Ellipse(mu, semi_major_axis, e, direction, argument_of_periapsis, h, period=period)
    return Hyperbola(mu, semi_major_axis, e, direction, argument_of_periapsis, h)
