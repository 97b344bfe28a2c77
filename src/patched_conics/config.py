from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional, Tuple
import json
import math

from .errors import CaseError


# Kepler solver: fixed iteration count, no convergence test.
KEPLER_ITERATIONS = 5
# Residual above which the debug check reports a poorly converged solve.
KEPLER_RESIDUAL_WARN = 1e-9

# Eccentricities below this are treated as exactly circular.
CIRCULAR_TOLERANCE = 1e-10
# |e - 1| below this is a parabola, which is rejected.
PARABOLIC_TOLERANCE = 1e-9

# Encounter time refinement (seconds of simulation time).
BISECTION_XTOL = 1e-6
BISECTION_MAXITER = 200

# Bodies at or below this mass never host a sphere of influence.
SOI_MASS_THRESHOLD = 1.0e5


@dataclass(frozen=True)
class Units:
    # SI by default.
    G: float = 6.67408e-11


@dataclass(frozen=True)
class SolverParams:
    end_time: float
    time_step: float
    soi_mass_threshold: float = SOI_MASS_THRESHOLD
    bisection_xtol: float = BISECTION_XTOL
    bisection_maxiter: int = BISECTION_MAXITER

    def __post_init__(self) -> None:
        if not math.isfinite(self.end_time) or self.end_time < 0.0:
            raise CaseError(f"end_time must be finite and >= 0, got {self.end_time}")
        if not math.isfinite(self.time_step) or self.time_step <= 0.0:
            raise CaseError(f"time_step must be finite and > 0, got {self.time_step}")
        if self.bisection_xtol <= 0.0 or self.bisection_maxiter < 1:
            raise CaseError("bisection_xtol must be > 0 and bisection_maxiter >= 1")

    @property
    def n_steps(self) -> int:
        return int(math.ceil(self.end_time / self.time_step))


@dataclass(frozen=True)
class BodyDef:
    mass: float
    position: Tuple[float, float]
    velocity: Optional[Tuple[float, float]] = None
    parent: Optional[str] = None

    def __post_init__(self) -> None:
        if not math.isfinite(self.mass) or self.mass <= 0.0:
            raise CaseError(f"mass must be finite and > 0, got {self.mass}")
        if (self.velocity is None) != (self.parent is None):
            raise CaseError("velocity is required if and only if a parent is given")


@dataclass(frozen=True)
class CaseConfig:
    bodies: Dict[str, BodyDef]
    solver: SolverParams
    # body the viewer centres on; unused by the solver
    focus: Optional[str] = None


def _vec2(val: Any, what: str) -> Tuple[float, float]:
    try:
        x, y = val
        out = (float(x), float(y))
    except (TypeError, ValueError) as e:
        raise CaseError(f"{what} must be a pair of numbers, got {val!r}") from e
    if not all(math.isfinite(c) for c in out):
        raise CaseError(f"{what} must be finite, got {val!r}")
    return out


def _dataclass_from_dict(cls, d: Dict[str, Any]):
    kwargs = {}
    for f in cls.__dataclass_fields__.values():  # type: ignore
        if f.name in d:
            kwargs[f.name] = d[f.name]
    unknown = set(d) - set(kwargs)
    if unknown:
        raise CaseError(f"unknown {cls.__name__} fields: {sorted(unknown)}")
    try:
        return cls(**kwargs)  # type: ignore
    except TypeError as e:
        raise CaseError(f"bad {cls.__name__}: {e}") from e


def body_def_from_dict(name: str, d: Dict[str, Any]) -> BodyDef:
    if not isinstance(d, dict):
        raise CaseError(f"body {name!r} must be an object, got {type(d).__name__}")
    d = dict(d)
    if "mass" in d:
        try:
            d["mass"] = float(d["mass"])
        except (TypeError, ValueError) as e:
            raise CaseError(f"body {name!r}: mass must be a number") from e
    if "position" in d:
        d["position"] = _vec2(d["position"], f"body {name!r} position")
    if d.get("velocity") is not None:
        d["velocity"] = _vec2(d["velocity"], f"body {name!r} velocity")
    return _dataclass_from_dict(BodyDef, d)


def case_from_dict(d: Dict[str, Any]) -> CaseConfig:
    if "bodies" not in d or "solver" not in d:
        raise CaseError("case needs both 'bodies' and 'solver'")
    if not isinstance(d["bodies"], dict):
        raise CaseError(f"bodies must be an object, got {type(d['bodies']).__name__}")
    bodies = {str(name): body_def_from_dict(str(name), b) for name, b in d["bodies"].items()}
    solver = _dataclass_from_dict(SolverParams, d["solver"])
    focus = d.get("focus")
    if focus is not None and focus not in bodies:
        raise CaseError(f"focus {focus!r} is not a body of this case")
    return CaseConfig(bodies=bodies, solver=solver, focus=focus)


def load_case(path: str) -> CaseConfig:
    with open(path, "r", encoding="utf-8") as f:
        d = json.load(f)
    return case_from_dict(d)


def to_json(obj: Any, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(obj), f, indent=2)
