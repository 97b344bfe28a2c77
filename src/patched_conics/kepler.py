"""Kepler's equation for elliptic and hyperbolic orbits.

Both solvers run a fixed number of Laguerre-Conway iterations (n = 5) with no
convergence test, so the cost and the floating-point result are fully
deterministic for a given (e, M).

References
----------
- Conway (1986), "An improved algorithm due to Laguerre for the solution of
  Kepler's equation", Celestial Mechanics 39, 199-211.
- Initial elliptic guess: Raposo-Pulido & Pelaez (2017), A&A 599.
"""
from __future__ import annotations

import logging
import numpy as np

from .config import KEPLER_ITERATIONS, KEPLER_RESIDUAL_WARN

logger = logging.getLogger(__name__)

_LAGUERRE_N = 5.0


def laguerre_delta(f: float, fp: float, fpp: float) -> float:
    """Laguerre correction for a residual f with first/second derivatives fp, fpp."""
    n = _LAGUERRE_N
    root = np.sqrt(abs((n - 1.0)**2 * fp * fp - n * (n - 1.0) * f * fpp))
    return float(-n * f / (fp + np.copysign(root, fp)))


def _check_residual(kind: str, e: float, M: float, residual: float) -> None:
    if abs(residual) > KEPLER_RESIDUAL_WARN * max(1.0, abs(M)):
        logger.debug("%s Kepler solve poorly converged: e=%r M=%r residual=%r", kind, e, M, residual)


def solve_kepler_ellipse(eccentricity: float, mean_anomaly: float) -> float:
    """Eccentric anomaly E with M = E - e sin E, for 0 <= e < 1 and M in [0, 2pi)."""
    e = float(eccentricity)
    M = float(mean_anomaly)
    if not 0.0 <= e < 1.0:
        raise ValueError(f"elliptic Kepler solver needs 0 <= e < 1, got e={e}")

    # biased towards periapsis/apoapsis; the 0.999999 keeps the seed off E=M at e=1
    E = M + (0.999999 * 4.0 * e * M * (np.pi - M)) / (8.0 * e * M + 4.0 * e * (e - np.pi) + np.pi**2)

    for _ in range(KEPLER_ITERATIONS):
        s, c = np.sin(E), np.cos(E)
        f = M - E + e * s
        fp = -1.0 + e * c
        fpp = -e * s
        E = E + laguerre_delta(f, fp, fpp)

    if logger.isEnabledFor(logging.DEBUG):
        _check_residual("elliptic", e, M, M - E + e * np.sin(E))
    return float(E)


def solve_kepler_hyperbola(eccentricity: float, mean_anomaly: float) -> float:
    """Hyperbolic anomaly F with M = e sinh F - F, for e > 1 and any real M.

    The equation is odd in (F, M), so the solve runs on |M| and the sign is
    restored at the end. The seed asinh(|M|/e) keeps sinh finite for large
    mean anomalies.
    """
    e = float(eccentricity)
    M = float(mean_anomaly)
    if not e > 1.0:
        raise ValueError(f"hyperbolic Kepler solver needs e > 1, got e={e}")

    m = abs(M)
    F = float(np.arcsinh(m / e))

    for _ in range(KEPLER_ITERATIONS):
        sh, ch = np.sinh(F), np.cosh(F)
        f = m + F - e * sh
        fp = 1.0 - e * ch
        fpp = -e * sh
        F = F + laguerre_delta(f, fp, fpp)

    F = float(np.copysign(F, M))
    if logger.isEnabledFor(logging.DEBUG):
        _check_residual("hyperbolic", e, M, M + F - e * np.sinh(F))
    return F
