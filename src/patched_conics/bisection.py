from __future__ import annotations

from typing import Callable

import numpy as np
from scipy.optimize import bisect

from .config import BISECTION_MAXITER, BISECTION_XTOL


def bisection(f: Callable[[float], float], lo: float, hi: float,
              xtol: float = BISECTION_XTOL, maxiter: int = BISECTION_MAXITER) -> float:
    """Root of ``f`` in [lo, hi]; f(lo) and f(hi) must differ in sign.

    An endpoint that is already an exact root is returned as is. Same-sign
    endpoints raise ValueError (callers establish the sign change first).
    """
    flo = f(lo)
    if flo == 0.0:
        return float(lo)
    fhi = f(hi)
    if fhi == 0.0:
        return float(hi)
    if (flo > 0.0) == (fhi > 0.0):
        raise ValueError(f"f(lo)={flo} and f(hi)={fhi} have the same sign on [{lo}, {hi}]")
    # rtol is pinned to its floor so xtol alone sets the precision
    return float(bisect(f, lo, hi, xtol=xtol, rtol=4.0 * np.finfo(float).eps, maxiter=maxiter, disp=False))
