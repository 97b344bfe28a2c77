from __future__ import annotations

import numpy as np

TWO_PI = 2.0 * np.pi

_MINUTE = 60.0
_HOUR = 60.0 * _MINUTE
_DAY = 24.0 * _HOUR
# Calendar-free year used for display only.
_YEAR = 360.0 * _DAY


def normalize_angle(theta: float) -> float:
    """Wrap an angle to [0, 2pi)."""
    theta = float(np.fmod(theta, TWO_PI))
    if theta < 0.0:
        theta += TWO_PI
    # fmod of a tiny negative value can round up to exactly 2pi
    if theta >= TWO_PI:
        theta = 0.0
    return theta


def format_time(time: float) -> str:
    """Compact human-readable duration, e.g. ``1y4d3h0m12s``.

    Leading zero units are dropped; once a unit is shown every smaller unit is
    shown as well. Years are 360 days.
    """
    sign = "-" if time < 0.0 else ""
    t = abs(float(time))

    years, rem = divmod(t, _YEAR)
    days, rem = divmod(rem, _DAY)
    hours, rem = divmod(rem, _HOUR)
    minutes, rem = divmod(rem, _MINUTE)
    seconds = round(rem)

    parts = [(years, "y"), (days, "d"), (hours, "h"), (minutes, "m")]
    out = []
    for value, unit in parts:
        if out or value != 0.0:
            out.append(f"{int(value)}{unit}")
    out.append(f"{int(seconds)}s")
    return sign + "".join(out)
