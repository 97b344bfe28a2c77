import numpy as np
import pytest
from patched_conics.util import TWO_PI, format_time, normalize_angle


def test_normalize_angle():
    assert normalize_angle(0.0) == 0.0
    assert normalize_angle(TWO_PI) == 0.0
    assert normalize_angle(-0.1) == pytest.approx(TWO_PI - 0.1)
    assert normalize_angle(5*np.pi) == pytest.approx(np.pi)
    for theta in np.linspace(-20.0, 20.0, 101):
        t = normalize_angle(theta)
        assert 0.0 <= t < TWO_PI, f"{theta} -> {t}"


def test_format_time():
    assert format_time(0.0) == "0s"
    assert format_time(59.4) == "59s"
    assert format_time(3661.0) == "1h1m1s"
    assert format_time(86400.0) == "1d0h0m0s"
    assert format_time(361*86400.0 + 5.0) == "1y1d0h0m5s"
    assert format_time(-61.0) == "-1m1s"


if __name__ == "__main__":
    test_normalize_angle()
    test_format_time()
    print("OK")
