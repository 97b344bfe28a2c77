import numpy as np
import pytest
from patched_conics.config import Units
from patched_conics.conic import ConicType, Ellipse, Hyperbola, OrbitDirection, new_conic
from patched_conics.errors import OrbitError
from patched_conics.util import TWO_PI, normalize_angle

G = Units().G
M_SUN = 2.0e30
MU = G*M_SUN
R = 1.0e9


def circular(r=R, clockwise=False):
    v = np.sqrt(MU/r)
    return new_conic(MU, [r, 0.0], [0.0, -v if clockwise else v])


def eccentric(factor=1.2, clockwise=False):
    v = factor*np.sqrt(MU/R)
    return new_conic(MU, [R, 0.0], [0.0, -v if clockwise else v])


def hyperbolic(factor=1.5, clockwise=False):
    v = factor*np.sqrt(2*MU/R)
    return new_conic(MU, [R, 0.0], [0.0, -v if clockwise else v])


def angle_diff(a, b):
    return abs(normalize_angle(a - b + np.pi) - np.pi)


def test_variant_selection():
    assert isinstance(circular(), Ellipse)
    assert isinstance(eccentric(), Ellipse)
    assert isinstance(hyperbolic(), Hyperbola)
    assert hyperbolic().kind is ConicType.HYPERBOLA
    assert hyperbolic().period is None
    assert hyperbolic().orbits(1e12) == 0


def test_direction():
    assert circular().direction is OrbitDirection.ANTICLOCKWISE
    assert circular(clockwise=True).direction is OrbitDirection.CLOCKWISE


def test_two_body_period():
    c = circular()
    expected = TWO_PI*np.sqrt(R**3/MU)
    assert c.period == pytest.approx(expected, rel=1e-12)
    assert c.orbits(2.5*expected) == 2


def test_circular_traces_circle():
    c = circular()
    assert c.eccentricity == 0.0
    assert c.semi_major_axis == pytest.approx(R, rel=1e-12)
    speeds = []
    for theta in np.linspace(0.0, TWO_PI, 50, endpoint=False):
        p = c.position(theta)
        assert np.hypot(*p) == pytest.approx(R, rel=1e-12), f"theta={theta}"
        speeds.append(np.hypot(*c.velocity(p, theta)))
    assert np.ptp(speeds) < 1e-9*np.mean(speeds)
    assert np.mean(speeds) == pytest.approx(np.sqrt(MU/R), rel=1e-12)


def test_circular_periapsis_pinned_to_start():
    r = np.array([3.0e8, 4.0e8])
    v = np.sqrt(MU/5.0e8)*np.array([-0.8, 0.6])
    c = new_conic(MU, r, v)
    assert c.eccentricity == 0.0
    assert c.argument_of_periapsis == pytest.approx(np.arctan2(4.0, 3.0))


def test_state_reproduced():
    for clockwise in (False, True):
        for c in (eccentric(clockwise=clockwise), hyperbolic(clockwise=clockwise)):
            p = c.position(0.0)
            v = c.velocity(p, 0.0)
            np.testing.assert_allclose(p, [R, 0.0], atol=1e-3)
            sign = -1.0 if clockwise else 1.0
            vy = c.specific_angular_momentum/R
            np.testing.assert_allclose(v, [0.0, vy], atol=1e-6)
            assert np.sign(vy) == sign


def test_ellipse_round_trip():
    for c in (eccentric(1.2), eccentric(0.7), eccentric(1.2, clockwise=True), circular()):
        for theta in np.linspace(0.0, TWO_PI, 25, endpoint=False):
            dt = c.time_since_last_periapsis(theta)
            assert 0.0 <= dt < c.period
            back = c.theta_from_time_since_periapsis(dt)
            assert angle_diff(back, theta) < 1e-9, f"theta={theta} back={back}"


def test_ellipse_time_wraps_per_period():
    c = eccentric()
    t = 0.3*c.period
    assert angle_diff(c.theta_from_time_since_periapsis(t), c.theta_from_time_since_periapsis(t + 3*c.period)) < 1e-9


def test_hyperbola_round_trip_signed():
    for clockwise in (False, True):
        c = hyperbolic(clockwise=clockwise)
        limit = np.arccos(-1.0/c.eccentricity) - 0.05
        sign = -1.0 if clockwise else 1.0
        for nu in np.linspace(-limit, limit, 21):
            theta = normalize_angle(sign*nu)
            dt = c.time_since_last_periapsis(theta)
            if abs(nu) > 1e-12:
                assert np.sign(dt) == np.sign(nu), f"nu={nu} dt={dt}"
            back = c.theta_from_time_since_periapsis(dt)
            assert angle_diff(back, theta) < 1e-9, f"nu={nu} back={back} theta={theta}"


def test_semi_minor_axis():
    c = eccentric()
    assert c.semi_minor_axis == pytest.approx(c.semi_major_axis*np.sqrt(1 - c.eccentricity**2))
    h = hyperbolic()
    assert h.semi_major_axis < 0.0
    assert h.semi_minor_axis > 0.0


def test_degenerate_rejected():
    v_esc = np.sqrt(2*MU/R)
    with pytest.raises(OrbitError):
        new_conic(MU, [R, 0.0], [0.0, v_esc])          # parabola
    with pytest.raises(OrbitError):
        new_conic(MU, [0.0, 0.0], [0.0, 1.0])          # on the parent
    with pytest.raises(OrbitError):
        new_conic(MU, [R, 0.0], [1000.0, 0.0])         # radial
    with pytest.raises(OrbitError):
        new_conic(MU, [np.nan, 0.0], [0.0, 1.0])


def test_open_interval():
    c = circular()

    class P:
        def __init__(self, t):
            self.time = t
    assert c.is_time_between_points(P(0.0), P(10.0), 5.0)
    assert not c.is_time_between_points(P(0.0), P(10.0), 10.0)
    assert not c.is_time_between_points(P(0.0), P(10.0), 0.0)


if __name__ == "__main__":
    test_variant_selection()
    test_two_body_period()
    test_circular_traces_circle()
    test_state_reproduced()
    test_ellipse_round_trip()
    test_hyperbola_round_trip_signed()
    test_degenerate_rejected()
    print("OK")
