import math

import pytest

from tracking_layer.errors import BoundaryResolutionError
from tracking_layer.motion_model import BounceProblem, VehicleMotionModel, VehicleState
from tracking_layer.numeric import BOX_DIM, COS_DIRN, MAX_SPEED, NDIRNS, TWO_PI, angle_dirn
from tracking_layer.random_source import RandomSource


@pytest.mark.parametrize("fast_direction", [False, True])
def test_propagation_stays_in_box(fast_direction):
    model = VehicleMotionModel(fast_direction=fast_direction)
    rng = RandomSource(11)
    for _ in range(200):
        state = VehicleState.random(rng).as_tuple()
        for _ in range(20):
            state = model.sample(state, 0.5, True, rng)
            x, y, r, t = state
            assert -BOX_DIM <= x <= BOX_DIM
            assert -BOX_DIM <= y <= BOX_DIM
            assert 0.0 <= r <= MAX_SPEED
            assert 0.0 <= t < TWO_PI


def test_random_state_ranges():
    rng = RandomSource(5)
    for _ in range(100):
        s = VehicleState.random(rng)
        assert -BOX_DIM <= s.x <= BOX_DIM and -BOX_DIM <= s.y <= BOX_DIM
        assert 0.0 <= s.r < 1.0
        assert 0.0 <= s.t < math.pi / 2


def test_general_integrator_moves_along_heading():
    model = VehicleMotionModel(rvar=0.0, avar=0.0)
    x, y, r, t = model.sample((0.0, 0.0, 1.0, math.pi / 2), 1.0, False, RandomSource(1))
    assert x == pytest.approx(0.0, abs=1e-12)
    # heading pi/2 moves toward negative y
    assert y == pytest.approx(-1.0)
    assert r == 1.0


def test_x_violation_reflects_heading():
    model = VehicleMotionModel()
    x, y, r, t = model.sample((19.9, 0.0, 1.0, 0.0), 1.0, False, RandomSource(3))
    assert t == pytest.approx(math.pi)
    assert r == 1.0
    assert x == pytest.approx(18.9)
    assert y == pytest.approx(0.0, abs=1e-12)


def test_y_violation_reflects_heading():
    model = VehicleMotionModel()
    x, y, r, t = model.sample((0.0, -19.9, 1.0, math.pi / 2), 1.0, False, RandomSource(3))
    assert t == pytest.approx(3 * math.pi / 2)
    assert y == pytest.approx(-18.9)
    assert x == pytest.approx(0.0, abs=1e-12)


def test_corner_violation_reverses_heading():
    model = VehicleMotionModel()
    x, y, r, t = model.sample((19.9, -19.9, 1.0, math.pi / 4), 1.0, False, RandomSource(3))
    assert t == pytest.approx(5 * math.pi / 4)
    assert x == pytest.approx(19.9 - math.sqrt(0.5))
    assert y == pytest.approx(-19.9 + math.sqrt(0.5))


def test_unresolvable_move_is_fatal():
    # a step longer than the box cannot be fixed by one reflection
    model = VehicleMotionModel()
    with pytest.raises(BoundaryResolutionError):
        model.sample((0.0, 0.0, 2.0, 0.0), 100.0, False, RandomSource(3))


def test_bounce_classifies_violations():
    model = VehicleMotionModel()
    assert model._bounce(0.0, 0.0, 1.0, 0.0, 1.0)[0] is BounceProblem.OK
    assert model._bounce(19.5, 0.0, 1.0, 0.0, 1.0)[0] is BounceProblem.X
    assert model._bounce(0.0, 19.5, 1.0, 3 * math.pi / 2, 1.0)[0] is BounceProblem.Y
    assert model._bounce(19.5, 19.5, 1.0, 7 * math.pi / 4, 1.0)[0] is BounceProblem.XY


def test_fast_direction_close_to_general():
    general = VehicleMotionModel()
    fast = VehicleMotionModel(fast_direction=True)
    start = (1.0, -2.0, 1.5, 1.0)
    dt = 0.1
    a = general.sample(start, dt, True, RandomSource(8))
    b = fast.sample(start, dt, True, RandomSource(8))
    assert a[2:] == b[2:]
    tol = 2.0 * MAX_SPEED * dt * TWO_PI / NDIRNS
    assert abs(a[0] - b[0]) <= tol
    assert abs(a[1] - b[1]) <= tol


def test_update_state_mutates_vehicle():
    model = VehicleMotionModel()
    state = VehicleState(0.0, 0.0, 1.0, 0.0)
    model.update_state(state, 0.01, False, RandomSource(2))
    assert state.x > 0.0
    assert state.as_tuple() != (0.0, 0.0, 1.0, 0.0)


def test_fast_direction_falls_back_to_exact_move_at_wall():
    # the quantized heading overshoots the wall where the exact one does not
    model = VehicleMotionModel(fast_direction=True)
    x, t = 19.00003, 0.0115
    assert x + COS_DIRN[angle_dirn(t)] > BOX_DIM
    problem, x1, y1 = model._bounce(x, 0.0, 1.0, t, 1.0)
    assert problem is BounceProblem.OK
    assert x1 == x + math.cos(t)
    assert y1 == -math.sin(t)
    assert x1 < BOX_DIM
