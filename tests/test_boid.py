import math

import numpy as np
import pytest

from boid import Boid, distance_matrix, wrap
from constants import HEIGHT, MAX_FORCE, MAX_SPEED, WIDTH
from vector import Vector

STILL = Vector(0.0, 0.0)


def make_boid(x: float, y: float, vx: float = 0.0, vy: float = 0.0) -> Boid:
    return Boid(Vector(x, y), Vector(vx, vy))


def test_within_excludes_self_and_far_boids() -> None:
    me = make_boid(100.0, 100.0)
    twin = make_boid(100.0, 100.0, 1.0, 0.0)
    on_edge = make_boid(125.0, 100.0)
    inside = make_boid(124.0, 100.0)
    far = make_boid(300.0, 300.0)

    close = me.within([me, twin, on_edge, inside, far], 25)

    assert close == [inside]


def test_within_preserves_order() -> None:
    me = make_boid(0.0, 0.0)
    a = make_boid(3.0, 0.0)
    b = make_boid(0.0, 1.0)
    c = make_boid(2.0, 2.0)
    assert me.within([c, a, b], 10) == [c, a, b]


def test_within_empty_others() -> None:
    assert make_boid(1.0, 1.0).within([], 50) == []


def test_separate_steers_away_from_close_neighbour() -> None:
    me = make_boid(100.0, 100.0)
    steer = me.separate([me, make_boid(110.0, 100.0)])
    assert steer.x == pytest.approx(-MAX_SPEED)
    assert steer.y == pytest.approx(0.0)


def test_separate_subtracts_current_velocity() -> None:
    me = make_boid(100.0, 100.0, 0.5, 0.5)
    steer = me.separate([make_boid(100.0, 90.0)])
    assert steer.x == pytest.approx(-0.5)
    assert steer.y == pytest.approx(MAX_SPEED - 0.5)


def test_separate_cancelling_neighbours_is_total() -> None:
    me = make_boid(100.0, 100.0, 1.0, 0.0)
    steer = me.separate([make_boid(110.0, 100.0), make_boid(90.0, 100.0)])
    # The pushes cancel out, leaving only the velocity term.
    assert steer.x == pytest.approx(-1.0)
    assert steer.y == pytest.approx(0.0)


def test_align_limits_the_subtracted_velocity() -> None:
    me = make_boid(100.0, 100.0, 1.0, 0.0)
    steer = me.align([me, make_boid(110.0, 100.0, 0.0, 1.0)])
    assert steer.x == pytest.approx(-MAX_FORCE)
    assert steer.y == pytest.approx(MAX_SPEED)


def test_seek_is_limited_to_max_force() -> None:
    me = make_boid(100.0, 100.0)
    steer = me.seek(Vector(200.0, 100.0))
    assert steer.x == pytest.approx(MAX_FORCE)
    assert steer.y == pytest.approx(0.0)


def test_seek_own_position_does_not_fail() -> None:
    me = make_boid(100.0, 100.0, 1.0, 0.0)
    steer = me.seek(Vector(100.0, 100.0))
    assert steer.x == pytest.approx(-MAX_FORCE)
    assert steer.y == pytest.approx(0.0)


def test_cohesion_steers_towards_mean_neighbour_position() -> None:
    me = make_boid(100.0, 100.0)
    steer = me.cohesion([me, make_boid(110.0, 100.0), make_boid(100.0, 110.0)])
    expected = MAX_FORCE / math.sqrt(2)
    assert steer.x == pytest.approx(expected)
    assert steer.y == pytest.approx(expected)


@pytest.mark.parametrize("rule", ["separate", "align", "cohesion", "flock"])
def test_rules_are_zero_without_neighbours(rule: str) -> None:
    me = make_boid(100.0, 100.0, 1.0, 1.0)
    lonely = [me, make_boid(400.0, 400.0)]
    assert getattr(me, rule)(lonely) == Vector(0.0, 0.0)
    assert getattr(me, rule)([]) == Vector(0.0, 0.0)


def test_flock_is_limited_to_max_force() -> None:
    rng = np.random.default_rng(3)
    boids = [
        make_boid(*rng.uniform(90, 130, size=2), *rng.uniform(-2, 2, size=2))
        for _ in range(40)
    ]
    for boid in boids:
        assert boid.flock(boids).magnitude() <= MAX_FORCE + 1e-12


def test_update_integrates_with_previous_velocity() -> None:
    me = make_boid(10.0, 10.0, 1.0, 0.0)
    moved = me.update(Vector(5.0, 0.0), Vector(0.5, 0.0))

    assert moved.position == Vector(11.0, 10.0)
    # Capped at MAX_SPEED before the wind is added.
    assert moved.velocity.x == pytest.approx(MAX_SPEED + 0.5)
    assert moved.velocity.y == pytest.approx(0.0)
    assert me == make_boid(10.0, 10.0, 1.0, 0.0)


def test_update_wraps_around_every_edge() -> None:
    assert make_boid(639.5, 10.0, 1.0, 0.0).update(STILL, STILL).position.x == pytest.approx(0.5)
    assert make_boid(0.5, 10.0, -1.0, 0.0).update(STILL, STILL).position.x == pytest.approx(639.5)
    assert make_boid(10.0, 479.5, 0.0, 1.0).update(STILL, STILL).position.y == pytest.approx(0.5)
    assert make_boid(10.0, 0.5, 0.0, -1.0).update(STILL, STILL).position.y == pytest.approx(479.5)


def test_update_wraps_exact_boundary() -> None:
    moved = make_boid(639.0, 479.0, 1.0, 1.0).update(STILL, STILL)
    assert moved.position == Vector(0.0, 0.0)


def test_wrap() -> None:
    assert wrap(650.0, 640) == pytest.approx(10.0)
    assert wrap(-10.0, 640) == pytest.approx(630.0)
    assert wrap(320.0, 640) == 320.0
    assert wrap(640.0, 640) == 0.0
    assert wrap(0.0, 640) == 0.0
    assert 0.0 <= wrap(-1e-17, 640) < 640


def test_positions_stay_in_bounds_over_many_updates() -> None:
    rng = np.random.default_rng(11)
    boids = [
        make_boid(rng.uniform(0, WIDTH), rng.uniform(0, HEIGHT), *rng.uniform(-2, 2, size=2))
        for _ in range(30)
    ]
    wind = Vector(0.3, -0.2)
    for _ in range(200):
        boids = [b.update(b.flock(boids), wind) for b in boids]
        for b in boids:
            assert 0.0 <= b.position.x < WIDTH
            assert 0.0 <= b.position.y < HEIGHT
            assert (b.velocity - wind).magnitude() <= MAX_SPEED + 1e-9


def test_distance_matrix_matches_per_boid_distances() -> None:
    rng = np.random.default_rng(5)
    frame = [make_boid(*rng.uniform(0, 200, size=2)) for _ in range(12)]

    matrix = distance_matrix(frame)

    assert matrix.shape == (12, 12)
    assert np.all(np.diag(matrix) == 0.0)
    assert np.array_equal(matrix, matrix.T)
    for i, boid in enumerate(frame):
        assert np.array_equal(matrix[i], boid.distances(frame))


def test_distance_matrix_empty_frame() -> None:
    assert distance_matrix([]).shape == (0, 0)


def test_shared_distances_give_the_same_steering() -> None:
    rng = np.random.default_rng(17)
    frame = [
        make_boid(*rng.uniform(80, 160, size=2), *rng.uniform(-2, 2, size=2))
        for _ in range(25)
    ]
    matrix = distance_matrix(frame)
    for i, boid in enumerate(frame):
        assert boid.within(frame, 50, matrix[i]) == boid.within(frame, 50)
        assert boid.flock(frame, matrix[i]) == boid.flock(frame)
