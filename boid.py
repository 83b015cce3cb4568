# boid.py
"""
Defines the Boid and its local steering rules.

A boid (bird-oid) is an immutable value holding a position and a velocity.
Each steering rule looks at a candidate set of other boids, usually the
whole current frame, and returns an acceleration Vector. The update rule
produces a new Boid; no method ever mutates an existing one, so every
boid in a tick can be computed against the same snapshot of the previous
frame.

Reference: https://processing.org/examples/flocking.html
"""
import numpy as np
from dataclasses import dataclass
from typing import List, Optional, Sequence
from numba import jit
from constants import (
    WIDTH, HEIGHT, DESIRED_SEPARATION, MAX_SPEED, MAX_FORCE, NEIGHBOUR_DIST
)
from vector import Vector

# --- Data Contracts ---
#
# class Boid:
#   - Fields: position: Vector, velocity: Vector (frozen).
#   - within(self, others: Sequence[Boid], dist: float) -> List[Boid]:
#     - Outputs: the boids whose distance to self.position d satisfies
#       0 < d < dist, in their original order. Never contains self (or any
#       boid sharing self's exact position).
#   - separate / align / cohesion (self, others, distances=None) -> Vector:
#     - Outputs: steering acceleration; the zero vector when no boid lies
#       within the rule's radius.
#     - cohesion seeks the mean neighbour position, summed before a single
#       seek() call.
#   - flock(self, others, distances=None) -> Vector:
#     - Inputs: distances, if given, is this boid's row of
#       distance_matrix(others); it is computed once and shared by the
#       three rules either way.
#     - Invariants: |result| <= MAX_FORCE.
#   - update(self, acceleration: Vector, wind: Vector) -> Boid:
#     - Outputs: a new Boid.
#     - Invariants: 0 <= position.x < WIDTH and 0 <= position.y < HEIGHT
#       for any boid that moves less than one world size per tick. The
#       velocity is capped at MAX_SPEED *before* wind is added, so a boid
#       can fly faster downwind than upwind.
#     - There is no division by a timestep: p = p + v and v = v + a. The
#       position is integrated with the pre-update velocity.


@jit(nopython=True)
def _distances_numba(positions, px, py):
    """
    Numba-jitted Euclidean distance from (px, py) to every row of an
    (N, 2) float64 position array.
    """
    count = positions.shape[0]
    distances = np.empty(count, dtype=np.float64)
    for i in range(count):
        dx = positions[i, 0] - px
        dy = positions[i, 1] - py
        distances[i] = np.sqrt(dx * dx + dy * dy)
    return distances


@jit(nopython=True)
def _distance_matrix_numba(positions):
    """
    Numba-jitted pairwise Euclidean distances of an (N, 2) float64 position
    array. Row i holds the distances from boid i to every boid, itself
    included (0.0 on the diagonal).
    """
    count = positions.shape[0]
    matrix = np.zeros((count, count), dtype=np.float64)
    for i in range(count):
        for j in range(i + 1, count):
            dx = positions[i, 0] - positions[j, 0]
            dy = positions[i, 1] - positions[j, 1]
            d = np.sqrt(dx * dx + dy * dy)
            matrix[i, j] = d
            matrix[j, i] = d
    return matrix


def positions_array(boids: Sequence["Boid"]) -> np.ndarray:
    """Packs boid positions into an (N, 2) float64 array."""
    return np.array(
        [(b.position.x, b.position.y) for b in boids], dtype=np.float64
    ).reshape(-1, 2)


def distance_matrix(frame: Sequence["Boid"]) -> np.ndarray:
    """
    Pairwise distances of a whole frame, computed once so that every boid
    in a tick can reuse its row instead of rebuilding the position array.
    """
    return _distance_matrix_numba(positions_array(frame))


def wrap(value: float, dimension: float) -> float:
    """
    Toroidal wrap of one coordinate into [0, dimension).

    A boid leaving one edge of the plane re-enters at the opposite edge.
    Only a single shift is applied, which is sufficient because a boid never
    travels a whole world size in one tick.
    """
    if value >= dimension:
        return value - dimension
    if value < 0:
        wrapped = value + dimension
        # A tiny negative value can round up to exactly `dimension`.
        return wrapped if wrapped < dimension else 0.0
    return value


@dataclass(frozen=True)
class Boid:
    """
    A single flocking agent. Steering rules return accelerations; update()
    returns the boid for the next frame.
    """
    position: Vector
    velocity: Vector

    def distances(self, others: Sequence["Boid"]) -> np.ndarray:
        """Distance from this boid to each of others, in order."""
        return _distances_numba(
            positions_array(others), float(self.position.x), float(self.position.y)
        )

    def within(self, others: Sequence["Boid"], dist: float,
               distances: Optional[np.ndarray] = None) -> List["Boid"]:
        """
        Filters others to those strictly closer than dist, excluding self.

        distances, when given, must line up with others (a row of
        distance_matrix() for the same frame); otherwise it is computed.
        """
        if len(others) == 0:
            return []
        if distances is None:
            distances = self.distances(others)
        return [
            other for other, d in zip(others, distances)
            if 0.0 < d < dist
        ]

    def separate(self, others: Sequence["Boid"],
                 distances: Optional[np.ndarray] = None) -> Vector:
        """
        Steers away from boids closer than DESIRED_SEPARATION.

        Each neighbour contributes a unit vector pointing from it to this
        boid, weighted by the inverse of the distance so that closer boids
        push harder. The summed direction becomes a desired velocity at
        MAX_SPEED, and the steer is desired minus current velocity.
        """
        too_close = self.within(others, DESIRED_SEPARATION, distances)
        if not too_close:
            return Vector.zero()

        point_away = Vector.zero()
        for other in too_close:
            offset = self.position - other.position
            point_away = point_away + offset.normalize() / offset.magnitude()

        return point_away.normalize() * MAX_SPEED - self.velocity

    def align(self, others: Sequence["Boid"],
              distances: Optional[np.ndarray] = None) -> Vector:
        """
        Steers towards the average heading of boids within NEIGHBOUR_DIST.

        Note that it is the subtracted velocity that is limited to
        MAX_FORCE here, not the resulting steer.
        """
        neighbours = self.within(others, NEIGHBOUR_DIST, distances)
        if not neighbours:
            return Vector.zero()

        velocity_sum = Vector.zero()
        for other in neighbours:
            velocity_sum = velocity_sum + other.velocity

        average_heading = (velocity_sum / len(neighbours)).normalize()
        return average_heading * MAX_SPEED - self.velocity.limit(MAX_FORCE)

    def seek(self, target: Vector) -> Vector:
        """Steers towards target at MAX_SPEED; the steer is limited to MAX_FORCE."""
        desired = (target - self.position).normalize() * MAX_SPEED
        return (desired - self.velocity).limit(MAX_FORCE)

    def cohesion(self, others: Sequence["Boid"],
                 distances: Optional[np.ndarray] = None) -> Vector:
        """
        Steers towards the mean position of boids within NEIGHBOUR_DIST.

        The neighbour positions are summed first and seek() is called once
        on their mean, rather than threading seek() through a fold that
        drops the running sum.
        """
        neighbours = self.within(others, NEIGHBOUR_DIST, distances)
        if not neighbours:
            return Vector.zero()

        position_sum = Vector.zero()
        for other in neighbours:
            position_sum = position_sum + other.position

        return self.seek(position_sum / len(neighbours))

    def flock(self, others: Sequence["Boid"],
              distances: Optional[np.ndarray] = None) -> Vector:
        """Composite of separation, alignment and cohesion, limited to MAX_FORCE."""
        if distances is None and len(others) > 0:
            distances = self.distances(others)
        steer = (
            self.separate(others, distances)
            + self.align(others, distances)
            + self.cohesion(others, distances)
        )
        return steer.limit(MAX_FORCE)

    def update(self, acceleration: Vector, wind: Vector) -> "Boid":
        """
        Produces the boid for the next frame.

        MAX_FORCE is not applied here so that a startle can perturb the
        boids far more than flocking ever would; flock() limits itself.
        """
        new_velocity = (self.velocity + acceleration).limit(MAX_SPEED) + wind
        moved = self.position + self.velocity
        new_position = Vector(wrap(moved.x, WIDTH), wrap(moved.y, HEIGHT))
        return Boid(new_position, new_velocity)
