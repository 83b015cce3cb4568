# vector.py
"""
Immutable 2D vector used for boid positions, velocities and accelerations.

Every operation returns a new Vector; nothing here mutates in place.
"""
import math
import numpy as np
from dataclasses import dataclass
from typing import Optional, Tuple

# --- Data Contracts ---
#
# class Vector:
#   - Fields: x: float, y: float (frozen).
#   - normalize(self) -> Vector:
#     - Outputs: unit vector in the same direction.
#     - Invariants: total. The zero vector normalizes to the zero vector,
#       so steering rules may call it on sums that legitimately cancel out.
#   - limit(self, max_magnitude: float) -> Vector:
#     - Outputs: self if |self| <= max_magnitude, otherwise the same
#       direction rescaled to exactly max_magnitude.
#   - random_direction(magnitude, rng) -> Vector:
#     - Inputs: rng is a numpy Generator; the module generator is used
#       when it is omitted.

_default_rng = np.random.default_rng()


@dataclass(frozen=True)
class Vector:
    """A 2D vector value with the algebra the steering rules need."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def zero(cls) -> "Vector":
        return cls(0.0, 0.0)

    @classmethod
    def from_polar(cls, r: float, theta: float) -> "Vector":
        """Builds (r cos theta, r sin theta)."""
        return cls(r * math.cos(theta), r * math.sin(theta))

    @classmethod
    def random_direction(cls, magnitude: float, rng: Optional[np.random.Generator] = None) -> "Vector":
        """Uniformly random angle in [0, 2pi), scaled to the given magnitude."""
        rng = rng if rng is not None else _default_rng
        theta = rng.uniform(0.0, 2.0 * math.pi)
        return cls.from_polar(magnitude, float(theta))

    def add(self, other: "Vector") -> "Vector":
        return Vector(self.x + other.x, self.y + other.y)

    def subtract(self, other: "Vector") -> "Vector":
        return Vector(self.x - other.x, self.y - other.y)

    def scale(self, k: float) -> "Vector":
        return Vector(self.x * k, self.y * k)

    def divide(self, k: float) -> "Vector":
        return Vector(self.x / k, self.y / k)

    def magnitude(self) -> float:
        return math.hypot(self.x, self.y)

    def normalize(self) -> "Vector":
        length = self.magnitude()
        if length == 0:
            return Vector.zero()
        return Vector(self.x / length, self.y / length)

    def limit(self, max_magnitude: float) -> "Vector":
        length = self.magnitude()
        if length > max_magnitude:
            return self.scale(max_magnitude / length)
        return self

    def distance_to(self, other: "Vector") -> float:
        return math.hypot(self.x - other.x, self.y - other.y)

    def as_tuple(self) -> Tuple[float, float]:
        return (self.x, self.y)

    # Operator aliases so steering code reads like the maths.
    def __add__(self, other: "Vector") -> "Vector":
        return self.add(other)

    def __sub__(self, other: "Vector") -> "Vector":
        return self.subtract(other)

    def __mul__(self, k: float) -> "Vector":
        return self.scale(k)

    __rmul__ = __mul__

    def __truediv__(self, k: float) -> "Vector":
        return self.divide(k)

    def __neg__(self) -> "Vector":
        return Vector(-self.x, -self.y)
