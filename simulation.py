# simulation.py
"""
Handles the simulation state and the tick-advance procedure.

This module defines the Simulation class, which owns the bounded history
of frames, the transient global effects (wind, a one-shot startle and boid
insertion) and the procedure that advances the flock by one tick.
"""
import logging
import threading
import numpy as np
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, Sequence, Tuple
from constants import (
    WIDTH, HEIGHT, FRAME_MEMORY, NUM_BOIDS, WIND_STRENGTH, STARTLE_STRENGTH
)
from boid import Boid, distance_matrix
from vector import Vector

# A frame is one simulated instant: the ordered boids at that instant.
Frame = Tuple[Boid, ...]

# --- Data Contracts ---
#
# class Simulation:
#   - __init__(self, seed: Optional[int] = None, frame_memory: int = FRAME_MEMORY):
#     - Side Effects: Creates an empty history and a dedicated RNG.
#     - Invariants: len(self.history) <= frame_memory after every public
#       call returns. Frames are never edited in place.
#
#   - current_frame(self) -> Frame:
#     - Raises EmptyHistoryError if no frame has been pushed yet.
#
#   - tick(self) -> Frame:
#     - Side Effects: Pushes exactly one new frame and clears the one-shot
#       function (once per tick, not once per boid).
#     - Invariants: Every boid is computed against the same pre-tick
#       frame. No boid observes another boid's updated state.
#
#   - Commands (set_wind, clear_wind, trigger_startle, request_insertion,
#     reset_to_earliest) take the same lock as tick(), so each takes effect
#     entirely before or entirely after any given tick.


class EmptyHistoryError(RuntimeError):
    """Raised when a frame is requested before the history has been seeded."""


class Simulation:
    """
    Owns the frame history and the transient effects, and advances the
    flock one frame at a time.
    """
    def __init__(self, seed: Optional[int] = None, frame_memory: int = FRAME_MEMORY):
        """
        Initializes an empty simulation.

        Args:
            seed (Optional[int]): Master seed for every random draw made by
                this simulation. None draws fresh OS entropy.
            frame_memory (int): Capacity of the history buffer.
        """
        if frame_memory < 1:
            msg = f"Configuration error: frame_memory must be at least 1, got {frame_memory}."
            logging.critical(msg)
            raise ValueError(msg)

        self.frame_memory = frame_memory
        self.seed = seed

        # Rule 12: All randomness is controlled by a single master seed.
        self.rng = np.random.default_rng(seed)

        # Oldest frame at the front, newest at the back.
        self.history: Deque[Frame] = deque()

        # Transient effects
        self.wind: Optional[Vector] = None
        self.one_time_function: Optional[Callable[[Boid], Vector]] = None
        self.pending_insertion: Optional[Boid] = None

        self.lock = threading.RLock()

        logging.info(
            f"Simulation initialized: {WIDTH}x{HEIGHT} world, "
            f"history capacity {self.frame_memory}, seed {seed}."
        )

    # --- History ---

    def push_frame(self, frame: Sequence[Boid]) -> Frame:
        """Pushes a frame, dropping the oldest once frame_memory is exceeded."""
        frame = tuple(frame)
        with self.lock:
            self.history.append(frame)
            if len(self.history) > self.frame_memory:
                self.history.popleft()
        return frame

    def current_frame(self) -> Frame:
        """The most recently pushed frame."""
        with self.lock:
            if not self.history:
                msg = "No frame in history. Seed the simulation with start() first."
                logging.critical(msg)
                raise EmptyHistoryError(msg)
            return self.history[-1]

    def reset_to_earliest(self) -> Frame:
        """
        Jumps back to the oldest remembered frame by pushing it again.

        This is not a restart from t=0. With a full history [F0, ..., F59]
        one call leaves [F1, ..., F59, F0]: the front is evicted and
        re-appended, so repeated calls slide the retained window forward
        one slot at a time and the flock replays from where it was.
        """
        with self.lock:
            if not self.history:
                msg = "Cannot rewind an empty history."
                logging.critical(msg)
                raise EmptyHistoryError(msg)
            earliest = self.history[0]
            logging.info(f"Rewinding to the earliest of {len(self.history)} remembered frames.")
            return self.push_frame(earliest)

    # --- Transient effects ---

    def set_wind(self, theta: float) -> Vector:
        """
        Sets a wind blowing at WIND_STRENGTH from the angle theta (radians).

        A northerly wind blows *from* the north, so the polar vector is
        reversed. Overwrites any previous wind.
        """
        wind = Vector.from_polar(WIND_STRENGTH, theta) * -1
        with self.lock:
            self.wind = wind
        logging.info(f"Wind set from theta={theta:.3f} rad: ({wind.x:.4f}, {wind.y:.4f}).")
        return wind

    def clear_wind(self) -> None:
        """Returns to calm air."""
        with self.lock:
            self.wind = None
        logging.info("Wind cleared.")

    def trigger_startle(self) -> None:
        """
        Startles every boid for the next tick only.

        The impulse is the boid's own position scaled by STARTLE_STRENGTH.
        It depends on where the boid is rather than on its neighbours, which
        scatters the flock in a dramatic, non-physical way.
        """
        with self.lock:
            self.one_time_function = _startle
        logging.info("Startle armed for the next tick.")

    def request_insertion(self, boid: Boid) -> Frame:
        """
        Inserts a boid into the flock.

        The insertion is applied immediately: the boid is appended to the
        current frame and the result is pushed as a new frame, rather than
        waiting for the next tick.
        """
        with self.lock:
            self.pending_insertion = boid
            frame = self.push_frame(self.current_frame() + (self.pending_insertion,))
            self.pending_insertion = None
        logging.info(
            f"Inserted boid at ({boid.position.x:.1f}, {boid.position.y:.1f}); "
            f"flock size is now {len(frame)}."
        )
        return frame

    # --- Boid generation and updates ---

    def explosion(self, n: int) -> Frame:
        """Generates n boids in the centre of the world moving at v=1 in random directions."""
        if n < 0:
            msg = f"Configuration error: cannot generate a negative number of boids ({n})."
            logging.critical(msg)
            raise ValueError(msg)
        centre = Vector(WIDTH / 2, HEIGHT / 2)
        return tuple(
            Boid(centre, Vector.random_direction(1, self.rng)) for _ in range(n)
        )

    def start(self, num_boids: int = NUM_BOIDS) -> Frame:
        """Seeds the history with an explosion frame."""
        frame = self.push_frame(self.explosion(num_boids))
        logging.info(f"Simulation seeded with an explosion of {num_boids} boids.")
        return frame

    def tick(self) -> Frame:
        """
        Generates and pushes the next frame.

        If a one-shot function is armed, it supplies every boid's
        acceleration and the wind is replaced by a random vector of
        STARTLE_STRENGTH. Otherwise each boid flocks against the current
        frame and the persistent wind (or none) is applied.
        """
        with self.lock:
            snapshot = self.current_frame()
            one_time = self.one_time_function

            if one_time is not None:
                frame = tuple(
                    boid.update(one_time(boid), Vector.random_direction(STARTLE_STRENGTH, self.rng))
                    for boid in snapshot
                )
            else:
                wind = self.wind if self.wind is not None else Vector.zero()
                distances = distance_matrix(snapshot)
                frame = tuple(
                    boid.update(boid.flock(snapshot, distances[i]), wind)
                    for i, boid in enumerate(snapshot)
                )

            # Reset the events that should occur one time only.
            self.one_time_function = None

            logging.debug(
                f"Tick computed {len(frame)} boids "
                f"({'startle' if one_time is not None else 'flock'})."
            )
            return self.push_frame(frame)


def _startle(boid: Boid) -> Vector:
    """Applies STARTLE_STRENGTH to the unstartled boid's position vector."""
    return boid.position * STARTLE_STRENGTH


# --- Frame metrics ---

def frame_arrays(frame: Sequence[Boid]) -> Tuple[np.ndarray, np.ndarray]:
    """
    Packs a frame into (positions, velocities) float64 arrays of shape (N, 2).
    """
    positions = np.array([b.position.as_tuple() for b in frame], dtype=np.float64).reshape(-1, 2)
    velocities = np.array([b.velocity.as_tuple() for b in frame], dtype=np.float64).reshape(-1, 2)
    return positions, velocities


def frame_metrics(frame: Sequence[Boid]) -> Dict[str, Any]:
    """
    Aggregated statistics of one frame, for throttled logging.

    Polarization is the norm of the mean unit heading: 1.0 when every boid
    flies the same way, near 0.0 for a disordered flock.
    """
    positions, velocities = frame_arrays(frame)
    count = positions.shape[0]
    if count == 0:
        return {
            'count': 0,
            'mean_speed': 0.0,
            'max_speed': 0.0,
            'centroid': (0.0, 0.0),
            'polarization': 0.0,
        }

    speed = np.linalg.norm(velocities, axis=1)
    moving = speed > 0
    headings = velocities[moving] / speed[moving, np.newaxis]
    polarization = float(np.linalg.norm(headings.mean(axis=0))) if headings.size else 0.0
    centroid = positions.mean(axis=0)
    return {
        'count': int(count),
        'mean_speed': float(speed.mean()),
        'max_speed': float(speed.max()),
        'centroid': (float(centroid[0]), float(centroid[1])),
        'polarization': polarization,
    }
