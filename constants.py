# constants.py
"""
Application-level constants.

These values are fixed design parameters of the flocking model. They do
not change between simulation runs and are deliberately kept out of the
experimental configuration in config.json.
"""

# --- World ---
# Wrap width of the simulation, i.e. for any boid 0 <= x < 640.
WIDTH = 640
# Wrap height of the simulation, i.e. for any boid 0 <= y < 480.
HEIGHT = 480

# --- History ---
# How many frames of the simulation to hold for rewind/replay.
FRAME_MEMORY = 60
# How many boids to start with in the simulation.
NUM_BOIDS = 150

# --- Boid steering ---
# How far apart the boids want to be.
DESIRED_SEPARATION = 25
# Maximum flying velocity of a boid.
MAX_SPEED = 2
# Maximum acceleration of a boid.
MAX_FORCE = 0.03
# Other boids within this range are considered neighbours.
NEIGHBOUR_DIST = 50

# --- Global effects ---
# When the wind is blowing, how strongly it blows.
WIND_STRENGTH = 0.02
# When the boids are startled, the strength of the vector applied to each of them.
STARTLE_STRENGTH = float(MAX_SPEED)
