# main.py
"""
Main entry point for the headless boids simulation.

This script stands in for the host application that would normally drive
the flock from an animation timer:
1. Loads configuration from `config.json` (or the path given as argv[1]).
2. Initializes the logging system.
3. Seeds the simulation with an explosion of boids.
4. Runs the tick loop, applying any scheduled commands.
5. Handles clean shutdown.
"""
import logging
import sys
from typing import Any, Dict, List
from utils import setup_logging, load_config, read_run_settings
import cProfile
import pstats
import io


def apply_event(sim, event: Dict[str, Any]) -> None:
    """
    Applies one scheduled command to the simulation, the way a UI button
    or canvas click would.
    """
    from boid import Boid
    from vector import Vector

    command = event['command']
    if command == 'wind':
        sim.set_wind(float(event.get('theta', 0.0)))
    elif command == 'calm':
        sim.clear_wind()
    elif command == 'startle':
        sim.trigger_startle()
    elif command == 'rewind':
        sim.reset_to_earliest()
    elif command == 'insert':
        position = Vector(*event.get('position', (0.0, 0.0)))
        velocity = Vector(*event.get('velocity', (0.0, 0.0)))
        sim.request_insertion(Boid(position, velocity))


def events_by_step(events: List[Dict[str, Any]]) -> Dict[int, List[Dict[str, Any]]]:
    """Groups scheduled commands by the step they fire before."""
    schedule: Dict[int, List[Dict[str, Any]]] = {}
    for event in events:
        schedule.setdefault(event['step'], []).append(event)
    return schedule


def run(config: Dict[str, Any]):
    """
    Runs the simulation described by an already-loaded configuration and
    returns the Simulation object.
    """
    return run_settings(read_run_settings(config))


def run_settings(settings: Dict[str, Any]):
    """Runs the simulation from settings validated by read_run_settings."""
    from simulation import Simulation, frame_metrics

    sim = Simulation(seed=settings['seed'])
    sim.start(settings['num_boids'])

    schedule = events_by_step(settings['events'])
    log_throttle = settings['log_throttle_steps']
    max_steps = settings['max_steps']

    for step_num in range(1, max_steps + 1):
        for event in schedule.get(step_num, []):
            logging.info(f"Step {step_num}: applying scheduled '{event['command']}' command.")
            apply_event(sim, event)

        sim.tick()

        # Rule 2.4: Hot loops must throttle logs
        if step_num % log_throttle == 0:
            logging.info(f"Simulation step {step_num}/{max_steps}")
            metrics = frame_metrics(sim.current_frame())
            logging.debug(
                f"Step {step_num} | Boids: {metrics['count']} | "
                f"Mean speed: {metrics['mean_speed']:.4f} | "
                f"Polarization: {metrics['polarization']:.3f}"
            )

    logging.info(f"Reached max_steps ({max_steps}). Stopping simulation.")
    return sim


def main():
    """
    The main function to run the simulation.
    """
    config_path = sys.argv[1] if len(sys.argv) > 1 else 'config.json'

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"FATAL: Could not load {config_path}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Boids Simulation Starting ---")

    settings = read_run_settings(config)

    profile = settings['profile']
    profiler = cProfile.Profile()

    if profile:
        profiler.enable()
    run_settings(settings)
    if profile:
        profiler.disable()

        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Boids Simulation Shutting Down ---")


if __name__ == "__main__":
    main()
