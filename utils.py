# utils.py
"""
Utility functions for the boids host application.

Logging setup and configuration loading live here: they are used by the
driver but do not belong to the flocking model itself.
"""
import logging
import logging.handlers
import json
import os
from typing import Dict, Any
from constants import NUM_BOIDS

# --- Data Contracts ---
#
# setup_logging(config: Dict[str, Any]) -> None:
#   - Inputs:
#     - config: A dictionary with an optional "logging" key holding
#       "level", "format", and "log_file" sub-keys.
#   - Side Effects: Configures the root Python logger with a console
#     handler and, unless log_file is null, a rotating file handler.
#     Creates the log directory if it doesn't exist.
#
# load_config(path: str) -> Dict[str, Any]:
#   - Raises FileNotFoundError / json.JSONDecodeError after logging them.
#
# read_run_settings(config: Dict[str, Any]) -> Dict[str, Any]:
#   - Outputs: flat dict with "seed", "num_boids", "max_steps",
#     "log_throttle_steps", "profile" and "events", defaults filled in.
#   - Invariants: every event step lies in [1, max_steps], the steps the
#     driver loop actually visits.
#   - Raises ValueError on values the driver cannot run with.

DEFAULT_LOG_FILE = 'logs/boids.log'
DEFAULT_LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

KNOWN_COMMANDS = ('wind', 'calm', 'startle', 'insert', 'rewind')


def setup_logging(config: Dict[str, Any]) -> None:
    """
    Configures the logging system from a configuration dictionary.

    Sets up logging to the console and, if a log file is configured, to a
    rotating file.
    """
    log_config = config.get('logging', {})
    log_level = log_config.get('level', 'INFO').upper()
    log_format = log_config.get('format', DEFAULT_LOG_FORMAT)
    log_file_path = log_config.get('log_file', DEFAULT_LOG_FILE)

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Clear existing handlers to avoid duplication
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(log_format)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file_path:
        log_dir = os.path.dirname(log_file_path)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        # Rotates when the log reaches 1MB, keeps 5 backup logs.
        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=1024*1024, backupCount=5
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.info("Logging system initialized.")
    logging.debug(f"Log level set to {log_level}.")
    logging.debug(f"Log file path: {log_file_path}")


def load_config(path: str) -> Dict[str, Any]:
    """Loads a JSON configuration file."""
    logging.info(f"Loading configuration from {path}...")
    try:
        with open(path, 'r') as f:
            config = json.load(f)
        logging.info("Configuration loaded successfully.")
        return config
    except FileNotFoundError:
        logging.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logging.error(f"Error decoding JSON from {path}.")
        raise


def read_run_settings(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Extracts and validates the settings the headless driver runs with.
    """
    sim_params = config.get('simulation_parameters', {})
    run_params = config.get('run_control', {})

    settings = {
        'seed': sim_params.get('seed'),
        'num_boids': int(sim_params.get('num_boids', NUM_BOIDS)),
        'max_steps': int(run_params.get('max_steps', 1000)),
        'log_throttle_steps': int(run_params.get('log_throttle_steps', 100)),
        'profile': bool(run_params.get('profile', False)),
        'events': list(config.get('events', [])),
    }

    problems = []
    if settings['num_boids'] < 0:
        problems.append(f"num_boids must be >= 0, got {settings['num_boids']}")
    if settings['max_steps'] <= 0:
        problems.append(f"max_steps must be > 0, got {settings['max_steps']}")
    if settings['log_throttle_steps'] <= 0:
        problems.append(f"log_throttle_steps must be > 0, got {settings['log_throttle_steps']}")
    for event in settings['events']:
        if event.get('command') not in KNOWN_COMMANDS:
            problems.append(f"unknown event command {event.get('command')!r}")
        elif not isinstance(event.get('step'), int) or event['step'] < 1:
            problems.append(f"event {event['command']!r} needs an integer 'step' >= 1")
        elif event['step'] > settings['max_steps']:
            problems.append(
                f"event {event['command']!r} at step {event['step']} "
                f"is beyond max_steps ({settings['max_steps']})"
            )

    if problems:
        msg = "Configuration error: " + "; ".join(problems) + "."
        logging.critical(msg)
        raise ValueError(msg)

    return settings
