#!/usr/bin/env python3
"""
main.py
=======
Headless runner: builds the default cross world, drives it for a fixed
amount of simulated time and exports the metrics history.

Environment overrides
---------------------
``TRAFFIC_STRATEGY``          ``adaptive`` / ``fixed`` / ``none``
``TRAFFIC_DURATION_S``        simulated seconds to run
``TRAFFIC_SEED``              seed for turn choices
``TRAFFIC_TICK_HZ``           driver loop rate
``TRAFFIC_SPEED_MULTIPLIER``  simulated seconds per real second;
                              ``0`` runs as fast as possible
``TRAFFIC_EXPORT_CSV``        CSV path (empty disables)
``TRAFFIC_EXPORT_JSON``       JSON path (empty disables)
``TRAFFIC_LOG_LEVEL``         e.g. ``DEBUG``
"""

import logging
import os
import time

import config
from logging_setup import setup_logging
from trafficsim.network import CrossLayout, build_cross_world
from trafficsim.sim_bridge import SimBridge
from trafficsim.strategies import make_strategy
from trafficstats.export import write_csv, write_json

log = logging.getLogger("main")


def _env_float(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        log.warning("Ignoring %s=%r (not a number), using %s", name, raw, default)
        return default


def _env_int(name, default):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        log.warning("Ignoring %s=%r (not an integer), using %s", name, raw, default)
        return default


def _strategy_from_env():
    name = os.environ.get("TRAFFIC_STRATEGY", config.DEFAULT_STRATEGY).strip().lower()
    if name == "none":
        return None
    if name not in config.STRATEGY_PARAMS:
        log.warning("Unknown TRAFFIC_STRATEGY=%r, using %s", name, config.DEFAULT_STRATEGY)
        name = config.DEFAULT_STRATEGY
    return make_strategy(name, **config.STRATEGY_PARAMS[name])


def _layout():
    return CrossLayout(
        road_length_m=config.ROAD_LENGTH_M,
        light_durations=config.LIGHT_DURATIONS,
        vehicles_per_road=config.VEHICLES_PER_ROAD,
        first_vehicle_m=config.FIRST_VEHICLE_M,
        vehicle_spacing_m=config.VEHICLE_SPACING_M,
    )


def main():
    level_name = os.environ.get("TRAFFIC_LOG_LEVEL", "INFO").upper()
    setup_logging(getattr(logging, level_name, logging.INFO))

    duration = _env_float("TRAFFIC_DURATION_S", config.DEFAULT_DURATION_S)
    seed = _env_int("TRAFFIC_SEED", config.DEFAULT_SEED)
    tick_hz = _env_float("TRAFFIC_TICK_HZ", config.DEFAULT_TICK_RATE_HZ)
    multiplier = _env_float("TRAFFIC_SPEED_MULTIPLIER", config.DEFAULT_SPEED_MULTIPLIER)
    csv_path = os.environ.get("TRAFFIC_EXPORT_CSV", config.EXPORT_CSV_PATH)
    json_path = os.environ.get("TRAFFIC_EXPORT_JSON", config.EXPORT_JSON_PATH)

    strategy = _strategy_from_env()
    layout = _layout()
    bridge = SimBridge(
        world_factory=lambda: build_cross_world(layout=layout, seed=seed),
        strategy=strategy,
        step_s=config.DEFAULT_STEP_S,
        tick_rate_hz=tick_hz if tick_hz > 0 else config.DEFAULT_TICK_RATE_HZ,
        speed_multiplier=multiplier,
    )
    log.info("Running %.0fs of simulated time (strategy=%s, seed=%s, x%.2f)",
             duration, type(strategy).__name__ if strategy else "none", seed, multiplier)

    try:
        if multiplier <= 0:
            while bridge.simulation.sim_time < duration - 1e-9:
                bridge.advance(min(1.0, duration - bridge.simulation.sim_time))
        else:
            bridge.start()
            next_report = 10.0
            while bridge.simulation.sim_time < duration - 1e-9:
                time.sleep(0.25)
                state = bridge.get_state()
                if state["time"] >= next_report:
                    log.info("t=%.0fs active=%d completed=%d",
                             state["time"], state["active"], state["completed"])
                    next_report += 10.0
    except KeyboardInterrupt:
        log.info("Shutting down...")
    finally:
        bridge.stop()

    sim = bridge.simulation
    history = sim.metrics_history()
    summary = sim.metrics.summary()
    log.info("Finished at t=%.2fs: created=%d completed=%d mean wait=%.2fs",
             sim.sim_time, sim.created_count, sim.completed_count,
             summary["mean_avg_waiting"])
    log.info("Peak queues: %s", summary["peak_queues"])

    if csv_path:
        write_csv(history, csv_path)
    if json_path:
        write_json(history, json_path)


if __name__ == "__main__":
    main()
