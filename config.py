#!/usr/bin/env python3
"""
config.py
=========
Application-wide configuration constants.

Values can be overridden via environment variables (see :mod:`main`).
This module is a thin, import-safe leaf — it never imports from
other project packages.
"""

# ── Simulation defaults ──────────────────────────────────────────────────────
DEFAULT_STEP_S: float = 0.05
DEFAULT_TICK_RATE_HZ: float = 20.0
DEFAULT_SPEED_MULTIPLIER: float = 1.0
DEFAULT_DURATION_S: float = 120.0
DEFAULT_SEED = None

# ── Signal control ───────────────────────────────────────────────────────────
DEFAULT_STRATEGY: str = "adaptive"
STRATEGY_PARAMS = {
    "adaptive": {
        "base_green": 5.0,
        "k_per_vehicle": 1.0,
        "max_green": 20.0,
        "min_green_hold": 3.0,
    },
    "fixed": {
        "switch_interval": 8.0,
    },
}

# ── Default cross world ──────────────────────────────────────────────────────
LIGHT_DURATIONS = (8.0, 2.0, 16.0)  # green, yellow, red
ROAD_LENGTH_M: float = 300.0
VEHICLES_PER_ROAD: int = 5
FIRST_VEHICLE_M: float = 5.0
VEHICLE_SPACING_M: float = 12.0

# ── Export ───────────────────────────────────────────────────────────────────
EXPORT_CSV_PATH: str = "output/metrics.csv"
EXPORT_JSON_PATH: str = ""

# ── HTTP API ─────────────────────────────────────────────────────────────────
API_HOST: str = "0.0.0.0"
API_PORT: int = 8000
