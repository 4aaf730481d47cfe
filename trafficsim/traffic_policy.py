#!/usr/bin/env python3
"""
trafficsim/traffic_policy.py
============================
Tunable kinematic, detection and spawning parameters for the intersection
simulation.  Every constant lives in the frozen :class:`SimulationPolicy`
dataclass so that experiments can swap policies without touching code.

Also provides two stateless helpers:

* :func:`safe_following_distance_m` — headway-based minimum gap.
* :func:`lane_for_road_id` — lane index implied by a road's name.
"""

from __future__ import annotations

from dataclasses import dataclass

#: Tolerance used when comparing accumulated timers against thresholds.
TIMER_EPS: float = 1e-9

INBOUND_SUFFIX = "_in"
OUTBOUND_SUFFIX = "_out"


@dataclass(frozen=True)
class SimulationPolicy:
    """Immutable bag of every tunable simulation parameter.

    Groups: vehicle body, longitudinal control, car following,
    signal compliance, queue detection, road transitions, spawn envelope.
    """

    # ── Vehicle body ──────────────────────────────────────────────────────
    max_speed_mps: float = 18.0
    """Free-flow speed (about 65 km/h)."""

    vehicle_length_m: float = 4.5
    """Bumper-to-bumper length of every vehicle."""

    # ── Longitudinal control ──────────────────────────────────────────────
    accel_mps2: float = 4.0
    """Acceleration applied while below the desired speed."""

    brake_mps2: float = 8.0
    """Deceleration applied while above the desired speed."""

    # ── Car following ─────────────────────────────────────────────────────
    headway_s: float = 1.0
    """Time headway in the safe-distance rule."""

    min_buffer_m: float = 2.0
    """Fixed buffer added to the headway distance."""

    follow_speed_drop_mps: float = 1.0
    """A too-close follower targets the leader's speed minus this."""

    standstill_gap_m: float = 0.5
    """Hard clearance kept behind the leader's rear bumper."""

    # ── Signal compliance ─────────────────────────────────────────────────
    reaction_zone_m: float = 8.0
    """Distance from the road end inside which a red light is obeyed."""

    stop_line_margin_m: float = 0.5
    """How far short of the road end a stopping vehicle halts."""

    # ── Queue detection ───────────────────────────────────────────────────
    waiting_distance_m: float = 12.0
    """A waiting vehicle is at most this far from the road end."""

    waiting_speed_mps: float = 0.5
    """A waiting vehicle is at most this fast."""

    stopped_speed_mps: float = 0.1
    """Below this speed a vehicle accumulates waiting time."""

    # ── Road transitions ──────────────────────────────────────────────────
    road_end_tolerance_m: float = 0.01
    """Within this distance of the end a vehicle changes road."""

    entry_offset_m: float = 0.1
    """Position assigned on entering a new road."""

    # ── Spawn envelope ────────────────────────────────────────────────────
    spawn_interval_s: float = 3.0
    """Seconds between spawn attempts."""

    spawn_clearance_m: float = 12.0
    """Lane 0 must be empty over this many metres from the road start."""

    spawn_position_m: float = 5.0
    """Where new vehicles are placed on their inbound road."""


def safe_following_distance_m(speed_mps: float, policy: SimulationPolicy) -> float:
    """Minimum gap a follower at *speed_mps* wants to its leader."""
    return policy.min_buffer_m + max(0.0, speed_mps) * policy.headway_s


def lane_for_road_id(road_id: str, current_lane: int) -> int:
    """Lane implied by the ``_in`` / ``_out`` naming convention.

    Unknown names keep *current_lane*, clamped into ``{0, 1}``.
    """
    if road_id.endswith(INBOUND_SUFFIX):
        return 0
    if road_id.endswith(OUTBOUND_SUFFIX):
        return 1
    return max(0, min(1, int(current_lane)))
