#!/usr/bin/env python3
"""
trafficsim/physics.py
=====================
Low-level kinematic helpers used by :mod:`trafficsim.vehicle`.

Keeping these in a separate module avoids circular imports and makes unit
testing straightforward.
"""

from __future__ import annotations


def approach_speed(
    speed: float,
    desired: float,
    accel: float,
    brake: float,
    dt: float,
) -> float:
    """Move *speed* toward *desired* with asymmetric rates.

    Parameters
    ----------
    speed : float
        Current speed in m/s.
    desired : float
        Target speed in m/s.
    accel, brake : float
        Acceleration and deceleration magnitudes in m/s².
    dt : float
        Step length in seconds.
    """
    if speed < desired:
        return min(desired, speed + accel * dt)
    return max(desired, speed - brake * dt)


def clamp_advance(delta: float, limit: float) -> float:
    """Cap a forward advance at *limit*, never going backwards."""
    return max(0.0, min(delta, limit))


def gap_to_leader(own_position: float, leader_position: float, leader_length: float) -> float:
    """Free space between our front bumper and the leader's rear bumper."""
    return (leader_position - leader_length) - own_position
