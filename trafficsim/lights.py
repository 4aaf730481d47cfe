#!/usr/bin/env python3
"""
trafficsim/lights.py
====================
Traffic-light phase machine.

A light's phase is a small immutable record (:class:`Phase`) and
:func:`advance_phase` is the only place where the canonical
GREEN → YELLOW → RED → GREEN cycle is encoded.  :class:`TrafficLight`
holds one phase plus the default durations, and lets strategies or
preemption force any phase at any time.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, Optional

from trafficsim.traffic_policy import TIMER_EPS


class LightColor(str, Enum):
    GREEN = "GREEN"
    YELLOW = "YELLOW"
    RED = "RED"


# Canonical successor of every colour
_NEXT_COLOR: Dict[LightColor, LightColor] = {
    LightColor.GREEN: LightColor.YELLOW,
    LightColor.YELLOW: LightColor.RED,
    LightColor.RED: LightColor.GREEN,
}


@dataclass(frozen=True)
class Phase:
    """One signal phase: colour, target duration and time spent in it."""

    color: LightColor
    duration: float
    elapsed: float = 0.0

    @property
    def remaining(self) -> float:
        return max(0.0, self.duration - self.elapsed)

    @property
    def expired(self) -> bool:
        return self.elapsed >= self.duration - TIMER_EPS


@dataclass(frozen=True)
class PhaseDurations:
    """Default duration per colour, used for canonical transitions."""

    green: float
    yellow: float
    red: float

    def for_color(self, color: LightColor) -> float:
        if color is LightColor.GREEN:
            return self.green
        if color is LightColor.YELLOW:
            return self.yellow
        return self.red


def advance_phase(phase: Phase, dt: float, defaults: PhaseDurations) -> Phase:
    """Advance *phase* by *dt* seconds.

    When the phase times out the canonical successor is entered with its
    *default* duration and zero elapsed time; overshoot is discarded.
    """
    advanced = replace(phase, elapsed=phase.elapsed + max(0.0, dt))
    if not advanced.expired:
        return advanced
    nxt = _NEXT_COLOR[phase.color]
    return Phase(color=nxt, duration=defaults.for_color(nxt))


class TrafficLight:
    """A signal head controlling one approach.

    Parameters
    ----------
    green_duration, yellow_duration, red_duration : float
        Default phase lengths in seconds.  The light starts RED with the
        default red duration.
    """

    def __init__(
        self,
        green_duration: float,
        yellow_duration: float,
        red_duration: float,
    ) -> None:
        if min(green_duration, yellow_duration, red_duration) < 0.0:
            raise ValueError("phase durations must be non-negative")
        self.defaults = PhaseDurations(
            green=float(green_duration),
            yellow=float(yellow_duration),
            red=float(red_duration),
        )
        self._phase = Phase(LightColor.RED, self.defaults.red)

    # ── defaults ──────────────────────────────────────────────────────────

    @property
    def green_duration(self) -> float:
        return self.defaults.green

    @property
    def yellow_duration(self) -> float:
        return self.defaults.yellow

    @property
    def red_duration(self) -> float:
        return self.defaults.red

    # ── state ─────────────────────────────────────────────────────────────

    @property
    def phase(self) -> Phase:
        return self._phase

    @property
    def color(self) -> LightColor:
        return self._phase.color

    def allows_passage(self) -> bool:
        return self._phase.color is LightColor.GREEN

    def update(self, dt: float) -> None:
        """Advance the phase timer.  Call exactly once per tick."""
        self._phase = advance_phase(self._phase, dt, self.defaults)

    def set_state(self, color: LightColor, duration: Optional[float] = None) -> None:
        """Force *color* for *duration* seconds (default for that colour).

        Elapsed time restarts at zero.  The next automatic transition still
        follows the canonical cycle with default durations.
        """
        if duration is None:
            duration = self.defaults.for_color(color)
        self._phase = Phase(LightColor(color), max(0.0, float(duration)))

    def __repr__(self) -> str:
        p = self._phase
        return f"TrafficLight({p.color.value} {p.elapsed:.2f}/{p.duration:.2f}s)"
