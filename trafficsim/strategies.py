#!/usr/bin/env python3
"""
trafficsim/strategies.py
========================
Signal-control policies.

The set of strategies is closed: :class:`FixedCycle` rotates green
through the approaches on a fixed interval, :class:`AdaptiveCycle`
gives green to the longest queue with a demand-scaled duration.  The
simulation loop calls :func:`apply_strategy` once per intersection per
tick; it advances every light of that intersection exactly once and then
applies the policy.

Both strategies keep their bookkeeping per intersection id, so a single
instance can drive several intersections.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional, Union

from trafficsim.intersection import Intersection
from trafficsim.lights import LightColor
from trafficsim.road import Road
from trafficsim.traffic_policy import TIMER_EPS

log = logging.getLogger("strategies")


def advance_lights(dt: float, intersection: Intersection) -> None:
    """Advance every controlled light of *intersection* by *dt*."""
    for light in intersection.lights().values():
        light.update(dt)


# ── Fixed cycle ───────────────────────────────────────────────────────────────

@dataclass
class _RotationState:
    timer: float = 0.0
    index: int = 0
    switches: int = 0


@dataclass
class FixedCycle:
    """Rotate green through the approaches every *switch_interval* seconds.

    Approaches are visited in registration order.  On each switch the
    approach at the current index is set RED (default red duration) and
    the next one GREEN (default green duration).
    """

    switch_interval: float
    _state: Dict[str, _RotationState] = field(default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if self.switch_interval <= 0.0:
            raise ValueError("switch_interval must be positive")

    def apply(self, dt: float, intersection: Intersection) -> None:
        advance_lights(dt, intersection)
        state = self._state.setdefault(intersection.id, _RotationState())
        state.timer += dt
        if state.timer < self.switch_interval - TIMER_EPS:
            return
        state.timer = 0.0

        lights = list(intersection.lights().values())
        if not lights:
            return
        state.index %= len(lights)
        prev = lights[state.index]
        prev.set_state(LightColor.RED, prev.red_duration)
        state.index = (state.index + 1) % len(lights)
        nxt = lights[state.index]
        nxt.set_state(LightColor.GREEN, nxt.green_duration)
        state.switches += 1
        log.debug("%s: fixed rotation -> approach #%d", intersection.id, state.index)

    def index_for(self, intersection: Intersection) -> int:
        """Current rotation index at *intersection* (0 before any switch)."""
        state = self._state.get(intersection.id)
        return state.index if state else 0

    def switches_for(self, intersection: Intersection) -> int:
        state = self._state.get(intersection.id)
        return state.switches if state else 0


# ── Adaptive cycle ────────────────────────────────────────────────────────────

@dataclass
class _GreenAssignment:
    road: Optional[Road] = None
    held: float = 0.0


@dataclass
class AdaptiveCycle:
    """Give green to the approach with the longest queue.

    Parameters
    ----------
    base_green : float
        Green duration with no queue (seconds).
    k_per_vehicle : float
        Extra green seconds per waiting vehicle.
    max_green : float
        Cap on the green duration.
    min_green_hold : float
        A newly assigned green is never switched away before this long.
    """

    base_green: float
    k_per_vehicle: float
    max_green: float
    min_green_hold: float
    _state: Dict[str, _GreenAssignment] = field(default_factory=dict, repr=False)

    def green_duration(self, waiting: int) -> float:
        return min(self.max_green, self.base_green + self.k_per_vehicle * waiting)

    def apply(self, dt: float, intersection: Intersection) -> None:
        advance_lights(dt, intersection)
        state = self._state.setdefault(intersection.id, _GreenAssignment())
        state.held += dt

        # Preemption suspends the policy; adopt the priority road.
        if intersection.has_priority():
            if intersection.priority_road is not None:
                state.road = intersection.priority_road
                state.held = 0.0
            return

        best: Optional[Road] = None
        max_waiting = -1
        for road in intersection.approaches():
            waiting = intersection.count_waiting(road)
            if waiting > max_waiting:
                max_waiting = waiting
                best = road
        if best is None or max_waiting <= 0:
            return

        current = state.road
        if current is None:
            self._assign_green(intersection, state, best, max_waiting)
            return

        if best is not current:
            if state.held + TIMER_EPS < self.min_green_hold:
                return
            self._assign_green(intersection, state, best, max_waiting)
            return

        # Same approach keeps demand: revive an expired green.
        light = intersection.light_for(current)
        if light is not None and light.color is not LightColor.GREEN:
            light.set_state(LightColor.GREEN, self.green_duration(max_waiting))

    def _assign_green(
        self,
        intersection: Intersection,
        state: _GreenAssignment,
        road: Road,
        waiting: int,
    ) -> None:
        duration = self.green_duration(waiting)
        for other, light in intersection.lights().items():
            if other is road:
                light.set_state(LightColor.GREEN, duration)
            else:
                light.set_state(LightColor.RED, light.red_duration)
        state.road = road
        state.held = 0.0
        log.debug("%s: adaptive green -> %s (%d waiting, %.1fs)",
                  intersection.id, road.id, waiting, duration)

    def current_green(self, intersection: Intersection) -> Optional[Road]:
        state = self._state.get(intersection.id)
        return state.road if state else None

    def held_for(self, intersection: Intersection) -> float:
        state = self._state.get(intersection.id)
        return state.held if state else 0.0


Strategy = Union[FixedCycle, AdaptiveCycle]


def apply_strategy(
    strategy: Optional[Strategy],
    dt: float,
    intersection: Intersection,
) -> None:
    """Run one tick of signal control at *intersection*.

    With no strategy the lights simply follow their canonical cycle.
    """
    if strategy is None:
        advance_lights(dt, intersection)
    elif isinstance(strategy, (FixedCycle, AdaptiveCycle)):
        strategy.apply(dt, intersection)
    else:
        raise TypeError(f"unsupported strategy {type(strategy).__name__}")


def make_strategy(name: str, **params: float) -> Strategy:
    """Build a strategy from its name (``"fixed"`` or ``"adaptive"``)."""
    key = name.strip().lower()
    if key == "fixed":
        return FixedCycle(switch_interval=params.get("switch_interval", 8.0))
    if key == "adaptive":
        return AdaptiveCycle(
            base_green=params.get("base_green", 5.0),
            k_per_vehicle=params.get("k_per_vehicle", 1.0),
            max_green=params.get("max_green", 20.0),
            min_green_hold=params.get("min_green_hold", 3.0),
        )
    raise ValueError(f"unknown strategy {name!r}")
