#!/usr/bin/env python3
"""
trafficsim/vehicle.py
=====================
A single vehicle moving along roads.

Each tick a vehicle picks a desired speed (free flow, limited by the car
ahead and by a red light at the end of its road), accelerates or brakes
toward it, advances, and on reaching the end of its road moves onto the
next one: the next entry of its precomputed route, or a random turn
offered by the downstream intersection.  With nowhere to go it leaves
the world.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from trafficsim.physics import approach_speed, clamp_advance, gap_to_leader
from trafficsim.road import Road
from trafficsim.traffic_policy import (
    SimulationPolicy,
    lane_for_road_id,
    safe_following_distance_m,
)

log = logging.getLogger("vehicle")

_FALLBACK_RNG = random.Random()


@dataclass(frozen=True)
class VehicleState:
    """Read-only copy of a vehicle for renderers and exporters."""

    id: str
    road_id: Optional[str]
    position: float
    speed: float
    lane: int
    waiting_time: float


@dataclass(eq=False)
class Vehicle:
    """A vehicle entity.

    Attributes
    ----------
    id : str
        Unique identifier (e.g. ``V12`` or ``N0``).
    road : Road or None
        Current road; *None* once the vehicle has left the world.
    position : float
        Metres from the start of ``road``.
    lane : int
        0 (inbound) or 1 (outbound).
    route : list of Road or None
        Optional precomputed sequence of roads to follow.
    speed : float
        Current speed in m/s.
    waiting_time : float
        Seconds accumulated below ``policy.stopped_speed_mps``.
    """

    id: str
    road: Optional[Road]
    position: float = 0.0
    lane: int = 0
    route: Optional[List[Road]] = None
    speed: float = 0.0
    length: float = 0.0
    max_speed: float = 0.0
    policy: SimulationPolicy = field(default_factory=SimulationPolicy, repr=False)
    route_index: int = field(default=0, repr=False)
    waiting_time: float = field(default=0.0, repr=False)

    def __post_init__(self) -> None:
        if self.lane not in (0, 1):
            raise ValueError(f"{self.id}: lane must be 0 or 1, got {self.lane!r}")
        if self.length <= 0.0:
            self.length = self.policy.vehicle_length_m
        if self.max_speed <= 0.0:
            self.max_speed = self.policy.max_speed_mps

    @property
    def active(self) -> bool:
        return self.road is not None

    # ── movement ──────────────────────────────────────────────────────────

    def update(self, dt: float, rng: Optional[random.Random] = None) -> None:
        """Advance one step of *dt* seconds; no-op once detached."""
        road = self.road
        if road is None:
            return
        p = self.policy

        desired = self.max_speed

        # Car following
        ahead = road.vehicle_ahead(self)
        gap = 0.0
        if ahead is not None:
            gap = gap_to_leader(self.position, ahead.position, ahead.length)
            if gap < safe_following_distance_m(self.speed, p):
                desired = min(desired, max(0.0, ahead.speed - p.follow_speed_drop_mps))

        # Signal compliance
        distance_to_end = road.distance_to_end(self.position)
        must_stop = False
        if distance_to_end < p.reaction_zone_m and road.downstream is not None:
            light = road.downstream.light_for(road)
            if light is not None and not light.allows_passage():
                desired = 0.0
                must_stop = True

        self.speed = approach_speed(self.speed, desired, p.accel_mps2, p.brake_mps2, dt)

        delta = self.speed * dt
        held_at_line = False
        if must_stop and delta >= distance_to_end - p.road_end_tolerance_m:
            delta = max(0.0, distance_to_end - p.stop_line_margin_m)
            self.speed = 0.0
            held_at_line = True

        if ahead is not None:
            limit = max(0.0, gap - p.standstill_gap_m)
            if delta > limit:
                delta = clamp_advance(delta, limit)
                self.speed = delta / dt if dt > 0.0 else 0.0

        self.position += delta

        if not held_at_line and self.position >= road.length - p.road_end_tolerance_m:
            self._advance_to_next_road(rng or _FALLBACK_RNG)

        if self.speed < p.stopped_speed_mps:
            self.waiting_time += dt

    def _advance_to_next_road(self, rng: random.Random) -> None:
        old = self.road
        old.remove_vehicle(self)

        next_road: Optional[Road] = None
        if self.route is not None and self.route_index < len(self.route):
            next_road = self.route[self.route_index]
            self.route_index += 1
        elif old.downstream is not None:
            options = old.downstream.turn_options(old)
            if options:
                next_road = rng.choice(options)

        if next_road is None:
            log.debug("%s left the world from %s", self.id, old.id)
            self.detach()
            return

        self.road = next_road
        self.lane = lane_for_road_id(next_road.id, self.lane)
        self.position = self.policy.entry_offset_m
        next_road.add_vehicle(self)
        log.debug("%s: %s -> %s lane=%d", self.id, old.id, next_road.id, self.lane)

    def detach(self) -> None:
        """Leave the world: no road, no position, no speed."""
        if self.road is not None:
            self.road.remove_vehicle(self)
        self.road = None
        self.position = 0.0
        self.speed = 0.0

    # ── views ─────────────────────────────────────────────────────────────

    def state(self) -> VehicleState:
        return VehicleState(
            id=self.id,
            road_id=self.road.id if self.road is not None else None,
            position=self.position,
            speed=self.speed,
            lane=self.lane,
            waiting_time=self.waiting_time,
        )

    def as_dict(self) -> Dict[str, Any]:
        """Serialisable mapping of ``id``, ``road``, ``position``,
        ``speed``, ``lane`` and ``waiting_time``.
        """
        return {
            "id": self.id,
            "road": self.road.id if self.road is not None else None,
            "position": self.position,
            "speed": self.speed,
            "lane": self.lane,
            "waiting_time": self.waiting_time,
        }
