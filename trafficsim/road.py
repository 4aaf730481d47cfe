#!/usr/bin/env python3
"""
trafficsim/road.py
==================
One-way road segment with two lanes, and the queue :class:`Sensor`
that watches its downstream end.

Lane 0 is the inbound lane (towards an intersection), lane 1 the
outbound lane.  A road never owns its intersections; ``upstream`` and
``downstream`` are plain references filled in by the world builder.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from trafficsim.intersection import Intersection
    from trafficsim.vehicle import Vehicle


class Road:
    """A road of fixed *length* metres holding vehicles in two lanes.

    Parameters
    ----------
    road_id : str
        Unique identifier.  The ``_in`` / ``_out`` suffix decides which
        lane an entering vehicle uses.
    length : float
        Length in metres.
    upstream, downstream : Intersection or None
        Intersections at the start and end of the road.
    """

    def __init__(
        self,
        road_id: str,
        length: float,
        upstream: Optional["Intersection"] = None,
        downstream: Optional["Intersection"] = None,
    ) -> None:
        if length <= 0.0:
            raise ValueError(f"road {road_id!r} must have a positive length")
        self.id = road_id
        self.length = float(length)
        self.upstream = upstream
        self.downstream = downstream
        self._lanes: List[List["Vehicle"]] = [[], []]

    # ── membership ────────────────────────────────────────────────────────

    def add_vehicle(self, vehicle: "Vehicle") -> None:
        """Register *vehicle* in the lane given by ``vehicle.lane``."""
        lane = self._lanes[0] if vehicle.lane == 0 else self._lanes[1]
        if vehicle not in lane:
            lane.append(vehicle)

    def remove_vehicle(self, vehicle: "Vehicle") -> None:
        for lane in self._lanes:
            if vehicle in lane:
                lane.remove(vehicle)

    def __contains__(self, vehicle: object) -> bool:
        return any(vehicle in lane for lane in self._lanes)

    # ── queries ───────────────────────────────────────────────────────────

    def vehicles(self) -> List["Vehicle"]:
        """All vehicles, lane 0 first (a copy)."""
        return list(self._lanes[0]) + list(self._lanes[1])

    def vehicles_in_lane(self, lane: int) -> List["Vehicle"]:
        return list(self._lanes[0] if lane == 0 else self._lanes[1])

    def vehicle_ahead(self, vehicle: "Vehicle") -> Optional["Vehicle"]:
        """Nearest vehicle strictly ahead of *vehicle* in its lane."""
        ahead: Optional["Vehicle"] = None
        for other in self._lanes[0] if vehicle.lane == 0 else self._lanes[1]:
            if other is vehicle or other.position <= vehicle.position:
                continue
            if ahead is None or other.position < ahead.position:
                ahead = other
        return ahead

    def distance_to_end(self, position: float) -> float:
        return self.length - position

    def __repr__(self) -> str:
        return f"Road({self.id!r}, {self.length:.0f}m, {len(self.vehicles())} veh)"


class Sensor:
    """Queue detector at the downstream end of a road.

    A vehicle counts as waiting when it is within *waiting_distance_m* of
    the road end and no faster than *waiting_speed_mps*.
    """

    def __init__(self, road: Road, waiting_distance_m: float, waiting_speed_mps: float) -> None:
        self.road = road
        self.waiting_distance_m = waiting_distance_m
        self.waiting_speed_mps = waiting_speed_mps

    def count_waiting(self) -> int:
        count = 0
        for vehicle in self.road.vehicles():
            near_end = self.road.distance_to_end(vehicle.position) <= self.waiting_distance_m
            if near_end and vehicle.speed <= self.waiting_speed_mps:
                count += 1
        return count
