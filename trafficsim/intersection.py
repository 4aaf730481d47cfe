#!/usr/bin/env python3
"""
trafficsim/intersection.py
==========================
Signalised junction: incoming roads with their traffic lights, outgoing
roads with per-approach turn options, queue counting and a priority
(preemption) override.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from trafficsim.lights import LightColor, TrafficLight
from trafficsim.road import Road, Sensor
from trafficsim.traffic_policy import INBOUND_SUFFIX, OUTBOUND_SUFFIX, SimulationPolicy

log = logging.getLogger("intersection")


def _corridor(road_id: str) -> str:
    """``"North_in"`` and ``"North_out"`` share the corridor ``"North"``."""
    for suffix in (INBOUND_SUFFIX, OUTBOUND_SUFFIX):
        if road_id.endswith(suffix):
            return road_id[: -len(suffix)]
    return road_id


class Intersection:
    """A junction controlling its approaches with one light each.

    Parameters
    ----------
    intersection_id : str
        Unique identifier, e.g. ``"I1"``.
    policy : SimulationPolicy or None
        Supplies the queue-detection thresholds.
    allow_u_turn_fallback : bool
        When an approach has no explicit turn options every outgoing road
        is offered.  Set to *False* to leave out the approach's own
        corridor (``X_in`` never falls back onto ``X_out``).
    """

    def __init__(
        self,
        intersection_id: str,
        policy: Optional[SimulationPolicy] = None,
        allow_u_turn_fallback: bool = True,
    ) -> None:
        self.id = intersection_id
        self.policy = policy or SimulationPolicy()
        self.allow_u_turn_fallback = allow_u_turn_fallback
        self._lights: Dict[Road, TrafficLight] = {}
        self._sensors: Dict[Road, Sensor] = {}
        self._outgoing: List[Road] = []
        self._turn_options: Dict[Road, List[Road]] = {}
        self._priority_road: Optional[Road] = None
        self._priority_remaining: float = 0.0

    # ── topology ──────────────────────────────────────────────────────────

    def add_incoming(self, road: Road, light: TrafficLight) -> None:
        """Register *road* as an approach controlled by *light*."""
        self._lights[road] = light
        self._sensors[road] = Sensor(
            road, self.policy.waiting_distance_m, self.policy.waiting_speed_mps,
        )
        if road.downstream is None:
            road.downstream = self

    def add_outgoing(self, road: Road) -> None:
        if road not in self._outgoing:
            self._outgoing.append(road)
        if road.upstream is None:
            road.upstream = self

    def set_turn_options(self, incoming: Road, options: List[Road]) -> None:
        self._turn_options[incoming] = list(options)

    def turn_options(self, incoming: Road) -> List[Road]:
        """Outgoing roads a vehicle leaving *incoming* may take."""
        options = self._turn_options.get(incoming)
        if options is not None:
            return list(options)
        if self.allow_u_turn_fallback:
            return list(self._outgoing)
        corridor = _corridor(incoming.id)
        return [r for r in self._outgoing if _corridor(r.id) != corridor]

    def outgoing_roads(self) -> List[Road]:
        return list(self._outgoing)

    def approaches(self) -> List[Road]:
        """Controlled incoming roads in registration order."""
        return list(self._lights)

    def approach_by_id(self, road_id: str) -> Optional[Road]:
        for road in self._lights:
            if road.id == road_id:
                return road
        return None

    def light_for(self, road: Road) -> Optional[TrafficLight]:
        return self._lights.get(road)

    def lights(self) -> Dict[Road, TrafficLight]:
        return dict(self._lights)

    # ── queues ────────────────────────────────────────────────────────────

    def count_waiting(self, road: Road) -> int:
        """Vehicles queued at the end of *road*; 0 for unknown roads."""
        sensor = self._sensors.get(road)
        if sensor is None:
            sensor = Sensor(road, self.policy.waiting_distance_m, self.policy.waiting_speed_mps)
        return sensor.count_waiting()

    # ── preemption ────────────────────────────────────────────────────────

    def request_priority(self, road: Road, duration: float) -> None:
        """Force *road* GREEN for *duration* seconds and every other approach RED.

        Requests for roads this intersection does not control are ignored.
        """
        if road not in self._lights:
            log.debug("%s: priority for unknown road %s ignored", self.id, road.id)
            return
        duration = max(0.0, float(duration))
        self._priority_road = road
        self._priority_remaining = duration
        for other, light in self._lights.items():
            if other is road:
                light.set_state(LightColor.GREEN, duration)
            else:
                light.set_state(LightColor.RED, light.red_duration)
        log.info("%s: priority granted to %s for %.1fs", self.id, road.id, duration)

    def tick(self, dt: float) -> None:
        """Count down an active priority; clear it once it runs out.

        Choosing the next green approach is left to the strategy.
        """
        if self._priority_remaining <= 0.0:
            return
        self._priority_remaining -= dt
        if self._priority_remaining <= 0.0:
            log.info("%s: priority for %s expired", self.id,
                     self._priority_road.id if self._priority_road else "?")
            self._priority_remaining = 0.0
            self._priority_road = None

    def has_priority(self) -> bool:
        return self._priority_road is not None and self._priority_remaining > 0.0

    @property
    def priority_road(self) -> Optional[Road]:
        return self._priority_road

    @property
    def priority_remaining(self) -> float:
        return self._priority_remaining

    def __repr__(self) -> str:
        return f"Intersection({self.id!r}, {len(self._lights)} approaches)"
