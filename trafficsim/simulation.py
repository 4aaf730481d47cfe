#!/usr/bin/env python3
"""
trafficsim/simulation.py
========================
The world: roads, intersections, vehicles and metrics, advanced by a
fixed-step :meth:`Simulation.tick`.

Within one tick the order is fixed:

1. intersection priority countdowns,
2. signal strategy (which also advances every light once),
3. vehicle updates, detached vehicles removed and counted completed,
4. periodic spawning on inbound roads,
5. a metrics sample.

One re-entrant lock serialises ticks and reads.  Readers get copies or
frozen views (:class:`VehicleState`, :class:`LightState`,
:class:`WorldSnapshot`) rather than live references.
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from trafficsim.intersection import Intersection
from trafficsim.lights import LightColor, TrafficLight
from trafficsim.road import Road
from trafficsim.strategies import Strategy, apply_strategy
from trafficsim.traffic_policy import INBOUND_SUFFIX, TIMER_EPS, SimulationPolicy
from trafficsim.vehicle import Vehicle, VehicleState
from trafficstats.metrics import Metrics
from trafficstats.snapshot import MetricsSnapshot

log = logging.getLogger("simulation")


@dataclass(frozen=True)
class LightState:
    """Read-only view of one approach's signal."""

    intersection_id: str
    road_id: str
    color: LightColor
    duration: float
    remaining: float

    @property
    def allows_passage(self) -> bool:
        return self.color is LightColor.GREEN


@dataclass(frozen=True)
class WorldSnapshot:
    """Consistent copy of everything a renderer needs after one tick."""

    time: float
    vehicles: Tuple[VehicleState, ...]
    lights: Tuple[LightState, ...]
    created: int
    completed: int
    metrics: Optional[MetricsSnapshot]


class Simulation:
    """Single-owner world stepped by :meth:`tick`.

    Parameters
    ----------
    policy : SimulationPolicy or None
        Tunables for spawning and for vehicles created by the spawner.
    seed : int or None
        Seed for turn choices at intersections.
    spawning : bool
        Disable to run a closed scenario with only the vehicles added
        explicitly.
    """

    def __init__(
        self,
        policy: Optional[SimulationPolicy] = None,
        seed: Optional[int] = None,
        spawning: bool = True,
    ) -> None:
        self.policy = policy or SimulationPolicy()
        self.spawning = spawning
        self._lock = threading.RLock()
        self._rng = random.Random(seed)
        self._roads: List[Road] = []
        self._intersections: List[Intersection] = []
        self._vehicles: List[Vehicle] = []
        self._metrics = Metrics()
        self._sim_time = 0.0
        self._spawn_accumulator = 0.0
        self._next_vehicle_id = 1
        self._created = 0

    # ── construction ──────────────────────────────────────────────────────

    def add_road(self, road: Road) -> None:
        with self._lock:
            self._roads.append(road)

    def add_intersection(self, intersection: Intersection) -> None:
        with self._lock:
            self._intersections.append(intersection)

    def add_vehicle(self, vehicle: Vehicle) -> None:
        """Register *vehicle* and place it in its road's lane."""
        with self._lock:
            self._vehicles.append(vehicle)
            if vehicle.road is not None:
                vehicle.road.add_vehicle(vehicle)
            self._created += 1

    def clear(self) -> None:
        """Drop every entity and reset clock, counters and metrics."""
        with self._lock:
            for vehicle in self._vehicles:
                vehicle.detach()
            self._roads.clear()
            self._intersections.clear()
            self._vehicles.clear()
            self._metrics.clear()
            self._sim_time = 0.0
            self._spawn_accumulator = 0.0
            self._next_vehicle_id = 1
            self._created = 0

    # ── stepping ──────────────────────────────────────────────────────────

    def tick(self, dt: float, strategy: Optional[Strategy] = None) -> MetricsSnapshot:
        """Advance the world by *dt* seconds.

        Parameters
        ----------
        dt : float
            Fixed step in seconds; must be positive.
        strategy : FixedCycle, AdaptiveCycle or None
            Signal policy applied to every intersection.  With *None* the
            lights just run their canonical cycle.

        Returns
        -------
        MetricsSnapshot
            The sample taken at the end of the tick.
        """
        if dt <= 0.0:
            raise ValueError(f"dt must be positive, got {dt!r}")
        with self._lock:
            self._sim_time += dt

            for intersection in self._intersections:
                intersection.tick(dt)

            for intersection in self._intersections:
                apply_strategy(strategy, dt, intersection)

            still_active: List[Vehicle] = []
            exited = 0
            for vehicle in self._vehicles:
                vehicle.update(dt, self._rng)
                if vehicle.road is None:
                    exited += 1
                else:
                    still_active.append(vehicle)
            self._vehicles = still_active
            if exited:
                self._metrics.count_completed(exited)
                log.debug("t=%.2f %d vehicle(s) left the world", self._sim_time, exited)

            if self.spawning:
                self._spawn_accumulator += dt
                if self._spawn_accumulator >= self.policy.spawn_interval_s - TIMER_EPS:
                    self._spawn_accumulator = 0.0
                    self._try_spawn()

            return self._metrics.sample(self._sim_time, self._vehicles, self._intersections)

    def _try_spawn(self) -> None:
        """One new vehicle per inbound road whose entry is clear."""
        p = self.policy
        for road in list(self._roads):
            if not road.id.endswith(INBOUND_SUFFIX):
                continue
            blocked = any(
                v.position < p.spawn_clearance_m for v in road.vehicles_in_lane(0)
            )
            if blocked:
                continue
            vehicle = Vehicle(
                id=f"V{self._next_vehicle_id}",
                road=road,
                position=p.spawn_position_m,
                lane=0,
                policy=p,
            )
            self._next_vehicle_id += 1
            self.add_vehicle(vehicle)
            log.debug("t=%.2f spawned %s on %s", self._sim_time, vehicle.id, road.id)

    # ── preemption ────────────────────────────────────────────────────────

    def request_priority(self, intersection_id: str, road_id: str, duration: float) -> bool:
        """Preempt *road_id* at *intersection_id* for *duration* seconds.

        Returns *False* (and changes nothing) when either id is unknown.
        """
        with self._lock:
            intersection = self._intersection_by_id(intersection_id)
            if intersection is None:
                return False
            road = intersection.approach_by_id(road_id)
            if road is None:
                return False
            intersection.request_priority(road, duration)
            return True

    # ── reads ─────────────────────────────────────────────────────────────

    @property
    def sim_time(self) -> float:
        with self._lock:
            return self._sim_time

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def created_count(self) -> int:
        with self._lock:
            return self._created

    @property
    def completed_count(self) -> int:
        with self._lock:
            return self._metrics.completed

    def get_roads(self) -> List[Road]:
        with self._lock:
            return list(self._roads)

    def get_intersections(self) -> List[Intersection]:
        with self._lock:
            return list(self._intersections)

    def get_vehicles(self) -> List[Vehicle]:
        with self._lock:
            return list(self._vehicles)

    def get_lights(self) -> List[TrafficLight]:
        with self._lock:
            lights: List[TrafficLight] = []
            for intersection in self._intersections:
                lights.extend(intersection.lights().values())
            return lights

    def road_by_id(self, road_id: str) -> Optional[Road]:
        with self._lock:
            for road in self._roads:
                if road.id == road_id:
                    return road
            return None

    def _intersection_by_id(self, intersection_id: str) -> Optional[Intersection]:
        for intersection in self._intersections:
            if intersection.id == intersection_id:
                return intersection
        return None

    def intersection_by_id(self, intersection_id: str) -> Optional[Intersection]:
        with self._lock:
            return self._intersection_by_id(intersection_id)

    def vehicle_states(self) -> List[VehicleState]:
        with self._lock:
            return [v.state() for v in self._vehicles]

    def light_states(self) -> List[LightState]:
        with self._lock:
            states: List[LightState] = []
            for intersection in self._intersections:
                for road, light in intersection.lights().items():
                    phase = light.phase
                    states.append(LightState(
                        intersection_id=intersection.id,
                        road_id=road.id,
                        color=phase.color,
                        duration=phase.duration,
                        remaining=phase.remaining,
                    ))
            return states

    def metrics_history(self) -> List[MetricsSnapshot]:
        with self._lock:
            return self._metrics.history()

    def queue_lengths(self) -> Dict[str, int]:
        """Current waiting count per approach road id."""
        with self._lock:
            return {
                road.id: intersection.count_waiting(road)
                for intersection in self._intersections
                for road in intersection.approaches()
            }

    def snapshot(self) -> WorldSnapshot:
        with self._lock:
            return WorldSnapshot(
                time=self._sim_time,
                vehicles=tuple(self.vehicle_states()),
                lights=tuple(self.light_states()),
                created=self._created,
                completed=self._metrics.completed,
                metrics=self._metrics.latest(),
            )

    def vehicles_on_roads(self) -> int:
        """Vehicles registered in any lane of any road."""
        with self._lock:
            return sum(len(road.vehicles()) for road in self._roads)

    def __repr__(self) -> str:
        return (
            f"Simulation(t={self._sim_time:.2f}s, roads={len(self._roads)}, "
            f"vehicles={len(self._vehicles)})"
        )
