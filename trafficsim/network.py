#!/usr/bin/env python3
"""
trafficsim/network.py
=====================
World builders.

Roads come in ``<Name>_in`` / ``<Name>_out`` pairs per arm; only the
``_in`` road of an arm carries a light.  :func:`build_cross_world`
builds the default scenario: a single four-arm crossroads ``I1`` with
North and West starting green and a short queue seeded on every
inbound road.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from trafficsim.intersection import Intersection
from trafficsim.lights import LightColor, TrafficLight
from trafficsim.road import Road
from trafficsim.simulation import Simulation
from trafficsim.traffic_policy import INBOUND_SUFFIX, OUTBOUND_SUFFIX, SimulationPolicy
from trafficsim.vehicle import Vehicle

ARMS: Tuple[str, ...] = ("North", "South", "East", "West")

# Exit arm order per approach: straight, left, right
TURNS: Dict[str, Tuple[str, str, str]] = {
    "North": ("South", "East", "West"),
    "South": ("North", "West", "East"),
    "East": ("West", "North", "South"),
    "West": ("East", "South", "North"),
}


@dataclass
class CrossLayout:
    """Parameters of a four-arm crossroads.

    Parameters
    ----------
    intersection_id : str
        Identifier of the junction.
    road_length_m : float
        Length of every ``_in`` and ``_out`` road.
    light_durations : tuple of float
        Default (green, yellow, red) for every light.
    initial_green : dict
        Arm name → seconds of green at start.  Arms not listed start RED
        with ``initial_red_s``.
    initial_red_s : float
        Red duration at start for the arms not in ``initial_green``.
    vehicles_per_road : int
        Vehicles seeded on each ``_in`` road (ids like ``N0``, ``N1``).
    first_vehicle_m, vehicle_spacing_m : float
        Position of the first seeded vehicle and spacing between them.
    """

    intersection_id: str = "I1"
    road_length_m: float = 300.0
    light_durations: Tuple[float, float, float] = (8.0, 2.0, 16.0)
    initial_green: Dict[str, float] = field(
        default_factory=lambda: {"North": 6.0, "West": 6.0}
    )
    initial_red_s: float = 16.0
    vehicles_per_road: int = 5
    first_vehicle_m: float = 5.0
    vehicle_spacing_m: float = 12.0


def road_pair(arm: str, length: float) -> Tuple[Road, Road]:
    """``(<arm>_in, <arm>_out)`` roads of *length* metres."""
    return Road(f"{arm}{INBOUND_SUFFIX}", length), Road(f"{arm}{OUTBOUND_SUFFIX}", length)


def build_cross_intersection(
    sim: Simulation,
    layout: Optional[CrossLayout] = None,
    policy: Optional[SimulationPolicy] = None,
    arms: Sequence[str] = ARMS,
) -> Intersection:
    """Add a crossroads with its roads, lights and turn options to *sim*.

    Returns
    -------
    Intersection
        The junction, already registered with *sim*.
    """
    layout = layout or CrossLayout()
    policy = policy or sim.policy
    inter = Intersection(layout.intersection_id, policy=policy)
    sim.add_intersection(inter)

    inbound: Dict[str, Road] = {}
    outbound: Dict[str, Road] = {}
    for arm in arms:
        road_in, road_out = road_pair(arm, layout.road_length_m)
        inbound[arm] = road_in
        outbound[arm] = road_out
        sim.add_road(road_in)
        sim.add_road(road_out)

    green, yellow, red = layout.light_durations
    for arm in arms:
        light = TrafficLight(green, yellow, red)
        if arm in layout.initial_green:
            light.set_state(LightColor.GREEN, layout.initial_green[arm])
        else:
            light.set_state(LightColor.RED, layout.initial_red_s)
        inter.add_incoming(inbound[arm], light)

    for arm in arms:
        inter.add_outgoing(outbound[arm])

    for arm in arms:
        exits: List[Road] = [outbound[a] for a in TURNS.get(arm, ()) if a in outbound]
        if exits:
            inter.set_turn_options(inbound[arm], exits)

    for arm in arms:
        road_in = inbound[arm]
        for i in range(layout.vehicles_per_road):
            sim.add_vehicle(Vehicle(
                id=f"{arm[0]}{i}",
                road=road_in,
                position=layout.first_vehicle_m + i * layout.vehicle_spacing_m,
                lane=0,
                policy=policy,
            ))
    return inter


def build_cross_world(
    layout: Optional[CrossLayout] = None,
    policy: Optional[SimulationPolicy] = None,
    seed: Optional[int] = None,
    spawning: bool = True,
) -> Simulation:
    """Default scenario: one crossroads on a fresh :class:`Simulation`."""
    sim = Simulation(policy=policy, seed=seed, spawning=spawning)
    build_cross_intersection(sim, layout=layout, policy=policy)
    return sim
