#!/usr/bin/env python3
"""
Fixed-rotation and demand-adaptive signal control tests.
"""

from __future__ import annotations

import unittest

from trafficsim.intersection import Intersection
from trafficsim.lights import LightColor, TrafficLight
from trafficsim.road import Road
from trafficsim.strategies import (
    AdaptiveCycle,
    FixedCycle,
    apply_strategy,
    make_strategy,
)
from trafficsim.vehicle import Vehicle

_ARMS = ("North", "South", "East", "West")


def _cross():
    inter = Intersection("I1")
    roads = {}
    for arm in _ARMS:
        road = Road(f"{arm}_in", 300)
        inter.add_incoming(road, TrafficLight(8, 2, 16))
        roads[arm] = road
    return inter, roads


def _queue(road: Road, count: int, prefix: str) -> None:
    """Stopped vehicles within the waiting zone at the end of *road*."""
    for i in range(count):
        vehicle = Vehicle(f"{prefix}{i}", road, position=road.length - 1.0 - 1.5 * i)
        road.add_vehicle(vehicle)


class AdaptiveCycleTests(unittest.TestCase):
    def _strategy(self) -> AdaptiveCycle:
        return AdaptiveCycle(base_green=5, k_per_vehicle=1, max_green=20, min_green_hold=3)

    def test_longest_queue_gets_scaled_green(self) -> None:
        inter, roads = _cross()
        _queue(roads["North"], 5, "N")
        strategy = self._strategy()
        strategy.apply(0.05, inter)

        north = inter.light_for(roads["North"])
        self.assertIs(north.color, LightColor.GREEN)
        self.assertEqual(north.phase.duration, min(20, 5 + 5 * 1))
        for arm in ("South", "East", "West"):
            light = inter.light_for(roads[arm])
            self.assertIs(light.color, LightColor.RED)
            self.assertEqual(light.phase.duration, 16.0)
        self.assertIs(strategy.current_green(inter), roads["North"])

    def test_green_duration_is_capped(self) -> None:
        self.assertEqual(self._strategy().green_duration(40), 20)

    def test_no_demand_leaves_lights_alone(self) -> None:
        inter, roads = _cross()
        strategy = self._strategy()
        strategy.apply(0.05, inter)
        for road in roads.values():
            self.assertIs(inter.light_for(road).color, LightColor.RED)
        self.assertIsNone(strategy.current_green(inter))

    def test_zero_demand_approach_never_chosen(self) -> None:
        inter, roads = _cross()
        _queue(roads["West"], 2, "W")
        strategy = self._strategy()
        for _ in range(100):
            strategy.apply(0.1, inter)
            for arm in ("North", "South", "East"):
                self.assertIsNot(inter.light_for(roads[arm]).color, LightColor.GREEN)

    def test_switch_waits_for_minimum_hold(self) -> None:
        inter, roads = _cross()
        _queue(roads["North"], 5, "N")
        strategy = self._strategy()
        strategy.apply(1.0, inter)
        self.assertIs(strategy.current_green(inter), roads["North"])

        _queue(roads["East"], 7, "E")
        strategy.apply(1.0, inter)
        strategy.apply(1.0, inter)
        self.assertIs(strategy.current_green(inter), roads["North"])
        self.assertIs(inter.light_for(roads["East"]).color, LightColor.RED)

        strategy.apply(1.0, inter)
        self.assertIs(strategy.current_green(inter), roads["East"])
        east = inter.light_for(roads["East"])
        self.assertIs(east.color, LightColor.GREEN)
        self.assertEqual(east.phase.duration, 12.0)
        self.assertIs(inter.light_for(roads["North"]).color, LightColor.RED)

    def test_expired_green_is_revived_for_same_queue(self) -> None:
        inter, roads = _cross()
        _queue(roads["North"], 5, "N")
        strategy = self._strategy()
        strategy.apply(0.05, inter)
        strategy.apply(10.0, inter)
        north = inter.light_for(roads["North"])
        self.assertIs(north.color, LightColor.GREEN)
        self.assertEqual(north.phase.elapsed, 0.0)

    def test_priority_suspends_policy(self) -> None:
        inter, roads = _cross()
        _queue(roads["North"], 5, "N")
        inter.request_priority(roads["South"], 5.0)
        strategy = self._strategy()
        strategy.apply(0.05, inter)
        self.assertIs(strategy.current_green(inter), roads["South"])
        self.assertIs(inter.light_for(roads["South"]).color, LightColor.GREEN)
        self.assertIs(inter.light_for(roads["North"]).color, LightColor.RED)

    def test_state_is_kept_per_intersection(self) -> None:
        first, first_roads = _cross()
        second = Intersection("I2")
        other = Road("Other_in", 300)
        second.add_incoming(other, TrafficLight(8, 2, 16))
        _queue(first_roads["North"], 3, "N")
        strategy = self._strategy()
        strategy.apply(0.05, first)
        strategy.apply(0.05, second)
        self.assertIs(strategy.current_green(first), first_roads["North"])
        self.assertIsNone(strategy.current_green(second))


class FixedCycleTests(unittest.TestCase):
    def test_four_switches_in_thirty_two_seconds(self) -> None:
        inter, _ = _cross()
        strategy = FixedCycle(switch_interval=8)
        for _ in range(640):
            apply_strategy(strategy, 0.05, inter)
        self.assertEqual(strategy.switches_for(inter), 4)
        self.assertEqual(strategy.index_for(inter), 0)

    def test_switch_sets_red_then_next_green(self) -> None:
        inter, roads = _cross()
        strategy = FixedCycle(switch_interval=8)
        for _ in range(160):
            apply_strategy(strategy, 0.05, inter)
        self.assertEqual(strategy.index_for(inter), 1)
        south = inter.light_for(roads["South"])
        self.assertIs(south.color, LightColor.GREEN)
        self.assertEqual(south.phase.duration, 8.0)
        north = inter.light_for(roads["North"])
        self.assertIs(north.color, LightColor.RED)
        self.assertEqual(north.phase.duration, 16.0)

    def test_non_positive_interval_rejected(self) -> None:
        with self.assertRaises(ValueError):
            FixedCycle(switch_interval=0)


class DispatchTests(unittest.TestCase):
    def test_no_strategy_only_advances_lights(self) -> None:
        inter, roads = _cross()
        apply_strategy(None, 4.0, inter)
        light = inter.light_for(roads["North"])
        self.assertIs(light.color, LightColor.RED)
        self.assertAlmostEqual(light.phase.elapsed, 4.0)

    def test_unsupported_strategy_rejected(self) -> None:
        inter, _ = _cross()
        with self.assertRaises(TypeError):
            apply_strategy(object(), 0.05, inter)

    def test_make_strategy_by_name(self) -> None:
        self.assertIsInstance(make_strategy("fixed"), FixedCycle)
        adaptive = make_strategy("Adaptive", max_green=30.0)
        self.assertIsInstance(adaptive, AdaptiveCycle)
        self.assertEqual(adaptive.max_green, 30.0)
        with self.assertRaises(ValueError):
            make_strategy("random")


if __name__ == "__main__":
    unittest.main()
