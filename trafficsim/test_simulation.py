#!/usr/bin/env python3
"""
World-level tests: tick ordering, conservation of vehicles, spawning,
preemption through the simulation and the default cross world.
"""

from __future__ import annotations

import unittest

from trafficsim.intersection import Intersection
from trafficsim.lights import LightColor, TrafficLight
from trafficsim.network import CrossLayout, build_cross_world
from trafficsim.road import Road
from trafficsim.simulation import Simulation
from trafficsim.strategies import AdaptiveCycle, FixedCycle, make_strategy
from trafficsim.vehicle import Vehicle


class DefaultWorldTests(unittest.TestCase):
    def test_cross_world_layout(self) -> None:
        sim = build_cross_world(spawning=False)
        self.assertEqual(len(sim.get_roads()), 8)
        self.assertEqual(len(sim.get_intersections()), 1)
        self.assertEqual(len(sim.get_vehicles()), 20)
        self.assertEqual(sim.created_count, 20)

        inter = sim.intersection_by_id("I1")
        colors = {s.road_id: (s.color, s.duration) for s in sim.light_states()}
        self.assertEqual(colors["North_in"], (LightColor.GREEN, 6.0))
        self.assertEqual(colors["West_in"], (LightColor.GREEN, 6.0))
        self.assertEqual(colors["South_in"], (LightColor.RED, 16.0))
        self.assertEqual(colors["East_in"], (LightColor.RED, 16.0))

        north_in = sim.road_by_id("North_in")
        self.assertEqual(
            [r.id for r in inter.turn_options(north_in)],
            ["South_out", "East_out", "West_out"],
        )
        positions = sorted(v.position for v in north_in.vehicles())
        self.assertEqual(positions, [5.0, 17.0, 29.0, 41.0, 53.0])

    def test_layout_overrides(self) -> None:
        layout = CrossLayout(vehicles_per_road=0, road_length_m=120.0)
        sim = build_cross_world(layout=layout, spawning=False)
        self.assertEqual(sim.get_vehicles(), [])
        self.assertTrue(all(r.length == 120.0 for r in sim.get_roads()))


class TickTests(unittest.TestCase):
    def test_non_positive_dt_rejected(self) -> None:
        sim = Simulation()
        with self.assertRaises(ValueError):
            sim.tick(0.0)

    def test_clock_and_metrics_advance_every_tick(self) -> None:
        sim = build_cross_world(seed=1)
        for _ in range(40):
            sim.tick(0.25, FixedCycle(8))
        self.assertAlmostEqual(sim.sim_time, 10.0)
        history = sim.metrics_history()
        self.assertEqual(len(history), 40)
        times = [s.time for s in history]
        self.assertEqual(times, sorted(times))
        self.assertEqual(
            set(history[-1].queue_lengths),
            {"North_in", "South_in", "East_in", "West_in"},
        )

    def test_vehicles_are_conserved(self) -> None:
        sim = build_cross_world(seed=7)
        strategy = make_strategy("adaptive")
        for _ in range(3000):
            sim.tick(0.05, strategy)
            self.assertEqual(
                sim.vehicles_on_roads() + sim.completed_count,
                sim.created_count,
            )
            self.assertEqual(len(sim.get_vehicles()), sim.vehicles_on_roads())
        self.assertGreater(sim.completed_count, 0)
        self.assertGreater(sim.created_count, 20)

    def test_seed_makes_runs_repeatable(self) -> None:
        def run(seed):
            sim = build_cross_world(seed=seed)
            strategy = make_strategy("adaptive")
            for _ in range(800):
                sim.tick(0.05, strategy)
            return [(s.id, s.road_id, round(s.position, 6)) for s in sim.vehicle_states()]

        self.assertEqual(run(11), run(11))


class SpawnTests(unittest.TestCase):
    def test_spawns_on_inbound_roads_only(self) -> None:
        sim = Simulation()
        sim.add_road(Road("A_in", 300))
        sim.add_road(Road("A_out", 300))
        sim.tick(3.0)
        vehicles = sim.get_vehicles()
        self.assertEqual([v.id for v in vehicles], ["V1"])
        self.assertEqual(vehicles[0].road.id, "A_in")
        self.assertEqual(vehicles[0].position, 5.0)
        self.assertEqual(vehicles[0].lane, 0)

    def test_blocked_entry_prevents_spawn(self) -> None:
        sim = Simulation()
        road = Road("A_in", 300)
        sim.add_road(road)
        sim.add_vehicle(Vehicle("slow", road, position=6.0, max_speed=1e-6))
        sim.tick(3.0)
        self.assertEqual([v.id for v in sim.get_vehicles()], ["slow"])
        self.assertEqual(sim.created_count, 1)

    def test_spawning_can_be_disabled(self) -> None:
        sim = Simulation(spawning=False)
        sim.add_road(Road("A_in", 300))
        sim.tick(3.0)
        self.assertEqual(sim.get_vehicles(), [])


class PriorityThroughSimulationTests(unittest.TestCase):
    def test_priority_road_green_after_tick(self) -> None:
        sim = build_cross_world(seed=2)
        self.assertTrue(sim.request_priority("I1", "South_in", 1.0))
        sim.tick(0.25, AdaptiveCycle(5, 1, 20, 3))
        colors = {s.road_id: s.color for s in sim.light_states()}
        self.assertIs(colors["South_in"], LightColor.GREEN)
        self.assertIs(colors["North_in"], LightColor.RED)

    def test_priority_clears_before_strategy_runs(self) -> None:
        sim = build_cross_world(seed=2)
        inter = sim.intersection_by_id("I1")
        sim.request_priority("I1", "South_in", 1.0)
        for _ in range(3):
            sim.tick(0.25)
        self.assertTrue(inter.has_priority())
        sim.tick(0.25)
        self.assertFalse(inter.has_priority())

    def test_unknown_ids_are_rejected_without_change(self) -> None:
        sim = build_cross_world(seed=2)
        before = sim.light_states()
        self.assertFalse(sim.request_priority("I9", "South_in", 5.0))
        self.assertFalse(sim.request_priority("I1", "South_out", 5.0))
        self.assertEqual(sim.light_states(), before)


class ReadViewTests(unittest.TestCase):
    def test_reads_are_copies(self) -> None:
        sim = build_cross_world(spawning=False)
        sim.get_vehicles().clear()
        sim.get_roads().clear()
        self.assertEqual(len(sim.get_vehicles()), 20)
        self.assertEqual(len(sim.get_roads()), 8)
        self.assertEqual(len(sim.get_lights()), 4)

    def test_snapshot_is_consistent(self) -> None:
        sim = build_cross_world(seed=5)
        sim.tick(0.05)
        snap = sim.snapshot()
        self.assertEqual(len(snap.vehicles), len(sim.get_vehicles()))
        self.assertEqual(len(snap.lights), 4)
        self.assertEqual(snap.created, 20)
        self.assertIsNotNone(snap.metrics)
        self.assertAlmostEqual(snap.time, 0.05)

    def test_clear_resets_world(self) -> None:
        sim = build_cross_world(seed=5)
        sim.tick(0.05)
        sim.clear()
        self.assertEqual(sim.get_roads(), [])
        self.assertEqual(sim.created_count, 0)
        self.assertEqual(sim.sim_time, 0.0)
        self.assertEqual(sim.metrics_history(), [])

    def test_lights_without_intersection(self) -> None:
        sim = Simulation()
        inter = Intersection("X")
        inter.add_incoming(Road("Solo_in", 50), TrafficLight(1, 1, 1))
        sim.add_intersection(inter)
        self.assertEqual(len(sim.get_lights()), 1)


if __name__ == "__main__":
    unittest.main()
