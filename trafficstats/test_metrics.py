#!/usr/bin/env python3
"""
Metrics sampling, history and summary tests.
"""

from __future__ import annotations

import unittest
from types import SimpleNamespace

from trafficsim.intersection import Intersection
from trafficsim.lights import TrafficLight
from trafficsim.road import Road
from trafficsim.vehicle import Vehicle
from trafficstats.metrics import Metrics, queue_columns
from trafficstats.snapshot import MetricsSnapshot


def _junction():
    inter = Intersection("I1")
    north = Road("North_in", 300)
    south = Road("South_in", 300)
    inter.add_incoming(north, TrafficLight(8, 2, 16))
    inter.add_incoming(south, TrafficLight(8, 2, 16))
    for i in range(3):
        north.add_vehicle(Vehicle(f"N{i}", north, position=295.0 - i))
    return inter


class MetricsTests(unittest.TestCase):
    def test_sample_averages_waiting_time(self) -> None:
        metrics = Metrics()
        vehicles = [SimpleNamespace(waiting_time=w) for w in (1.0, 2.0, 6.0)]
        snap = metrics.sample(0.5, vehicles, [])
        self.assertAlmostEqual(snap.avg_waiting, 3.0)
        self.assertEqual(snap.active, 3)
        self.assertEqual(snap.completed, 0)

    def test_empty_world_has_zero_average(self) -> None:
        snap = Metrics().sample(0.0, [], [])
        self.assertEqual(snap.avg_waiting, 0.0)
        self.assertEqual(snap.active, 0)

    def test_queue_lengths_per_approach(self) -> None:
        metrics = Metrics()
        snap = metrics.sample(1.0, [], [_junction()])
        self.assertEqual(dict(snap.queue_lengths), {"North_in": 3, "South_in": 0})

    def test_completed_is_cumulative(self) -> None:
        metrics = Metrics()
        metrics.count_completed()
        metrics.count_completed(2)
        self.assertEqual(metrics.sample(1.0, [], []).completed, 3)
        metrics.count_completed()
        self.assertEqual(metrics.sample(2.0, [], []).completed, 4)

    def test_history_is_an_ordered_copy(self) -> None:
        metrics = Metrics()
        for t in (0.1, 0.2, 0.3):
            metrics.sample(t, [], [])
        history = metrics.history()
        history.clear()
        self.assertEqual([s.time for s in metrics.history()], [0.1, 0.2, 0.3])
        self.assertEqual(metrics.latest().time, 0.3)
        self.assertEqual(len(metrics), 3)

    def test_time_must_not_go_backwards(self) -> None:
        metrics = Metrics()
        metrics.sample(1.0, [], [])
        with self.assertRaises(ValueError):
            metrics.sample(0.5, [], [])

    def test_snapshot_queue_lengths_are_read_only(self) -> None:
        source = {"A_in": 1}
        snap = MetricsSnapshot(0.0, 0.0, 0, 0, source)
        source["A_in"] = 9
        self.assertEqual(snap.queue_lengths["A_in"], 1)
        with self.assertRaises(TypeError):
            snap.queue_lengths["A_in"] = 2

    def test_frame_fills_missing_roads(self) -> None:
        metrics = Metrics()
        metrics._history = [
            MetricsSnapshot(0.0, 0.0, 0, 1, {"B_in": 2}),
            MetricsSnapshot(1.0, 0.5, 1, 0, {"A_in": 4}),
        ]
        frame = metrics.to_frame()
        self.assertEqual(
            list(frame.columns),
            ["time", "avgWaiting", "completed", "active", "A_in", "B_in"],
        )
        self.assertEqual(frame["A_in"].tolist(), [0, 4])
        self.assertEqual(frame["B_in"].tolist(), [2, 0])

    def test_summary(self) -> None:
        metrics = Metrics()
        metrics._history = [
            MetricsSnapshot(0.0, 1.0, 0, 4, {"A_in": 2}),
            MetricsSnapshot(1.0, 3.0, 2, 6, {"A_in": 5, "B_in": 1}),
        ]
        summary = metrics.summary()
        self.assertEqual(summary["samples"], 2)
        self.assertAlmostEqual(summary["mean_avg_waiting"], 2.0)
        self.assertAlmostEqual(summary["peak_avg_waiting"], 3.0)
        self.assertEqual(summary["peak_active"], 6)
        self.assertEqual(summary["peak_queues"], {"A_in": 5, "B_in": 1})

    def test_summary_of_empty_history(self) -> None:
        self.assertEqual(Metrics().summary()["samples"], 0)

    def test_queue_columns_sorted(self) -> None:
        snaps = [
            MetricsSnapshot(0.0, 0.0, 0, 0, {"West_in": 0, "East_in": 1}),
            MetricsSnapshot(0.1, 0.0, 0, 0, {"North_in": 0}),
        ]
        self.assertEqual(queue_columns(snaps), ["East_in", "North_in", "West_in"])


if __name__ == "__main__":
    unittest.main()
