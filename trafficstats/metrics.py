#!/usr/bin/env python3
"""
trafficstats/metrics.py
=======================
Append-only history of simulation samples, with a pandas view and a
numpy summary for reports.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from trafficstats.snapshot import MetricsSnapshot

log = logging.getLogger("metrics")

BASE_COLUMNS = ("time", "avgWaiting", "completed", "active")


def queue_columns(snapshots: Iterable[MetricsSnapshot]) -> List[str]:
    """Sorted distinct road ids appearing in any snapshot."""
    ids = set()
    for snap in snapshots:
        ids.update(snap.queue_lengths.keys())
    return sorted(ids)


def history_frame(snapshots: Sequence[MetricsSnapshot]) -> pd.DataFrame:
    """Tabular form of *snapshots*.

    Columns are ``time, avgWaiting, completed, active`` followed by one
    column per road id (sorted); missing counts are 0.
    """
    roads = queue_columns(snapshots)
    rows = []
    for snap in snapshots:
        row = {
            "time": snap.time,
            "avgWaiting": snap.avg_waiting,
            "completed": snap.completed,
            "active": snap.active,
        }
        for road_id in roads:
            row[road_id] = snap.queue_lengths.get(road_id, 0)
        rows.append(row)
    return pd.DataFrame(rows, columns=list(BASE_COLUMNS) + roads)


class Metrics:
    """
    Collects one :class:`MetricsSnapshot` per simulation tick.

    Attributes:
        completed (int): Cumulative number of vehicles that have left the world.
    """

    def __init__(self) -> None:
        self.completed = 0
        self._history: List[MetricsSnapshot] = []

    def count_completed(self, n: int = 1) -> None:
        self.completed += n

    def sample(
        self,
        time: float,
        vehicles: Sequence[Any],
        intersections: Sequence[Any],
    ) -> MetricsSnapshot:
        """
        Take a sample and append it to the history.

        Args:
            time (float): Current simulation time; must not precede the last sample.
            vehicles (Sequence): Active vehicles (``waiting_time`` is averaged).
            intersections (Sequence): Queue length is taken for every approach
                of every intersection.

        Returns:
            MetricsSnapshot: The snapshot just appended.
        """
        if self._history and time < self._history[-1].time:
            raise ValueError(
                f"sample time {time} precedes last sample {self._history[-1].time}"
            )
        avg_waiting = 0.0
        if vehicles:
            avg_waiting = float(np.mean([v.waiting_time for v in vehicles]))
        queues: Dict[str, int] = {}
        for intersection in intersections:
            for road in intersection.approaches():
                queues[road.id] = intersection.count_waiting(road)
        snap = MetricsSnapshot(
            time=float(time),
            avg_waiting=avg_waiting,
            completed=self.completed,
            active=len(vehicles),
            queue_lengths=queues,
        )
        self._history.append(snap)
        return snap

    def history(self) -> List[MetricsSnapshot]:
        """Copy of every snapshot, oldest first."""
        return list(self._history)

    def latest(self) -> Optional[MetricsSnapshot]:
        return self._history[-1] if self._history else None

    def clear(self) -> None:
        self.completed = 0
        self._history = []

    def __len__(self) -> int:
        return len(self._history)

    def to_frame(self) -> pd.DataFrame:
        return history_frame(self._history)

    def summary(self) -> Dict[str, Any]:
        """
        Aggregate statistics over the whole history.

        Returns:
            dict: ``samples``, ``completed``, ``mean_avg_waiting``,
            ``peak_avg_waiting``, ``peak_active`` and ``peak_queues``
            (road id → largest queue seen).
        """
        if not self._history:
            return {
                "samples": 0,
                "completed": self.completed,
                "mean_avg_waiting": 0.0,
                "peak_avg_waiting": 0.0,
                "peak_active": 0,
                "peak_queues": {},
            }
        waiting = np.array([s.avg_waiting for s in self._history], dtype=float)
        active = np.array([s.active for s in self._history], dtype=int)
        roads = queue_columns(self._history)
        peak_queues: Dict[str, int] = {}
        if roads:
            queues = np.array(
                [[s.queue_lengths.get(r, 0) for r in roads] for s in self._history],
                dtype=int,
            )
            peak_queues = {r: int(q) for r, q in zip(roads, queues.max(axis=0))}
        return {
            "samples": len(self._history),
            "completed": self.completed,
            "mean_avg_waiting": float(waiting.mean()),
            "peak_avg_waiting": float(waiting.max()),
            "peak_active": int(active.max()),
            "peak_queues": peak_queues,
        }
