#!/usr/bin/env python3
"""
trafficstats/snapshot.py
========================
:class:`MetricsSnapshot`, one immutable sample of aggregate statistics.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class MetricsSnapshot:
    """
    A single metrics sample.

    Attributes:
        time (float): Simulation time of the sample in seconds.
        avg_waiting (float): Mean accumulated waiting time over active vehicles.
        completed (int): Vehicles that have left the world since the start.
        active (int): Vehicles currently in the world.
        queue_lengths (Mapping[str, int]): Waiting vehicles per approach road id (read-only).
    """

    time: float
    avg_waiting: float
    completed: int
    active: int
    queue_lengths: Mapping[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "queue_lengths", MappingProxyType(dict(self.queue_lengths))
        )

    def as_dict(self) -> Dict[str, Any]:
        """Export form: ``time``, ``avgWaiting``, ``completed``, ``active``
        and a nested ``queues`` object.
        """
        return {
            "time": self.time,
            "avgWaiting": self.avg_waiting,
            "completed": self.completed,
            "active": self.active,
            "queues": dict(self.queue_lengths),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MetricsSnapshot":
        return cls(
            time=float(data["time"]),
            avg_waiting=float(data["avgWaiting"]),
            completed=int(data["completed"]),
            active=int(data["active"]),
            queue_lengths={str(k): int(v) for k, v in dict(data.get("queues", {})).items()},
        )
