"""
trafficsim/sim_bridge.py
========================
Background-thread driver for a :class:`~trafficsim.simulation.Simulation`.
Renderers and the HTTP API poll the bridge for the latest cached state
without blocking the stepping thread.

The loop accumulates real elapsed time multiplied by a speed multiplier
and runs as many fixed steps as fit, so the simulated dynamics do not
depend on the host's frame rate.

Public API consumed by :mod:`trafficapi.server`
-----------------------------------------------
* ``get_vehicles()``        → ``List[dict]``
* ``get_lights()``          → ``List[dict]``
* ``get_state()``           → ``dict``
* ``get_metrics()``         → ``List[dict]``
* ``request_priority(...)`` → ``bool``
* ``reset()``               → ``None``
* ``set_paused(bool)``      → ``None``
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Callable, Dict, List, Optional

from trafficsim.network import build_cross_world
from trafficsim.simulation import Simulation
from trafficsim.strategies import Strategy

log = logging.getLogger("sim_bridge")

# Upper bound on fixed steps per loop iteration after a stall
_MAX_STEPS_PER_FRAME = 50


class SimBridge:
    """Simulation driver running in a background thread.

    Parameters
    ----------
    world_factory : callable or None
        Builds a fresh :class:`Simulation`; called at construction and
        on :meth:`reset`.  Defaults to :func:`build_cross_world`.
    strategy : FixedCycle, AdaptiveCycle or None
        Signal policy passed to every tick.
    step_s : float
        Fixed simulation step in seconds.
    tick_rate_hz : float
        Loop iterations per second of wall-clock time.
    speed_multiplier : float
        Simulated seconds per real second.
    """

    def __init__(
        self,
        world_factory: Optional[Callable[[], Simulation]] = None,
        strategy: Optional[Strategy] = None,
        step_s: float = 0.05,
        tick_rate_hz: float = 20.0,
        speed_multiplier: float = 1.0,
    ) -> None:
        if step_s <= 0.0:
            raise ValueError("step_s must be positive")
        if tick_rate_hz <= 0.0:
            raise ValueError("tick_rate_hz must be positive")
        self._world_factory = world_factory or build_cross_world
        self._strategy = strategy
        self._step_s = step_s
        self._tick_rate_hz = tick_rate_hz
        self._speed_multiplier = max(0.0, speed_multiplier)

        self._sim = self._world_factory()
        self._accumulator = 0.0

        self._lock = threading.Lock()

        # Cached state: written by the sim thread, read by API / UI threads
        self._vehicles: List[Dict[str, Any]] = []
        self._lights: List[Dict[str, Any]] = []
        self._state: Dict[str, Any] = {}

        self._thread: Optional[threading.Thread] = None
        self._running = False
        self._paused = False
        self._refresh_cache()

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def start(self) -> None:
        """Spawn the background simulation thread."""
        if self._running:
            return
        self._running = True
        self._thread = threading.Thread(
            target=self._loop, daemon=True, name="SimBridge"
        )
        self._thread.start()
        log.info("SimBridge started at %.1f Hz (x%.2f)",
                 self._tick_rate_hz, self._speed_multiplier)

    def stop(self) -> None:
        """Signal the thread to stop and wait for it to join."""
        self._running = False
        if self._thread:
            self._thread.join(timeout=2.0)
            self._thread = None
        log.info("SimBridge stopped")

    def is_running(self) -> bool:
        return self._running

    def reset(self) -> None:
        """Rebuild the world so the scenario replays."""
        sim = self._world_factory()
        with self._lock:
            self._sim = sim
            self._accumulator = 0.0
        self._refresh_cache()
        log.info("SimBridge reset")

    def set_paused(self, paused: bool) -> None:
        """Pause / unpause stepping; real time spent paused is discarded."""
        self._paused = paused

    def is_paused(self) -> bool:
        return self._paused

    def set_speed_multiplier(self, multiplier: float) -> None:
        self._speed_multiplier = max(0.0, float(multiplier))

    @property
    def simulation(self) -> Simulation:
        with self._lock:
            return self._sim

    @property
    def strategy(self) -> Optional[Strategy]:
        return self._strategy

    # ── Commands ──────────────────────────────────────────────────────────────

    def request_priority(self, intersection_id: str, road_id: str, duration: float) -> bool:
        """Forward a preemption request; *False* for unknown ids."""
        granted = self.simulation.request_priority(intersection_id, road_id, duration)
        if granted:
            self._refresh_cache()
        else:
            log.warning("Priority request ignored: %s/%s", intersection_id, road_id)
        return granted

    def advance(self, seconds: float) -> int:
        """Run the fixed steps that fit in *seconds* of simulated time.

        Leftover time is carried to the next call.  Also used by the
        background loop; calling it directly gives a headless driver.

        Returns
        -------
        int
            Number of fixed steps executed.
        """
        with self._lock:
            self._accumulator += max(0.0, seconds)
            sim = self._sim
        steps = 0
        while steps < _MAX_STEPS_PER_FRAME:
            with self._lock:
                if self._accumulator < self._step_s - 1e-9:
                    break
                self._accumulator -= self._step_s
            sim.tick(self._step_s, self._strategy)
            steps += 1
        if steps == _MAX_STEPS_PER_FRAME:
            with self._lock:
                dropped = self._accumulator
                self._accumulator = 0.0
            if dropped > 0.0:
                log.debug("SimBridge behind schedule, dropped %.3fs", dropped)
        if steps:
            self._refresh_cache()
        return steps

    # ── Background loop ───────────────────────────────────────────────────────

    def _loop(self) -> None:
        period = 1.0 / self._tick_rate_hz
        last = time.perf_counter()
        while self._running:
            t0 = time.perf_counter()
            elapsed = t0 - last
            last = t0
            if not self._paused:
                try:
                    self.advance(elapsed * self._speed_multiplier)
                except Exception:
                    log.exception("SimBridge tick error")
            time.sleep(max(0.0, period - (time.perf_counter() - t0)))

    # ── Cached reads ──────────────────────────────────────────────────────────

    def _refresh_cache(self) -> None:
        sim = self.simulation
        snap = sim.snapshot()
        vehicles = [
            {
                "id": v.id,
                "road": v.road_id,
                "position": v.position,
                "speed": v.speed,
                "lane": v.lane,
                "waiting_time": v.waiting_time,
            }
            for v in snap.vehicles
        ]
        lights = [
            {
                "intersection": l.intersection_id,
                "road": l.road_id,
                "color": l.color.value,
                "allows_passage": l.allows_passage,
                "duration": l.duration,
                "remaining": l.remaining,
            }
            for l in snap.lights
        ]
        priorities = {}
        for inter in sim.get_intersections():
            if inter.has_priority() and inter.priority_road is not None:
                priorities[inter.id] = {
                    "road": inter.priority_road.id,
                    "remaining": inter.priority_remaining,
                }
        state = {
            "time": snap.time,
            "created": snap.created,
            "completed": snap.completed,
            "active": len(snap.vehicles),
            "paused": self._paused,
            "priorities": priorities,
            "metrics": snap.metrics.as_dict() if snap.metrics is not None else None,
        }
        with self._lock:
            self._vehicles = vehicles
            self._lights = lights
            self._state = state

    def get_vehicles(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(v) for v in self._vehicles]

    def get_lights(self) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(l) for l in self._lights]

    def get_state(self) -> Dict[str, Any]:
        with self._lock:
            state = dict(self._state)
        state["paused"] = self._paused
        return state

    def get_metrics(self) -> List[Dict[str, Any]]:
        """Full metrics history in export form."""
        return [s.as_dict() for s in self.simulation.metrics_history()]
