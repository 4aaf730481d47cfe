"""
trafficapi/server.py
====================
Optional FastAPI server exposing the cached simulation state.

Start the server::

    python -m trafficapi.server          # → http://localhost:8000/state

Reads go through the bridge's snapshot cache, so requests never block
the stepping thread for longer than a dict copy.  The only write is a
priority (preemption) request, which is forwarded to the simulation.

.. note::

   This server is **not** required to run the simulation; :mod:`main`
   runs headless.  It exists for dashboards and external integrations.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

import config
from trafficsim.network import build_cross_world
from trafficsim.sim_bridge import SimBridge
from trafficsim.strategies import make_strategy
from trafficstats.export import to_csv_string

log = logging.getLogger("api")

# ── Pydantic schemas ─────────────────────────────────────────────────────────


class VehicleModel(BaseModel):
    """One vehicle as seen by a renderer."""
    id: str
    road: Optional[str] = None
    position: float
    speed: float
    lane: int
    waiting_time: float


class LightModel(BaseModel):
    """Signal state of one approach."""
    intersection: str
    road: str
    color: str
    allows_passage: bool
    duration: float
    remaining: float


class MetricsModel(BaseModel):
    """One metrics sample in export form."""
    time: float
    avgWaiting: float
    completed: int
    active: int
    queues: Dict[str, int]


class PriorityModel(BaseModel):
    road: str
    remaining: float


class StateModel(BaseModel):
    """World summary after the latest tick."""
    time: float
    created: int
    completed: int
    active: int
    paused: bool
    priorities: Dict[str, PriorityModel]
    metrics: Optional[MetricsModel] = None


class PriorityRequest(BaseModel):
    """Body of ``POST /priority``."""
    intersection: str
    road: str
    duration: float = Field(gt=0.0)


# ── FastAPI application ──────────────────────────────────────────────────────


def create_app(bridge: SimBridge) -> FastAPI:
    """Build the API around *bridge*.

    Parameters
    ----------
    bridge : SimBridge
        Driver whose cached state is served.  Starting and stopping it is
        the caller's job.
    """
    app = FastAPI(
        title="Smart Traffic Simulation API",
        description="Read-only view of a running intersection simulation.",
        version="1.0",
    )

    @app.get("/state", response_model=StateModel)
    def get_state():
        return bridge.get_state()

    @app.get("/vehicles", response_model=List[VehicleModel])
    def get_vehicles():
        return bridge.get_vehicles()

    @app.get("/lights", response_model=List[LightModel])
    def get_lights():
        return bridge.get_lights()

    @app.get("/lights/{intersection_id}", response_model=List[LightModel])
    def get_intersection_lights(intersection_id: str):
        lights = [l for l in bridge.get_lights() if l["intersection"] == intersection_id]
        if not lights:
            raise HTTPException(status_code=404, detail=f"unknown intersection {intersection_id}")
        return lights

    @app.get("/metrics", response_model=List[MetricsModel])
    def get_metrics():
        return bridge.get_metrics()

    @app.get("/metrics.csv", response_class=PlainTextResponse)
    def get_metrics_csv():
        return to_csv_string(bridge.simulation.metrics_history())

    @app.get("/summary")
    def get_summary():
        return bridge.simulation.metrics.summary()

    @app.post("/priority", response_model=StateModel)
    def request_priority(body: PriorityRequest):
        """Preempt one approach; 404 when the intersection or road is unknown."""
        if not bridge.request_priority(body.intersection, body.road, body.duration):
            raise HTTPException(
                status_code=404,
                detail=f"unknown approach {body.intersection}/{body.road}",
            )
        log.info("Priority via API: %s/%s for %.1fs",
                 body.intersection, body.road, body.duration)
        return bridge.get_state()

    @app.post("/pause", response_model=StateModel)
    def pause():
        bridge.set_paused(True)
        return bridge.get_state()

    @app.post("/resume", response_model=StateModel)
    def resume():
        bridge.set_paused(False)
        return bridge.get_state()

    @app.post("/reset", response_model=StateModel)
    def reset():
        bridge.reset()
        return bridge.get_state()

    return app


def default_bridge() -> SimBridge:
    """Bridge over the default cross world using :mod:`config` defaults."""
    return SimBridge(
        world_factory=lambda: build_cross_world(seed=config.DEFAULT_SEED),
        strategy=make_strategy(config.DEFAULT_STRATEGY, **config.STRATEGY_PARAMS[config.DEFAULT_STRATEGY]),
        step_s=config.DEFAULT_STEP_S,
        tick_rate_hz=config.DEFAULT_TICK_RATE_HZ,
        speed_multiplier=config.DEFAULT_SPEED_MULTIPLIER,
    )


# ── Standalone entry point ───────────────────────────────────────────────────

if __name__ == "__main__":
    from logging_setup import setup_logging

    setup_logging(logging.INFO)
    bridge = default_bridge()
    bridge.start()
    try:
        log.info("Starting traffic API on http://%s:%d", config.API_HOST, config.API_PORT)
        uvicorn.run(create_app(bridge), host=config.API_HOST, port=config.API_PORT)
    finally:
        bridge.stop()
