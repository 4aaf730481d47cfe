"""
trafficapi — Read-only HTTP surface
===================================

:func:`trafficapi.server.create_app` wraps a running
:class:`~trafficsim.sim_bridge.SimBridge` in a FastAPI application.
"""
