"""
trafficsim — Traffic simulation core
====================================

Modules
-------
lights
    :class:`TrafficLight` and the :class:`Phase` transition function.
road
    :class:`Road` with two lanes and the queue :class:`Sensor`.
intersection
    :class:`Intersection` lights, turn options and priority override.
vehicle
    :class:`Vehicle` car-following, signal compliance and routing.
strategies
    :class:`FixedCycle` / :class:`AdaptiveCycle` signal control.
simulation
    :class:`Simulation` world and fixed-step tick.
network
    World builders (:func:`build_cross_world`).
traffic_policy
    :class:`SimulationPolicy` tunable constants.
physics
    Low-level kinematic helpers.
sim_bridge
    :class:`SimBridge` background-thread driver.
"""
