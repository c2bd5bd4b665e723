# ================================
# file: sim/__init__.py
# ================================
"""Simulation side: grid snapshots, map ingestion, the ray caster and a
kinematic sensor carrier.
"""
from .grid_store import GridStore
from .ray_cast import RayCaster, scan, cast_ray, max_steps_per_ray
from .map_loader import grid_from_message, grid_to_message, load_map_json, empty_room
from .robot_sim import RobotSim


__all__ = [
    "GridStore", "RayCaster", "scan", "cast_ray", "max_steps_per_ray",
    "grid_from_message", "grid_to_message", "load_map_json", "empty_room",
    "RobotSim",
]
