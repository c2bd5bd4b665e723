# ================================
# file: core/coords.py
# ================================
from __future__ import annotations
from typing import Tuple
import math

from core.types import Pose2D, MapOrigin, OccupancyGrid


# Map frame (meters) <-> image/pixel frame (cells).
# The image frame sits at the grid's declared origin. Its axes are taken to be
# aligned with the map frame: the origin's rotation is not applied.

def world_to_pixel(x_world: float, y_world: float, origin: MapOrigin,
                   resolution: float) -> Tuple[float, float]:
    """Map-frame meters -> continuous pixel coordinates (col, row)."""
    return ((x_world - origin.x) / resolution, (y_world - origin.y) / resolution)


def pixel_to_world(px: float, py: float, origin: MapOrigin,
                   resolution: float) -> Tuple[float, float]:
    """Continuous pixel coordinates -> map-frame meters, inverse of world_to_pixel."""
    return (origin.x + px * resolution, origin.y + py * resolution)


def pixel_to_cell(px: float, py: float) -> Tuple[int, int]:
    """Cell (ix, iy) containing a continuous pixel coordinate."""
    return (int(math.floor(px)), int(math.floor(py)))


def normalize_angle(a: float) -> float:
    return math.atan2(math.sin(a), math.cos(a))


def pose_to_pixel(pose: Pose2D, grid: OccupancyGrid) -> Pose2D:
    """Map-frame pose -> pose in the grid's pixel frame."""
    px, py = world_to_pixel(pose.x, pose.y, grid.origin, grid.resolution)
    return Pose2D(px, py, pose.theta)


def pixel_to_pose(pose_px: Pose2D, grid: OccupancyGrid) -> Pose2D:
    x, y = pixel_to_world(pose_px.x, pose_px.y, grid.origin, grid.resolution)
    return Pose2D(x, y, pose_px.theta)


def world_to_cell(x_world: float, y_world: float, grid: OccupancyGrid) -> Tuple[int, int]:
    px, py = world_to_pixel(x_world, y_world, grid.origin, grid.resolution)
    return pixel_to_cell(px, py)
