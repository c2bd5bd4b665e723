# ================================
# file: sim/map_loader.py
# ================================
"""Map ingestion: occupancy grid messages and JSON map files -> OccupancyGrid.

Message form (nav_msgs/OccupancyGrid as a dict):
    {"header": {"frame_id": "map"},
     "info": {"width": W, "height": H, "resolution": r,
              "origin": {"x": ox, "y": oy, "theta": yaw}},
     "data": [...]}           # row-major, -1 unknown, 0..100 occupancy

Segment maze form:
    {"metadata": {"cell_size_m": 0.45, "resolution_m": 0.01,
                  "origin_offset_m": [0.1, 0.1], "wall_width_cells": 1},
     "segments": [{"start": [x, y], "end": [x, y]}, ...]}
Segment endpoints are maze-cell coordinates; walls are rasterized at
resolution_m into a grid covering the maze plus the origin offset.
"""
from __future__ import annotations
from typing import Dict, Optional, Tuple
import json
import math
import numpy as np

from core.types import OccupancyGrid, MapOrigin, ConfigurationError
from core.config import (
    CELL_FREE, CELL_OCCUPIED, CELL_UNKNOWN, MAP_OCCUPIED_THRESHOLD,
    MAP_UNKNOWN_UNSIGNED, DEFAULT_MAP_RESOLUTION, SEGMENT_WALL_WIDTH_CELLS,
    MAP_FRAME,
)


def collapse_occupancy(data, occupied_threshold: int = MAP_OCCUPIED_THRESHOLD) -> np.ndarray:
    """Raw occupancy values -> tri-state cells (FREE / OCCUPIED / UNKNOWN).
    Negative values (and 255 from unsigned encodings) are unknown.
    """
    raw = np.asarray(data, dtype=np.int16).ravel()
    out = np.full(raw.shape, CELL_FREE, dtype=np.int8)
    unknown = (raw < 0) | (raw == MAP_UNKNOWN_UNSIGNED)
    out[unknown] = CELL_UNKNOWN
    out[(~unknown) & (raw >= occupied_threshold)] = CELL_OCCUPIED
    return out


def _origin_from_info(info: Dict) -> MapOrigin:
    o = info.get("origin") or {}
    if isinstance(o, (list, tuple)):
        vals = list(o) + [0.0] * (3 - len(o))
        return MapOrigin(vals[0], vals[1], vals[2])
    pos = o.get("position") if isinstance(o.get("position"), dict) else o
    theta = o.get("theta", o.get("yaw", 0.0))
    ori = o.get("orientation")
    if isinstance(ori, dict):
        qw = float(ori.get("w", 1.0))
        qx = float(ori.get("x", 0.0))
        qy = float(ori.get("y", 0.0))
        qz = float(ori.get("z", 0.0))
        theta = math.atan2(2.0 * (qw * qz + qx * qy), 1.0 - 2.0 * (qy * qy + qz * qz))
    return MapOrigin(pos.get("x", 0.0), pos.get("y", 0.0), theta)


def grid_from_message(msg: Dict,
                      occupied_threshold: int = MAP_OCCUPIED_THRESHOLD) -> OccupancyGrid:
    """Build an OccupancyGrid from a complete map message."""
    if not isinstance(msg, dict):
        raise ConfigurationError(f"map message must be a dict, got {type(msg).__name__}")
    info = msg.get("info")
    if not isinstance(info, dict):
        raise ConfigurationError("map message has no 'info' block")
    try:
        width = int(info["width"])
        height = int(info["height"])
        resolution = float(info["resolution"])
    except (KeyError, TypeError, ValueError) as e:
        raise ConfigurationError(f"map info incomplete: {e}") from e
    data = msg.get("data")
    if data is None:
        raise ConfigurationError("map message has no 'data'")
    header = msg.get("header") or {}
    cells = collapse_occupancy(data, occupied_threshold)
    return OccupancyGrid(width, height, resolution, cells,
                         origin=_origin_from_info(info),
                         frame_id=header.get("frame_id", MAP_FRAME))


def grid_to_message(grid: OccupancyGrid) -> Dict:
    """Inverse of grid_from_message (tri-state values, -1 for unknown)."""
    return {
        "header": {"frame_id": grid.frame_id},
        "info": {
            "width": grid.width,
            "height": grid.height,
            "resolution": grid.resolution,
            "origin": {"x": grid.origin.x, "y": grid.origin.y, "theta": grid.origin.theta},
        },
        "data": grid.cells.ravel().astype(int).tolist(),
    }


def _draw_line(img: np.ndarray, ix0: int, iy0: int, ix1: int, iy1: int,
               half_width: int) -> None:
    """Bresenham line into img[row, col], thickened to a square brush."""
    H, W = img.shape
    dx = abs(ix1 - ix0)
    dy = -abs(iy1 - iy0)
    sx = 1 if ix0 < ix1 else -1
    sy = 1 if iy0 < iy1 else -1
    err = dx + dy
    x, y = ix0, iy0
    while True:
        y0 = max(0, y - half_width)
        y1 = min(H, y + half_width + 1)
        x0 = max(0, x - half_width)
        x1 = min(W, x + half_width + 1)
        if y0 < y1 and x0 < x1:
            img[y0:y1, x0:x1] = True
        if x == ix1 and y == iy1:
            break
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy


def _infer_maze_size_from_segments(segments: list) -> Tuple[float, float]:
    max_x = max_y = 0.0
    for seg in segments:
        sx, sy = seg["start"]
        ex, ey = seg["end"]
        max_x = max(max_x, sx, ex)
        max_y = max(max_y, sy, ey)
    return (max_x, max_y)


def grid_from_segments(data: Dict) -> OccupancyGrid:
    """Rasterize a wall-segment maze description into an OccupancyGrid."""
    meta = data.get("metadata", {})
    cell_m = float(meta.get("cell_size_m", 1.0))
    res = float(meta.get("resolution_m", DEFAULT_MAP_RESOLUTION))
    offx, offy = map(float, meta.get("origin_offset_m", [0.0, 0.0]))
    wall_w = int(meta.get("wall_width_cells", SEGMENT_WALL_WIDTH_CELLS))
    segments = data.get("segments", [])
    if not segments:
        raise ConfigurationError("segment map has no segments")
    if res <= 0.0 or cell_m <= 0.0:
        raise ConfigurationError(f"invalid segment map scale: cell={cell_m}, res={res}")

    max_x, max_y = _infer_maze_size_from_segments(segments)
    # Grid spans [0, offset + maze extent + offset] so the walls sit inside it.
    world_w = 2.0 * offx + max_x * cell_m
    world_h = 2.0 * offy + max_y * cell_m
    width = int(math.ceil(world_w / res)) + 1
    height = int(math.ceil(world_h / res)) + 1
    img = np.zeros((height, width), dtype=bool)
    half = max(0, (wall_w - 1) // 2)

    for seg in segments:
        sx, sy = seg["start"]
        ex, ey = seg["end"]
        ix0 = int(math.floor((offx + sx * cell_m) / res))
        iy0 = int(math.floor((offy + sy * cell_m) / res))
        ix1 = int(math.floor((offx + ex * cell_m) / res))
        iy1 = int(math.floor((offy + ey * cell_m) / res))
        _draw_line(img, ix0, iy0, ix1, iy1, half)

    return OccupancyGrid.from_bitmap(img, res, origin=MapOrigin(0.0, 0.0, 0.0))


def load_map_json(path: str, occupied_threshold: int = MAP_OCCUPIED_THRESHOLD,
                  log_file=None, logger_func=None) -> OccupancyGrid:
    """Load a map file in message form or segment maze form."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if "segments" in data:
        grid = grid_from_segments(data)
        kind = "segments"
    else:
        grid = grid_from_message(data, occupied_threshold)
        kind = "grid"
    msg = (f"loaded {kind} map {path}: {grid.width}x{grid.height} "
           f"@ {grid.resolution:.3f} m/px, {grid.counts()}")
    if logger_func and log_file:
        logger_func(log_file, msg, "MAP")
    else:
        print(f"[MAP] {msg}")
    return grid


def save_map_json(grid: OccupancyGrid, path: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(grid_to_message(grid), f)


def empty_room(width: int, height: int, resolution: float,
               origin: Optional[MapOrigin] = None) -> OccupancyGrid:
    """Free grid enclosed by a one-cell occupied border."""
    img = np.zeros((height, width), dtype=bool)
    img[0, :] = True
    img[-1, :] = True
    img[:, 0] = True
    img[:, -1] = True
    return OccupancyGrid.from_bitmap(img, resolution, origin=origin)
