# ================================
# file: sim/ray_cast.py
# ================================
"""
Ray-casting scan generator over an occupancy grid.

Rays are marched in the grid's pixel frame with a DDA traversal
(Amanatides & Woo): each step moves exactly one cell boundary, so no blocking
cell can be skipped, whatever the beam angle. Distances are pixels until the
final conversion to meters.

Conventions:
- Cell (ix, iy) covers [ix, ix+1) x [iy, iy+1) in pixel units, blocking[iy, ix].
- Range of a hit is the distance to the boundary where the ray enters the
  blocking cell (0 if the origin cell itself is blocking).
- "No return" is reported as range_max: ray reached range_max, left the grid,
  or started outside the grid.
- Hits closer than range_min follow ScanConfig.below_min.
"""
from __future__ import annotations
from typing import Optional, Sequence, Tuple
import math

from core.types import OccupancyGrid, ScanConfig, LaserScan, ConfigurationError
from core.config import BELOW_MIN_CLAMP

_DIR_EPS = 1e-12   # direction components below this are treated as axis-parallel
_TIE_EPS = 1e-12   # boundary crossings closer than this are a corner crossing


def max_steps_per_ray(range_max: float, resolution: float) -> int:
    """Upper bound on DDA iterations for one ray.
    A ray of pixel length L crosses at most |cos|*L + |sin|*L + 2 <= sqrt(2)*L + 2
    boundaries.
    """
    return int(math.ceil(math.sqrt(2.0) * range_max / resolution)) + 2


def cast_ray(rows: Sequence[Sequence[bool]], width: int, height: int,
             ox: float, oy: float, angle: float, max_t: float,
             max_steps: int) -> Optional[float]:
    """March one ray from pixel (ox, oy). Returns the pixel distance to the
    first blocking cell, or None when there is no return within max_t.
    """
    ix = int(math.floor(ox))
    iy = int(math.floor(oy))
    if not (0 <= ix < width and 0 <= iy < height):
        return None
    if rows[iy][ix]:
        return 0.0

    dx = math.cos(angle)
    dy = math.sin(angle)
    if abs(dx) < _DIR_EPS:
        dx = 0.0
    if abs(dy) < _DIR_EPS:
        dy = 0.0

    if dx > 0.0:
        step_x, t_max_x, t_delta_x = 1, (ix + 1 - ox) / dx, 1.0 / dx
    elif dx < 0.0:
        step_x, t_max_x, t_delta_x = -1, (ox - ix) / -dx, -1.0 / dx
    else:
        step_x, t_max_x, t_delta_x = 0, math.inf, math.inf

    if dy > 0.0:
        step_y, t_max_y, t_delta_y = 1, (iy + 1 - oy) / dy, 1.0 / dy
    elif dy < 0.0:
        step_y, t_max_y, t_delta_y = -1, (oy - iy) / -dy, -1.0 / dy
    else:
        step_y, t_max_y, t_delta_y = 0, math.inf, math.inf

    for _ in range(max_steps):
        if step_x and step_y and abs(t_max_x - t_max_y) <= _TIE_EPS:
            # Corner crossing: the two side neighbours touch the ray too.
            t = min(t_max_x, t_max_y)
            if t >= max_t:
                return None
            nx = ix + step_x
            ny = iy + step_y
            if 0 <= nx < width and rows[iy][nx]:
                return t
            if 0 <= ny < height and rows[ny][ix]:
                return t
            ix, iy = nx, ny
            t_max_x += t_delta_x
            t_max_y += t_delta_y
        elif t_max_x < t_max_y:
            t = t_max_x
            if t >= max_t:
                return None
            ix += step_x
            t_max_x += t_delta_x
        else:
            t = t_max_y
            if t >= max_t:
                return None
            iy += step_y
            t_max_y += t_delta_y

        if not (0 <= ix < width and 0 <= iy < height):
            return None
        if rows[iy][ix]:
            return t
    return None


def scan(grid: OccupancyGrid, origin_pixel: Tuple[float, float], heading: float,
         config: ScanConfig) -> LaserScan:
    """Simulate one scan from `origin_pixel` (grid pixel frame) facing `heading`.

    Pure function of its inputs. The returned scan carries no stamp; the
    caller assigns time and frame.
    Raises ConfigurationError for a missing grid or an invalid config.
    """
    if grid is None:
        raise ConfigurationError("scan requires a grid")
    if grid.width <= 0 or grid.height <= 0:
        raise ConfigurationError(f"grid must be non-empty, got {grid.width}x{grid.height}")
    config.validate()

    n = config.sample_count()
    res = grid.resolution
    max_t = config.range_max / res
    max_steps = max_steps_per_ray(config.range_max, res)
    rows = grid.blocking_rows()
    ox, oy = float(origin_pixel[0]), float(origin_pixel[1])
    clamp = config.below_min == BELOW_MIN_CLAMP

    ranges = []
    for i in range(n):
        angle = heading + config.angle_min + i * config.angle_increment
        t = cast_ray(rows, grid.width, grid.height, ox, oy, angle, max_t, max_steps)
        if t is None:
            ranges.append(config.range_max)
            continue
        r = t * res
        if r >= config.range_max:
            r = config.range_max
        elif r < config.range_min:
            r = config.range_min if clamp else config.range_max
        ranges.append(r)

    return LaserScan(config.angle_min, config.angle_increment, ranges,
                     range_min=config.range_min, range_max=config.range_max,
                     scan_time=config.scan_time)


class RayCaster:
    """Holds a validated ScanConfig and casts scans against grid snapshots.
    Keeps no reference to any grid between calls.
    """
    def __init__(self, config: ScanConfig) -> None:
        self.config = config.copy().validate()

    def sample_count(self) -> int:
        return self.config.sample_count()

    def scan(self, grid: OccupancyGrid, origin_pixel: Tuple[float, float],
             heading: float) -> LaserScan:
        return scan(grid, origin_pixel, heading, self.config)
