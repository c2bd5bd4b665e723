# ================================
# file: sim/grid_store.py
# ================================
from __future__ import annotations
from typing import Optional
import threading

from core.types import OccupancyGrid, MapOrigin


class GridStore:
    """Owns the current occupancy grid snapshot.

    Grids are immutable; a new map replaces the held reference in one
    assignment, so a reader holding the previous snapshot keeps a complete grid.
    Thread-safety: set_* may run on a map-callback thread while the driver reads.
    """
    def __init__(self, logger_func=None, log_file=None) -> None:
        self._grid: Optional[OccupancyGrid] = None
        self._version = 0
        self._lock = threading.Lock()
        self.logger_func = logger_func
        self.log_file = log_file

    def _log(self, message: str, module: str = "GRID") -> None:
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, module)
        else:
            print(f"[{module}] {message}")

    def set_map(self, bitmap, resolution: float,
                origin: Optional[MapOrigin] = None) -> OccupancyGrid:
        """Install a grid built from a 2-D bitmap (truthy = blocking)."""
        return self.set_grid(OccupancyGrid.from_bitmap(bitmap, resolution, origin=origin))

    def set_grid(self, grid: OccupancyGrid) -> OccupancyGrid:
        with self._lock:
            self._grid = grid
            self._version += 1
            version = self._version
        self._log(f"map v{version} installed: {grid.width}x{grid.height} "
                  f"@ {grid.resolution:.3f} m/px, origin=({grid.origin.x:.2f}, {grid.origin.y:.2f})")
        return grid

    def current_grid(self) -> Optional[OccupancyGrid]:
        with self._lock:
            return self._grid

    @property
    def version(self) -> int:
        """Number of maps installed so far."""
        with self._lock:
            return self._version

    def has_map(self) -> bool:
        return self.current_grid() is not None
