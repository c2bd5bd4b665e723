# ================================
# file: driver/scan_driver.py
# ================================
from __future__ import annotations
from typing import Callable, Dict, Optional, Tuple
from enum import Enum
import time

from core.types import LaserScan, OccupancyGrid, ScanConfig
from core.pose_source import MapPoseResolver, PoseSource
from core.config import LASER_FRAME, WARN_THROTTLE_S
from sim.grid_store import GridStore
from sim.map_loader import grid_from_message
from sim.ray_cast import RayCaster


class DriverState(Enum):
    WAITING_FOR_MAP = 0
    READY = 1


class ScanDriver:
    """Periodic scan generation with a two-state machine.

    WAITING_FOR_MAP -> READY on the first map seen in the grid store; there is
    no way back. Each tick in READY resolves the sensor pose, casts a scan on
    the current grid snapshot, stamps it and hands it to `emit`.
    Ticks without a map or pose are skipped with a warning.
    """
    def __init__(self, grid_store: GridStore, pose_source: PoseSource,
                 config: ScanConfig, emit: Callable[[LaserScan], None],
                 frame_id: str = LASER_FRAME, logger_func=None, log_file=None,
                 warn_throttle_s: float = WARN_THROTTLE_S,
                 clock: Callable[[], float] = time.monotonic) -> None:
        self.grid_store = grid_store
        self.resolver = MapPoseResolver(pose_source)
        self.caster = RayCaster(config)
        self.emit = emit
        self.frame_id = frame_id
        self.logger_func = logger_func
        self.log_file = log_file
        self.warn_throttle_s = float(warn_throttle_s)
        self._clock = clock
        self._last_warn: Dict[str, float] = {}

        self.state = DriverState.WAITING_FOR_MAP
        self.stats = {
            'ticks': 0,
            'emitted': 0,
            'skipped_no_map': 0,
            'skipped_no_pose': 0,
            'emit_errors': 0,
        }
        # (grid, scan) of the latest emission, replaced as one reference
        self.last_frame: Optional[Tuple[OccupancyGrid, LaserScan]] = None

    @property
    def last_scan(self) -> Optional[LaserScan]:
        frame = self.last_frame
        return frame[1] if frame is not None else None

    def _log(self, message: str, module: str = "DRIVER") -> None:
        if self.logger_func and self.log_file:
            self.logger_func(self.log_file, message, module)
        else:
            print(f"[{module}] {message}")

    def _warn(self, key: str, message: str) -> None:
        now = self._clock()
        last = self._last_warn.get(key)
        if last is not None and now - last < self.warn_throttle_s:
            return
        self._last_warn[key] = now
        self._log(f"[WARN] {message}")

    def _set_state(self, new_state: DriverState) -> None:
        if new_state != self.state:
            self._log(f"state {self.state.name} -> {new_state.name}")
            self.state = new_state

    # --- Map ingestion ---
    def handle_map(self, msg: Dict) -> OccupancyGrid:
        """Map callback: build a grid from a complete map message and install it."""
        grid = grid_from_message(msg)
        return self.handle_grid(grid)

    def handle_grid(self, grid: OccupancyGrid) -> OccupancyGrid:
        self.grid_store.set_grid(grid)
        self._set_state(DriverState.READY)
        return grid

    # --- Periodic entry point ---
    def tick(self) -> Optional[LaserScan]:
        """Run one scan cycle. Returns the emitted scan, or None if skipped."""
        self.stats['ticks'] += 1

        grid = self.grid_store.current_grid()
        if self.state == DriverState.WAITING_FOR_MAP:
            if grid is None:
                self.stats['skipped_no_map'] += 1
                self._warn("no_map", "tick called, no map yet")
                return None
            self._set_state(DriverState.READY)

        stamped = self.resolver.resolve(grid)
        if stamped is None:
            self.stats['skipped_no_pose'] += 1
            self._warn("no_pose", f"sensor pose in frame '{grid.frame_id}' unavailable, skipping tick")
            return None

        pose = stamped.pose
        scan = self.caster.scan(grid, (pose.x, pose.y), pose.theta)
        scan.stamp = stamped.stamp
        scan.frame_id = self.frame_id
        scan.robot_pose = pose

        try:
            self.emit(scan)
        except Exception as e:
            self.stats['emit_errors'] += 1
            self._log(f"[ERROR] scan emission failed: {e}")
            return None

        self.stats['emitted'] += 1
        self.last_frame = (grid, scan)
        return scan
