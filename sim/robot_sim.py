# ================================
# file: sim/robot_sim.py
# ================================
from __future__ import annotations
from typing import Callable, Optional
import math, time

from core.types import Pose2D, StampedPose
from core.coords import world_to_cell, normalize_angle
from core.config import V_MAX, W_MAX, SIM_DT
from core.pose_source import PoseSource
from .grid_store import GridStore


class RobotSim(PoseSource):
    """Unicycle sensor carrier producing a time-varying map-frame pose.
    Moves that would end inside an occupied cell are rejected (rotation still
    applies). Leaving the grid is allowed: the scanner then reports no returns.
    Thread-safety: assume single-threaded calls from the driving loop.
    """
    def __init__(self, grid_store: Optional[GridStore] = None,
                 pose: Optional[Pose2D] = None,
                 clock: Callable[[], float] = time.time) -> None:
        self.grid_store = grid_store
        self.pose = pose.copy() if pose is not None else Pose2D(0.0, 0.0, 0.0)
        self.v = 0.0
        self.w = 0.0
        self._clock = clock
        self._stamp = clock()
        self.blocked_moves = 0

    def set_pose(self, pose: Pose2D) -> None:
        self.pose = pose.copy()
        self._stamp = self._clock()

    def apply_control(self, v: float, w: float) -> None:
        """Set velocity commands. Saturation is applied here."""
        self.v = max(-V_MAX, min(V_MAX, float(v)))
        self.w = max(-W_MAX, min(W_MAX, float(w)))

    def _blocked(self, x: float, y: float) -> bool:
        grid = self.grid_store.current_grid() if self.grid_store else None
        if grid is None:
            return False
        ix, iy = world_to_cell(x, y, grid)
        return grid.is_blocking(ix, iy)

    def update(self, dt: float = SIM_DT) -> None:
        """Integrate the current (v, w) over dt seconds."""
        v, w = self.v, self.w
        th = self.pose.theta
        if abs(w) < 1e-6:  # Straight line motion
            new_x = self.pose.x + v * math.cos(th) * dt
            new_y = self.pose.y + v * math.sin(th) * dt
            new_th = th
        else:
            new_th = th + w * dt
            radius = v / w
            new_x = self.pose.x + radius * (math.sin(new_th) - math.sin(th))
            new_y = self.pose.y - radius * (math.cos(new_th) - math.cos(th))

        if self._blocked(new_x, new_y):
            self.blocked_moves += 1
            new_x, new_y = self.pose.x, self.pose.y

        self.pose = Pose2D(new_x, new_y, normalize_angle(new_th))
        self._stamp = self._clock()

    def lookup(self, stamp: Optional[float] = None) -> Optional[StampedPose]:
        # Only the latest pose is kept; any other time is unavailable.
        if stamp is not None and stamp != self._stamp:
            return None
        return StampedPose(self.pose.copy(), self._stamp)
