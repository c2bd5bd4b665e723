# ================================
# file: core/types.py
# ================================
"""Shared data structures for poses, scan configuration, grids and scans.
Use minimal typing: Tuple/Optional/Dict/Sequence only.
"""
from __future__ import annotations
from typing import Dict, Optional, Sequence
import math
import numpy as np

from core.config import (
    SCAN_ANGLE_MIN, SCAN_ANGLE_MAX, SCAN_ANGLE_INCREMENT,
    SCAN_RANGE_MIN, SCAN_RANGE_MAX, SCAN_BELOW_MIN_POLICY, SCAN_TIME,
    BELOW_MIN_POLICIES, SAMPLE_COUNT_EPS,
    CELL_FREE, CELL_OCCUPIED, CELL_UNKNOWN, LASER_FRAME, MAP_FRAME,
)


class ConfigurationError(ValueError):
    """Malformed scan configuration or grid. Fatal to the triggering call."""


class Pose2D:
    """2D pose.


    Attributes
    -----------
    x, y : meters in the map frame, pixels in the grid frame
    theta : radians
    """
    __slots__ = ("x", "y", "theta")


    def __init__(self, x: float, y: float, theta: float) -> None:
        self.x = float(x)
        self.y = float(y)
        self.theta = float(theta)


    def copy(self) -> "Pose2D":
        return Pose2D(self.x, self.y, self.theta)


    def distance_to(self, other: "Pose2D") -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        return math.hypot(dx, dy)


    def __eq__(self, other) -> bool:
        if not isinstance(other, Pose2D):
            return NotImplemented
        return (self.x, self.y, self.theta) == (other.x, other.y, other.theta)


    def __repr__(self) -> str:
        return f"Pose2D(x={self.x:.3f}, y={self.y:.3f}, theta={self.theta:.3f})"


class StampedPose:
    """A pose together with the time it was resolved for and its frame."""
    __slots__ = ("pose", "stamp", "frame_id")

    def __init__(self, pose: Pose2D, stamp: float, frame_id: str = MAP_FRAME) -> None:
        self.pose = pose
        self.stamp = float(stamp)
        self.frame_id = frame_id


class MapOrigin:
    """Declared origin of a grid in the map frame (meters, radians).
    Cell (0, 0) has its lower-left corner at (x, y).
    """
    __slots__ = ("x", "y", "theta")

    def __init__(self, x: float = 0.0, y: float = 0.0, theta: float = 0.0) -> None:
        self.x = float(x)
        self.y = float(y)
        self.theta = float(theta)

    def copy(self) -> "MapOrigin":
        return MapOrigin(self.x, self.y, self.theta)


class ScanConfig:
    """Angular and range parameters of the simulated scanner.

    Parameters
    ----------
    angle_min, angle_max : float
        First and last beam angle relative to the sensor heading (radians).
    angle_increment : float
        Angle between consecutive beams (radians, > 0).
    range_min, range_max : float
        Blind distance and maximum range (meters, 0 <= range_min < range_max).
    below_min : str
        "no_return" reports hits closer than range_min as range_max,
        "clamp" reports them as range_min.
    scan_time : float
        Duration reported on each scan (seconds).
    """
    __slots__ = ("angle_min", "angle_max", "angle_increment",
                 "range_min", "range_max", "below_min", "scan_time")

    def __init__(self, angle_min: float = SCAN_ANGLE_MIN,
                 angle_max: float = SCAN_ANGLE_MAX,
                 angle_increment: float = SCAN_ANGLE_INCREMENT,
                 range_min: float = SCAN_RANGE_MIN,
                 range_max: float = SCAN_RANGE_MAX,
                 below_min: str = SCAN_BELOW_MIN_POLICY,
                 scan_time: float = SCAN_TIME) -> None:
        self.angle_min = float(angle_min)
        self.angle_max = float(angle_max)
        self.angle_increment = float(angle_increment)
        self.range_min = float(range_min)
        self.range_max = float(range_max)
        self.below_min = str(below_min)
        self.scan_time = float(scan_time)

    @classmethod
    def from_dict(cls, params: Dict) -> "ScanConfig":
        p = params or {}
        return cls(
            angle_min=p.get("angle_min", SCAN_ANGLE_MIN),
            angle_max=p.get("angle_max", SCAN_ANGLE_MAX),
            angle_increment=p.get("angle_increment", SCAN_ANGLE_INCREMENT),
            range_min=p.get("range_min", SCAN_RANGE_MIN),
            range_max=p.get("range_max", SCAN_RANGE_MAX),
            below_min=p.get("below_min", SCAN_BELOW_MIN_POLICY),
            scan_time=p.get("scan_time", SCAN_TIME),
        )

    def validate(self) -> "ScanConfig":
        values = (self.angle_min, self.angle_max, self.angle_increment,
                  self.range_min, self.range_max)
        if not all(math.isfinite(v) for v in values):
            raise ConfigurationError(f"scan config has non-finite values: {values}")
        if self.angle_increment <= 0.0:
            raise ConfigurationError(
                f"angle_increment must be > 0, got {self.angle_increment}")
        if self.angle_max < self.angle_min:
            raise ConfigurationError(
                f"angle_max ({self.angle_max}) < angle_min ({self.angle_min})")
        if self.range_min < 0.0:
            raise ConfigurationError(f"range_min must be >= 0, got {self.range_min}")
        if self.range_max <= self.range_min:
            raise ConfigurationError(
                f"range_max ({self.range_max}) must exceed range_min ({self.range_min})")
        if self.below_min not in BELOW_MIN_POLICIES:
            raise ConfigurationError(
                f"below_min must be one of {BELOW_MIN_POLICIES}, got {self.below_min!r}")
        return self

    def sample_count(self) -> int:
        span = (self.angle_max - self.angle_min) / self.angle_increment
        return int(math.floor(span + SAMPLE_COUNT_EPS)) + 1

    def copy(self) -> "ScanConfig":
        return ScanConfig(self.angle_min, self.angle_max, self.angle_increment,
                          self.range_min, self.range_max, self.below_min,
                          self.scan_time)


class OccupancyGrid:
    """Immutable occupancy snapshot.

    `cells` is row-major (row = y, column = x) with values FREE / OCCUPIED /
    UNKNOWN. `blocking` is the collapsed view used for ray casting; unknown
    space is passable. Both arrays are read-only once built.
    """
    __slots__ = ("width", "height", "resolution", "origin", "frame_id",
                 "cells", "blocking", "_rows")

    def __init__(self, width: int, height: int, resolution: float,
                 cells: Sequence[int], origin: Optional[MapOrigin] = None,
                 frame_id: str = MAP_FRAME) -> None:
        width = int(width)
        height = int(height)
        resolution = float(resolution)
        if width <= 0 or height <= 0:
            raise ConfigurationError(f"grid must be non-empty, got {width}x{height}")
        if not math.isfinite(resolution) or resolution <= 0.0:
            raise ConfigurationError(f"grid resolution must be > 0, got {resolution}")
        arr = np.asarray(cells, dtype=np.int8).ravel()
        if arr.size != width * height:
            raise ConfigurationError(
                f"grid has {arr.size} cells, expected {width}*{height}={width * height}")

        arr = arr.reshape((height, width)).copy()
        arr.flags.writeable = False
        blocking = arr == CELL_OCCUPIED
        blocking.flags.writeable = False

        self.width = width
        self.height = height
        self.resolution = resolution
        self.origin = origin.copy() if origin is not None else MapOrigin()
        self.frame_id = str(frame_id)
        self.cells = arr
        self.blocking = blocking
        self._rows = tuple(map(tuple, blocking.tolist()))

    @classmethod
    def from_bitmap(cls, bitmap, resolution: float,
                    origin: Optional[MapOrigin] = None,
                    frame_id: str = MAP_FRAME) -> "OccupancyGrid":
        """Build from a 2-D array indexed [row, col]; truthy cells are occupied."""
        bm = np.asarray(bitmap)
        if bm.ndim != 2:
            raise ConfigurationError(f"bitmap must be 2-D, got shape {bm.shape}")
        height, width = bm.shape
        cells = np.where(bm.astype(bool), CELL_OCCUPIED, CELL_FREE).astype(np.int8)
        return cls(width, height, resolution, cells, origin=origin, frame_id=frame_id)

    def blocking_rows(self):
        """Blocking flags as nested tuples for fast scalar access; immutable like the arrays."""
        return self._rows

    def in_bounds(self, ix: int, iy: int) -> bool:
        return 0 <= ix < self.width and 0 <= iy < self.height

    def is_blocking(self, ix: int, iy: int) -> bool:
        """Out-of-bounds cells are not blocking; callers treat them as exits."""
        if not self.in_bounds(ix, iy):
            return False
        return bool(self.blocking[iy, ix])

    def counts(self) -> Dict[str, int]:
        return {
            'occupied': int((self.cells == CELL_OCCUPIED).sum()),
            'free': int((self.cells == CELL_FREE).sum()),
            'unknown': int((self.cells == CELL_UNKNOWN).sum()),
        }


class LaserScan:
    """LiDAR scan container.


    Parameters
    ----------
    angle_min : float
    Starting angle (radians) relative to the sensor heading.
    angle_increment : float
    Angle increment per beam (radians).
    ranges : Sequence[float]
    Range array in meters; length equals beam count. A value equal to
    range_max means "no return".
    range_min, range_max : float
    Sensor range limits (meters).
    stamp : Optional[float]
    Timestamp seconds, assigned by the driver.
    frame_id : str
    Sensor frame the scan is expressed in.
    robot_pose : Optional[Pose2D]
    Pose when scan was taken (optional).
    """
    __slots__ = ("angle_min", "angle_max", "angle_increment", "range_min",
                 "range_max", "ranges", "stamp", "frame_id", "scan_time",
                 "robot_pose")


    def __init__(self, angle_min: float, angle_increment: float,
        ranges: Sequence[float], range_min: float = SCAN_RANGE_MIN,
        range_max: float = SCAN_RANGE_MAX, stamp: Optional[float] = None,
        frame_id: str = LASER_FRAME, scan_time: float = 0.0,
        robot_pose: Optional[Pose2D] = None) -> None:
        self.angle_min = float(angle_min)
        self.angle_increment = float(angle_increment)
        self.ranges = [float(r) for r in ranges]
        self.angle_max = self.angle_min + self.angle_increment * max(0, len(self.ranges) - 1)
        self.range_min = float(range_min)
        self.range_max = float(range_max)
        self.stamp = stamp
        self.frame_id = frame_id
        self.scan_time = float(scan_time)
        self.robot_pose = robot_pose


    def beam_count(self) -> int:
        return len(self.ranges)


    def angles(self) -> np.ndarray:
        return self.angle_min + self.angle_increment * np.arange(len(self.ranges))


    def hits(self) -> np.ndarray:
        return np.asarray(self.ranges, dtype=np.float64) < self.range_max


    def to_dict(self) -> Dict:
        return {
            "stamp": self.stamp,
            "frame_id": self.frame_id,
            "angle_min": self.angle_min,
            "angle_max": self.angle_max,
            "angle_increment": self.angle_increment,
            "range_min": self.range_min,
            "range_max": self.range_max,
            "scan_time": self.scan_time,
            "ranges": list(self.ranges),
        }


ScanResult = LaserScan
