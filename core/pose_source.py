# ================================
# file: core/pose_source.py
# ================================
from abc import ABC, abstractmethod
from typing import Callable, Optional
import time

from core.types import Pose2D, StampedPose
from core.coords import pose_to_pixel
from core.config import IMAGE_FRAME


class PoseSource(ABC):
    """Supplies the sensor pose relative to the map frame.

    lookup() must return promptly. None means the pose is currently not
    resolvable; it is never a stand-in for a zero pose.
    """

    @abstractmethod
    def lookup(self, stamp: Optional[float] = None) -> Optional[StampedPose]:
        """Sensor pose (meters, radians) at `stamp`; None for latest available."""
        pass


class StaticPoseSource(PoseSource):
    """Fixed sensor pose. `available=False` emulates a missing transform."""

    def __init__(self, pose: Optional[Pose2D] = None, available: bool = True,
                 clock: Callable[[], float] = time.time) -> None:
        self._pose = pose.copy() if pose is not None else None
        self.available = available
        self._clock = clock

    def set_pose(self, pose: Optional[Pose2D]) -> None:
        self._pose = pose.copy() if pose is not None else None

    def lookup(self, stamp: Optional[float] = None) -> Optional[StampedPose]:
        if not self.available or self._pose is None:
            return None
        t = self._clock() if stamp is None else stamp
        return StampedPose(self._pose.copy(), t)


class MapPoseResolver:
    """Turns map-frame sensor poses into poses in a grid's pixel frame.

    The grid's declared origin is the map -> image transform; positions are
    translated by it and scaled by the grid resolution. Heading is unchanged.
    """

    def __init__(self, source: PoseSource) -> None:
        self.source = source

    def resolve(self, grid, stamp: Optional[float] = None) -> Optional[StampedPose]:
        """Pixel-frame pose for `grid`, or None when the source has no pose."""
        stamped = self.source.lookup(stamp)
        if stamped is None:
            return None
        return StampedPose(pose_to_pixel(stamped.pose, grid), stamped.stamp, IMAGE_FRAME)
