# ================================
# file: core/__init__.py
# ================================
"""
Core Package

Exports fundamental types, configurations, and utilities.
"""
from core.types import (
    Pose2D, StampedPose, MapOrigin, ScanConfig, OccupancyGrid,
    LaserScan, ScanResult, ConfigurationError,
)
from core.coords import world_to_pixel, pixel_to_world, pose_to_pixel, pixel_to_pose
from core.config import (
    # Scan configuration
    SCAN_ANGLE_MIN, SCAN_ANGLE_MAX, SCAN_ANGLE_INCREMENT,
    SCAN_RANGE_MIN, SCAN_RANGE_MAX, SCAN_BELOW_MIN_POLICY,
    BELOW_MIN_NO_RETURN, BELOW_MIN_CLAMP,

    # Map configuration
    CELL_FREE, CELL_OCCUPIED, CELL_UNKNOWN, MAP_OCCUPIED_THRESHOLD,

    # Frames & driver
    MAP_FRAME, IMAGE_FRAME, LASER_FRAME, SCAN_RATE_HZ,
)
from core.pose_source import PoseSource, StaticPoseSource, MapPoseResolver

__all__ = [
    # Types
    'Pose2D', 'StampedPose', 'MapOrigin', 'ScanConfig', 'OccupancyGrid',
    'LaserScan', 'ScanResult', 'ConfigurationError',

    # Coordinates
    'world_to_pixel', 'pixel_to_world', 'pose_to_pixel', 'pixel_to_pose',

    # Configuration
    'SCAN_ANGLE_MIN', 'SCAN_ANGLE_MAX', 'SCAN_ANGLE_INCREMENT',
    'SCAN_RANGE_MIN', 'SCAN_RANGE_MAX', 'SCAN_BELOW_MIN_POLICY',
    'BELOW_MIN_NO_RETURN', 'BELOW_MIN_CLAMP',
    'CELL_FREE', 'CELL_OCCUPIED', 'CELL_UNKNOWN', 'MAP_OCCUPIED_THRESHOLD',
    'MAP_FRAME', 'IMAGE_FRAME', 'LASER_FRAME', 'SCAN_RATE_HZ',

    # Pose lookup
    'PoseSource', 'StaticPoseSource', 'MapPoseResolver',
]
