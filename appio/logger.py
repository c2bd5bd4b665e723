# ================================
# file: appio/logger.py
# ================================
from __future__ import annotations
from datetime import datetime
import os
import time
import numpy as np

from core import Pose2D, LaserScan, OccupancyGrid
from core.config import LOG_DIR, LOG_TIMESTAMP_FMT


def log_to_file(log_file, message, module="MAIN"):
    """Write message to log file with timestamp and module"""
    timestamp = datetime.now().strftime(LOG_TIMESTAMP_FMT)[:-3]
    log_entry = f"[{timestamp}] [{module}] {message}\n"
    log_file.write(log_entry)
    log_file.flush()  # Ensure immediate write
    print(log_entry.strip())  # Also print to console


def open_run_log(prefix: str = "scan_sim", log_dir: str = LOG_DIR):
    """Open a timestamped text log under log_dir. Caller closes it."""
    os.makedirs(log_dir, exist_ok=True)
    name = f"{prefix}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.txt"
    return open(os.path.join(log_dir, name), 'w', encoding='utf-8')


class DataLogger:
    """Simple NPZ logger for emitted scans, sensor poses and map snapshots.
    `log_scan` has the emitter signature, so a DataLogger can be the driver's sink.
    """
    def __init__(self) -> None:
        self.t0 = time.time()
        self.scans = []
        self.poses = []
        self.maps = []

    def log_scan(self, scan: LaserScan) -> None:
        t = scan.stamp if scan.stamp is not None else (time.time() - self.t0)
        self.scans.append((t, list(scan.ranges)))
        if scan.robot_pose is not None:
            self.log_pose(scan.robot_pose, t)

    __call__ = log_scan

    def log_pose(self, pose: Pose2D, t: float = None) -> None:
        t = (time.time() - self.t0) if t is None else t
        self.poses.append((t, pose.x, pose.y, pose.theta))

    def log_map(self, grid: OccupancyGrid) -> None:
        self.maps.append(np.asarray(grid.cells, dtype=np.int8).copy())

    def scan_count(self) -> int:
        return len(self.scans)

    def save(self, path: str) -> None:
        # Object array: scans may differ in length if the config changed
        scans_array = np.empty(len(self.scans), dtype=object)
        for i, s in enumerate(self.scans):
            scans_array[i] = s
        maps_array = np.empty(len(self.maps), dtype=object)
        for i, m in enumerate(self.maps):
            maps_array[i] = m
        np.savez_compressed(path, scans=scans_array,
                            poses=np.asarray(self.poses, dtype=np.float64).reshape(-1, 4),
                            maps=maps_array)
