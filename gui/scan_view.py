# ================================
# file: gui/scan_view.py
# ================================
from __future__ import annotations
from typing import Optional, Tuple
import numpy as np
import matplotlib
import matplotlib.pyplot as plt
from matplotlib.collections import LineCollection

from core import OccupancyGrid, LaserScan, Pose2D, CELL_OCCUPIED, CELL_UNKNOWN


def select_backend(interactive: bool = True) -> str:
    """Pick the first usable interactive backend, else Agg."""
    if interactive:
        for backend in ["TkAgg", "Qt5Agg", "QtAgg", "MacOSX"]:
            try:
                matplotlib.use(backend, force=True)
                print(f"[GUI] matplotlib backend: {backend}")
                return backend
            except Exception as e:
                print(f"[GUI] backend {backend} unavailable: {e}")
    matplotlib.use("Agg", force=True)
    print("[GUI] matplotlib backend: Agg (non-interactive)")
    return "Agg"


def grid_image(grid: OccupancyGrid) -> np.ndarray:
    """Grayscale view: free white, unknown gray, occupied black."""
    img = np.full(grid.cells.shape, 255, dtype=np.uint8)
    img[grid.cells == CELL_UNKNOWN] = 160
    img[grid.cells == CELL_OCCUPIED] = 0
    return img


def scan_endpoints(scan: LaserScan, pose_px: Pose2D, resolution: float) -> Tuple[np.ndarray, np.ndarray]:
    """Beam end points in pixel coordinates for a scan taken at pose_px."""
    ang = pose_px.theta + scan.angles()
    r_px = np.asarray(scan.ranges, dtype=np.float64) / resolution
    return (pose_px.x + r_px * np.cos(ang), pose_px.y + r_px * np.sin(ang))


class ScanViewer:
    """Matplotlib view of the grid with the latest scan overlaid (pixel frame)."""

    def __init__(self, ax=None, show_rays: bool = True) -> None:
        if ax is None:
            self.fig, self.ax = plt.subplots(figsize=(7, 7))
        else:
            self.ax = ax
            self.fig = ax.figure
        self.show_rays = show_rays
        self._image = None
        self._grid = None
        self._hits = None
        self._misses = None
        self._rays = None
        self._robot = None

    def set_grid(self, grid: OccupancyGrid) -> None:
        if self._grid is grid:
            return
        self._grid = grid
        img = grid_image(grid)
        extent = [0, grid.width, 0, grid.height]
        if self._image is None:
            self._image = self.ax.imshow(img, cmap='gray', origin='lower',
                                         vmin=0, vmax=255, extent=extent)
        else:
            self._image.set_data(img)
            self._image.set_extent(extent)
        self.ax.set_xlim(0, grid.width)
        self.ax.set_ylim(0, grid.height)
        self.ax.set_title(f"{grid.width}x{grid.height} @ {grid.resolution:.3f} m/px")

    def update(self, grid: OccupancyGrid, scan: LaserScan, pose_px: Optional[Pose2D] = None) -> None:
        self.set_grid(grid)
        pose_px = pose_px or scan.robot_pose
        if pose_px is None:
            return
        xs, ys = scan_endpoints(scan, pose_px, grid.resolution)
        hit = scan.hits()

        for artist in (self._hits, self._misses, self._rays, self._robot):
            if artist is not None:
                artist.remove()
        self._rays = None
        if self.show_rays:
            segs = np.stack([
                np.column_stack([np.full(xs.shape, pose_px.x), np.full(ys.shape, pose_px.y)]),
                np.column_stack([xs, ys]),
            ], axis=1)
            self._rays = LineCollection(segs, colors='tab:orange', linewidths=0.3, alpha=0.4)
            self.ax.add_collection(self._rays)
        self._hits = self.ax.scatter(xs[hit], ys[hit], s=4, c='tab:red')
        self._misses = self.ax.scatter(xs[~hit], ys[~hit], s=2, c='tab:blue', alpha=0.3)
        self._robot = self.ax.scatter([pose_px.x], [pose_px.y], s=30, c='tab:green', marker='o')

    def refresh(self, pause: float = 0.001) -> None:
        self.fig.canvas.draw_idle()
        plt.pause(pause)

    def save(self, path: str) -> None:
        self.fig.savefig(path, dpi=120)

    def close(self) -> None:
        plt.close(self.fig)
