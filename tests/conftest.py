import numpy as np
import pytest

from core import OccupancyGrid, MapOrigin


class FakeClock:
    def __init__(self, t=100.0):
        self.t = float(t)

    def __call__(self):
        return self.t

    def advance(self, dt):
        self.t += dt


@pytest.fixture
def make_grid():
    """make_grid(width, height, blocked=[(ix, iy), ...], resolution=0.1, origin=None)"""
    def _make(width, height, blocked=(), resolution=0.1, origin=None):
        bm = np.zeros((height, width), dtype=bool)
        for ix, iy in blocked:
            bm[iy, ix] = True
        return OccupancyGrid.from_bitmap(bm, resolution, origin=origin)
    return _make


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def log_capture():
    """(logger_func, log_file, messages) triple for components taking an injected logger."""
    messages = []

    def logger_func(log_file, message, module="MAIN"):
        messages.append((module, message))

    return logger_func, object(), messages


@pytest.fixture
def origin():
    return MapOrigin(0.0, 0.0, 0.0)
