import json
import math

import numpy as np
import pytest

from core import ConfigurationError, ScanConfig, CELL_FREE, CELL_OCCUPIED, CELL_UNKNOWN
from sim.ray_cast import scan
from sim.map_loader import (
    collapse_occupancy, grid_from_message, grid_to_message, grid_from_segments,
    load_map_json, save_map_json, empty_room,
)


def message(width, height, data, resolution=0.1, origin=None, frame_id="map"):
    return {
        "header": {"frame_id": frame_id},
        "info": {"width": width, "height": height, "resolution": resolution,
                 "origin": origin or {"x": 0.0, "y": 0.0, "theta": 0.0}},
        "data": data,
    }


def test_collapse_occupancy_tri_state():
    out = collapse_occupancy([-1, 0, 1, 49, 50, 100, 254, 255])
    assert out.tolist() == [CELL_UNKNOWN, CELL_FREE, CELL_OCCUPIED, CELL_OCCUPIED,
                            CELL_OCCUPIED, CELL_OCCUPIED, CELL_OCCUPIED, CELL_UNKNOWN]


def test_low_occupancy_value_blocks_rays():
    width, height = 10, 3
    data = [0] * (width * height)
    data[1 * width + 8] = 30
    grid = grid_from_message(message(width, height, data, resolution=0.5))
    assert grid.is_blocking(8, 1)
    cfg = ScanConfig(angle_min=0.0, angle_max=0.0, angle_increment=0.1,
                     range_min=0.0, range_max=10.0)
    result = scan(grid, (0.5, 1.5), 0.0, cfg)
    assert result.ranges[0] == pytest.approx(7.5 * 0.5)


def test_collapse_occupancy_threshold():
    assert collapse_occupancy([10, 20], occupied_threshold=15).tolist() == [CELL_FREE, CELL_OCCUPIED]


def test_grid_from_message():
    grid = grid_from_message(message(3, 2, [0, 100, -1, 0, 0, 100], resolution=0.05,
                                     origin={"x": -1.0, "y": 2.0, "theta": 0.0},
                                     frame_id="world"))
    assert (grid.width, grid.height, grid.resolution) == (3, 2, 0.05)
    assert grid.frame_id == "world"
    assert (grid.origin.x, grid.origin.y) == (-1.0, 2.0)
    assert grid.is_blocking(1, 0)
    assert grid.is_blocking(2, 1)
    assert not grid.is_blocking(2, 0)
    assert grid.cells[0, 2] == CELL_UNKNOWN


def test_origin_from_quaternion_pose():
    origin = {"position": {"x": 1.0, "y": 2.0, "z": 0.0},
              "orientation": {"x": 0.0, "y": 0.0,
                              "z": math.sin(math.pi / 4), "w": math.cos(math.pi / 4)}}
    grid = grid_from_message(message(1, 1, [0], origin=origin))
    assert grid.origin.x == 1.0
    assert grid.origin.theta == pytest.approx(math.pi / 2)


def test_origin_as_list():
    grid = grid_from_message(message(1, 1, [0], origin=[0.5, -0.5, 0.0]))
    assert (grid.origin.x, grid.origin.y) == (0.5, -0.5)


@pytest.mark.parametrize("msg", [
    None,
    {"data": [0]},
    {"info": {"width": 1, "height": 1}, "data": [0]},
    {"info": {"width": 1, "height": 1, "resolution": 0.1}},
    message(2, 2, [0, 0, 0]),
    message(0, 0, []),
])
def test_bad_message_is_rejected(msg):
    with pytest.raises(ConfigurationError):
        grid_from_message(msg)


def test_message_round_trip():
    original = grid_from_message(message(3, 2, [0, 100, -1, 0, 0, 100],
                                         origin={"x": 1.0, "y": 1.5, "theta": 0.0}))
    again = grid_from_message(grid_to_message(original))
    assert np.array_equal(original.cells, again.cells)
    assert again.origin.y == 1.5


def test_segments_are_rasterized():
    data = {"metadata": {"cell_size_m": 1.0, "resolution_m": 0.25, "origin_offset_m": [0.5, 0.5]},
            "segments": [{"start": [0, 0], "end": [2, 0]}]}
    grid = grid_from_segments(data)
    assert (grid.width, grid.height) == (13, 5)
    row = grid.blocking[2]
    assert row[2:11].all()
    assert not row[:2].any() and not row[11:].any()
    assert grid.counts()['occupied'] == 9


def test_segments_wall_width():
    data = {"metadata": {"cell_size_m": 1.0, "resolution_m": 0.25, "origin_offset_m": [0.5, 0.5],
                         "wall_width_cells": 3},
            "segments": [{"start": [0, 0], "end": [0, 1]}]}
    grid = grid_from_segments(data)
    # vertical wall at column 2, widened to columns 1..3
    assert grid.blocking[2:7, 1:4].all()
    assert not grid.blocking[:, 0].any()


def test_segment_map_without_segments():
    with pytest.raises(ConfigurationError):
        grid_from_segments({"segments": []})


def test_load_map_json_both_forms(tmp_path, log_capture):
    logger_func, log_file, messages = log_capture
    grid_path = tmp_path / "grid.json"
    grid_path.write_text(json.dumps(message(2, 2, [0, 100, 0, 0])))
    seg_path = tmp_path / "maze.json"
    seg_path.write_text(json.dumps({"metadata": {"cell_size_m": 1.0, "resolution_m": 0.5},
                                    "segments": [{"start": [0, 0], "end": [1, 1]}]}))

    g = load_map_json(str(grid_path), log_file=log_file, logger_func=logger_func)
    assert g.is_blocking(1, 0)
    m = load_map_json(str(seg_path), log_file=log_file, logger_func=logger_func)
    assert m.is_blocking(0, 0) and m.is_blocking(2, 2)
    assert [mod for mod, _ in messages] == ["MAP", "MAP"]


def test_save_and_load_round_trip(tmp_path):
    room = empty_room(6, 4, 0.2)
    path = tmp_path / "room.json"
    save_map_json(room, str(path))
    loaded = load_map_json(str(path))
    assert np.array_equal(loaded.cells, room.cells)
    assert loaded.resolution == 0.2


def test_empty_room_has_closed_border():
    room = empty_room(5, 4, 0.1)
    assert room.blocking[0].all() and room.blocking[-1].all()
    assert room.blocking[:, 0].all() and room.blocking[:, -1].all()
    assert not room.blocking[1:-1, 1:-1].any()
