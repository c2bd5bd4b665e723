import math

import pytest

from core import Pose2D, MapOrigin, ScanConfig, ConfigurationError
from core.pose_source import StaticPoseSource
from sim.grid_store import GridStore
from sim.ray_cast import scan
from driver import ScanDriver, DriverState


CFG = ScanConfig(angle_min=-math.pi / 2, angle_max=math.pi / 2, angle_increment=math.pi / 8,
                 range_min=0.05, range_max=5.0)


@pytest.fixture
def rig(clock, log_capture):
    logger_func, log_file, messages = log_capture
    store = GridStore(logger_func=logger_func, log_file=log_file)
    source = StaticPoseSource(Pose2D(0.25, 1.05, 0.0), clock=clock)
    emitted = []
    driver = ScanDriver(store, source, CFG, emitted.append, frame_id="laser",
                        logger_func=logger_func, log_file=log_file, clock=clock)
    return driver, store, source, emitted, messages


def warnings(messages):
    return [m for mod, m in messages if mod == "DRIVER" and m.startswith("[WARN]")]


def test_no_emission_before_map(rig):
    driver, _, _, emitted, messages = rig
    for _ in range(3):
        assert driver.tick() is None
    assert emitted == []
    assert driver.state == DriverState.WAITING_FOR_MAP
    assert driver.stats['skipped_no_map'] == 3
    assert len(warnings(messages)) == 1


def test_first_map_enables_scanning(rig, make_grid):
    driver, store, _, emitted, _ = rig
    driver.tick()
    grid = make_grid(20, 20, blocked=[(12, 10)], resolution=0.1)
    driver.handle_grid(grid)
    assert driver.state == DriverState.READY

    result = driver.tick()
    assert emitted == [result]
    assert result.stamp == 100.0
    assert result.frame_id == "laser"
    assert result.ranges == pytest.approx(scan(grid, (2.5, 10.5), 0.0, CFG).ranges)
    assert result.ranges[4] == pytest.approx(0.95)
    assert driver.last_scan is result


def test_map_placed_in_store_directly_is_picked_up(rig, make_grid):
    driver, store, _, emitted, _ = rig
    store.set_grid(make_grid(20, 20))
    assert driver.tick() is not None
    assert driver.state == DriverState.READY
    assert len(emitted) == 1


def test_pose_unavailable_skips_tick(rig, make_grid, clock):
    driver, _, source, emitted, messages = rig
    driver.handle_grid(make_grid(20, 20))
    source.available = False

    assert driver.tick() is None
    assert driver.tick() is None
    assert emitted == []
    assert driver.stats['skipped_no_pose'] == 2
    assert driver.state == DriverState.READY
    assert len(warnings(messages)) == 1

    clock.advance(10.0)
    driver.tick()
    assert len(warnings(messages)) == 2

    source.available = True
    assert driver.tick() is not None
    assert len(emitted) == 1


def test_pose_converted_through_grid_origin(rig, make_grid):
    driver, _, source, _, _ = rig
    source.set_pose(Pose2D(0.0, -1.0, 0.0))
    driver.handle_grid(make_grid(30, 30, resolution=0.1, origin=MapOrigin(-1.0, -2.0, 0.0)))
    result = driver.tick()
    assert (result.robot_pose.x, result.robot_pose.y) == pytest.approx((10.0, 10.0))


def test_map_replacement_used_on_next_tick(rig, make_grid):
    driver, _, _, _, _ = rig
    driver.handle_grid(make_grid(20, 20))
    assert driver.tick().ranges[4] == CFG.range_max

    driver.handle_grid(make_grid(20, 20, blocked=[(7, 10)], resolution=0.1))
    assert driver.tick().ranges[4] == pytest.approx(0.45)
    assert driver.state == DriverState.READY


def test_handle_map_message(rig):
    driver, store, _, _, _ = rig
    data = [0] * 400
    data[10 * 20 + 12] = 100
    grid = driver.handle_map({"info": {"width": 20, "height": 20, "resolution": 0.1,
                                       "origin": {"x": 0.0, "y": 0.0, "theta": 0.0}},
                              "data": data})
    assert store.current_grid() is grid
    assert driver.tick().ranges[4] == pytest.approx(0.95)


def test_bad_map_message_leaves_state(rig):
    driver, store, _, _, _ = rig
    with pytest.raises(ConfigurationError):
        driver.handle_map({"info": {"width": 2, "height": 2, "resolution": 0.1}, "data": [0]})
    assert driver.state == DriverState.WAITING_FOR_MAP
    assert not store.has_map()


def test_emit_failure_is_logged_and_counted(clock, log_capture, make_grid):
    logger_func, log_file, messages = log_capture

    def broken(_scan):
        raise IOError("link down")

    driver = ScanDriver(GridStore(logger_func=logger_func, log_file=log_file),
                        StaticPoseSource(Pose2D(1.0, 1.0, 0.0), clock=clock), CFG, broken,
                        logger_func=logger_func, log_file=log_file, clock=clock)
    driver.handle_grid(make_grid(20, 20))
    assert driver.tick() is None
    assert driver.stats['emit_errors'] == 1
    assert driver.stats['emitted'] == 0
    assert any("[ERROR]" in m and "link down" in m for _, m in messages)


def test_bad_config_rejected_at_construction(clock):
    with pytest.raises(ConfigurationError):
        ScanDriver(GridStore(), StaticPoseSource(Pose2D(0, 0, 0), clock=clock),
                   ScanConfig(angle_increment=0.0), lambda s: None, clock=clock)


def test_last_frame_keeps_grid_of_each_scan(rig, make_grid):
    driver, store, _, _, _ = rig
    assert driver.last_frame is None and driver.last_scan is None
    first = make_grid(20, 20)
    driver.handle_grid(first)
    scan_a = driver.tick()
    assert driver.last_frame == (first, scan_a)

    second = make_grid(20, 20, blocked=[(7, 10)], resolution=0.1)
    store.set_grid(second)
    assert driver.last_frame[0] is first

    scan_b = driver.tick()
    grid, latest = driver.last_frame
    assert grid is second and latest is scan_b
    assert driver.last_scan is scan_b
