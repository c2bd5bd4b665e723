# ================================
# file: main.py
# ================================
from __future__ import annotations
"""Project entrypoint: loads a map and publishes simulated laser scans on a timer.

Usage:
    python main.py --map ./data/maze.json --pose 0.35 0.35 1.57 --stream scans.jsonl
    python main.py --map ./data/maze.json --pose 0.35 0.35 1.57 --v 0.2 --w 0.3 --gui
    python main.py --room 200 200 0.05 --stream - --duration 2
"""
import argparse
import math
import sys
import time
from typing import Optional

from core import Pose2D, ScanConfig, ConfigurationError
from core.config import (
    SCAN_ANGLE_MIN, SCAN_ANGLE_MAX, SCAN_ANGLE_INCREMENT, SCAN_RANGE_MIN,
    SCAN_RANGE_MAX, SCAN_BELOW_MIN_POLICY, BELOW_MIN_POLICIES, SCAN_RATE_HZ,
    LASER_FRAME,
)
from sim import GridStore, RobotSim, load_map_json, empty_room
from driver import ScanDriver, PeriodicTimer
from appio import DataLogger, ScanStreamPublisher, log_to_file, open_run_log


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Simulated laser scanner over an occupancy grid")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--map", help="Map JSON (grid message or segment maze)")
    src.add_argument("--room", nargs=3, type=float, metavar=("W", "H", "RES"),
                     help="Empty walled room of W x H cells at RES m/cell")
    p.add_argument("--pose", nargs=3, type=float, default=[1.0, 1.0, 0.0],
                   metavar=("X", "Y", "THETA"), help="Initial sensor pose in the map frame")
    p.add_argument("--v", type=float, default=0.0, help="Carrier linear velocity (m/s)")
    p.add_argument("--w", type=float, default=0.0, help="Carrier angular velocity (rad/s)")
    p.add_argument("--rate", type=float, default=SCAN_RATE_HZ, help="Scan rate (Hz)")
    p.add_argument("--duration", type=float, default=5.0, help="Run time (s); <=0 runs until Ctrl+C")
    p.add_argument("--map-reload", type=float, default=0.0,
                   help="Re-read --map every N seconds on a separate thread (0 = never)")
    p.add_argument("--frame", default=LASER_FRAME, help="Laser frame id")
    p.add_argument("--angle-min", type=float, default=SCAN_ANGLE_MIN)
    p.add_argument("--angle-max", type=float, default=SCAN_ANGLE_MAX)
    p.add_argument("--angle-increment", type=float, default=SCAN_ANGLE_INCREMENT)
    p.add_argument("--range-min", type=float, default=SCAN_RANGE_MIN)
    p.add_argument("--range-max", type=float, default=SCAN_RANGE_MAX)
    p.add_argument("--below-min", choices=BELOW_MIN_POLICIES, default=SCAN_BELOW_MIN_POLICY)
    p.add_argument("--record", default=None, help="Save emitted scans to this NPZ file")
    p.add_argument("--stream", default=None,
                   help="Write JSON-line scans to a file, '-' for stdout, or serial:PORT[@BAUD]")
    p.add_argument("--gui", action="store_true", help="Show a live Matplotlib view")
    return p


def build_config(args) -> ScanConfig:
    return ScanConfig(angle_min=args.angle_min, angle_max=args.angle_max,
                      angle_increment=args.angle_increment,
                      range_min=args.range_min, range_max=args.range_max,
                      below_min=args.below_min).validate()


def _open_stream(target: Optional[str]):
    """Returns (publisher, file_to_close)."""
    if target is None:
        return None, None
    if target == "-":
        return ScanStreamPublisher(stream=sys.stdout), None
    if target.startswith("serial:"):
        port = target[len("serial:"):]
        baud = 115200
        if "@" in port:
            port, baud_s = port.rsplit("@", 1)
            baud = int(baud_s)
        return ScanStreamPublisher(port=port, baud=baud), None
    f = open(target, "w", encoding="utf-8")
    return ScanStreamPublisher(stream=f), f


def run(args) -> int:
    log_file = open_run_log()
    stream_file = None
    publisher = None
    timers = []
    viewer = None
    recorder = DataLogger() if args.record else None
    try:
        log_to_file(log_file, "=" * 60)
        log_to_file(log_file, "simulated scanner run")
        log_to_file(log_file, f"map: {args.map if args.map else 'room %s' % (args.room,)}")
        log_to_file(log_file, f"rate: {args.rate:.1f} Hz, duration: {args.duration:.1f} s")
        log_to_file(log_file, "=" * 60)

        config = build_config(args)
        log_to_file(log_file, f"scan: [{config.angle_min:.3f}, {config.angle_max:.3f}] step "
                              f"{config.angle_increment:.4f} -> {config.sample_count()} beams, "
                              f"range [{config.range_min:.2f}, {config.range_max:.2f}] m, "
                              f"below_min={config.below_min}", "INIT")

        store = GridStore(logger_func=log_to_file, log_file=log_file)
        carrier = RobotSim(store, Pose2D(*args.pose))
        carrier.apply_control(args.v, args.w)
        publisher, stream_file = _open_stream(args.stream)

        def emit(scan):
            if recorder is not None:
                recorder.log_scan(scan)
            if publisher is not None:
                publisher.publish(scan)

        driver = ScanDriver(store, carrier, config, emit, frame_id=args.frame,
                            logger_func=log_to_file, log_file=log_file)

        def load_map():
            if args.map:
                grid = load_map_json(args.map, log_file=log_file, logger_func=log_to_file)
            else:
                w, h, res = args.room
                grid = empty_room(int(w), int(h), res)
            driver.handle_grid(grid)
            if recorder is not None:
                recorder.log_map(grid)

        load_map()

        if args.rate <= 0:
            raise ConfigurationError(f"scan rate must be > 0, got {args.rate}")
        period = 1.0 / args.rate

        def step():
            carrier.update(period)
            driver.tick()

        scan_timer = PeriodicTimer(period, step, logger_func=log_to_file, log_file=log_file)
        timers.append(scan_timer)
        if args.map and args.map_reload > 0:
            timers.append(PeriodicTimer(args.map_reload, load_map,
                                        logger_func=log_to_file, log_file=log_file))

        if args.gui:
            from gui import ScanViewer, select_backend
            select_backend(interactive=True)
            viewer = ScanViewer()

        for t in timers:
            t.start()
        t_end = time.monotonic() + args.duration if args.duration > 0 else math.inf
        while (time.monotonic() < t_end and scan_timer.is_running()
               and all(t.error is None for t in timers)):
            frame = driver.last_frame
            if viewer is not None and frame is not None:
                viewer.update(*frame)
                viewer.refresh(0.05)
            else:
                time.sleep(0.05)

        for t in timers:
            t.stop()
        log_to_file(log_file, f"driver stats: {driver.stats}, timer overruns: {scan_timer.overruns}")
        failed = [t for t in timers if t.error is not None]
        for t in failed:
            log_to_file(log_file, f"[ERROR] run aborted: {t.error!r}")
        return 1 if failed else 0
    except ConfigurationError as e:
        log_to_file(log_file, f"[ERROR] configuration: {e}")
        return 2
    except KeyboardInterrupt:
        log_to_file(log_file, "user interrupted (Ctrl+C), shutting down")
        return 0
    finally:
        for t in timers:
            t.stop()
        if recorder is not None:
            recorder.save(args.record)
            log_to_file(log_file, f"saved {recorder.scan_count()} scans to {args.record}")
        if publisher is not None:
            publisher.close()
        if stream_file is not None:
            stream_file.close()
        if viewer is not None:
            viewer.close()
        log_file.close()


def main(argv=None) -> int:
    args = build_arg_parser().parse_args(argv)
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
