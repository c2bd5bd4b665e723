import json

import numpy as np

import main
from appio import ScanStreamPublisher


def test_room_run_streams_and_records(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    rc = main.main(["--room", "40", "40", "0.1", "--pose", "2", "2", "0",
                    "--rate", "50", "--duration", "0.3",
                    "--record", "out.npz", "--stream", "scans.jsonl", "--range-max", "3.0"])
    assert rc == 0

    lines = (tmp_path / "scans.jsonl").read_text().splitlines()
    assert lines
    first = ScanStreamPublisher.decode(lines[0])
    assert first.range_max == 3.0
    assert first.frame_id == "laser"
    # the room walls are 1.9 m away along the beam at angle 0
    assert min(first.ranges) < 3.0

    data = np.load(str(tmp_path / "out.npz"), allow_pickle=True)
    assert len(data["scans"]) == len(lines)
    assert len(data["maps"]) == 1
    assert list((tmp_path / "logs").iterdir())


def test_map_file_run(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    data = [0] * 100
    for i in range(10):
        data[i * 10 + 9] = 100
    (tmp_path / "map.json").write_text(json.dumps(
        {"info": {"width": 10, "height": 10, "resolution": 0.5,
                  "origin": {"x": 0.0, "y": 0.0, "theta": 0.0}},
         "data": data}))
    rc = main.main(["--map", "map.json", "--pose", "1.25", "2.25", "0",
                    "--angle-min", "0", "--angle-max", "0",
                    "--rate", "40", "--duration", "0.2", "--stream", "out.jsonl"])
    assert rc == 0
    scans = [ScanStreamPublisher.decode(l) for l in (tmp_path / "out.jsonl").read_text().splitlines()]
    assert scans and all(s.beam_count() == 1 for s in scans)
    assert scans[0].ranges[0] == 3.25


def test_bad_config_exit_code(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert main.main(["--room", "10", "10", "0.1", "--angle-increment", "0"]) == 2
    assert main.main(["--room", "10", "10", "0.1", "--rate", "0"]) == 2


def test_failing_tick_gives_nonzero_exit(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    def broken_tick(self):
        raise RuntimeError("ray caster crashed")

    monkeypatch.setattr(main.ScanDriver, "tick", broken_tick)
    rc = main.main(["--room", "20", "20", "0.1", "--pose", "1", "1", "0",
                    "--rate", "50", "--duration", "2.0"])
    assert rc == 1
