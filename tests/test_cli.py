from __future__ import annotations

import io
import json
import logging

import pytest

from indoorlocation.__main__ import load_distances, main
from indoorlocation.config import ASSETS_PATH
from indoorlocation.logging_config import setup_logging


@pytest.fixture
def write_distances(tmp_path):
    def _write(distances, name="distances.json"):
        path = tmp_path / name
        path.write_text(json.dumps(distances))
        return str(path)
    return _write


@pytest.fixture
def room_readings(room_floorplan, true_distances):
    exact = [anchor for anchor in room_floorplan.anchors if anchor.exact]
    return true_distances(exact, [4.0, 3.0, 1.2])


def test_prints_estimated_position(capsys, floorplan_file, write_distances, room_readings):
    code = main(["--floorplan", str(floorplan_file), "--distances", write_distances(room_readings)])

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert lines[0] == "4.00 3.00 1.20"
    assert lines[1].startswith("error: ")


def test_bundled_example(capsys):
    code = main(["--distances", f"{ASSETS_PATH}/distances_example.json"])
    assert code == 0
    assert len(capsys.readouterr().out.splitlines()[0].split()) == 3


def test_too_few_readings(capsys, floorplan_file, write_distances):
    code = main(["--floorplan", str(floorplan_file), "--distances", write_distances({"uwb-1": 3.0})])
    assert code == 1
    assert "Not enough" in capsys.readouterr().out


def test_unknown_anchor(floorplan_file, write_distances, room_readings):
    path = write_distances({**room_readings, "ghost": 2.0})
    assert main(["--floorplan", str(floorplan_file), "--distances", path]) == 2
    assert main(["--floorplan", str(floorplan_file), "--distances", path, "--ignore-unknown"]) == 0


def test_missing_and_malformed_inputs(tmp_path, floorplan_file, write_distances):
    distances = write_distances({"uwb-1": 3.0, "uwb-2": 4.0})
    assert main(["--floorplan", str(tmp_path / "missing.json"), "--distances", distances]) == 2

    broken = tmp_path / "broken.json"
    broken.write_text("[1, 2")
    assert main(["--floorplan", str(broken), "--distances", distances]) == 2
    assert main(["--floorplan", str(floorplan_file), "--distances", str(broken)]) == 2


def test_load_distances(write_distances):
    assert load_distances(write_distances({"a": 1, "b": 2.5})) == {"a": 1.0, "b": 2.5}
    with pytest.raises(ValueError):
        load_distances(write_distances([1.0, 2.0]))
    with pytest.raises(ValueError):
        load_distances(write_distances({"a": "far"}))


def test_saves_probe_plot(tmp_path, floorplan_file, write_distances, room_readings):
    image = tmp_path / "probes.png"
    code = main([
        "--floorplan", str(floorplan_file),
        "--distances", write_distances(room_readings),
        "--max-iterations", "200",
        "--plot", str(image),
    ])
    assert code == 0
    assert image.stat().st_size > 0


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "run.log"
    logger = setup_logging(level=logging.DEBUG, log_file=str(log_file))
    logging.getLogger("indoorlocation.test").info("hello from the estimator")
    for handler in logger.handlers:
        handler.flush()

    assert logger.name == "indoorlocation"
    assert "hello from the estimator" in log_file.read_text(encoding="utf-8")
    assert logging.getLogger("matplotlib").level == logging.WARNING
    setup_logging(level=logging.WARNING)


def test_setup_logging_replaces_handlers():
    stream = io.StringIO()
    setup_logging(level=logging.INFO)
    logger = setup_logging(level=logging.INFO, stream=stream)
    logging.getLogger("indoorlocation.test").info("only once")

    assert len(logger.handlers) == 1
    assert stream.getvalue().count("only once") == 1
    setup_logging(level=logging.WARNING)


def test_verbose_logs_stay_off_stdout(capsys, floorplan_file, write_distances, room_readings):
    code = main(["--floorplan", str(floorplan_file), "--distances", write_distances(room_readings), "-v"])

    captured = capsys.readouterr()
    assert code == 0
    assert captured.out.splitlines()[0] == "4.00 3.00 1.20"
    assert len(captured.out.splitlines()) == 2
    assert "Loading floorplan" in captured.err
    setup_logging(level=logging.WARNING)


def test_prints_residuals(capsys, floorplan_file, write_distances, room_readings):
    code = main([
        "--floorplan", str(floorplan_file),
        "--distances", write_distances(room_readings),
        "--residuals",
    ])

    lines = capsys.readouterr().out.splitlines()
    assert code == 0
    assert len(lines) == 2 + len(room_readings)
    assert lines[2].startswith("uwb-1 (exact): measured ")
    assert all(line.endswith("residual +0.00") or line.endswith("residual -0.00") for line in lines[2:])
