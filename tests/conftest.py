from __future__ import annotations

import json

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from indoorlocation.positioning.floorplan import Anchor, Floor, Floorplan

SQUARE_CORNERS = [(0.0, 0.0, 0.0), (10.0, 0.0, 0.0), (0.0, 10.0, 0.0), (10.0, 10.0, 0.0)]


def _true_distances(anchors, target) -> dict[str, float]:
    target = np.asarray(target, dtype=np.float64)
    return {anchor.id: float(np.linalg.norm(anchor.location - target)) for anchor in anchors}


@pytest.fixture
def true_distances():
    """Noise-free distance readings from anchors to a target."""
    return _true_distances


@pytest.fixture
def square_anchors() -> list[Anchor]:
    return [Anchor(id=f"corner-{i}", location=corner, exact=True) for i, corner in enumerate(SQUARE_CORNERS)]


@pytest.fixture
def square_bounds():
    return np.array([0.0, 0.0, 0.0]), np.array([10.0, 10.0, 0.0])


@pytest.fixture
def room_floorplan() -> Floorplan:
    """A 10 x 8 x 2.5 m room with four UWB anchors and three BLE anchors."""
    return Floorplan(
        floors=[Floor(min_corner=[0.0, 0.0, 0.0], max_corner=[10.0, 8.0, 2.5], name="ground")],
        anchors=[
            Anchor(id="uwb-1", location=[0.0, 0.0, 2.4], exact=True),
            Anchor(id="uwb-2", location=[10.0, 0.0, 2.4], exact=True),
            Anchor(id="uwb-3", location=[10.0, 8.0, 2.4], exact=True),
            Anchor(id="uwb-4", location=[0.0, 8.0, 0.5], exact=True),
            Anchor(id="ble-1", location=[7.0, 6.0, 1.0], exact=False),
            Anchor(id="ble-2", location=[8.0, 2.0, 1.0], exact=False),
            Anchor(id="ble-3", location=[2.0, 7.0, 1.0], exact=False),
        ],
    )


@pytest.fixture
def floorplan_file(tmp_path, room_floorplan):
    path = tmp_path / "floorplan.json"
    path.write_text(json.dumps(room_floorplan.to_dict()))
    return path
