from indoorlocation.positioning.cost_model import IndoorLocationModel
from indoorlocation.positioning.estimator import PositionEstimate, PositionEstimator
from indoorlocation.positioning.floorplan import Anchor, Floor, Floorplan
from indoorlocation.positioning.probes import ProbeTrace

__all__ = [
    "Anchor",
    "Floor",
    "Floorplan",
    "IndoorLocationModel",
    "PositionEstimate",
    "PositionEstimator",
    "ProbeTrace",
]
