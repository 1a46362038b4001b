"""Box-constrained multilateration with a Nelder-Mead simplex search."""
from indoorlocation.config import CostModelConfig, OptimizerConfig
from indoorlocation.optimization import Optimizable, SimplexResult, SimplexSearcher, TerminationStatus
from indoorlocation.positioning import (
    Anchor,
    Floor,
    Floorplan,
    IndoorLocationModel,
    PositionEstimate,
    PositionEstimator,
    ProbeTrace,
)

__version__ = "0.1.0"

__all__ = [
    "Anchor",
    "CostModelConfig",
    "Floor",
    "Floorplan",
    "IndoorLocationModel",
    "Optimizable",
    "OptimizerConfig",
    "PositionEstimate",
    "PositionEstimator",
    "ProbeTrace",
    "SimplexResult",
    "SimplexSearcher",
    "TerminationStatus",
]
