"""
Configuration & Tunables
========================
This module serves as the central registry for file paths and the tuning
constants of the positioning core.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (residual cap, anchor weighting,
   simplex coefficients) from being scattered throughout the code.
2. Deployment: It resolves the assets directory (example floorplans) both in
   development and when the application is frozen with PyInstaller.

Exports:
    ASSETS_PATH (str): Absolute path to the assets directory (overridable
        with the INDOORLOCATION_ASSETS environment variable).
    DEFAULT_FLOORPLAN_PATH (str): Absolute path to the example floorplan.
    CostModelConfig: Tunables of the multilateration cost model.
    OptimizerConfig: Tunables of the simplex search.
"""
from __future__ import annotations

import sys
import os
from dataclasses import dataclass
from pathlib import Path


ASSETS_ENV_VAR: str = "INDOORLOCATION_ASSETS"


def get_resource_path(relative_path: str) -> str:
    """
    Resolve a bundled resource (assets) to an absolute path.

    Lookup order: the PyInstaller bundle, then the source checkout
    (`src/indoorlocation/` -> project root).
    """
    bundle_dir = getattr(sys, '_MEIPASS', None)
    if bundle_dir is not None:
        return os.path.join(bundle_dir, relative_path)
    project_root: Path = Path(__file__).resolve().parents[2]
    return str(project_root / relative_path)


def get_assets_path() -> str:
    """Assets directory; the `INDOORLOCATION_ASSETS` environment variable overrides it."""
    override = os.environ.get(ASSETS_ENV_VAR)
    if override:
        return os.path.abspath(os.path.expanduser(override))
    return get_resource_path("assets")


# Global Constants
ASSETS_PATH: str = get_assets_path()
DEFAULT_FLOORPLAN_PATH: str = os.path.join(ASSETS_PATH, "floorplan_example.json")

# Cost model
RESIDUAL_CAP: float = 7.5  # m, upper clip of (computed - measured)
APPROXIMATE_KEEP_LIMIT: int = 3
EXACT_GROUP_THRESHOLD: int = 2  # exact-only cost when more anchors than this
EXACT_WEIGHT: float = 10.0

# Simplex search
REFLECTION: float = 1.0
EXPANSION: float = 2.0
CONTRACTION: float = 0.5
SHRINK: float = 0.5
INITIAL_STEP: float = 1.0  # fraction of (max - midpoint) per axis
COST_ABS_TOLERANCE: float = 1e-12
COST_REL_TOLERANCE: float = 1e-9
DEGENERATE_TOLERANCE: float = 1e-10
VERTEX_TOLERANCE: float = 1e-6  # fraction of the box span
PLATEAU_SAMPLES: int = 8  # grid cells per axis scanned when stuck on a plateau

# Estimator
DEFAULT_MAX_ITERATIONS: int = 10000
MIN_MEASUREMENTS: int = 2


@dataclass(frozen=True)
class CostModelConfig:
    """
    Tunables of the box-constrained multilateration cost.

    Attributes:
        residual_cap: Upper limit applied to (computed - measured) distance.
            Negative residuals are never clipped.
        approximate_keep_limit: Number of approximate-anchor measurements kept.
        exact_group_threshold: When more exact anchors than this are measured,
            approximate anchors are ignored.
        exact_weight: Weight of the exact-group mean in the blended cost.
    """
    residual_cap: float = RESIDUAL_CAP
    approximate_keep_limit: int = APPROXIMATE_KEEP_LIMIT
    exact_group_threshold: int = EXACT_GROUP_THRESHOLD
    exact_weight: float = EXACT_WEIGHT


@dataclass(frozen=True)
class OptimizerConfig:
    """
    Tunables of the Nelder-Mead simplex search.

    Attributes:
        reflection: Reflection coefficient (alpha).
        expansion: Expansion coefficient (gamma).
        contraction: Contraction coefficient (rho).
        shrink: Shrink coefficient (sigma).
        initial_step: Fraction of the distance from the midpoint to the upper
            bound used to build the initial vertices.
        f_atol: Absolute tolerance on the spread of vertex costs.
        f_rtol: Relative tolerance on the spread of vertex costs.
        degenerate_tolerance: Simplex extent (in units of the bounding box)
            below which the simplex is treated as collapsed.
        x_tol: Largest per-axis distance of a vertex from the best one, in
            units of the bounding box, still accepted as converged.
        plateau_samples: Grid cells per axis scanned once when the costs are
            equal over a wide simplex. 0 disables the scan.
    """
    reflection: float = REFLECTION
    expansion: float = EXPANSION
    contraction: float = CONTRACTION
    shrink: float = SHRINK
    initial_step: float = INITIAL_STEP
    f_atol: float = COST_ABS_TOLERANCE
    f_rtol: float = COST_REL_TOLERANCE
    degenerate_tolerance: float = DEGENERATE_TOLERANCE
    x_tol: float = VERTEX_TOLERANCE
    plateau_samples: int = PLATEAU_SAMPLES
