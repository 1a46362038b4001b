"""
Floorplan Data
==============
Anchor metadata and floor geometry consumed by the positioning core.

Classes:
    Anchor: Fixed radio landmark with a known location and a quality flag.
    Floor: Axis-aligned bounding box of one floor.
    Floorplan: Floors plus the anchors installed on them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, TYPE_CHECKING

import numpy as np

from indoorlocation.errors import (
    DimensionMismatchError,
    EmptyInputError,
    FloorplanError,
    NonFiniteInputError,
)
from indoorlocation.optimization.vector_utils import as_point, check_same_dimension

if TYPE_CHECKING:
    import numpy.typing as npt

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class Anchor:
    """
    A fixed-location radio landmark.

    `exact` marks anchors whose ranging is trusted (e.g. UWB); approximate
    anchors (e.g. BLE RSSI) only count when few exact ones are available.
    """
    id: str
    location: npt.NDArray[np.float64]
    exact: bool = True

    def __post_init__(self) -> None:
        location = as_point(self.location, f"location of anchor '{self.id}'")
        location.setflags(write=False)
        object.__setattr__(self, "location", location)

    @property
    def dimension(self) -> int:
        return len(self.location)

    def distance_to(self, point: npt.NDArray[np.float64]) -> float:
        return float(np.linalg.norm(self.location - point))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "location": self.location.tolist(), "exact": self.exact}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Anchor:
        try:
            return Anchor(
                id=str(data["id"]),
                location=data["location"],
                exact=bool(data.get("exact", True)),
            )
        except KeyError as e:
            raise FloorplanError(f"Anchor entry is missing the {e} field: {data}") from e


@dataclass(frozen=True, eq=False)
class Floor:
    """A floor, described by its axis-aligned bounding box."""
    min_corner: npt.NDArray[np.float64]
    max_corner: npt.NDArray[np.float64]
    name: str = ""

    def __post_init__(self) -> None:
        lower = as_point(self.min_corner, "floor min corner")
        upper = as_point(self.max_corner, "floor max corner")
        check_same_dimension([lower, upper], ["floor min corner", "floor max corner"])
        lower.setflags(write=False)
        upper.setflags(write=False)
        object.__setattr__(self, "min_corner", lower)
        object.__setattr__(self, "max_corner", upper)

    @property
    def bounds(self) -> tuple[npt.NDArray[np.float64], npt.NDArray[np.float64]]:
        return self.min_corner, self.max_corner

    @property
    def dimension(self) -> int:
        return len(self.min_corner)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "bounds": [self.min_corner.tolist(), self.max_corner.tolist()]}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Floor:
        bounds = data.get("bounds")
        if bounds is None or len(bounds) != 2:
            raise FloorplanError(f"Floor entry needs 'bounds' as [min_corner, max_corner]: {data}")
        return Floor(min_corner=bounds[0], max_corner=bounds[1], name=str(data.get("name", "")))


@dataclass
class Floorplan:
    """
    Floors and anchors of a site.

    Positioning runs on the first floor, anchor ids are unique.
    """
    floors: List[Floor] = field(default_factory=list)
    anchors: List[Anchor] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.floors:
            raise EmptyInputError("A floorplan needs at least one floor.")
        if not self.anchors:
            raise EmptyInputError("A floorplan needs at least one anchor.")

        seen = set()
        for anchor in self.anchors:
            if anchor.id in seen:
                raise FloorplanError(f"Duplicate anchor id '{anchor.id}'.")
            seen.add(anchor.id)
            if anchor.dimension != self.floor.dimension:
                raise DimensionMismatchError(
                    f"Anchor '{anchor.id}' has dimension {anchor.dimension}, "
                    f"floor has dimension {self.floor.dimension}."
                )

    @property
    def floor(self) -> Floor:
        """The floor used for positioning."""
        return self.floors[0]

    @property
    def anchors_by_id(self) -> Dict[str, Anchor]:
        return {anchor.id: anchor for anchor in self.anchors}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "floors": [floor.to_dict() for floor in self.floors],
            "anchors": [anchor.to_dict() for anchor in self.anchors],
        }

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Floorplan:
        """
        Build a floorplan from its JSON representation.

        Expected layout::

            {
                "floors": [{"name": "...", "bounds": [[x, y, z], [x, y, z]]}],
                "anchors": [{"id": "...", "location": [x, y, z], "exact": true}]
            }

        Raises:
            FloorplanError: If a required field is missing or malformed.
        """
        if not isinstance(data, dict):
            raise FloorplanError(f"Floorplan must be a JSON object, got {type(data).__name__}.")
        try:
            return Floorplan(
                floors=[Floor.from_dict(floor) for floor in data.get("floors", [])],
                anchors=[Anchor.from_dict(anchor) for anchor in data.get("anchors", [])],
            )
        except (EmptyInputError, DimensionMismatchError, NonFiniteInputError) as e:
            raise FloorplanError(str(e)) from e

    @staticmethod
    def from_file(filepath: str | Path) -> Floorplan:
        logger.info(f"Loading floorplan from: {filepath}")
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise FloorplanError(f"Floorplan file '{filepath}' is not valid JSON: {e}") from e

        floorplan = Floorplan.from_dict(data)
        logger.debug(f"Loaded {len(floorplan.floors)} floor(s) and {len(floorplan.anchors)} anchor(s).")
        return floorplan
