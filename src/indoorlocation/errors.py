"""
Exceptions raised by the positioning core.

Every error derives from `PositioningError` and, where it makes sense, from the
matching built-in so callers can keep catching `ValueError` / `KeyError`.
"""


class PositioningError(Exception):
    """Base class for all positioning errors."""


class DimensionMismatchError(PositioningError, ValueError):
    """Points that must share a dimension do not."""


class EmptyInputError(PositioningError, ValueError):
    """A required collection (anchors, measurements) is empty."""


class NonFiniteInputError(PositioningError, ValueError):
    """A NaN (or otherwise unusable non-finite value) reached the core."""


class UnknownAnchorError(PositioningError, KeyError):
    """A measurement refers to an anchor that is not part of the floorplan."""

    def __str__(self) -> str:
        # KeyError quotes its argument, keep the message readable
        return str(self.args[0]) if self.args else ""


class FloorplanError(PositioningError, ValueError):
    """Floorplan data is malformed."""
