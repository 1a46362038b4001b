from indoorlocation.optimization.optimizable import Optimizable
from indoorlocation.optimization.simplex import Move, SimplexResult, SimplexSearcher, TerminationStatus

__all__ = [
    "Optimizable",
    "Move",
    "SimplexResult",
    "SimplexSearcher",
    "TerminationStatus",
]
