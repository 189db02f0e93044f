"""Cross-reference and continuity analysis."""

from .continuity_tracker import Conflict, ContinuityTracker, find_conflicts
from .cross_reference import Dimension, Grid, GridCell, build_grid, thread_flow

__all__ = [
    "Conflict",
    "ContinuityTracker",
    "find_conflicts",
    "Dimension",
    "Grid",
    "GridCell",
    "build_grid",
    "thread_flow",
]
