"""
Core compute components.

This module contains the fundamental building blocks:
- Cell: Multiply-accumulate processing element
- ComputeGrid: Fixed 2×2 systolic grid of Cells
"""

from .cell import Cell, CellState
from .compute_grid import (
    CELL_POSITIONS,
    FEED_PORTS,
    GRID_WIRING,
    ComputeGrid,
    ComputeGridState,
    result_name,
)

__all__ = [
    "Cell",
    "CellState",
    "ComputeGrid",
    "ComputeGridState",
    "CELL_POSITIONS",
    "FEED_PORTS",
    "GRID_WIRING",
    "result_name",
]
