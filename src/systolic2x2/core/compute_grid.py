"""
ComputeGrid - Four Cells wired as a 2×2 output-stationary systolic array.

A operands enter from the left and move one cell right per cycle; B operands
enter from the top and move one cell down per cycle:

                 b1            b2
                  |             |
        a1 --> [Cell(1,1)] --> [Cell(1,2)]
                  |             |
        a2 --> [Cell(2,1)] --> [Cell(2,2)]

Every hop between cells goes through a pass-through register, so a value
injected on a1 reaches Cell(1,2) one cycle later. The controller compensates
with a skewed feed (see controller/sequencer.py).

The wiring is captured once in GRID_WIRING and used by both the RTL and the
behavioral model.
"""

from dataclasses import dataclass, field

from amaranth import Module, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import DEFAULT_CONFIG, AcceleratorConfig
from .cell import Cell, CellState

CELL_POSITIONS = ((1, 1), (1, 2), (2, 1), (2, 2))
"""Cell addresses (row, col), in result order c11, c12, c21, c22."""

FEED_PORTS = ("a1", "a2", "b1", "b2")
"""External operand streams, in feed-tuple order."""

GRID_WIRING = {
    # (row, col): (left source, top source)
    # A string source is an external stream; a (row, col) source is the
    # neighbouring cell whose pass-through register (right for left inputs,
    # bottom for top inputs) drives the input.
    (1, 1): ("a1", "b1"),
    (1, 2): ((1, 1), "b2"),
    (2, 1): ("a2", (1, 1)),
    (2, 2): ((2, 1), (1, 2)),
}


def result_name(pos) -> str:
    """Output port name for the cell at `pos`, e.g. (1, 2) -> "c12"."""
    return f"c{pos[0]}{pos[1]}"


class ComputeGrid(Component):
    """
    ComputeGrid - fixed 2×2 grid of Cells.

    Ports:
        in_a1, in_a2: A streams (left edge, rows 1 and 2)
        in_b1, in_b2: B streams (top edge, columns 1 and 2)
        in_init: Initialize flag (broadcast to all cells)

        c11, c12, c21, c22: Cell accumulators

    Parameters:
        config: AcceleratorConfig with operand and accumulator widths
    """

    def __init__(self, config: AcceleratorConfig = DEFAULT_CONFIG):
        self.config = config

        ports = {}
        for name in FEED_PORTS:
            ports[f"in_{name}"] = In(unsigned(config.operand_bits))
        ports["in_init"] = In(1)
        for pos in CELL_POSITIONS:
            ports[result_name(pos)] = Out(unsigned(config.acc_bits))

        super().__init__(ports)

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        cells = {pos: Cell(cfg) for pos in CELL_POSITIONS}
        for (row, col), cell in cells.items():
            m.submodules[f"cell_{row}_{col}"] = cell

        # =================================================================
        # Operand Wiring - from the static adjacency table
        # =================================================================
        for pos, (left_src, top_src) in GRID_WIRING.items():
            cell = cells[pos]

            if isinstance(left_src, str):
                m.d.comb += cell.in_left.eq(getattr(self, f"in_{left_src}"))
            else:
                m.d.comb += cell.in_left.eq(cells[left_src].out_right)

            if isinstance(top_src, str):
                m.d.comb += cell.in_top.eq(getattr(self, f"in_{top_src}"))
            else:
                m.d.comb += cell.in_top.eq(cells[top_src].out_bottom)

        # =================================================================
        # Initialize Broadcast and Result Outputs
        # =================================================================
        for pos, cell in cells.items():
            m.d.comb += [
                cell.in_init.eq(self.in_init),
                getattr(self, result_name(pos)).eq(cell.out_acc),
            ]

        return m


@dataclass(frozen=True)
class ComputeGridState:
    """
    Behavioral model of the grid: four CellStates plus GRID_WIRING.

    `next` reads every cell from the current (frozen) snapshot before building
    the new one, so no cell observes a neighbour's update from the same edge.
    """

    cells: tuple = field(default_factory=lambda: tuple(CellState() for _ in CELL_POSITIONS))

    def cell(self, pos) -> CellState:
        return self.cells[CELL_POSITIONS.index(pos)]

    def next(self, feed: tuple, initialize: bool) -> "ComputeGridState":
        """
        Advance one clock edge.

        Args:
            feed: External operands (a1, a2, b1, b2)
            initialize: Discard carried accumulators this edge
        """
        streams = dict(zip(FEED_PORTS, feed))
        new_cells = []
        for pos in CELL_POSITIONS:
            left_src, top_src = GRID_WIRING[pos]
            left = streams[left_src] if isinstance(left_src, str) else self.cell(left_src).right
            top = streams[top_src] if isinstance(top_src, str) else self.cell(top_src).bottom
            new_cells.append(self.cell(pos).next(left, top, initialize))
        return ComputeGridState(cells=tuple(new_cells))

    @property
    def results(self) -> tuple:
        """Accumulators (c11, c12, c21, c22)."""
        return tuple(cell.acc for cell in self.cells)
