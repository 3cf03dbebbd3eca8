"""
Cell - The multiply-accumulate processing element of the 2×2 grid.

Each Cell performs, on every clock edge:
    acc    <= (initialize ? 0 : acc) + left * top
    right  <= left
    bottom <= top

The product is always added, including on the initialize edge: initialize
discards the carried sum, not the incoming product.

Data flows:
- left: flows horizontally (registered copy on `out_right`)
- top: flows vertically (registered copy on `out_bottom`)
- acc: output-stationary result, readable at all times on `out_acc`
"""

from dataclasses import dataclass

from amaranth import Module, Mux, Signal, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import DEFAULT_CONFIG, AcceleratorConfig


class Cell(Component):
    """
    Processing element - unsigned output-stationary MAC with pass-through.

    Ports:
        in_left: Left operand (A stream)
        in_top: Top operand (B stream)
        in_init: Initialize flag, discards the carried accumulator this edge

        out_acc: Accumulator register
        out_right: Registered pass-through of in_left (to cell on the right)
        out_bottom: Registered pass-through of in_top (to cell below)

    Parameters:
        config: AcceleratorConfig with operand and accumulator widths
    """

    def __init__(self, config: AcceleratorConfig = DEFAULT_CONFIG):
        self.config = config

        super().__init__(
            {
                "in_left": In(unsigned(config.operand_bits)),
                "in_top": In(unsigned(config.operand_bits)),
                "in_init": In(1),
                "out_acc": Out(unsigned(config.acc_bits)),
                "out_right": Out(unsigned(config.operand_bits)),
                "out_bottom": Out(unsigned(config.operand_bits)),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        product = Signal(unsigned(2 * cfg.operand_bits), name="product")
        m.d.comb += product.eq(self.in_left * self.in_top)

        carried = Signal(unsigned(cfg.acc_bits), name="carried")
        m.d.comb += carried.eq(Mux(self.in_init, 0, self.out_acc))

        m.d.sync += [
            self.out_acc.eq(carried + product),
            self.out_right.eq(self.in_left),
            self.out_bottom.eq(self.in_top),
        ]

        return m


@dataclass(frozen=True)
class CellState:
    """
    Behavioral model of one Cell's registers.

    Instances are immutable; `next` returns the register values after one
    clock edge without touching the current ones.
    """

    acc: int = 0
    right: int = 0
    bottom: int = 0

    def next(self, left: int, top: int, initialize: bool) -> "CellState":
        carried = 0 if initialize else self.acc
        return CellState(acc=carried + left * top, right=left, bottom=top)
