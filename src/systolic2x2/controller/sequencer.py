"""
Controller - Sequences one operand set at a time through the ComputeGrid.

The Controller dequeues an operand set from the InputQueue, feeds it into the
grid over a skewed multi-cycle schedule, then strobes result_valid.

State Machine:
    IDLE -> LOAD -> COMPUTE (step 0) -> COMPUTE (step 1) -> OUTPUT -> IDLE

    IDLE:    wait for a non-empty queue; on that edge dequeue, latch the
             operand set and pulse `initialize` to all cells
    LOAD:    feed a11/b11 into Cell(1,1)
    COMPUTE: two steps feeding the remaining operands on the skew diagonal
    OUTPUT:  final edge for Cell(2,2); result_valid is registered on it

Skewed Feed (a1, a2, b1, b2):

    Cycle    State       a1    a2    b1    b2
    -----    ---------   ---   ---   ---   ---
      0      LOAD        a11   0     b11   0
      1      COMPUTE/0   a12   a21   b21   b12
      2      COMPUTE/1   0     a22   0     b22
      3      OUTPUT      0     0     0     0

Cell(i,j) sees A row i delayed by (j-1) cycles and B column j delayed by
(i-1) cycles, so every cell meets its k-th products on consecutive edges:

    c11 = a11*b11 + a12*b21    (edges 0, 1)
    c12 = a11*b12 + a12*b22    (edges 1, 2)
    c21 = a21*b11 + a22*b21    (edges 1, 2)
    c22 = a21*b12 + a22*b22    (edges 2, 3)

Timing:
    The last product lands in c22 on the OUTPUT edge, so result_valid is a
    register loaded on that edge: it is high for the one cycle after OUTPUT,
    which is also the IDLE cycle in which the next set may be dequeued. From
    the dequeue edge to result_valid is 4 edges; back-to-back results are 5
    cycles apart.
"""

from dataclasses import dataclass, field
from enum import IntEnum

from amaranth import Module, Signal, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import DEFAULT_CONFIG, AcceleratorConfig
from ..core.compute_grid import FEED_PORTS
from ..util.operands import OperandSet, field_offset


class FsmState(IntEnum):
    """Controller FSM states (values appear on state_debug)."""

    IDLE = 0
    LOAD = 1
    COMPUTE = 2
    OUTPUT = 3


FEED_SCHEDULE = {
    # (state, compute step): operand fields driven on (a1, a2, b1, b2);
    # None drives zero
    (FsmState.IDLE, 0): (None, None, None, None),
    (FsmState.LOAD, 0): ("a11", None, "b11", None),
    (FsmState.COMPUTE, 0): ("a12", "a21", "b21", "b12"),
    (FsmState.COMPUTE, 1): (None, "a22", None, "b22"),
    (FsmState.OUTPUT, 0): (None, None, None, None),
}

COMPUTE_STEPS = 2


class Controller(Component):
    """
    Sequencing FSM between the InputQueue and the ComputeGrid.

    Ports:
        Queue Interface:
            queue_empty: Queue holds no operand sets
            queue_data: Head operand set (packed)
            queue_read: Dequeue request (IDLE with a non-empty queue)

        Grid Interface:
            array_a1, array_a2: A streams
            array_b1, array_b2: B streams
            array_init: Initialize pulse to every cell

        Status:
            result_valid: Accumulators hold a finished product (one cycle)
            busy: A pass is in flight
            state_debug: Current FsmState

    Parameters:
        config: AcceleratorConfig with operand widths
    """

    def __init__(self, config: AcceleratorConfig = DEFAULT_CONFIG):
        self.config = config

        ports = {
            # Queue interface
            "queue_empty": In(1),
            "queue_data": In(unsigned(config.operand_set_bits)),
            "queue_read": Out(1),
        }

        # Grid interface
        for name in FEED_PORTS:
            ports[f"array_{name}"] = Out(unsigned(config.operand_bits))
        ports["array_init"] = Out(1)

        # Status
        ports["result_valid"] = Out(1)
        ports["busy"] = Out(1)
        ports["state_debug"] = Out(2)

        super().__init__(ports)

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        # =================================================================
        # Internal Registers
        # =================================================================

        # Operand set latched at dequeue, held for the whole pass
        operands = Signal(unsigned(cfg.operand_set_bits), name="operands")

        # Sub-cycle counter, only meaningful in COMPUTE
        step = Signal(range(COMPUTE_STEPS), name="step")

        # =================================================================
        # Default Signal Values
        # =================================================================
        m.d.comb += [
            self.queue_read.eq(0),
            self.array_init.eq(0),
            self.busy.eq(self.state_debug != FsmState.IDLE),
        ]
        for name in FEED_PORTS:
            m.d.comb += getattr(self, f"array_{name}").eq(0)

        m.d.sync += [
            self.result_valid.eq(0),
            step.eq(0),
        ]

        # =================================================================
        # State Machine
        # =================================================================
        with m.FSM(init="IDLE"):
            with m.State("IDLE"):
                m.d.comb += self.state_debug.eq(FsmState.IDLE)

                with m.If(~self.queue_empty):
                    m.d.comb += [
                        self.queue_read.eq(1),
                        self.array_init.eq(1),
                    ]
                    m.d.sync += operands.eq(self.queue_data)
                    m.next = "LOAD"

            with m.State("LOAD"):
                m.d.comb += self.state_debug.eq(FsmState.LOAD)
                self._drive_feed(m, operands, FsmState.LOAD, 0)
                m.next = "COMPUTE"

            with m.State("COMPUTE"):
                m.d.comb += self.state_debug.eq(FsmState.COMPUTE)

                with m.If(step == 0):
                    self._drive_feed(m, operands, FsmState.COMPUTE, 0)
                    m.d.sync += step.eq(1)
                with m.Else():
                    self._drive_feed(m, operands, FsmState.COMPUTE, 1)
                    m.next = "OUTPUT"

            with m.State("OUTPUT"):
                m.d.comb += self.state_debug.eq(FsmState.OUTPUT)
                m.d.sync += self.result_valid.eq(1)
                m.next = "IDLE"

        return m

    def _drive_feed(self, m, operands, state, step):
        """Drive the grid streams for one FEED_SCHEDULE entry."""
        bits = self.config.operand_bits
        for port, name in zip(FEED_PORTS, FEED_SCHEDULE[(state, step)]):
            if name is not None:
                offset = field_offset(name, bits)
                m.d.comb += getattr(self, f"array_{port}").eq(operands[offset : offset + bits])


@dataclass(frozen=True)
class ControllerState:
    """
    Behavioral model of the Controller registers.

    Attributes:
        fsm: Current FSM state
        step: Sub-cycle counter (0 outside COMPUTE)
        operands: Operand set latched at the last dequeue
        result_valid: Registered result strobe
    """

    fsm: FsmState = FsmState.IDLE
    step: int = 0
    operands: OperandSet = field(default_factory=OperandSet)
    result_valid: bool = False

    @property
    def busy(self) -> bool:
        return self.fsm != FsmState.IDLE

    def wants_dequeue(self, queue_empty: bool) -> bool:
        """Queue read request; also the grid's initialize pulse."""
        return self.fsm == FsmState.IDLE and not queue_empty

    def feed(self) -> tuple:
        """Operands driven on (a1, a2, b1, b2) this cycle."""
        names = FEED_SCHEDULE[(self.fsm, self.step)]
        return tuple(0 if name is None else self.operands.field(name) for name in names)

    def next(self, queue_empty: bool, head: OperandSet | None) -> "ControllerState":
        """
        Advance one clock edge.

        Args:
            queue_empty: Queue status before the edge
            head: Queue head before the edge (ignored when empty)
        """
        valid = self.fsm == FsmState.OUTPUT

        if self.fsm == FsmState.IDLE:
            if self.wants_dequeue(queue_empty):
                return ControllerState(FsmState.LOAD, 0, head, valid)
            return ControllerState(FsmState.IDLE, 0, self.operands, valid)

        if self.fsm == FsmState.LOAD:
            return ControllerState(FsmState.COMPUTE, 0, self.operands, valid)

        if self.fsm == FsmState.COMPUTE:
            if self.step + 1 < COMPUTE_STEPS:
                return ControllerState(FsmState.COMPUTE, self.step + 1, self.operands, valid)
            return ControllerState(FsmState.OUTPUT, 0, self.operands, valid)

        return ControllerState(FsmState.IDLE, 0, self.operands, valid)
