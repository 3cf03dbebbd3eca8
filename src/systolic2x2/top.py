"""
MatmulAccelerator - Top-level integration of the 2×2 matmul accelerator.

This module wires together the three subsystems:
- InputQueue: Buffers operand sets written by the producer
- Controller: Dequeues one set at a time and sequences the skewed feed
- ComputeGrid: 2×2 systolic array of multiply-accumulate cells

External Interfaces:
- Eight 4-bit operand inputs plus a write strobe
- Four 9-bit result outputs plus a one-cycle result_valid strobe
- Asynchronous active-high reset (`rst` of the sync clock domain)

Data Flow for one multiplication C = A × B:
1. Producer drives a11..b22 with write_en; the set is queued if a slot is free
2. Controller dequeues it from IDLE and pulses initialize to every cell
3. LOAD / COMPUTE / COMPUTE / OUTPUT feed the skewed operand diagonals
4. result_valid is high for one cycle while c11..c22 hold the product

The module also carries the behavioral model of the whole pipeline
(AcceleratorState, AcceleratorSim), which advances one tick at a time and
agrees with the RTL on every output, every cycle.
"""

from dataclasses import dataclass, field
from typing import Any

import numpy as np
from amaranth import Cat, ClockDomain, Module, unsigned
from amaranth.lib.wiring import Component, In, Out

from .config import DEFAULT_CONFIG, AcceleratorConfig
from .controller.sequencer import Controller, ControllerState, FsmState
from .core.compute_grid import (
    CELL_POSITIONS,
    FEED_PORTS,
    ComputeGrid,
    ComputeGridState,
    result_name,
)
from .memory.input_queue import InputQueue, InputQueueState
from .util.operands import FIELD_ORDER, EnqueueResult, OperandSet

RESULT_NAMES = tuple(result_name(pos) for pos in CELL_POSITIONS)


class MatmulAccelerator(Component):
    """
    Top-level 2×2 matmul accelerator.

    The component owns its `sync` clock domain, which uses an asynchronous
    reset: asserting `cd_sync.rst` clears every register in the queue,
    controller and grid regardless of state.

    Ports:
        a11, a12, a21, a22: Matrix A operands
        b11, b12, b21, b22: Matrix B operands
        write_en: Enqueue the operands this edge (dropped if the queue is full)

        c11, c12, c21, c22: Result accumulators
        result_valid: c11..c22 hold a finished product (one cycle)
        state_debug: Controller FSM state
        busy: A pass is in flight (controller not in IDLE)
        write_dropped: Write was discarded (only with config.report_drops)

    Parameters:
        config: AcceleratorConfig with widths and queue depth
    """

    def __init__(self, config: AcceleratorConfig = DEFAULT_CONFIG):
        self.config = config

        ports = {}
        for name in FIELD_ORDER:
            ports[name] = In(unsigned(config.operand_bits))
        ports["write_en"] = In(1)

        for name in RESULT_NAMES:
            ports[name] = Out(unsigned(config.acc_bits))
        ports["result_valid"] = Out(1)
        ports["state_debug"] = Out(2)
        ports["busy"] = Out(1)

        if config.report_drops:
            ports["write_dropped"] = Out(1)

        super().__init__(ports)

        self.cd_sync = ClockDomain("sync", async_reset=True)

    def ports(self) -> list:
        """Top-level ports for Verilog conversion, including clk and rst."""
        return [self.cd_sync.clk, self.cd_sync.rst] + [
            value for _path, _member, value in self.signature.flatten(self)
        ]

    def elaborate(self, _platform):
        m = Module()
        cfg = self.config

        m.domains.sync = self.cd_sync

        m.submodules.queue = queue = InputQueue(cfg)
        m.submodules.controller = controller = Controller(cfg)
        m.submodules.grid = grid = ComputeGrid(cfg)

        # =================================================================
        # Producer -> InputQueue
        # =================================================================
        m.d.comb += [
            queue.w_en.eq(self.write_en),
            queue.w_data.eq(Cat(*(getattr(self, name) for name in FIELD_ORDER))),
        ]
        if cfg.report_drops:
            m.d.comb += self.write_dropped.eq(queue.w_dropped)

        # =================================================================
        # InputQueue <-> Controller
        # =================================================================
        m.d.comb += [
            controller.queue_empty.eq(queue.empty),
            controller.queue_data.eq(queue.r_data),
            queue.r_en.eq(controller.queue_read),
        ]

        # =================================================================
        # Controller -> ComputeGrid
        # =================================================================
        for name in FEED_PORTS:
            m.d.comb += getattr(grid, f"in_{name}").eq(getattr(controller, f"array_{name}"))
        m.d.comb += grid.in_init.eq(controller.array_init)

        # =================================================================
        # Outputs
        # =================================================================
        for name in RESULT_NAMES:
            m.d.comb += getattr(self, name).eq(getattr(grid, name))
        m.d.comb += [
            self.result_valid.eq(controller.result_valid),
            self.state_debug.eq(controller.state_debug),
            self.busy.eq(controller.busy),
        ]

        return m


# =============================================================================
# Behavioral Model
# =============================================================================


@dataclass(frozen=True)
class Outputs:
    """Boundary outputs visible during one cycle."""

    results: tuple
    result_valid: bool
    state: FsmState

    @property
    def matrix(self) -> np.ndarray:
        """Results as a 2×2 array [[c11, c12], [c21, c22]]."""
        return np.array(self.results, dtype=np.int64).reshape(2, 2)


@dataclass(frozen=True)
class AcceleratorState:
    """
    Complete register state of the accelerator.

    `step` is a pure function: it computes every next-state value from this
    snapshot and returns a new instance, leaving this one untouched.
    """

    queue: InputQueueState
    controller: ControllerState
    grid: ComputeGridState
    operand_bits: int = 4

    @classmethod
    def initial(cls, config: AcceleratorConfig = DEFAULT_CONFIG) -> "AcceleratorState":
        """Power-on / post-reset state: every register zero, FSM in IDLE."""
        return cls(
            queue=InputQueueState(depth=config.queue_depth),
            controller=ControllerState(),
            grid=ComputeGridState(),
            operand_bits=config.operand_bits,
        )

    def outputs(self) -> Outputs:
        return Outputs(
            results=self.grid.results,
            result_valid=self.controller.result_valid,
            state=self.controller.fsm,
        )

    def step(
        self, write: OperandSet | None = None
    ) -> tuple["AcceleratorState", Outputs, EnqueueResult | None]:
        """
        Advance one clock edge.

        Args:
            write: Operand set presented with write_en this cycle, or None

        Returns:
            Tuple of (next_state, outputs, enqueue_result) where outputs are
            the values visible during the current cycle and enqueue_result is
            None when nothing was written.
        """
        if write is not None:
            # Operand inputs are operand_bits wide; wider values are truncated
            write = OperandSet.unpack(write.pack(self.operand_bits), self.operand_bits)

        queue_empty = self.queue.empty
        dequeue = self.controller.wants_dequeue(queue_empty)

        grid = self.grid.next(self.controller.feed(), initialize=dequeue)
        controller = self.controller.next(queue_empty, self.queue.head)
        queue, enqueue_result = self.queue.next(write, read=dequeue)

        return (
            AcceleratorState(
                queue=queue,
                controller=controller,
                grid=grid,
                operand_bits=self.operand_bits,
            ),
            self.outputs(),
            enqueue_result,
        )


@dataclass(frozen=True)
class Completion:
    """A finished multiplication as seen on the result_valid cycle."""

    cycle: int
    operands: OperandSet
    result: np.ndarray


@dataclass
class AcceleratorSim:
    """
    Cycle-accurate behavioral simulation of the accelerator.

    Drives AcceleratorState one tick at a time, records every result_valid
    pulse, and reports the outcome of every write explicitly (the RTL drops
    writes to a full queue without telling the producer).

    Example:
        >>> sim = AcceleratorSim()
        >>> sim.submit([[1, 2], [3, 4]], [[5, 6], [7, 8]])
        <EnqueueResult.ACCEPTED: 'accepted'>
        >>> sim.run_until_idle()
        5
        >>> sim.completions[0].result.tolist()
        [[19, 22], [43, 50]]
    """

    config: AcceleratorConfig = field(default_factory=AcceleratorConfig)

    state: AcceleratorState = field(init=False)

    # Observer-side bookkeeping; not part of the modeled hardware
    cycle: int = 0
    completions: list = field(default_factory=list)
    total_accepted: int = 0
    total_dropped: int = 0

    def __post_init__(self):
        self.state = AcceleratorState.initial(self.config)

    @property
    def outputs(self) -> Outputs:
        """Outputs visible in the current cycle."""
        return self.state.outputs()

    @property
    def done(self) -> bool:
        """Queue drained and controller idle."""
        return self.state.queue.empty and not self.state.controller.busy

    def reset(self) -> None:
        """Global reset: every register returns to zero and the FSM to IDLE."""
        self.state = AcceleratorState.initial(self.config)

    def tick(self, write: OperandSet | None = None) -> EnqueueResult | None:
        """
        Advance one clock edge.

        Args:
            write: Operand set to present with write_en on this edge

        Returns:
            EnqueueResult for the write, or None when nothing was written.
        """
        self.state, _, enqueue_result = self.state.step(write)
        self.cycle += 1

        if enqueue_result is EnqueueResult.ACCEPTED:
            self.total_accepted += 1
        elif enqueue_result is EnqueueResult.DROPPED:
            self.total_dropped += 1

        now = self.state.outputs()
        if now.result_valid:
            self.completions.append(
                Completion(
                    cycle=self.cycle,
                    operands=self.state.controller.operands,
                    result=now.matrix,
                )
            )

        return enqueue_result

    def submit(self, a, b) -> EnqueueResult:
        """Write one A+B pair on the next edge."""
        operands = OperandSet.from_matrices(a, b, self.config.operand_bits)
        return self.tick(operands)

    def idle(self, cycles: int = 1) -> None:
        """Advance without writing."""
        for _ in range(cycles):
            self.tick()

    def run_until_idle(self, max_cycles: int = 1000) -> int:
        """
        Tick until the queue is drained and the controller is idle.

        Returns:
            Number of cycles executed.
        """
        start = self.cycle
        while not self.done:
            if self.cycle - start >= max_cycles:
                raise RuntimeError(f"accelerator still busy after {max_cycles} cycles")
            self.tick()
        return self.cycle - start

    def get_statistics(self) -> dict[str, Any]:
        return {
            "cycles": self.cycle,
            "accepted": self.total_accepted,
            "dropped": self.total_dropped,
            "completed": len(self.completions),
        }
