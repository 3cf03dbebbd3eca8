"""
InputQueue - Fixed-capacity FIFO of packed operand sets.

The queue decouples the producer's write strobe from the controller's
dequeue. Each slot holds one whole operand set; entries are consumed in
strict submission order.

Architecture (depth 2):
                    ┌─────────────────────────┐
      w_data ──────►│  slot 0  │  slot 1      │──► r_data (head, first-word
      w_en   ──────►│          │              │             fall-through)
                    │  wr_ptr ─┘     rd_ptr ──┘│
                    │  level (0..depth)        │──► empty / full / level
      r_en   ──────►│                          │
                    └─────────────────────────┘

Write policy:
    A write is accepted only when the queue is not full before the edge. A
    write to a full queue is dropped, even if a read frees a slot on the same
    edge. The `w_accepted`/`w_dropped` strobes report the outcome; the top
    level hides them unless the build asks for drop reporting.

Slots are plain registers rather than a memory so that reset clears them.
"""

from dataclasses import dataclass

from amaranth import Module, Mux, Signal, unsigned
from amaranth.lib.wiring import Component, In, Out

from ..config import DEFAULT_CONFIG, AcceleratorConfig
from ..util.operands import EnqueueResult, OperandSet


class InputQueue(Component):
    """
    Operand-set FIFO with first-word fall-through read.

    Ports:
        w_en: Write strobe
        w_data: Packed operand set to enqueue
        w_accepted: Write was stored this edge
        w_dropped: Write was discarded this edge (queue full)

        r_en: Dequeue the head entry this edge
        r_data: Head entry (valid when not empty)

        empty: No entries
        full: All slots occupied
        level: Number of stored entries

    Parameters:
        config: AcceleratorConfig with queue depth and operand-set width
    """

    def __init__(self, config: AcceleratorConfig = DEFAULT_CONFIG):
        self.config = config
        self.depth = config.queue_depth
        width = config.operand_set_bits

        super().__init__(
            {
                # Write port
                "w_en": In(1),
                "w_data": In(unsigned(width)),
                "w_accepted": Out(1),
                "w_dropped": Out(1),
                # Read port
                "r_en": In(1),
                "r_data": Out(unsigned(width)),
                # Status
                "empty": Out(1),
                "full": Out(1),
                "level": Out(range(config.queue_depth + 1)),
            }
        )

    def elaborate(self, _platform):
        m = Module()
        depth = self.depth
        width = self.config.operand_set_bits

        slots = [Signal(unsigned(width), name=f"slot_{i}") for i in range(depth)]
        wr_ptr = Signal(range(max(depth, 2)), name="wr_ptr")
        rd_ptr = Signal(range(max(depth, 2)), name="rd_ptr")
        count = Signal(range(depth + 1), name="count")

        do_write = Signal(name="do_write")
        do_read = Signal(name="do_read")

        # =================================================================
        # Status
        # =================================================================
        m.d.comb += [
            self.empty.eq(count == 0),
            self.full.eq(count == depth),
            self.level.eq(count),
            do_write.eq(self.w_en & ~self.full),
            do_read.eq(self.r_en & ~self.empty),
            self.w_accepted.eq(do_write),
            self.w_dropped.eq(self.w_en & self.full),
        ]

        # =================================================================
        # Head Read (first-word fall-through)
        # =================================================================
        with m.Switch(rd_ptr):
            for i, slot in enumerate(slots):
                with m.Case(i):
                    m.d.comb += self.r_data.eq(slot)

        # =================================================================
        # Slot and Pointer Update
        # =================================================================
        with m.If(do_write):
            for i, slot in enumerate(slots):
                with m.If(wr_ptr == i):
                    m.d.sync += slot.eq(self.w_data)
            m.d.sync += wr_ptr.eq(Mux(wr_ptr == depth - 1, 0, wr_ptr + 1))

        with m.If(do_read):
            m.d.sync += rd_ptr.eq(Mux(rd_ptr == depth - 1, 0, rd_ptr + 1))

        with m.If(do_write & ~do_read):
            m.d.sync += count.eq(count + 1)
        with m.Elif(do_read & ~do_write):
            m.d.sync += count.eq(count - 1)

        return m


@dataclass(frozen=True)
class InputQueueState:
    """
    Behavioral model of the input queue.

    `entries` holds the queued OperandSets, head first.
    """

    depth: int = 2
    entries: tuple = ()

    @property
    def empty(self) -> bool:
        return not self.entries

    @property
    def full(self) -> bool:
        return len(self.entries) >= self.depth

    @property
    def head(self) -> OperandSet | None:
        return self.entries[0] if self.entries else None

    def next(
        self, write: OperandSet | None, read: bool
    ) -> tuple["InputQueueState", EnqueueResult | None]:
        """
        Advance one clock edge.

        Both decisions use the occupancy before the edge, matching the RTL.

        Args:
            write: Operand set presented with the write strobe, or None
            read: Dequeue request from the controller

        Returns:
            Tuple of (next_state, enqueue_result); enqueue_result is None when
            no write was presented.
        """
        entries = list(self.entries)
        result = None

        if write is not None:
            if self.full:
                result = EnqueueResult.DROPPED
            else:
                entries.append(write)
                result = EnqueueResult.ACCEPTED

        if read and not self.empty:
            entries.pop(0)

        return InputQueueState(depth=self.depth, entries=tuple(entries)), result
