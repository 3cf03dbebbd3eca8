"""
Systolic2x2 Configuration Module

This module defines the build-time configuration dataclass for the 2×2 matmul
accelerator. All hardware parameters are specified here and propagate through
the design.

Note: The array dimension is fixed at 2×2. Only the queue depth and the
optional drop-report strobe are meant to be varied between builds; the bit
widths are exposed so that derived widths have a single source of truth.
"""

from dataclasses import dataclass


@dataclass
class AcceleratorConfig:
    """
    Configuration for the 2×2 systolic matmul accelerator.

    Example:
        >>> config = AcceleratorConfig(queue_depth=4)
        >>> print(config.operand_set_bits)  # 32 (8 operands * 4 bits)
        >>> print(config.max_result)  # 450 (15 * 15 * 2)
    """

    # =========================================================================
    # Array Dimensions
    # =========================================================================
    dim: int = 2
    """Rows and columns of the compute grid (fixed at 2)."""

    # =========================================================================
    # Data Types (bit widths)
    # =========================================================================
    operand_bits: int = 4
    """Bit width of each unsigned matrix element."""

    acc_bits: int = 9
    """Bit width of each unsigned cell accumulator."""

    # =========================================================================
    # Input Queue
    # =========================================================================
    queue_depth: int = 2
    """Number of operand sets the input queue can hold."""

    report_drops: bool = False
    """
    If True, the top level exposes a `write_dropped` strobe.

    The default build keeps the plain boundary signal set: a write to a full queue
    is lost without any indication to the producer.
    """

    # =========================================================================
    # Computed Properties
    # =========================================================================
    @property
    def operands_per_set(self) -> int:
        """Number of operands in one set (A and B, dim * dim each)."""
        return 2 * self.dim * self.dim

    @property
    def operand_set_bits(self) -> int:
        """Width of one packed operand set."""
        return self.operands_per_set * self.operand_bits

    @property
    def operand_mask(self) -> int:
        """Bit mask selecting one operand field."""
        return (1 << self.operand_bits) - 1

    @property
    def max_operand(self) -> int:
        """Largest representable operand value."""
        return self.operand_mask

    @property
    def max_result(self) -> int:
        """Largest value any result element can take."""
        return self.dim * self.max_operand * self.max_operand

    @property
    def max_accumulator(self) -> int:
        """Largest value an accumulator register can hold."""
        return (1 << self.acc_bits) - 1

    def __post_init__(self):
        """Validate configuration parameters."""
        assert self.dim == 2, "only a 2x2 compute grid is supported"
        assert self.operand_bits > 0, "operand_bits must be positive"
        assert self.queue_depth > 0, "queue_depth must be positive"
        assert self.max_result <= self.max_accumulator, (
            "acc_bits too narrow: results could wrap the accumulator"
        )


DEFAULT_CONFIG = AcceleratorConfig()
"""Default configuration (4-bit operands, 9-bit accumulators, depth-2 queue)."""

REPORTING_CONFIG = AcceleratorConfig(report_drops=True)
"""Default configuration with the `write_dropped` strobe exposed."""
