"""
Operand set encoding for the 2×2 matmul accelerator.

An operand set is one A+B matrix pair, the unit the input queue stores and
the controller consumes. On the queue's data path it travels as a single
packed word:

    Bits    Field
    [3:0]   a11
    [7:4]   a12
    [11:8]  a21
    [15:12] a22
    [19:16] b11
    [23:20] b12
    [27:24] b21
    [31:28] b22

(widths shown for the default 4-bit operands). Values wider than the operand
width are truncated, never rejected.
"""

from dataclasses import astuple, dataclass
from enum import Enum

import numpy as np

FIELD_ORDER = ("a11", "a12", "a21", "a22", "b11", "b12", "b21", "b22")
"""Packing order of operand fields, least significant first."""


def field_offset(name: str, operand_bits: int = 4) -> int:
    """Bit offset of an operand field within the packed word."""
    return FIELD_ORDER.index(name) * operand_bits


class EnqueueResult(Enum):
    """Outcome of a write strobe at the input queue."""

    ACCEPTED = "accepted"
    DROPPED = "dropped"  # Queue was full at the sampling edge


@dataclass(frozen=True)
class OperandSet:
    """
    One A+B matrix pair.

    Example:
        >>> ops = OperandSet.from_matrices([[1, 2], [3, 4]], [[5, 6], [7, 8]])
        >>> ops.reference_product().tolist()
        [[19, 22], [43, 50]]
    """

    a11: int = 0
    a12: int = 0
    a21: int = 0
    a22: int = 0
    b11: int = 0
    b12: int = 0
    b21: int = 0
    b22: int = 0

    @classmethod
    def from_matrices(cls, a, b, operand_bits: int = 4) -> "OperandSet":
        """Build an operand set from two 2×2 matrices, truncating each value."""
        a = np.asarray(a, dtype=np.int64)
        b = np.asarray(b, dtype=np.int64)
        if a.shape != (2, 2) or b.shape != (2, 2):
            raise ValueError(f"expected two 2x2 matrices, got {a.shape} and {b.shape}")
        mask = (1 << operand_bits) - 1
        values = np.concatenate([a.ravel(), b.ravel()]) & mask
        return cls(*(int(v) for v in values))

    @classmethod
    def unpack(cls, word: int, operand_bits: int = 4) -> "OperandSet":
        """Decode a packed queue word."""
        mask = (1 << operand_bits) - 1
        return cls(*((word >> (i * operand_bits)) & mask for i in range(len(FIELD_ORDER))))

    def pack(self, operand_bits: int = 4) -> int:
        """Encode as a packed queue word."""
        mask = (1 << operand_bits) - 1
        word = 0
        for i, value in enumerate(astuple(self)):
            word |= (value & mask) << (i * operand_bits)
        return word

    def field(self, name: str) -> int:
        """Value of one operand field by name, e.g. "a12"."""
        return getattr(self, name)

    @property
    def a(self) -> np.ndarray:
        return np.array([[self.a11, self.a12], [self.a21, self.a22]], dtype=np.int64)

    @property
    def b(self) -> np.ndarray:
        return np.array([[self.b11, self.b12], [self.b21, self.b22]], dtype=np.int64)

    def reference_product(self) -> np.ndarray:
        """Golden result C = A @ B."""
        return self.a @ self.b
