"""Utility modules for systolic2x2 accelerator."""

from .operands import FIELD_ORDER, EnqueueResult, OperandSet, field_offset

__all__ = ["FIELD_ORDER", "EnqueueResult", "OperandSet", "field_offset"]
