"""
Systolic2x2 - A fixed-function 2×2 integer matrix multiply accelerator.

This package provides the accelerator as synthesizable Amaranth HDL together
with a cycle-accurate behavioral model of the same pipeline.
"""

from .config import AcceleratorConfig
from .top import AcceleratorSim, MatmulAccelerator
from .util.operands import EnqueueResult, OperandSet

__version__ = "0.1.0"
__all__ = [
    "AcceleratorConfig",
    "AcceleratorSim",
    "EnqueueResult",
    "MatmulAccelerator",
    "OperandSet",
    "__version__",
]
