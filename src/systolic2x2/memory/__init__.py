"""Memory modules for systolic2x2 accelerator."""

from .input_queue import InputQueue, InputQueueState

__all__ = ["InputQueue", "InputQueueState"]
