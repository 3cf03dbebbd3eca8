"""Controller modules for systolic2x2 accelerator."""

from .sequencer import COMPUTE_STEPS, FEED_SCHEDULE, Controller, ControllerState, FsmState

__all__ = ["COMPUTE_STEPS", "FEED_SCHEDULE", "Controller", "ControllerState", "FsmState"]
