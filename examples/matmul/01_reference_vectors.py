#!/usr/bin/env python3
"""
Reference Vector Demo.

This example pushes the reference operand sets through the 2x2 accelerator
and checks every result against NumPy. It shows:

1. Problem Setup
   - The reference A/B pairs, including the all-15 overflow check

2. Behavioral Model
   - Write each set into the input queue of AcceleratorSim
   - Print the FSM state for every cycle of the pass

3. Execution (RTL Simulation, optional)
   - Drive the same writes into MatmulAccelerator under amaranth.sim
   - Capture c11..c22 on every result_valid cycle

4. Verification
   - Compare both runs against A @ B

Usage:
    python 01_reference_vectors.py [--simulate] [--back-to-back]

    --simulate       Also run the RTL simulation
    --back-to-back   Write all sets on consecutive cycles instead of one per pass
"""

import argparse
import sys
from pathlib import Path

import numpy as np

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from systolic2x2 import AcceleratorConfig, AcceleratorSim, MatmulAccelerator, OperandSet
from systolic2x2.controller.sequencer import FsmState
from systolic2x2.top import RESULT_NAMES
from systolic2x2.util.operands import FIELD_ORDER, EnqueueResult

REFERENCE_PAIRS = [
    ([[1, 2], [3, 4]], [[5, 6], [7, 8]]),
    ([[6, 7], [8, 14]], [[13, 12], [11, 10]]),
    (np.full((2, 2), 15), np.full((2, 2), 15)),
]


def write_schedule(operand_sets: list[OperandSet], back_to_back: bool) -> list:
    """One entry per cycle: the set to write on that edge, or None."""
    schedule = []
    for ops in operand_sets:
        schedule.append(ops)
        if not back_to_back:
            schedule += [None] * 4
    return schedule + [None] * 8


def run_behavioral(config: AcceleratorConfig, schedule: list) -> list[np.ndarray]:
    sim = AcceleratorSim(config)
    for write in schedule:
        result = sim.tick(write)
        marker = "W" if write is not None else " "
        valid = "valid" if sim.outputs.result_valid else ""
        print(f"   cycle {sim.cycle:3d} {marker} {FsmState(sim.outputs.state).name:8s} {valid}")
        if result is EnqueueResult.DROPPED:
            print("   (write dropped: queue full)")

    stats = sim.get_statistics()
    print(f"\n   Statistics: {stats}")
    return [completion.result for completion in sim.completions]


def run_rtl(config: AcceleratorConfig, schedule: list) -> list[np.ndarray]:
    from amaranth.sim import Simulator

    dut = MatmulAccelerator(config)
    results = []

    async def testbench(ctx):
        for write in schedule:
            ctx.set(dut.write_en, write is not None)
            if write is not None:
                for name in FIELD_ORDER:
                    ctx.set(getattr(dut, name), write.field(name))
            await ctx.tick()
            if ctx.get(dut.result_valid):
                values = [ctx.get(getattr(dut, name)) for name in RESULT_NAMES]
                results.append(np.array(values).reshape(2, 2))

    sim = Simulator(dut)
    sim.add_clock(1e-6)
    sim.add_testbench(testbench)
    sim.run()
    return results


def check(label: str, expected: list[np.ndarray], actual: list[np.ndarray]) -> bool:
    if len(expected) != len(actual):
        print(f"   FAIL ({label}): expected {len(expected)} results, got {len(actual)}")
        return False
    ok = True
    for i, (want, got) in enumerate(zip(expected, actual)):
        match = np.array_equal(want, got)
        ok &= match
        status = "PASS" if match else "FAIL"
        print(f"   {status} ({label}) set {i}: {got.tolist()} (expected {want.tolist()})")
    return ok


def run_demo(simulate: bool = False, back_to_back: bool = False) -> bool:
    """Run the demo."""
    print("=" * 70)
    print("2x2 Systolic Matmul - Reference Vectors")
    print("=" * 70)

    # -------------------------------------------------------------------------
    # 1. Problem Setup
    # -------------------------------------------------------------------------
    print("\n1. Problem Setup")
    print("-" * 40)

    config = AcceleratorConfig(queue_depth=max(2, len(REFERENCE_PAIRS)))
    operand_sets = [OperandSet.from_matrices(a, b) for a, b in REFERENCE_PAIRS]
    expected = [ops.reference_product() for ops in operand_sets]
    for ops, want in zip(operand_sets, expected):
        print(f"   A={ops.a.tolist()} B={ops.b.tolist()} -> {want.tolist()}")
    print(f"   Queue depth: {config.queue_depth}")
    print(f"   Largest result: {config.max_result} (accumulator max {config.max_accumulator})")

    schedule = write_schedule(operand_sets, back_to_back)

    # -------------------------------------------------------------------------
    # 2. Behavioral Model
    # -------------------------------------------------------------------------
    print("\n2. Behavioral Model")
    print("-" * 40)
    ok = check("model", expected, run_behavioral(config, schedule))

    # -------------------------------------------------------------------------
    # 3. RTL Simulation
    # -------------------------------------------------------------------------
    if simulate:
        print("\n3. RTL Simulation")
        print("-" * 40)
        ok &= check("rtl", expected, run_rtl(config, schedule))

    print("\n" + "=" * 70)
    print("Demo completed successfully!" if ok else "Demo FAILED")
    print("=" * 70)
    return ok


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="2x2 Systolic Matmul Reference Vectors",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--simulate",
        action="store_true",
        help="Also run RTL simulation (requires Amaranth)",
    )
    parser.add_argument(
        "--back-to-back",
        action="store_true",
        help="Write all sets on consecutive cycles",
    )
    args = parser.parse_args()

    success = run_demo(simulate=args.simulate, back_to_back=args.back_to_back)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
