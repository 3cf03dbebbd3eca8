"""Build gen/matmul2x2.v and run the cocotb accelerator tests under pytest."""

import shutil
from pathlib import Path

import pytest

SIMULATOR_BINARIES = {"verilator": "verilator", "icarus": "iverilog"}


@pytest.mark.slow
def test_accelerator_rtl(accelerator_verilog, sim_name, tmp_path):
    binary = SIMULATOR_BINARIES.get(sim_name)
    if binary is None or shutil.which(binary) is None:
        pytest.skip(f"{sim_name} simulator not available")

    from cocotb_tools.runner import get_runner

    runner = get_runner(sim_name)
    runner.build(
        sources=[accelerator_verilog],
        hdl_toplevel="matmul2x2",
        build_dir=tmp_path,
        always=True,
    )
    runner.test(
        hdl_toplevel="matmul2x2",
        test_module="test_accelerator",
        test_dir=Path(__file__).parent,
        build_dir=tmp_path,
    )
