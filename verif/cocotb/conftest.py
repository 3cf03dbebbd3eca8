"""
systolic2x2 Verification - Global pytest configuration and fixtures.

Cocotb tests run against gen/matmul2x2.v, produced by scripts/gen_accelerator.py.
The simulator is chosen with the SIM environment variable (default: verilator).
"""

import os
import sys
from pathlib import Path

import pytest

# Add project paths to Python path
PROJECT_ROOT = Path(__file__).parent.parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(PROJECT_ROOT / "verif" / "cocotb"))

TOPLEVEL = "matmul2x2"


def pytest_configure(config):
    """Register simulator markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "verilator: marks tests requiring Verilator")
    config.addinivalue_line("markers", "icarus: marks tests requiring Icarus Verilog")


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Skip tests whose simulator marker does not match SIM."""
    sim = os.environ.get("SIM", "verilator").lower()

    for item in items:
        for marker in ("verilator", "icarus"):
            if marker in item.keywords and sim != marker:
                item.add_marker(pytest.mark.skip(reason=f"Requires {marker} simulator"))


@pytest.fixture(scope="session")
def gen_dir() -> Path:
    """Return the generated RTL directory."""
    return PROJECT_ROOT / "gen"


@pytest.fixture(scope="session")
def accelerator_verilog(gen_dir) -> Path:
    """Generate the top-level Verilog once per session and return its path."""
    from amaranth.back import verilog

    from systolic2x2.config import AcceleratorConfig
    from systolic2x2.top import MatmulAccelerator

    top = MatmulAccelerator(AcceleratorConfig())
    gen_dir.mkdir(exist_ok=True)
    path = gen_dir / f"{TOPLEVEL}.v"
    path.write_text(verilog.convert(top, name=TOPLEVEL, ports=top.ports()))
    return path


@pytest.fixture(scope="session")
def sim_name() -> str:
    """Return the current simulator name."""
    return os.environ.get("SIM", "verilator").lower()
