#!/usr/bin/env python3
"""Generate the 2x2 matrix-multiply accelerator Verilog."""

import argparse
import sys
from pathlib import Path

# Add src to path if running from scripts/
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from amaranth.back import verilog  # noqa: E402

from systolic2x2.config import AcceleratorConfig  # noqa: E402
from systolic2x2.top import MatmulAccelerator  # noqa: E402


def main():
    parser = argparse.ArgumentParser(description="Generate matmul2x2 Verilog")
    parser.add_argument(
        "--queue-depth",
        type=int,
        default=2,
        help="Input queue depth in operand sets (default: 2)",
    )
    parser.add_argument(
        "--report-drops",
        action="store_true",
        help="Add a write_dropped output strobe",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=project_root / "gen" / "matmul2x2.v",
        help="Output Verilog file (default: gen/matmul2x2.v)",
    )
    args = parser.parse_args()

    config = AcceleratorConfig(queue_depth=args.queue_depth, report_drops=args.report_drops)
    top = MatmulAccelerator(config)

    output_path = args.output
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w") as f:
        f.write(verilog.convert(top, name="matmul2x2", ports=top.ports()))

    print(f"Generated {output_path}")


if __name__ == "__main__":
    main()
