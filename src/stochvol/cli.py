from __future__ import annotations

import argparse
import logging

from stochvol import __version__
from stochvol.runner.run import run_from_config


# ============================================================
# Command: simulate
# ============================================================


def cmd_simulate(args):
    print(f"[stochvol] Simulating: {args.config}")
    result = run_from_config(args.config, output_path=args.output)
    stats = result.summary()

    print("\n========== Simulation Complete ==========")
    print(f"Paths x steps: {result.paths.shape[0]} x {result.paths.shape[1] - 1}")
    print(f"Mean terminal spot: {stats['mean_terminal_spot']:.4f}")
    print(f"Mean terminal variance: {stats['mean_terminal_variance']:.6f}")
    print(f"Negative variance states: {stats['negative_variance_fraction']:.2%}")
    print("=========================================\n")


# ============================================================
# Command: version
# ============================================================


def cmd_version(args):
    print(f"stochvol version {__version__}")


# ============================================================
# Main
# ============================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stochvol", description="Heston process simulation CLI"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    sim_p = subparsers.add_parser("simulate", help="Simulate paths from a config")
    sim_p.add_argument("--config", required=True, help="Path to YAML/JSON config")
    sim_p.add_argument(
        "--output", default=None, help="Optional CSV path for the simulated paths"
    )
    sim_p.set_defaults(func=cmd_simulate)

    ver_p = subparsers.add_parser("version", help="Show version")
    ver_p.set_defaults(func=cmd_version)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args.func(args)


if __name__ == "__main__":
    main()
