"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    python -m airdrop_cli build [--csv PATH] [--out DIR] [--depth N] [--shape dense|sparse] [--json]
    python -m airdrop_cli verify [RESULTS_PATH] [--json] [--debug]
    python -m airdrop_cli proof <address> [--results PATH]
    python -m airdrop_cli hash <a> <b> [--kind node|leaf|nullifier]
    python -m airdrop_cli config --init|--show

Environment Variables:
    AIRDROP_TREE_DEPTH          Tree depth (default: 5)
    AIRDROP_TREE_SHAPE          dense or sparse (default: dense)
    AIRDROP_HASH_BACKEND        poseidon or sha256 (default: poseidon)
    AIRDROP_CSV_PATH            Input dataset
    AIRDROP_OUT_DIR             Output directory
    AIRDROP_LOG_LEVEL           Log level (default: INFO)
    SECRET                      Nullifier secret (required by build)
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from airdrop_cli import __version__
from airdrop_cli.commands import build, verify, proof, hash
from airdrop_cli.config import get_default_config_template, load_config
from core.schemas.errors import AirdropException


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="airdrop",
        description="Airdrop claim tree CLI - Build Poseidon Merkle trees, verify results, and export circuit inputs.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: ./airdrop.yaml or ~/.config/airdrop/config.yaml)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write logs to this file",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build the claim tree from a CSV dataset",
        description="Hash every entry into the tree, generate and self-check proofs, and write results.",
    )
    build_parser.add_argument("--csv", type=str, default=None, help="Input CSV (default: from config)")
    build_parser.add_argument("--out", "-o", type=str, default=None, help="Output directory (default: from config)")
    build_parser.add_argument("--depth", type=int, default=None, help="Tree depth (default: from config)")
    build_parser.add_argument(
        "--shape",
        type=str,
        choices=["dense", "sparse"],
        default=None,
        help="Tree shape (default: from config)",
    )
    build_parser.add_argument("--workers", type=int, default=None, help="Proof generation threads")
    build_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON summary",
    )
    build_parser.set_defaults(func=build.build_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a results document offline",
        description="Recompute leaf hashes, proofs, nullifier hashes and the root from a results file.",
    )
    verify_parser.add_argument(
        "results_path",
        type=str,
        nargs="?",
        default=None,
        help="Path to smt_results.json (default: from config)",
    )
    verify_parser.add_argument(
        "--json",
        action="store_true",
        default=False,
        help="Output machine-readable JSON report",
    )
    verify_parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Include every check in the output",
    )
    verify_parser.set_defaults(func=verify.verify_cmd)

    # --- proof command ---
    proof_parser = subparsers.add_parser(
        "proof",
        help="Print circuit inputs for an address",
        description="Look up an address in the results and print its circuit inputs as JSON.",
    )
    proof_parser.add_argument("address", type=str, help="Hex address or decimal key")
    proof_parser.add_argument("--results", type=str, default=None, help="Path to smt_results.json")
    proof_parser.set_defaults(func=proof.proof_cmd)

    # --- hash command ---
    hash_parser = subparsers.add_parser(
        "hash",
        help="Evaluate a tree hash",
        description="Hash two field elements as a node, a leaf (key, value) or a nullifier commitment.",
    )
    hash_parser.add_argument("a", type=str, help="First input (decimal or 0x hex)")
    hash_parser.add_argument("b", type=str, help="Second input (decimal or 0x hex)")
    hash_parser.add_argument("--kind", type=str, choices=list(hash.HASH_KINDS), default="node")
    hash_parser.add_argument("--backend", type=str, choices=["poseidon", "sha256"], default=None)
    hash_parser.add_argument("--scheme", type=str, choices=["smt", "tagged"], default=None)
    hash_parser.set_defaults(func=hash.hash_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default="airdrop.yaml",
        help="Path for config file (default: airdrop.yaml)",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (AIRDROP_* prefix, SECRET).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.config_obj.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: airdrop config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_SUCCESS

    try:
        config = load_config(args.config)
    except (AirdropException, FileNotFoundError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    setup_logging(args.log_level or config.log_level, args.log_file)
    args.config_obj = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
