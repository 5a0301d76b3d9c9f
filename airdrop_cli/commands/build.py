"""
CLI Build Command

Build the claim tree from a CSV dataset and write:
- smt_results.json: root, metadata and one record per leaf
- inputs_circom.json: circuit inputs per claimant

Usage:
    airdrop build [--csv PATH] [--out DIR] [--depth N] [--shape dense|sparse] [--json]
"""

from __future__ import annotations

import copy
import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from core.config.runtime import RuntimeConfig
from core.schemas.errors import AirdropException
from orchestrator.artifacts.io import write_results
from orchestrator.dataset import load_dataset
from orchestrator.pipeline import ClaimTreePipeline, PipelineResult


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class BuildSummary:
    """Summary of a tree build for CLI output."""
    csv_path: str = ""
    root: str = ""
    tree_levels: int = 0
    tree_shape: str = ""
    leaves: int = 0
    invalid: int = 0
    total_amount: str = "0"
    results_path: str = ""
    circuit_inputs_path: str = ""
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["errors"]:
            del d["errors"]
        return d

    @property
    def all_valid(self) -> bool:
        return self.invalid == 0 and not self.errors


def apply_build_overrides(config: RuntimeConfig, args: Namespace) -> RuntimeConfig:
    """Return a copy of config with command-line flags applied."""
    config = copy.deepcopy(config)
    if getattr(args, "csv", None):
        config.dataset.csv_path = args.csv
    if getattr(args, "out", None):
        config.output.out_dir = args.out
        config.output.results_path = None
    if getattr(args, "depth", None) is not None:
        config.tree.depth = args.depth
    if getattr(args, "shape", None):
        config.tree.shape = args.shape
    if getattr(args, "workers", None) is not None:
        config.output.proof_workers = args.workers
    config.validate()
    return config


def build_summary(
    config: RuntimeConfig,
    result: PipelineResult,
    paths: tuple[Path, Path] | None,
) -> BuildSummary:
    summary = BuildSummary(
        csv_path=config.dataset.csv_path,
        tree_levels=config.tree.depth,
        tree_shape=config.tree.shape,
        errors=list(result.errors),
    )
    if result.results is not None:
        summary.root = result.results.root
        summary.leaves = len(result.results.leaves)
        summary.invalid = result.results.invalid_count
        summary.total_amount = result.results.total_amount
    if paths is not None:
        summary.results_path = str(paths[0])
        summary.circuit_inputs_path = str(paths[1])
    return summary


def print_summary_human(summary: BuildSummary) -> None:
    """Print summary in human-readable format."""
    print(f"dataset: {summary.csv_path}")
    print(f"shape: {summary.tree_shape} (depth {summary.tree_levels})")
    print(f"root: {summary.root}")
    print(f"leaves: {summary.leaves}")
    print(f"total_amount: {summary.total_amount}")
    if summary.results_path:
        print(f"results: {summary.results_path}")
        print(f"circuit_inputs: {summary.circuit_inputs_path}")
    if summary.invalid:
        print(f"\ninvalid proofs: {summary.invalid}")
    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")


def build_cmd(args: Namespace) -> int:
    """
    Execute the build command.

    Args:
        args: Parsed command-line arguments (args.config_obj holds the
            resolved RuntimeConfig)

    Returns:
        Exit code
    """
    try:
        config = apply_build_overrides(args.config_obj, args)
        entries = load_dataset(
            config.dataset.csv_path,
            key_column=config.dataset.key_column,
            value_column=config.dataset.value_column,
        )
        logger.info("Loaded %d entries from %s", len(entries), config.dataset.csv_path)
        result = ClaimTreePipeline(config).run(entries)
    except (AirdropException, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    paths = None
    if result.results is not None:
        try:
            paths = write_results(result, config=config)
        except (AirdropException, OSError) as e:
            print(f"Error writing results: {e}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

    summary = build_summary(config, result, paths)
    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if result.failure is not None or result.results is None:
        return EXIT_RUNTIME_ERROR
    if summary.invalid:
        return EXIT_VERIFICATION_FAILED
    return EXIT_SUCCESS
