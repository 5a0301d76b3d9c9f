"""
CLI Proof Command

Print the circuit inputs for one claimant from a built results document.

Usage:
    airdrop proof <address> [--results PATH]
"""

from __future__ import annotations

import logging
import sys
from argparse import Namespace
from pathlib import Path

from core.schemas.errors import AirdropException
from orchestrator.artifacts.io import (
    circuit_inputs_from_results,
    dump_json,
    find_circuit_inputs,
    load_results,
)


logger = logging.getLogger(__name__)


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1


def proof_cmd(args: Namespace) -> int:
    """Print the inputs for args.address, or fail if it has none."""
    results_path = Path(args.results) if args.results else args.config_obj.output.results_file
    try:
        results = load_results(results_path)
    except (AirdropException, FileNotFoundError) as e:
        print(f"Error loading results: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    inputs = find_circuit_inputs(circuit_inputs_from_results(results), args.address)
    if inputs is None:
        print(f"Error: No entry for address {args.address}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    print(dump_json(inputs))
    return EXIT_SUCCESS
