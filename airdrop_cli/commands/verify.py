"""
CLI Verify Command

Re-check a results document offline: leaf hashes, every proof against
the root, nullifier hashes, the total, and a full rebuild of the tree.

Usage:
    airdrop verify [RESULTS_PATH] [--json] [--debug]
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

from core.crypto.field_hash import build_field_hash
from core.schemas.errors import AirdropException
from core.schemas.verification import VerificationResult
from orchestrator.artifacts.io import load_results
from orchestrator.artifacts.validate import validate_results


logger = logging.getLogger(__name__)


# Exit codes
EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1
EXIT_VERIFICATION_FAILED = 2


@dataclass
class VerifySummary:
    """Summary of results verification for CLI output."""
    results_path: str = ""
    root: str = ""
    hash_function: str = ""
    hash_scheme: str = ""
    leaves: int = 0
    ok: bool = False
    passed: int = 0
    failed: int = 0
    checks: list[dict[str, Any]] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        if not d["checks"]:
            del d["checks"]
        return d


def build_summary(
    results_path: Path,
    root: str,
    hash_function: str,
    hash_scheme: str,
    leaves: int,
    verification: VerificationResult,
    debug: bool = False,
) -> VerifySummary:
    """Build a VerifySummary from verification results."""
    failed = verification.get_failed_checks()
    summary = VerifySummary(
        results_path=str(results_path),
        root=root,
        hash_function=hash_function,
        hash_scheme=hash_scheme,
        leaves=leaves,
        ok=verification.ok,
        passed=verification.passed_count,
        failed=len(failed),
        errors=[f"{check.check_id}: {check.message}" for check in failed],
    )
    if debug:
        summary.checks = [
            {"check_id": check.check_id, "ok": check.ok, "message": check.message}
            for check in verification.checks
        ]
    return summary


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"results: {summary.results_path}")
    print(f"root: {summary.root}")
    print(f"hash: {summary.hash_function}/{summary.hash_scheme}")
    print(f"leaves: {summary.leaves}")
    print(f"ok: {str(summary.ok).lower()}")
    print(f"checks: {summary.passed} passed, {summary.failed} failed")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors[:10]:
            print(f"  ✗ {err}")

    for check in summary.checks[:20]:
        status = "✓" if check["ok"] else "✗"
        print(f"  {status} {check['check_id']}")


def verify_cmd(args: Namespace) -> int:
    """
    Execute the verify command.

    Returns:
        Exit code
    """
    if args.results_path:
        results_path = Path(args.results_path)
    else:
        results_path = args.config_obj.output.results_file

    if not results_path.exists():
        print(f"Error: Results not found: {results_path}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    try:
        results = load_results(results_path)
        field_hash = build_field_hash(backend=results.hash_function, scheme=results.hash_scheme)
    except AirdropException as e:
        print(f"Error loading results: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    verification = validate_results(results, field_hash)
    summary = build_summary(
        results_path,
        results.root,
        results.hash_function,
        results.hash_scheme,
        len(results.leaves),
        verification,
        debug=args.debug,
    )

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)

    if not verification.ok:
        logger.error("%d checks failed for %s", summary.failed, results_path)
        return EXIT_VERIFICATION_FAILED
    return EXIT_SUCCESS
