"""
Results IO
File: io.py

Purpose: Save and load tree results and circuit inputs.

Format Rules:
- JSON with 2-space indent, camelCase keys
- Field elements as decimal strings
- Results file: TreeResults; inputs file: list of CircuitInputs
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from core.config.runtime import CIRCUIT_INPUTS_FILENAME, RESULTS_FILENAME, RuntimeConfig
from core.field.element import address_to_key, to_decimal
from core.schemas.errors import AirdropException, InvalidFieldElementException
from core.schemas.results import CircuitInputs, TreeResults

from orchestrator.pipeline import PipelineResult


logger = logging.getLogger(__name__)


class ResultsIOError(AirdropException):
    """Error reading or writing a results document."""

    def __init__(self, message: str, path: str | Path):
        super().__init__(message, code="RESULTS_IO_ERROR", details={"path": str(path)})
        self.path = Path(path)


def dump_json(obj: Any) -> str:
    """Serialize a model, list of models or dict to indented JSON."""
    if hasattr(obj, "to_json_dict"):
        data = obj.to_json_dict()
    elif isinstance(obj, list):
        data = [item.to_json_dict() if hasattr(item, "to_json_dict") else item for item in obj]
    else:
        data = obj
    return json.dumps(data, indent=2)


def _write_json_file(path: Path, obj: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_json(obj) + "\n", encoding="utf-8")
    return path


def _read_json_file(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Results file not found: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ResultsIOError(f"Invalid JSON in {path}: {e}", path) from e


def write_results(
    result: PipelineResult,
    out_dir: str | Path | None = None,
    config: Optional[RuntimeConfig] = None,
) -> tuple[Path, Path]:
    """
    Write the results document and circuit inputs.

    Args:
        result: A completed pipeline run
        out_dir: Output directory (defaults to config.output.out_dir)
        config: Runtime configuration

    Returns:
        (results path, circuit inputs path)
    """
    if result.results is None:
        raise ResultsIOError("Pipeline produced no results to write", out_dir or "")
    config = config or RuntimeConfig()
    out_path = Path(out_dir) if out_dir is not None else Path(config.output.out_dir)

    results_path = _write_json_file(out_path / RESULTS_FILENAME, result.results)
    logger.info("Results written to: %s", results_path)
    inputs_path = _write_json_file(out_path / CIRCUIT_INPUTS_FILENAME, result.circuit_inputs)
    logger.info("Circuit inputs written to: %s", inputs_path)
    return results_path, inputs_path


def load_results(path: str | Path) -> TreeResults:
    """Load and validate a results document."""
    path = Path(path)
    data = _read_json_file(path)
    try:
        return TreeResults.model_validate(data)
    except ValidationError as e:
        raise ResultsIOError(f"Invalid results document {path}: {e}", path) from e


def load_circuit_inputs(path: str | Path) -> list[CircuitInputs]:
    """Load and validate a circuit inputs file."""
    path = Path(path)
    data = _read_json_file(path)
    if not isinstance(data, list):
        raise ResultsIOError(f"Circuit inputs file {path} must hold a JSON list", path)
    try:
        return [CircuitInputs.model_validate(item) for item in data]
    except ValidationError as e:
        raise ResultsIOError(f"Invalid circuit inputs in {path}: {e}", path) from e


def circuit_inputs_from_results(results: TreeResults) -> list[CircuitInputs]:
    """Derive per-claimant circuit inputs from a results document."""
    return [
        CircuitInputs(
            merkle_root=results.root,
            nullifier_hash=leaf.nullifier_hash,
            user_address=leaf.key_uint,
            amount=leaf.value,
            nullifier=leaf.nullifier,
            path_elements=list(leaf.path_elements),
            path_indices=leaf.path_indices,
        )
        for leaf in results.leaves
    ]


def _address_to_decimal(address: str) -> Optional[str]:
    text = address.strip()
    try:
        if text.isdigit():
            return text.lstrip("0") or "0"
        return to_decimal(address_to_key(text))
    except InvalidFieldElementException:
        return None


def find_circuit_inputs(inputs: list[CircuitInputs], address: str) -> Optional[CircuitInputs]:
    """
    Find the inputs for an address, given as hex (any case, 0x optional)
    or as its decimal key.
    """
    target = _address_to_decimal(address)
    if target is None:
        return None
    for item in inputs:
        if item.user_address == target:
            return item
    return None
