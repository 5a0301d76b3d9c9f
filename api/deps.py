"""
API Dependencies

Shared configuration, hash and results loading for the API.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Optional

from core.config.runtime import RuntimeConfig
from core.crypto.field_hash import FieldHash, build_field_hash
from core.schemas.results import CircuitInputs, TreeResults
from orchestrator.artifacts.io import ResultsIOError, circuit_inputs_from_results, load_results

logger = logging.getLogger(__name__)


CONFIG_SEARCH_PATHS = (
    Path("airdrop.yaml"),
    Path(".airdrop.yaml"),
    Path.home() / ".config" / "airdrop" / "config.yaml",
)

_lock = threading.Lock()
# held for the whole backend setup; results lookups use _lock
_hash_lock = threading.Lock()
_field_hashes: dict[tuple[str, str], FieldHash] = {}
# path -> (mtime, results, circuit inputs)
_results_cache: dict[Path, tuple[float, TreeResults, list[CircuitInputs]]] = {}


def _load_runtime_config() -> RuntimeConfig:
    """Load RuntimeConfig from a config file, then overlay environment variables.

    Search order for config file:
      1. ./airdrop.yaml
      2. ./.airdrop.yaml
      3. ~/.config/airdrop/config.yaml

    Environment variables ALWAYS override config file values.
    The .env file is loaded automatically by core.config.runtime on import.
    """
    config: RuntimeConfig | None = None

    for path in CONFIG_SEARCH_PATHS:
        if path.exists():
            logger.info(f"Loading config from {path}")
            config = RuntimeConfig.from_yaml(path)
            break

    if config is None:
        config = RuntimeConfig()

    return config.with_env_overrides()


def get_config() -> RuntimeConfig:
    return _load_runtime_config()


def get_field_hash(config: Optional[RuntimeConfig] = None) -> FieldHash:
    """Ready FieldHash for the configured backend and scheme, built once."""
    config = config or get_config()
    cache_key = (config.hash.backend.lower(), config.hash.scheme.lower())
    with _hash_lock:
        field_hash = _field_hashes.get(cache_key)
        if field_hash is None:
            field_hash = build_field_hash(backend=config.hash.backend, scheme=config.hash.scheme)
            _field_hashes[cache_key] = field_hash
    return field_hash


def get_results(config: Optional[RuntimeConfig] = None) -> tuple[TreeResults, list[CircuitInputs]]:
    """
    Results document and derived circuit inputs, reloaded when the file changes.

    Raises:
        ResultsUnavailableError: If the file is missing or invalid
    """
    from api.errors import ResultsUnavailableError

    config = config or get_config()
    path = config.output.results_file
    try:
        mtime = path.stat().st_mtime
    except FileNotFoundError:
        raise ResultsUnavailableError(
            "No results file; run the build command first", details={"path": str(path)}
        ) from None

    with _lock:
        cached = _results_cache.get(path)
        if cached is not None and cached[0] == mtime:
            return cached[1], cached[2]

    try:
        results = load_results(path)
    except ResultsIOError as e:
        raise ResultsUnavailableError(e.message, details=e.details) from e
    inputs = circuit_inputs_from_results(results)
    logger.info(f"Loaded {len(results.leaves)} leaves from {path}")

    with _lock:
        _results_cache[path] = (mtime, results, inputs)
    return results, inputs


def results_available(config: Optional[RuntimeConfig] = None) -> bool:
    config = config or get_config()
    return config.output.results_file.exists()


def clear_caches() -> None:
    """Drop cached hashes and results."""
    with _hash_lock:
        _field_hashes.clear()
    with _lock:
        _results_cache.clear()
