"""
CLI Configuration

Resolves the RuntimeConfig used by every command: an explicit --config
file, else the first default location found, then environment overrides.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.config.runtime import RuntimeConfig


logger = logging.getLogger(__name__)


def default_config_paths() -> list[Path]:
    return [
        Path.cwd() / "airdrop.yaml",
        Path.cwd() / ".airdrop.yaml",
        Path.home() / ".config" / "airdrop" / "config.yaml",
    ]


def load_config(config_path: Path | None = None) -> RuntimeConfig:
    """
    Load configuration from file and/or environment.

    Environment variables override file settings.

    Args:
        config_path: Optional path to a YAML config file

    Returns:
        Merged configuration

    Raises:
        FileNotFoundError: If config_path is given but missing
        ConfigurationException: If a setting is invalid
    """
    if config_path is not None:
        config = RuntimeConfig.from_yaml(config_path)
    else:
        config = RuntimeConfig()
        for default_path in default_config_paths():
            if default_path.exists():
                logger.debug("Using config file %s", default_path)
                config = RuntimeConfig.from_yaml(default_path)
                break

    return config.with_env_overrides()


def get_default_config_template() -> str:
    """Get a template configuration file."""
    return """\
# Airdrop claim tree configuration.
# Environment variables (AIRDROP_* and SECRET) override these values.

tree:
  depth: 5                # leaves = 2 ** depth
  shape: dense            # dense | sparse
  bit_order: leaf_first   # sparse only: leaf_first | root_first
  zero_element: "0"       # dense only: padding leaf

hash:
  backend: poseidon       # poseidon | sha256
  scheme: smt             # smt | tagged

dataset:
  csv_path: data/addresses.csv
  key_column: address
  value_column: amount
  # secret: set SECRET in the environment or .env instead

output:
  out_dir: out
  proof_workers: 0

log_level: INFO
"""
