"""
Runtime Configuration

Central configuration for tree construction, hashing, dataset input and outputs.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional
from pathlib import Path

from dotenv import load_dotenv

from core.schemas.errors import ConfigurationException

load_dotenv()


RESULTS_FILENAME = "smt_results.json"
CIRCUIT_INPUTS_FILENAME = "inputs_circom.json"

TREE_SHAPES = ("dense", "sparse")


@dataclass
class TreeConfig:
    """Configuration for the authenticated tree."""
    depth: int = 5
    shape: str = "dense"
    bit_order: str = "leaf_first"
    zero_element: str = "0"


@dataclass
class HashConfig:
    """Configuration for the hash backend and domain-separation scheme."""
    backend: str = "poseidon"
    scheme: str = "smt"


@dataclass
class DatasetConfig:
    """Configuration for the input CSV and nullifier secret."""
    csv_path: str = "data/addresses.csv"
    key_column: str = "address"
    value_column: str = "amount"
    secret: Optional[str] = None

    def __post_init__(self):
        # Load secret from environment if not provided
        if self.secret is None:
            self.secret = os.getenv("SECRET")


@dataclass
class OutputConfig:
    """Configuration for written artifacts."""
    out_dir: str = "out"
    results_path: Optional[str] = None
    proof_workers: int = 0

    @property
    def results_file(self) -> Path:
        if self.results_path:
            return Path(self.results_path)
        return Path(self.out_dir) / RESULTS_FILENAME

    @property
    def circuit_inputs_file(self) -> Path:
        return Path(self.out_dir) / CIRCUIT_INPUTS_FILENAME


@dataclass
class RuntimeConfig:
    """
    Complete runtime configuration for an airdrop tree build.

    Can be loaded from:
    - Environment variables (and a .env file)
    - YAML file
    - Programmatic construction
    """
    tree: TreeConfig = field(default_factory=TreeConfig)
    hash: HashConfig = field(default_factory=HashConfig)
    dataset: DatasetConfig = field(default_factory=DatasetConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    log_level: str = "INFO"
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def _get_env_overrides() -> dict[str, Any]:
        """
        Get configuration overrides from environment variables.

        This is the SINGLE source of truth for all env var reading.

        Supported variables:
        - AIRDROP_TREE_DEPTH: Tree depth D
        - AIRDROP_TREE_SHAPE: "dense" or "sparse"
        - AIRDROP_BIT_ORDER: Sparse key bit order ("leaf_first"/"root_first")
        - AIRDROP_ZERO_ELEMENT: Dense padding leaf
        - AIRDROP_HASH_BACKEND: "poseidon" or "sha256"
        - AIRDROP_HASH_SCHEME: "smt" or "tagged"
        - AIRDROP_CSV_PATH: Input dataset
        - AIRDROP_OUT_DIR: Output directory
        - AIRDROP_RESULTS_PATH: Results file served by the API
        - AIRDROP_LOG_LEVEL: Logging level
        - SECRET: Nullifier secret
        """
        overrides: dict[str, Any] = {}

        # Tree settings
        if os.getenv("AIRDROP_TREE_DEPTH"):
            try:
                depth = int(os.getenv("AIRDROP_TREE_DEPTH", ""))
            except ValueError:
                raise ConfigurationException(
                    "AIRDROP_TREE_DEPTH must be an integer", setting="tree.depth"
                ) from None
            overrides.setdefault("tree", {})["depth"] = depth
        if os.getenv("AIRDROP_TREE_SHAPE"):
            overrides.setdefault("tree", {})["shape"] = os.getenv("AIRDROP_TREE_SHAPE")
        if os.getenv("AIRDROP_BIT_ORDER"):
            overrides.setdefault("tree", {})["bit_order"] = os.getenv("AIRDROP_BIT_ORDER")
        if os.getenv("AIRDROP_ZERO_ELEMENT"):
            overrides.setdefault("tree", {})["zero_element"] = os.getenv("AIRDROP_ZERO_ELEMENT")

        # Hash settings
        if os.getenv("AIRDROP_HASH_BACKEND"):
            overrides.setdefault("hash", {})["backend"] = os.getenv("AIRDROP_HASH_BACKEND")
        if os.getenv("AIRDROP_HASH_SCHEME"):
            overrides.setdefault("hash", {})["scheme"] = os.getenv("AIRDROP_HASH_SCHEME")

        # Dataset
        if os.getenv("AIRDROP_CSV_PATH"):
            overrides.setdefault("dataset", {})["csv_path"] = os.getenv("AIRDROP_CSV_PATH")
        if os.getenv("SECRET"):
            overrides.setdefault("dataset", {})["secret"] = os.getenv("SECRET")

        # Output
        if os.getenv("AIRDROP_OUT_DIR"):
            overrides.setdefault("output", {})["out_dir"] = os.getenv("AIRDROP_OUT_DIR")
        if os.getenv("AIRDROP_RESULTS_PATH"):
            overrides.setdefault("output", {})["results_path"] = os.getenv("AIRDROP_RESULTS_PATH")

        if os.getenv("AIRDROP_LOG_LEVEL"):
            overrides["log_level"] = os.getenv("AIRDROP_LOG_LEVEL")

        return overrides

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """
        Load configuration purely from environment variables.

        Uses defaults for any values not specified in env vars.
        """
        overrides = cls._get_env_overrides()
        return cls.from_dict(overrides)

    @classmethod
    def from_yaml(cls, path: str | Path) -> "RuntimeConfig":
        """Load configuration from a YAML file."""
        import yaml
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RuntimeConfig":
        """Load configuration from a dictionary (supports partial data)."""
        try:
            tree = TreeConfig(**(data.get("tree") or {}))
            hash_config = HashConfig(**(data.get("hash") or {}))
            dataset = DatasetConfig(**(data.get("dataset") or {}))
            output = OutputConfig(**(data.get("output") or {}))
        except TypeError as e:
            raise ConfigurationException(f"Invalid configuration: {e}") from e

        if isinstance(tree.zero_element, int):
            tree.zero_element = str(tree.zero_element)

        config = cls(
            tree=tree,
            hash=hash_config,
            dataset=dataset,
            output=output,
            log_level=data.get("log_level", "INFO"),
            extra=data.get("extra", {}),
        )
        config.validate()
        return config

    def validate(self) -> None:
        """
        Check settings that every command depends on.

        Raises:
            ConfigurationException: On the first invalid setting
        """
        if isinstance(self.tree.depth, bool) or not isinstance(self.tree.depth, int) or self.tree.depth < 1:
            raise ConfigurationException(
                f"Tree depth must be a positive integer, got {self.tree.depth!r}",
                setting="tree.depth",
            )
        if self.tree.shape not in TREE_SHAPES:
            raise ConfigurationException(
                f"Tree shape must be one of {list(TREE_SHAPES)}, got {self.tree.shape!r}",
                setting="tree.shape",
            )
        if self.output.proof_workers < 0:
            raise ConfigurationException(
                "proof_workers must be >= 0", setting="output.proof_workers"
            )

    def with_env_overrides(self) -> "RuntimeConfig":
        """
        Return a new config with environment variable overrides applied.

        This allows loading from a config file first, then overlaying env vars.
        """
        overrides = self._get_env_overrides()
        if not overrides:
            return self

        import copy
        new_config = copy.deepcopy(self)

        for section in ("tree", "hash", "dataset", "output"):
            if section in overrides:
                target = getattr(new_config, section)
                for key, value in overrides[section].items():
                    setattr(target, key, value)

        if "log_level" in overrides:
            new_config.log_level = overrides["log_level"]

        new_config.validate()
        return new_config

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to a dictionary. The secret is redacted."""
        return {
            "tree": {
                "depth": self.tree.depth,
                "shape": self.tree.shape,
                "bit_order": self.tree.bit_order,
                "zero_element": self.tree.zero_element,
            },
            "hash": {
                "backend": self.hash.backend,
                "scheme": self.hash.scheme,
            },
            "dataset": {
                "csv_path": self.dataset.csv_path,
                "key_column": self.dataset.key_column,
                "value_column": self.dataset.value_column,
                "secret": "<redacted>" if self.dataset.secret else None,
            },
            "output": {
                "out_dir": self.output.out_dir,
                "results_path": self.output.results_path,
                "proof_workers": self.output.proof_workers,
            },
            "log_level": self.log_level,
            "extra": self.extra,
        }


# Global default configuration
_default_config: Optional[RuntimeConfig] = None


def get_default_config() -> RuntimeConfig:
    """Get the default runtime configuration."""
    global _default_config
    if _default_config is None:
        _default_config = RuntimeConfig.from_env()
    return _default_config


def set_default_config(config: RuntimeConfig) -> None:
    """Set the default runtime configuration."""
    global _default_config
    _default_config = config
