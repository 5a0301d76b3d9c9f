"""
Runtime Configuration Module

Provides configuration loading and management for airdrop tree builds.
"""

from .runtime import (
    CIRCUIT_INPUTS_FILENAME,
    RESULTS_FILENAME,
    DatasetConfig,
    HashConfig,
    OutputConfig,
    RuntimeConfig,
    TreeConfig,
    get_default_config,
    set_default_config,
)

__all__ = [
    "CIRCUIT_INPUTS_FILENAME",
    "RESULTS_FILENAME",
    "DatasetConfig",
    "HashConfig",
    "OutputConfig",
    "RuntimeConfig",
    "TreeConfig",
    "get_default_config",
    "set_default_config",
]
