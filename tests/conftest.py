"""
Pytest configuration and shared fixtures for airdrop tree tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides session-scoped hash fixtures (hash setup runs once)
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_common = importlib.import_module("fixtures.common")

TEST_SECRET = _common.TEST_SECRET
make_entries = _common.make_entries
make_rows = _common.make_rows
write_csv = _common.write_csv
make_config = _common.make_config

from core.crypto.field_hash import build_field_hash


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture(scope="session")
def field_hash():
    """Ready sha256 FieldHash (smt scheme) for fast structural tests."""
    return build_field_hash("sha256")


@pytest.fixture(scope="session")
def tagged_hash():
    """Ready sha256 FieldHash with the tagged scheme."""
    return build_field_hash("sha256", scheme="tagged")


@pytest.fixture(scope="session")
def poseidon_hash():
    """Ready Poseidon FieldHash; building the permutations is slow."""
    return build_field_hash("poseidon")


@pytest.fixture
def secret_env(monkeypatch):
    """Set the nullifier secret in the environment."""
    monkeypatch.setenv("SECRET", TEST_SECRET)
    return TEST_SECRET


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every AIRDROP_* variable and SECRET for the test."""
    import os
    for name in list(os.environ):
        if name.startswith("AIRDROP_") or name == "SECRET":
            monkeypatch.delenv(name, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert checks[0].ok, f"Check '{check_id}' failed: {checks[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert not checks[0].ok, f"Check '{check_id}' unexpectedly passed"
    return _assert
