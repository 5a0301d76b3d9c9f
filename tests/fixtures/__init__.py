"""
Test fixtures package for airdrop tree tests.

This package provides factory functions for creating test objects:
- common.py: dataset rows, entries, CSV files and runtime configs

Usage:
    from fixtures import make_entries, write_csv

    def test_something(tmp_path):
        csv_path = write_csv(tmp_path / "addresses.csv", make_rows(4))
"""

from .common import (
    TEST_SECRET,
    make_address,
    make_rows,
    make_entries,
    write_csv,
    make_config,
)

__all__ = [
    "TEST_SECRET",
    "make_address",
    "make_rows",
    "make_entries",
    "write_csv",
    "make_config",
]
