"""
Airdrop CLI

Command-line interface for building and checking airdrop claim trees.

Usage:
    python -m airdrop_cli build --csv data/addresses.csv --out ./out
    python -m airdrop_cli verify out/smt_results.json
    python -m airdrop_cli proof 0x1234...
    python -m airdrop_cli hash 1 2 --kind node
"""

__version__ = "0.1.0"
