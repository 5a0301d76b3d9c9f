"""
CLI Commands

Each module exposes a `*_cmd(args) -> int` handler wired up in main.py.
"""

from airdrop_cli.commands import build, verify, proof, hash

__all__ = ["build", "verify", "proof", "hash"]
