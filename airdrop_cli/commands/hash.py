"""
CLI Hash Command

Evaluate one of the tree hashes on decimal or hex field elements.

Usage:
    airdrop hash <a> <b> [--kind node|leaf|nullifier] [--backend poseidon|sha256]
"""

from __future__ import annotations

import sys
from argparse import Namespace

from core.crypto.field_hash import build_field_hash
from core.field.element import to_decimal
from core.schemas.errors import AirdropException


EXIT_SUCCESS = 0
EXIT_RUNTIME_ERROR = 1

HASH_KINDS = ("node", "leaf", "nullifier")


def hash_cmd(args: Namespace) -> int:
    config = args.config_obj
    try:
        field_hash = build_field_hash(
            backend=args.backend or config.hash.backend,
            scheme=args.scheme or config.hash.scheme,
        )
        a = field_hash.field.element(args.a)
        b = field_hash.field.element(args.b)
    except AirdropException as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    if args.kind == "leaf":
        digest = field_hash.leaf_hash(a, b)
    elif args.kind == "nullifier":
        digest = field_hash.nullifier_hash(a, b)
    else:
        digest = field_hash.node_hash(a, b)

    print(to_decimal(digest))
    return EXIT_SUCCESS
