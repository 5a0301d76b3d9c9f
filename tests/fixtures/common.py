"""
Common test fixtures shared by all modules.

Addresses are built so that their low byte is the row number, which keeps
every key in its own sparse-tree slot for depths up to 8.
"""

import csv
from pathlib import Path
from typing import Optional, Sequence

from core.config.runtime import (
    DatasetConfig,
    HashConfig,
    OutputConfig,
    RuntimeConfig,
    TreeConfig,
)
from core.field.element import address_to_key
from orchestrator.dataset import DatasetEntry


TEST_SECRET = "test-secret"


def make_address(n: int, prefix: str = "a1" * 19) -> str:
    """Hex address whose low byte is n."""
    return f"0x{prefix}{n:02x}"


def make_rows(count: int, amount: int = 1000) -> list[tuple[str, str]]:
    """(address, amount) rows with increasing amounts."""
    return [(make_address(i), str(amount * (i + 1))) for i in range(count)]


def make_entries(count: int, amount: int = 1000) -> list[DatasetEntry]:
    return [
        DatasetEntry(
            identity=address,
            key=address_to_key(address),
            value=int(value),
            row_index=i + 1,
        )
        for i, (address, value) in enumerate(make_rows(count, amount))
    ]


def write_csv(
    path: Path,
    rows: Sequence[Sequence[str]],
    header: Sequence[str] = ("address", "amount"),
) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        writer.writerows(rows)
    return path


def make_config(
    out_dir: Optional[Path] = None,
    *,
    depth: int = 3,
    shape: str = "dense",
    backend: str = "sha256",
    scheme: str = "smt",
    secret: Optional[str] = TEST_SECRET,
    proof_workers: int = 0,
) -> RuntimeConfig:
    """Runtime config for fast builds with the sha256 backend."""
    config = RuntimeConfig(
        tree=TreeConfig(depth=depth, shape=shape),
        hash=HashConfig(backend=backend, scheme=scheme),
        dataset=DatasetConfig(secret=secret),
        output=OutputConfig(
            out_dir=str(out_dir) if out_dir is not None else "out",
            proof_workers=proof_workers,
        ),
    )
    config.dataset.secret = secret
    config.validate()
    return config
